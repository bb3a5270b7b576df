"""flymap Logging: hexagonal logging port and adapters."""

from flymap.logging.port import LoggingPort
from flymap.logging.stdlib_adapter import StdlibLoggingAdapter
from flymap.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StdlibLoggingAdapter", "StructlogAdapter"]
