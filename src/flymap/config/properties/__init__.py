"""Typed configuration property classes for each flymap subsystem."""

from flymap.config.properties.logging import LoggingProperties
from flymap.config.properties.mapper import MapperProperties

__all__ = [
    "LoggingProperties",
    "MapperProperties",
]
