"""Typed configuration for flymap subsystems."""
