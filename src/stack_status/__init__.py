"""Graphite stack status with live CI check progress."""

__version__ = "0.1.0"
