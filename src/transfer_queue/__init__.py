"""Persistent transfer queue with a single connection-bounded worker."""

__version__ = "0.1.0"

__all__ = ["__version__"]
