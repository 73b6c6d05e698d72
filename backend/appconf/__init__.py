"""HTTP service for typed application configuration entries."""

__version__ = "0.1.0"
