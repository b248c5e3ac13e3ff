"""Short link registry with expiring entries."""

__version__ = "1.0.0"
