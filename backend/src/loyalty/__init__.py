"""Points-based loyalty program service."""

__version__ = "1.0.0"
