"""URL shortener with click analytics."""

__version__ = "0.1.0"
