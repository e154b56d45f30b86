"""ballot: leader election over a shared coordination service."""

__version__ = "0.1.0"
