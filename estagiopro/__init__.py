"""EstagioPro internship alerts service."""

__version__ = "0.1.0"
