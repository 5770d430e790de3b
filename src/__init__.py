"""Multi-platform product search with resilient classification."""

__version__ = "1.0.0"
