"""In-memory partitioned message broker with consumer groups, served over TCP."""

__version__ = "0.1.0"
__all__ = ["__version__"]