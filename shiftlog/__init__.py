"""Emergency-service shift scheduling and performance logging backend."""

__version__ = "0.1.0"
