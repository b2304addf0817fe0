"""Identity-preserving synchronization of generated menu trees."""

__version__ = "0.1.0"
