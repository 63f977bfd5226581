"""lognorm - log type registry and normalization pipeline."""

__version__ = "0.4.0"
