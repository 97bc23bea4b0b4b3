"""Daily scheduled token operations on Tempo."""

__version__ = "0.1.0"
