"""Face-matching attendance service."""

__version__ = "0.1.0"
