"""Comment-embedded conditional compilation for multi-variant source trees."""

__version__ = "0.1.0"
