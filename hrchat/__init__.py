"""HR Chat: natural-language employee query and action engine."""

__version__ = "1.0.0"
