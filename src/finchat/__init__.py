"""Personal finance tracking over chat commands."""

__version__ = "0.1.0"
