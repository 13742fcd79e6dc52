"""procscope - inspect a single process from the terminal."""

__version__ = "0.3.0"
