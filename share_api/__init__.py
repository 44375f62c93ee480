"""Share-link service for notebook documents."""

__version__ = "0.1.0"
