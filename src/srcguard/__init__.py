"""srcguard - license header and style gate for source trees."""

__version__ = "0.1.0"
