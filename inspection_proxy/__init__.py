"""Backend proxy for the rental-car inspection app."""

__version__ = "1.0.0"
