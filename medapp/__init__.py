"""Data layer for the medical appointment app."""

__version__ = "1.0.0"
