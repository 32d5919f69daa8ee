"""Tabwise: browsing behavior detection engine."""

__version__ = "0.1.0"
