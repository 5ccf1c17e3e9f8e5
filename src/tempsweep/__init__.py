"""Tempsweep: concurrent cleaner for OS temporary and cache directories."""

__version__ = "2.0.0"
