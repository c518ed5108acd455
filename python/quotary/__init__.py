"""Quotary: quotes, authors and engagement counters."""

__version__ = "0.1.0"
