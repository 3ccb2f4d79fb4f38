"""Libao: lot-based portfolio tracker for Taiwan and US equities."""

__version__ = "0.1.0"
