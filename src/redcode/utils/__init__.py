"""Utility helpers (file I/O, logging)."""
