"""Gacha draw engine with local and database-backed session persistence."""

__version__ = "0.1.0"
