"""Fragments API: owner-scoped content storage with type conversion."""

__version__ = "0.1.0"
