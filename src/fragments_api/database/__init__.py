"""
Local storage substrate for the Fragments API.

Provides the in-process key-value store used by the memory backend and as the
metadata store for the S3 backend.
"""

from .memory_db import MemoryDB

__all__ = ["MemoryDB"]
