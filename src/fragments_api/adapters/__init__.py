"""
Adapter layer for the Fragments API.

Contains the storage backend contract and its local (in-memory) and S3
implementations.
"""

from .storage import BaseStorage, MemoryStorage, S3Storage, get_storage_backend

__all__ = ['BaseStorage', 'MemoryStorage', 'S3Storage', 'get_storage_backend']
