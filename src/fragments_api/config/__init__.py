"""
Configuration management for the Fragments API.

Contains Pydantic settings for the storage backend, AWS wiring, HTTP limits
and authentication.
"""

from .settings import Settings, get_settings

__all__ = ['Settings', 'get_settings']
