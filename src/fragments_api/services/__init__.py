"""
Fragments API service layer.

Contains the fragment service that combines storage backends with the type
registry and conversion engine.
"""

from .fragment_service import FragmentService

__all__ = ['FragmentService']
