"""
Fragment domain model.

Contains the Fragment record, the supported-type registry and the
conversion engine.
"""

from .fragment import Fragment
from .types import SUPPORTED_TYPES, formats_for, is_supported_type
from .conversion import ConversionResult, convert

__all__ = [
    'Fragment',
    'SUPPORTED_TYPES', 'formats_for', 'is_supported_type',
    'ConversionResult', 'convert',
]
