"""
Supported content types and the conversion table.

The table below is the single source of truth for which media types a
fragment may be created with and which representations each type can be
served as. Changing supported types or legal conversions means editing
``CONVERSIONS``, not the conversion engine.
"""

import logging
import mimetypes
from typing import Dict, List, Optional, Tuple

from fragments_api.exceptions import UnsupportedTypeError

logger = logging.getLogger(__name__)

IMAGE_TYPES = (
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/avif",
    "image/gif",
)

CONVERSIONS: Dict[str, Tuple[str, ...]] = {
    "text/plain": ("text/plain",),
    "text/markdown": ("text/plain", "text/markdown", "text/html"),
    "text/html": ("text/plain", "text/html"),
    "text/csv": ("text/plain", "text/csv", "application/json"),
    "application/json": ("text/plain", "application/json", "application/yaml"),
    "application/yaml": ("text/plain", "application/yaml"),
    **{image_type: IMAGE_TYPES for image_type in IMAGE_TYPES},
}

SUPPORTED_TYPES: Tuple[str, ...] = tuple(CONVERSIONS)

EXTENSION_TYPES: Dict[str, str] = {
    "txt": "text/plain",
    "md": "text/markdown",
    "markdown": "text/markdown",
    "html": "text/html",
    "htm": "text/html",
    "csv": "text/csv",
    "json": "application/json",
    "yaml": "application/yaml",
    "yml": "application/yaml",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "avif": "image/avif",
    "gif": "image/gif",
}

# Preferred extension per type (first listed wins)
TYPE_EXTENSIONS: Dict[str, str] = {}
for _ext, _mime in EXTENSION_TYPES.items():
    TYPE_EXTENSIONS.setdefault(_mime, _ext)


def parse_content_type(value: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type value into its mime type and parameters.

    "text/plain; charset=utf-8" -> ("text/plain", {"charset": "utf-8"})

    Args:
        value: A Content-Type header value

    Returns:
        Tuple of lower-cased mime type and a dict of parameters

    Raises:
        UnsupportedTypeError: If the value is not a type/subtype string
    """
    if not isinstance(value, str):
        raise UnsupportedTypeError(value)

    media_type, *raw_params = value.split(";")
    media_type = media_type.strip().lower()
    main_type, sep, subtype = media_type.partition("/")
    if not sep or not main_type or not subtype or " " in media_type:
        raise UnsupportedTypeError(value)

    params: Dict[str, str] = {}
    for raw in raw_params:
        key, sep, param_value = raw.partition("=")
        key = key.strip().lower()
        if not key:
            continue
        params[key] = param_value.strip().strip('"') if sep else ""
    return media_type, params


def mime_type_of(value: str) -> str:
    """Return the type/subtype of a Content-Type value without parameters."""
    return parse_content_type(value)[0]


def is_supported_type(value: str) -> bool:
    """True if the Content-Type value's mime type is in the registry."""
    try:
        mime_type = mime_type_of(value)
    except UnsupportedTypeError:
        logger.debug(f"Content type {value!r} could not be parsed")
        return False
    supported = mime_type in CONVERSIONS
    logger.debug(f"Content type {mime_type} is supported: {supported}")
    return supported


def formats_for(mime_type: str) -> List[str]:
    """Representations a fragment of this mime type can be served as."""
    return list(CONVERSIONS.get(mime_type, ()))


def resolve_extension(ext_or_type: str) -> str:
    """
    Resolve a file extension (or a media type) to a canonical mime type.

    Unresolvable values are returned as-is so they fail the format check
    downstream instead of raising here.
    """
    value = ext_or_type.strip()
    if "/" in value:
        try:
            return mime_type_of(value)
        except UnsupportedTypeError:
            return value

    ext = value.lstrip(".").lower()
    if ext in EXTENSION_TYPES:
        return EXTENSION_TYPES[ext]

    guessed, _ = mimetypes.guess_type(f"fragment.{ext}", strict=False)
    return guessed or value


def extension_for(mime_type: str) -> Optional[str]:
    """Preferred file extension for a mime type, if known."""
    return TYPE_EXTENSIONS.get(mime_type) or (mimetypes.guess_extension(mime_type) or "").lstrip(".") or None
