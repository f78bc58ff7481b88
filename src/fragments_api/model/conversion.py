"""
Conversion engine.

Given a fragment, its payload and a requested extension or media type,
produces the payload in the requested representation or refuses with an
empty ``ConversionResult``. Refusal is a normal outcome and never raises.
"""

import csv
import io
import json
import logging
from html.parser import HTMLParser
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import yaml
from markdown_it import MarkdownIt
from PIL import Image

from fragments_api.model.fragment import Fragment
from fragments_api.model.types import CONVERSIONS, IMAGE_TYPES, resolve_extension

logger = logging.getLogger(__name__)

IMAGE_FAMILY = "image/*"

# Pillow format names for each supported image type
PILLOW_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
    "image/avif": "AVIF",
    "image/gif": "GIF",
}

Transcoder = Callable[[bytes], bytes]


class ConversionResult(NamedTuple):
    """Converted payload and its type; both None when conversion is refused."""
    data: Optional[bytes]
    type: Optional[str]

    @property
    def converted(self) -> bool:
        return self.type is not None


NOT_CONVERTIBLE = ConversionResult(None, None)


def source_family(mime_type: str) -> str:
    return IMAGE_FAMILY if mime_type in IMAGE_TYPES else mime_type


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig")


def passthrough(data: bytes) -> bytes:
    """Serve the same bytes under a different text type."""
    return data


_markdown = MarkdownIt("commonmark")


def markdown_to_html(data: bytes) -> bytes:
    return _markdown.render(_decode_text(data)).encode("utf-8")


class _TextExtractor(HTMLParser):
    SKIP_TAGS = {"script", "style"}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []
        self._skip = 0

    def handle_starttag(self, tag, attrs):
        if tag in self.SKIP_TAGS:
            self._skip += 1

    def handle_endtag(self, tag):
        if tag in self.SKIP_TAGS and self._skip:
            self._skip -= 1

    def handle_data(self, data):
        if not self._skip:
            self.parts.append(data)


def html_to_text(data: bytes) -> bytes:
    parser = _TextExtractor()
    parser.feed(_decode_text(data))
    parser.close()
    return "".join(parser.parts).strip().encode("utf-8")


def csv_to_json(data: bytes) -> bytes:
    """CSV with a header row -> JSON array of row objects."""
    reader = csv.DictReader(io.StringIO(_decode_text(data)))
    if reader.fieldnames is None:
        raise ValueError("CSV payload has no header row")
    rows = [dict(row) for row in reader]
    return json.dumps(rows, ensure_ascii=False).encode("utf-8")


def json_to_yaml(data: bytes) -> bytes:
    document = json.loads(_decode_text(data))
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True).encode("utf-8")


def image_transcoder(target_type: str) -> Transcoder:
    """Build a transcoder that re-encodes any supported image into target_type."""
    pillow_format = PILLOW_FORMATS[target_type]

    def transcode(data: bytes) -> bytes:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            animated = getattr(image, "n_frames", 1) > 1
            output = io.BytesIO()
            if animated and pillow_format in ("GIF", "WEBP"):
                image.save(output, format=pillow_format, save_all=True)
                return output.getvalue()

            if pillow_format == "JPEG":
                frame = image.convert("RGB")
            elif pillow_format in ("WEBP", "AVIF"):
                frame = image if image.mode in ("RGB", "RGBA") else image.convert("RGBA")
            else:
                frame = image if image.mode in ("RGB", "RGBA", "L", "LA", "P") else image.convert("RGBA")
            frame.save(output, format=pillow_format)
            return output.getvalue()

    return transcode


TRANSCODERS: Dict[Tuple[str, str], Transcoder] = {
    ("text/markdown", "text/html"): markdown_to_html,
    ("text/markdown", "text/plain"): passthrough,
    ("text/html", "text/plain"): html_to_text,
    ("text/csv", "text/plain"): passthrough,
    ("text/csv", "application/json"): csv_to_json,
    ("application/json", "text/plain"): passthrough,
    ("application/json", "application/yaml"): json_to_yaml,
    ("application/yaml", "text/plain"): passthrough,
    **{(IMAGE_FAMILY, image_type): image_transcoder(image_type) for image_type in IMAGE_TYPES},
}


def missing_transcoders() -> List[Tuple[str, str]]:
    """Declared conversions (excluding identity) with no transcoder registered."""
    missing = []
    for source, targets in CONVERSIONS.items():
        for target in targets:
            if target == source:
                continue
            if (source_family(source), target) not in TRANSCODERS:
                missing.append((source, target))
    return missing


def convert(fragment: Fragment, data: bytes, target: str) -> ConversionResult:
    """
    Convert a fragment's payload into the requested representation.

    Args:
        fragment: The fragment whose type drives the conversion
        data: The fragment's raw payload
        target: An extension ("html", ".png") or a media type ("text/html")

    Returns:
        ConversionResult with the converted bytes and type, or
        ConversionResult(None, None) if the conversion is not possible
    """
    desired_type = resolve_extension(target)
    source_type = fragment.mime_type

    if desired_type not in fragment.formats:
        logger.warning(f"Fragment {fragment.id} of type {source_type} can not be converted to {desired_type}")
        return NOT_CONVERTIBLE

    if desired_type == source_type:
        return ConversionResult(data, source_type)

    transcoder = TRANSCODERS.get((source_family(source_type), desired_type))
    if transcoder is None:
        logger.warning(f"No transcoder registered for {source_type} -> {desired_type}")
        return NOT_CONVERTIBLE

    try:
        converted = transcoder(data)
    except Exception as e:
        logger.error(f"Error converting fragment {fragment.id} from {source_type} to {desired_type}: {e}")
        return NOT_CONVERTIBLE

    logger.debug(f"Converted fragment {fragment.id} from {source_type} to {desired_type} ({len(converted)} bytes)")
    return ConversionResult(converted, desired_type)
