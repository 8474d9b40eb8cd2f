import base64
import binascii
import re
from pathlib import Path
from typing import NamedTuple, Optional
from urllib.parse import unquote, unquote_to_bytes, urlparse

JPEG_CONTENT_TYPE = "image/jpeg"

# any "scheme://" prefix, used to reject URIs we cannot read
URI_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


class UnsupportedInputError(ValueError):
    pass


class ImagePayload(NamedTuple):
    data: bytes
    content_type: Optional[str]
    origin: str


def read_image_file(image_path):
    """Read a local image, always labelled as JPEG."""
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"{image_path} not found")
    return ImagePayload(image_path.read_bytes(), JPEG_CONTENT_TYPE, str(image_path))


def decode_data_uri(uri):
    """Decodes a data: URI into its raw bytes."""
    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        raise UnsupportedInputError("Malformed data URI: missing ',' separator")
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise UnsupportedInputError(f"Malformed data URI: {e}") from e
    return unquote_to_bytes(payload)


def resolve_source(source):
    """
    Turn an upload source into bytes ready for the multipart body.

    Accepted sources:
      - pathlib.Path or a path string (read from disk, labelled image/jpeg)
      - a file:// URI (same as a path)
      - bytes, bytearray or memoryview
      - a binary file-like object with read()
      - a data: URI string
    The content type is only set for filesystem sources; for the others it
    is left to the multipart encoder.
    """
    if isinstance(source, Path):
        return read_image_file(source)

    if isinstance(source, (bytes, bytearray, memoryview)):
        return ImagePayload(bytes(source), None, f"<{len(source)} bytes>")

    if isinstance(source, str):
        if not source:
            raise UnsupportedInputError("Empty string is not a valid image source")
        if source.startswith("data:"):
            data = decode_data_uri(source)
            return ImagePayload(data, None, "<data uri>")
        if source.startswith("file://"):
            return read_image_file(unquote(urlparse(source).path))
        if URI_SCHEME.match(source):
            raise UnsupportedInputError(f"Unsupported URI scheme: {source.split('://')[0]}")
        return read_image_file(source)

    if hasattr(source, "read"):
        data = source.read()
        if not isinstance(data, bytes):
            raise UnsupportedInputError("File-like sources must be opened in binary mode")
        return ImagePayload(data, None, str(getattr(source, "name", "<stream>")))

    raise UnsupportedInputError(f"Unsupported image source type: {type(source).__name__}")
