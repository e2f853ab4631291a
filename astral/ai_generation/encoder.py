"""
Encode user-supplied seed images into inline parts for the story request.
"""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

from astral.common import ImageReadError

PathLike = str | Path
ImageSource = PathLike | BinaryIO | bytes

DEFAULT_MIME_TYPE = "image/jpeg"

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


@dataclass(frozen=True)
class InlineImagePart:
    """
    Base64 image payload paired with the MIME type of the original file.
    """

    mime_type: str
    data: str

    def as_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def as_message_part(self) -> dict[str, Any]:
        """Return the chat content part understood by LiteLLM providers."""
        return {"type": "image_url", "image_url": {"url": self.as_data_url()}}


def encode_image(source: ImageSource, *, mime_type: str | None = None) -> InlineImagePart:
    """
    Read ``source`` and return it as an :class:`InlineImagePart`.

    Parameters
    ----------
    source:
        A local file path, an open binary file-like object, or raw bytes.
    mime_type:
        Optional explicit MIME type. When omitted it is sniffed from the file
        signature, then guessed from the file name.

    Raises
    ------
    ImageReadError
        If the source cannot be read or is empty.
    """
    data, name = _read_source(source)
    if not data:
        raise ImageReadError(f"Seed image {name or '<bytes>'} is empty.")

    resolved_mime = mime_type or _sniff_mime_type(data) or _guess_mime_type(name) or DEFAULT_MIME_TYPE
    encoded = base64.b64encode(data).decode("ascii")
    return InlineImagePart(mime_type=resolved_mime, data=encoded)


def _read_source(source: ImageSource) -> tuple[bytes, str | None]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), None

    if hasattr(source, "read"):
        name = getattr(source, "name", None)
        try:
            data = source.read()  # type: ignore[union-attr]
        except OSError as exc:
            raise ImageReadError(f"Unable to read seed image {name or '<stream>'}: {exc}") from exc
        if isinstance(data, str):
            raise ImageReadError("Seed image stream must be opened in binary mode.")
        return data, str(name) if name is not None else None

    image_path = Path(source).expanduser()
    try:
        return image_path.read_bytes(), image_path.name
    except OSError as exc:
        raise ImageReadError(f"Unable to read seed image at '{image_path}': {exc}") from exc


def _sniff_mime_type(data: bytes) -> str | None:
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def _guess_mime_type(name: str | None) -> str | None:
    if not name:
        return None
    guessed, _ = mimetypes.guess_type(name)
    return guessed
