"""Document and page image models with media-type dispatch.

A :class:`Document` is the unit the pipeline operates on: either a single
image or a paginated PDF. Only ``image/*`` and ``application/pdf`` are
accepted; everything else is rejected before the pipeline starts.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from ocr_parser.utils.errors import UnsupportedMediaType

PDF_MEDIA_TYPE = "application/pdf"
PAGE_IMAGE_FORMAT = "PNG"
_GENERIC_MEDIA_TYPES = {None, "", "application/octet-stream"}


class MediaKind(StrEnum):
    """Kinds of documents the pipeline can process."""

    IMAGE = "image"
    PDF = "pdf"


def resolve_media_kind(
    media_type: str | None, filename: str = "", data: bytes = b""
) -> tuple[MediaKind, str]:
    """Determine the media kind of a document.

    A generic or missing declared type falls back to the filename suffix,
    then to the ``%PDF`` magic header.

    Args:
        media_type: Declared media type, e.g. ``"image/png"``.
        filename: Display name used for suffix-based guessing.
        data: Raw file content used for magic-byte sniffing.

    Returns:
        Tuple of (media kind, effective media type).

    Raises:
        UnsupportedMediaType: If the document is neither an image nor a PDF.
    """
    effective = (media_type or "").split(";")[0].strip().lower() or None

    if effective in _GENERIC_MEDIA_TYPES:
        guessed, _ = mimetypes.guess_type(filename) if filename else (None, None)
        if guessed is None and data[:4] == b"%PDF":
            guessed = PDF_MEDIA_TYPE
        effective = guessed

    if effective == PDF_MEDIA_TYPE:
        return MediaKind.PDF, effective
    if effective and effective.startswith("image/"):
        return MediaKind.IMAGE, effective
    raise UnsupportedMediaType(media_type, filename)


def is_supported_media_type(media_type: str | None) -> bool:
    """Return True if a declared media type may be selected as a document."""
    if not media_type:
        return False
    media_type = media_type.split(";")[0].strip().lower()
    return media_type == PDF_MEDIA_TYPE or media_type.startswith("image/")


@dataclass(frozen=True)
class Document:
    """An immutable document selected for processing."""

    data: bytes = field(repr=False)
    kind: MediaKind
    name: str
    media_type: str

    @property
    def size(self) -> int:
        """Size of the document in bytes."""
        return len(self.data)

    @classmethod
    def from_bytes(
        cls, data: bytes, media_type: str | None, filename: str = "document"
    ) -> "Document":
        """Build a document from raw content and its declared media type.

        Raises:
            UnsupportedMediaType: If the content is neither an image nor a PDF.
        """
        kind, effective = resolve_media_kind(media_type, filename, data)
        return cls(data=data, kind=kind, name=filename, media_type=effective)

    @classmethod
    def from_path(cls, path: Path) -> "Document":
        """Load a document from disk, guessing its media type from the suffix.

        Raises:
            FileNotFoundError: If the file does not exist.
            UnsupportedMediaType: If the file is neither an image nor a PDF.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {path}")
        media_type, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(path.read_bytes(), media_type, path.name)


@dataclass
class PageImage:
    """A rendered PDF page, held as an encoded image.

    Pages stay encoded until recognition so that a multi-page document
    keeps at most one decoded raster in memory.
    """

    page_number: int
    data: bytes = field(repr=False)
    width: int
    height: int
    format: str = PAGE_IMAGE_FORMAT

    @property
    def size(self) -> int:
        """Size of the encoded image in bytes."""
        return len(self.data)
