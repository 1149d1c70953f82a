"""Shared test fixtures for the OCR parser test suite."""

import io
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from ocr_parser.ocr.document import Document, MediaKind, PageImage
from ocr_parser.ocr.pdf_handler import PDFHandler
from ocr_parser.ocr.tesseract_engine import TesseractEngine


def make_png_bytes(width: int = 200, height: int = 100) -> bytes:
    """Create a minimal PNG image as bytes."""
    img = Image.fromarray(np.zeros((height, width, 3), dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_pages(count: int) -> list[PageImage]:
    """Create ``count`` blank PNG-encoded page images numbered from 1."""
    data = make_png_bytes(width=30, height=40)
    return [
        PageImage(page_number=i, data=data, width=30, height=40)
        for i in range(1, count + 1)
    ]


@pytest.fixture
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture
def image_document(png_bytes: bytes) -> Document:
    """A JPEG-declared image document."""
    return Document(
        data=png_bytes, kind=MediaKind.IMAGE, name="scan.jpg", media_type="image/jpeg"
    )


@pytest.fixture
def pdf_document() -> Document:
    """A PDF document with placeholder content."""
    return Document(
        data=b"%PDF-1.4 fake content",
        kind=MediaKind.PDF,
        name="report.pdf",
        media_type="application/pdf",
    )


@pytest.fixture
def mock_rasterizer() -> MagicMock:
    return MagicMock(spec=PDFHandler)


@pytest.fixture
def mock_recognizer() -> MagicMock:
    return MagicMock(spec=TesseractEngine)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
