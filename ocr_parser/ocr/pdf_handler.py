"""PDF to page image conversion for multi-page OCR.

Renders each PDF page separately with poppler (via ``pdf2image``) at a
fixed upscaling factor over native PDF resolution.
"""

import io
import shutil
from collections.abc import Callable
from pathlib import Path

from pdf2image import convert_from_bytes, pdfinfo_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from ocr_parser.utils.errors import RasterizationError, RasterizerUnavailable
from ocr_parser.utils.logger import get_logger

from .document import PAGE_IMAGE_FORMAT, Document, MediaKind, PageImage

logger = get_logger(__name__)

PDF_NATIVE_DPI = 72
_POPPLER_BINARIES = ("pdfinfo", "pdftoppm")

ProgressCallback = Callable[[str], None]


class PDFHandler:
    """Renders PDF documents to page images for OCR processing.

    Args:
        scale: Upscaling factor applied to the native 72 DPI page size.
        poppler_path: Directory containing the poppler binaries.
            If ``None``, they are looked up on ``PATH``.
    """

    def __init__(self, scale: float = 2.0, poppler_path: str | None = None) -> None:
        self.scale = scale
        self.poppler_path = poppler_path
        self._ready = False

    @property
    def dpi(self) -> int:
        """Rendering resolution derived from the scale factor."""
        return round(PDF_NATIVE_DPI * self.scale)

    @property
    def ready(self) -> bool:
        return self._ready

    def initialize(self) -> None:
        """Check that the poppler binaries can be found.

        Raises:
            RasterizerUnavailable: If any required binary is missing.
        """
        search_path = str(Path(self.poppler_path)) if self.poppler_path else None
        missing = [
            name
            for name in _POPPLER_BINARIES
            if shutil.which(name, path=search_path) is None
        ]
        if missing:
            raise RasterizerUnavailable(
                f"PDF engine unavailable, missing poppler binaries: {', '.join(missing)}"
            )
        self._ready = True
        logger.debug("PDF engine ready at %d DPI", self.dpi)

    def get_page_count(self, pdf_bytes: bytes) -> int:
        """Get the number of pages in a PDF without rendering it."""
        info = pdfinfo_from_bytes(pdf_bytes, poppler_path=self.poppler_path)
        return int(info.get("Pages", 0))

    def rasterize(
        self,
        document: Document,
        on_progress: ProgressCallback | None = None,
    ) -> list[PageImage]:
        """Render every page of a PDF document, in page order.

        Args:
            document: A document of kind ``pdf``.
            on_progress: Called with a status message before each page renders.

        Returns:
            One encoded page image per page, numbered from 1.

        Raises:
            RasterizerUnavailable: If the PDF engine cannot be used.
            RasterizationError: If the PDF cannot be read or rendered.
        """
        if document.kind is not MediaKind.PDF:
            raise ValueError(f"Cannot rasterize a {document.kind} document")
        if not self._ready:
            self.initialize()

        try:
            page_count = self.get_page_count(document.data)
            pages: list[PageImage] = []
            for page_number in range(1, page_count + 1):
                if on_progress is not None:
                    on_progress(f"Converting PDF page {page_number} of {page_count}...")
                pages.append(self._render_page(document.data, page_number))
        except (PDFInfoNotInstalledError, OSError) as exc:
            self._ready = False
            raise RasterizerUnavailable(f"PDF engine unavailable: {exc}") from exc
        except (PDFPageCountError, PDFSyntaxError, PDFPopplerTimeoutError) as exc:
            raise RasterizationError(f"PDF conversion failed: {exc}") from exc

        logger.info(
            "Converted %s to %d images at %d DPI", document.name, len(pages), self.dpi
        )
        return pages

    def _render_page(self, pdf_bytes: bytes, page_number: int) -> PageImage:
        rendered = convert_from_bytes(
            pdf_bytes,
            dpi=self.dpi,
            first_page=page_number,
            last_page=page_number,
            poppler_path=self.poppler_path,
        )
        if not rendered:
            raise RasterizationError(f"Page {page_number} produced no image")
        image = rendered[0]
        buffer = io.BytesIO()
        try:
            image.save(buffer, format=PAGE_IMAGE_FORMAT)
            width, height = image.size
        except OSError as exc:
            raise RasterizationError(
                f"Could not encode page {page_number}: {exc}"
            ) from exc
        finally:
            image.close()
        logger.debug("Rendered page %d (%dx%d)", page_number, width, height)
        return PageImage(
            page_number=page_number, data=buffer.getvalue(), width=width, height=height
        )
