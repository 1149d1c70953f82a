"""Tesseract OCR engine wrapper.

Recognizes English text in rendered PDF pages or raw image documents.
"""

import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from ocr_parser.utils.errors import EngineUnavailable, RecognitionEngineError
from ocr_parser.utils.logger import get_logger

from .document import Document, MediaKind, PageImage

logger = get_logger(__name__)

OCR_LANGUAGE = "eng"


class TesseractEngine:
    """Wrapper around Tesseract OCR for document text extraction.

    The recognition language is fixed to English.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        psm: Tesseract page segmentation mode.
    """

    def __init__(self, tesseract_cmd: str | None = None, psm: int = 3) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.psm = psm
        self.language = OCR_LANGUAGE
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def initialize(self) -> None:
        """Verify the Tesseract binary and English language data are installed.

        Raises:
            EngineUnavailable: If Tesseract cannot be run or lacks ``eng`` data.
        """
        try:
            version = pytesseract.get_tesseract_version()
            languages = pytesseract.get_languages(config="")
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as exc:
            raise EngineUnavailable(f"Tesseract is not available: {exc}") from exc

        if self.language not in languages:
            raise EngineUnavailable(
                f"Tesseract language data for {self.language!r} is not installed"
            )
        self._ready = True
        logger.info("Tesseract %s ready (lang=%s)", version, self.language)

    def recognize(self, source: PageImage | Document) -> str:
        """Recognize text in a page image or an image document.

        Args:
            source: A rendered PDF page, or a document of kind ``image``.

        Returns:
            Recognized text with surrounding whitespace trimmed. An image
            without any text yields an empty string.

        Raises:
            RecognitionEngineError: If the image cannot be decoded or
                Tesseract fails.
        """
        with self._to_pil(source) as image:
            try:
                text = pytesseract.image_to_string(
                    image, lang=self.language, config=f"--psm {self.psm}"
                )
            except (
                pytesseract.TesseractNotFoundError,
                pytesseract.TesseractError,
                RuntimeError,
            ) as exc:
                raise RecognitionEngineError(f"OCR failed: {exc}") from exc

        text = text.strip()
        logger.debug("Recognized %d characters", len(text))
        return text

    def _to_pil(self, source: PageImage | Document) -> Image.Image:
        if isinstance(source, PageImage):
            label = f"page {source.page_number}"
        elif source.kind is MediaKind.IMAGE:
            label = source.name
        else:
            raise ValueError(f"Cannot recognize a {source.kind} document directly")

        try:
            image = Image.open(io.BytesIO(source.data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise RecognitionEngineError(
                f"Could not decode image {label}: {exc}"
            ) from exc
        return image
