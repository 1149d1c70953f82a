"""Tests for the Tesseract OCR engine wrapper."""

from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from conftest import make_png_bytes
from ocr_parser.ocr.document import Document, MediaKind, PageImage
from ocr_parser.ocr.tesseract_engine import OCR_LANGUAGE, TesseractEngine
from ocr_parser.utils.errors import EngineUnavailable, RecognitionEngineError


class _TesseractError(Exception):
    pass


class _TesseractNotFoundError(OSError):
    pass


def _configure_errors(mock_pytesseract: MagicMock) -> None:
    mock_pytesseract.TesseractError = _TesseractError
    mock_pytesseract.TesseractNotFoundError = _TesseractNotFoundError


def _page() -> PageImage:
    return PageImage(
        page_number=1, data=make_png_bytes(width=200, height=100), width=200, height=100
    )


class TestTesseractEngineInit:
    """Tests for engine construction and initialization (mocked)."""

    def test_language_fixed_to_english(self) -> None:
        assert TesseractEngine().language == OCR_LANGUAGE == "eng"

    def test_custom_tesseract_cmd(self) -> None:
        with patch("ocr_parser.ocr.tesseract_engine.pytesseract") as mock_pt:
            TesseractEngine(tesseract_cmd="/usr/bin/tesseract")
            assert mock_pt.pytesseract.tesseract_cmd == "/usr/bin/tesseract"

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_initialize_ready(self, mock_pytesseract: MagicMock) -> None:
        _configure_errors(mock_pytesseract)
        mock_pytesseract.get_tesseract_version.return_value = "5.3.0"
        mock_pytesseract.get_languages.return_value = ["eng", "osd"]

        engine = TesseractEngine()
        engine.initialize()
        assert engine.ready

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_initialize_binary_missing(self, mock_pytesseract: MagicMock) -> None:
        _configure_errors(mock_pytesseract)
        mock_pytesseract.get_tesseract_version.side_effect = _TesseractNotFoundError()

        engine = TesseractEngine()
        with pytest.raises(EngineUnavailable):
            engine.initialize()
        assert not engine.ready

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_initialize_language_missing(self, mock_pytesseract: MagicMock) -> None:
        _configure_errors(mock_pytesseract)
        mock_pytesseract.get_tesseract_version.return_value = "5.3.0"
        mock_pytesseract.get_languages.return_value = ["deu", "osd"]

        with pytest.raises(EngineUnavailable, match="eng"):
            TesseractEngine().initialize()


class TestRecognize:
    """Tests for text recognition (mocked)."""

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_page_image_text_trimmed(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "  Hello World\n\f"

        text = TesseractEngine().recognize(_page())

        assert text == "Hello World"
        args, kwargs = mock_pytesseract.image_to_string.call_args
        assert isinstance(args[0], Image.Image)
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--psm 3"

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_image_document(
        self, mock_pytesseract: MagicMock, image_document: Document
    ) -> None:
        mock_pytesseract.image_to_string.return_value = "Receipt\n"

        assert TesseractEngine(psm=6).recognize(image_document) == "Receipt"
        assert mock_pytesseract.image_to_string.call_args.kwargs["config"] == "--psm 6"

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_no_text_returns_empty_string(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = " \n\n "
        assert TesseractEngine().recognize(_page()) == ""

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_engine_crash(self, mock_pytesseract: MagicMock) -> None:
        _configure_errors(mock_pytesseract)
        mock_pytesseract.image_to_string.side_effect = _TesseractError("crashed")

        with pytest.raises(RecognitionEngineError):
            TesseractEngine().recognize(_page())

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_undecodable_image(self, mock_pytesseract: MagicMock) -> None:
        doc = Document(
            data=b"not an image",
            kind=MediaKind.IMAGE,
            name="broken.png",
            media_type="image/png",
        )
        with pytest.raises(RecognitionEngineError, match="broken.png"):
            TesseractEngine().recognize(doc)
        mock_pytesseract.image_to_string.assert_not_called()

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_page_decoded_at_recognition(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "Page text"

        TesseractEngine().recognize(_page())

        image = mock_pytesseract.image_to_string.call_args.args[0]
        assert image.size == (200, 100)

    @patch("ocr_parser.ocr.tesseract_engine.pytesseract")
    def test_undecodable_page(self, mock_pytesseract: MagicMock) -> None:
        page = PageImage(page_number=4, data=b"garbage", width=10, height=10)
        with pytest.raises(RecognitionEngineError, match="page 4"):
            TesseractEngine().recognize(page)
        mock_pytesseract.image_to_string.assert_not_called()

    def test_pdf_document_rejected(self, pdf_document: Document) -> None:
        with pytest.raises(ValueError):
            TesseractEngine().recognize(pdf_document)
