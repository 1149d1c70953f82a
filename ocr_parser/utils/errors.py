"""Exception hierarchy for the OCR parsing pipeline.

Every pipeline stage raises a subclass of :class:`OCRParserError` so the
orchestrator can catch stage failures at a single boundary.
"""


class OCRParserError(Exception):
    """Base class for all pipeline errors."""


class UnsupportedMediaType(OCRParserError):
    """Raised when a file is neither an image nor a PDF."""

    def __init__(self, media_type: str | None, filename: str = "") -> None:
        self.media_type = media_type
        self.filename = filename
        super().__init__(
            f"Unsupported media type {media_type!r} for {filename or 'document'}"
        )


class EngineUnavailable(OCRParserError):
    """Raised when the OCR engine cannot be located or initialized."""


class RasterizerUnavailable(EngineUnavailable):
    """Raised when the PDF rendering engine (poppler) is not available."""


class RasterizationError(OCRParserError):
    """Raised when a PDF cannot be rendered to page images."""


class RecognitionEngineError(OCRParserError):
    """Raised when the OCR engine fails while recognizing an image."""


class StructuringError(OCRParserError):
    """Raised when the remote language-model service call fails."""
