"""Document-to-text pipeline orchestration.

Dispatches a document by kind, rasterizes PDFs page by page, runs OCR on
each page in order, normalizes the combined text, and optionally asks a
remote language model to structure it.

Each extraction is a :class:`PipelineRun`. Starting a new run or selecting
a new document supersedes the previous run: its later state updates are
discarded and it stops at the next step.
"""

import json
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import StrEnum

from ocr_parser.structuring.llm_structurer import (
    LLMStructurer,
    StructuredKind,
    StructuredOutput,
)
from ocr_parser.utils.config import AppConfig
from ocr_parser.utils.errors import RasterizerUnavailable, UnsupportedMediaType
from ocr_parser.utils.logger import get_logger

from .document import Document, MediaKind, PageImage
from .normalizer import normalize_text
from .pdf_handler import PDFHandler
from .tesseract_engine import TesseractEngine

logger = get_logger(__name__)

PAGE_SEPARATOR = "\n\n"
FAILURE_MESSAGE = "Error during OCR processing."


class RunStatus(StrEnum):
    """Pipeline run states."""

    IDLE = "idle"
    CONVERTING = "converting"
    RECOGNIZING = "recognizing"
    NORMALIZING = "normalizing"
    STRUCTURING = "structuring"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({RunStatus.DONE, RunStatus.FAILED})


@dataclass
class PipelineRun:
    """State of one extraction over one document."""

    generation: int
    document: Document | None = None
    status: RunStatus = RunStatus.IDLE
    status_message: str = ""
    pages: list[PageImage] = field(default_factory=list)
    page_count: int = 0
    accumulated_text: str = ""
    normalized_text: str = ""
    final_text: str = ""
    structured_output: StructuredOutput | None = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in TERMINAL_STATUSES


ProgressListener = Callable[[RunStatus, str], None]


class RunSuperseded(Exception):
    """Raised inside a run once a newer run or document has replaced it."""


class DocumentProcessor:
    """Drives the rasterize, recognize, normalize and structure steps.

    Engine handles are injected; call :meth:`initialize` once before the
    first extraction.

    Args:
        rasterizer: PDF page renderer.
        recognizer: OCR engine.
        structurer: Optional remote structuring client.
        on_progress: Called with (status, message) whenever the current
            run publishes a status change.
    """

    def __init__(
        self,
        rasterizer: PDFHandler,
        recognizer: TesseractEngine,
        structurer: LLMStructurer | None = None,
        on_progress: ProgressListener | None = None,
    ) -> None:
        self.rasterizer = rasterizer
        self.recognizer = recognizer
        self.structurer = structurer
        self.on_progress = on_progress
        self._lock = threading.Lock()
        self._generation = 0
        self._document: Document | None = None
        self._current = PipelineRun(generation=0)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        on_progress: ProgressListener | None = None,
        structure: bool = True,
    ) -> "DocumentProcessor":
        """Build a processor and its engines from application configuration."""
        return cls(
            rasterizer=PDFHandler(
                scale=config.ocr.pdf_scale, poppler_path=config.ocr.poppler_path
            ),
            recognizer=TesseractEngine(
                tesseract_cmd=config.ocr.tesseract_cmd, psm=config.ocr.psm
            ),
            structurer=LLMStructurer.from_config(config.structuring)
            if structure
            else None,
            on_progress=on_progress,
        )

    def initialize(self) -> None:
        """Initialize the OCR engine and, when possible, the PDF engine.

        Raises:
            EngineUnavailable: If the OCR engine cannot be initialized.
        """
        self.recognizer.initialize()
        try:
            self.rasterizer.initialize()
        except RasterizerUnavailable as exc:
            logger.warning("PDF support disabled: %s", exc)

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def current_run(self) -> PipelineRun:
        """Snapshot of the current run state."""
        with self._lock:
            return replace(self._current, pages=list(self._current.pages))

    def select_document(
        self, data: bytes, media_type: str | None, filename: str = "document"
    ) -> Document | None:
        """Select a new document, discarding the current run.

        Files that are neither images nor PDFs are ignored and leave the
        current state untouched.

        Returns:
            The selected document, or ``None`` if the file was ignored.
        """
        try:
            document = Document.from_bytes(data, media_type, filename)
        except UnsupportedMediaType as exc:
            logger.info("Ignoring selection: %s", exc)
            return None

        with self._lock:
            self._generation += 1
            self._document = document
            self._current = PipelineRun(generation=self._generation, document=document)
        logger.info(
            "Selected %s (%s, %d bytes)", document.name, document.kind, document.size
        )
        return document

    def extract(self, document: Document | None = None) -> PipelineRun:
        """Run the full pipeline over a document.

        Stage failures never propagate: they end the run in ``failed`` with
        a generic message.

        Args:
            document: Document to process. Defaults to the selected document.

        Returns:
            The finished run. A run superseded while in flight is returned
            in whatever state it reached.

        Raises:
            ValueError: If no document is given or selected.
        """
        with self._lock:
            document = document or self._document
            if document is None:
                raise ValueError("No document selected")
            self._generation += 1
            self._document = document
            run = PipelineRun(generation=self._generation, document=document)
            self._current = run

        try:
            self._update(run, status_message="Starting...")
            self._run_pipeline(run, document)
        except RunSuperseded:
            logger.info("Run %d superseded, discarding its results", run.generation)
        return run

    def _run_pipeline(self, run: PipelineRun, document: Document) -> None:
        try:
            raw_text = self._recognize_document(run, document)
        except RunSuperseded:
            raise
        except Exception as exc:
            logger.exception("OCR processing failed for %s", document.name)
            self._update(
                run,
                status=RunStatus.FAILED,
                status_message="",
                final_text=FAILURE_MESSAGE,
                structured_output=None,
                error=type(exc).__name__,
            )
            return

        self._update(
            run,
            status=RunStatus.NORMALIZING,
            status_message="Normalizing text...",
            accumulated_text=raw_text,
        )
        normalized = normalize_text(raw_text)
        self._update(run, normalized_text=normalized)

        structured = self._structure(run, normalized)
        if structured is None:
            final_text = normalized
        elif structured.kind is StructuredKind.PARSED:
            final_text = json.dumps(structured.value, indent=2, ensure_ascii=False)
        else:
            final_text = structured.value
        self._update(
            run,
            status=RunStatus.DONE,
            status_message="",
            final_text=final_text,
            structured_output=structured,
        )
        logger.info(
            "Extracted %d characters from %s", len(normalized), document.name
        )

    def _recognize_document(self, run: PipelineRun, document: Document) -> str:
        """Produce the concatenated OCR text of a document, in page order."""
        if document.kind is MediaKind.IMAGE:
            self._update(
                run,
                status=RunStatus.RECOGNIZING,
                status_message="Processing image...",
                page_count=1,
            )
            return self.recognizer.recognize(document)

        self._update(
            run,
            status=RunStatus.CONVERTING,
            status_message="Converting PDF to images...",
        )
        pages = self.rasterizer.rasterize(
            document, on_progress=lambda message: self._update(run, status_message=message)
        )
        self._update(run, pages=pages, page_count=len(pages))
        if not pages:
            logger.warning("%s has no renderable pages", document.name)
            return ""

        page_texts: list[str] = []
        for index, page in enumerate(pages, 1):
            self._update(
                run,
                status=RunStatus.RECOGNIZING,
                status_message=f"Processing page {index} of {len(pages)}...",
            )
            text = self.recognizer.recognize(page)
            if text.strip():
                page_texts.append(text)
            else:
                logger.debug("Page %d of %s has no text", page.page_number, document.name)
        self._update(run, pages=[])
        return PAGE_SEPARATOR.join(page_texts)

    def _structure(self, run: PipelineRun, text: str) -> StructuredOutput | None:
        if self.structurer is None:
            return None

        self._update(
            run, status=RunStatus.STRUCTURING, status_message="Structuring text..."
        )
        try:
            return self.structurer.structure(text)
        except Exception as exc:
            logger.error("Structuring failed, using normalized text: %s", exc)
            return None

    def _update(self, run: PipelineRun, **changes: object) -> None:
        """Apply state changes if ``run`` is still the current run.

        Raises:
            RunSuperseded: If a newer run or document replaced ``run``.
        """
        with self._lock:
            if run.generation != self._generation:
                logger.debug(
                    "Dropping update for stale run %d (current %d)",
                    run.generation,
                    self._generation,
                )
                raise RunSuperseded(run.generation)
            for name, value in changes.items():
                setattr(run, name, value)
            status, message = run.status, run.status_message

        if self.on_progress is not None and (
            "status" in changes or "status_message" in changes
        ):
            self.on_progress(status, message)
