"""FastAPI application for the OCR parser.

Holds a single workspace per process: one selected document and one
current pipeline run, which clients drive and poll over HTTP.
"""

import shutil
import threading
import time
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from ocr_parser import __version__
from ocr_parser.export.payload import build_payload, download_filename
from ocr_parser.ocr.document import is_supported_media_type
from ocr_parser.ocr.document_processor import DocumentProcessor
from ocr_parser.utils.config import load_config
from ocr_parser.utils.errors import EngineUnavailable
from ocr_parser.utils.logger import get_logger

from .schemas import (
    DocumentResponse,
    ExtractionResponse,
    HealthResponse,
    RunStatusResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="OCR Parser API",
    description="Extract text from images and PDFs and structure it as JSON",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_processor: DocumentProcessor | None = None
_processor_lock = threading.Lock()


def get_processor() -> DocumentProcessor:
    """Return the shared document processor, creating it on first use.

    Creation runs under a lock so that concurrent first requests share
    one workspace. A failed initialization is retried on the next call.
    """
    global _processor
    with _processor_lock:
        if _processor is None:
            processor = DocumentProcessor.from_config(load_config())
            processor.initialize()
            _processor = processor
        return _processor


def _processor_or_503() -> DocumentProcessor:
    try:
        return get_processor()
    except EngineUnavailable as exc:
        logger.error("OCR engine unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _select_upload(processor: DocumentProcessor, file: UploadFile) -> DocumentResponse:
    if not is_supported_media_type(file.content_type):
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {file.content_type}",
        )
    document = processor.select_document(
        file.file.read(), file.content_type, file.filename or "document"
    )
    if document is None:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {file.content_type}",
        )
    return DocumentResponse(
        filename=document.name,
        kind=document.kind.value,
        media_type=document.media_type,
        size_bytes=document.size,
    )


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which(config.ocr.tesseract_cmd or "tesseract")
        is not None,
        pdf_available=shutil.which("pdftoppm", path=config.ocr.poppler_path)
        is not None,
        structuring_enabled=config.structuring.enabled
        and config.structuring.api_key() is not None,
    )


@app.post("/documents", response_model=DocumentResponse)
def select_document(file: Annotated[UploadFile, File(...)]) -> DocumentResponse:
    """Select an image or PDF as the current document."""
    return _select_upload(_processor_or_503(), file)


@app.post("/extract", response_model=ExtractionResponse)
def extract(
    file: Annotated[UploadFile | None, File()] = None,
) -> ExtractionResponse:
    """Run the pipeline over an uploaded or previously selected document.

    Stage failures are reported in the response body with ``success=False``.
    """
    processor = _processor_or_503()
    if file is not None:
        _select_upload(processor, file)
    if processor.document is None:
        raise HTTPException(status_code=409, detail="No document selected")

    start_time = time.time()
    run = processor.extract()
    return ExtractionResponse.from_run(run, (time.time() - start_time) * 1000)


@app.get("/status", response_model=RunStatusResponse)
def run_status() -> RunStatusResponse:
    """Return the status of the current pipeline run."""
    run = _processor_or_503().current_run
    return RunStatusResponse(
        generation=run.generation,
        status=run.status,
        status_message=run.status_message,
    )


@app.get("/output")
def download_output() -> Response:
    """Download the current run's result as a JSON file."""
    run = _processor_or_503().current_run
    if not run.finished:
        raise HTTPException(status_code=404, detail="No finished extraction")

    payload = build_payload(run)
    return Response(
        content=payload.to_json(),
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{download_filename()}"'
        },
    )
