"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel

from ocr_parser.ocr.document_processor import PipelineRun, RunStatus


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    pdf_available: bool
    structuring_enabled: bool


class DocumentResponse(BaseModel):
    """Response schema for a selected document."""

    filename: str
    kind: str
    media_type: str
    size_bytes: int


class StructuredOutputResponse(BaseModel):
    """Tagged structuring result."""

    kind: str
    value: Any


class RunStatusResponse(BaseModel):
    """Progress of the current pipeline run."""

    generation: int
    status: RunStatus
    status_message: str


class ExtractionResponse(BaseModel):
    """Response schema for a finished pipeline run."""

    success: bool
    generation: int
    status: RunStatus
    filename: str
    page_count: int
    extracted_text: str
    final_text: str
    structured_output: StructuredOutputResponse | None = None
    error: str | None = None
    processing_time_ms: float

    @classmethod
    def from_run(cls, run: PipelineRun, processing_time_ms: float) -> "ExtractionResponse":
        structured = run.structured_output
        return cls(
            success=run.status is RunStatus.DONE,
            generation=run.generation,
            status=run.status,
            filename=run.document.name if run.document else "",
            page_count=run.page_count,
            extracted_text=run.normalized_text,
            final_text=run.final_text,
            structured_output=(
                StructuredOutputResponse(**structured.to_dict()) if structured else None
            ),
            error=run.error,
            processing_time_ms=processing_time_ms,
        )
