"""Downloadable JSON payload for a finished extraction."""

import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ocr_parser.ocr.document_processor import PipelineRun


class ExtractionPayload(BaseModel):
    """Serialized result of one pipeline run, keyed in camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    file_type: str = Field(alias="fileType")
    processed_at: datetime = Field(alias="processedAt")
    page_count: int = Field(alias="pageCount")
    extracted_text: str = Field(alias="extractedText")
    structured_output: dict[str, Any] | None = Field(
        default=None, alias="structuredOutput"
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def build_payload(
    run: PipelineRun, processed_at: datetime | None = None
) -> ExtractionPayload:
    """Build the download payload for a finished run.

    Args:
        run: A run in ``done`` or ``failed`` state.
        processed_at: Completion timestamp. Defaults to now (UTC).

    Raises:
        ValueError: If the run has not finished or has no document.
    """
    if not run.finished or run.document is None:
        raise ValueError("Run has not finished")

    extracted = run.normalized_text if run.error is None else run.final_text
    return ExtractionPayload(
        filename=run.document.name,
        file_type=run.document.media_type,
        processed_at=processed_at or datetime.now(timezone.utc),
        page_count=run.page_count,
        extracted_text=extracted,
        structured_output=(
            run.structured_output.to_dict()
            if run.structured_output is not None
            else None
        ),
    )


def download_filename(timestamp_ms: int | None = None) -> str:
    """Return ``ocr-output-<unix-ms>.json``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"ocr-output-{timestamp_ms}.json"
