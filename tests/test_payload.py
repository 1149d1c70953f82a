"""Tests for the downloadable extraction payload."""

import json
from datetime import datetime, timezone

import pytest

from ocr_parser.export.payload import build_payload, download_filename
from ocr_parser.ocr.document import Document
from ocr_parser.ocr.document_processor import FAILURE_MESSAGE, PipelineRun, RunStatus
from ocr_parser.structuring.llm_structurer import StructuredOutput

PROCESSED_AT = datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)


def _done_run(document: Document, **overrides) -> PipelineRun:
    fields = dict(
        generation=1,
        document=document,
        status=RunStatus.DONE,
        page_count=2,
        normalized_text="Invoice 001 Total 500",
        final_text="Invoice 001 Total 500",
    )
    fields.update(overrides)
    return PipelineRun(**fields)


class TestBuildPayload:
    """Tests for build_payload."""

    def test_camel_case_shape(self, pdf_document: Document) -> None:
        payload = build_payload(_done_run(pdf_document), processed_at=PROCESSED_AT)
        data = json.loads(payload.to_json())

        assert set(data) == {
            "filename",
            "fileType",
            "processedAt",
            "pageCount",
            "extractedText",
            "structuredOutput",
        }
        assert data["filename"] == "report.pdf"
        assert data["fileType"] == "application/pdf"
        assert data["pageCount"] == 2
        assert data["extractedText"] == "Invoice 001 Total 500"
        assert data["structuredOutput"] is None
        assert datetime.fromisoformat(data["processedAt"]) == PROCESSED_AT

    def test_structured_output_tagged(self, image_document: Document) -> None:
        run = _done_run(
            image_document, structured_output=StructuredOutput.parsed({"total": "500"})
        )
        data = json.loads(build_payload(run).to_json())
        assert data["structuredOutput"] == {"kind": "parsed", "value": {"total": "500"}}

    def test_raw_structured_output(self, image_document: Document) -> None:
        run = _done_run(image_document, structured_output=StructuredOutput.raw("hello"))
        data = json.loads(build_payload(run).to_json())
        assert data["structuredOutput"] == {"kind": "raw", "value": "hello"}

    def test_failed_run_reports_failure_message(self, image_document: Document) -> None:
        run = _done_run(
            image_document,
            status=RunStatus.FAILED,
            normalized_text="",
            final_text=FAILURE_MESSAGE,
            error="RecognitionEngineError",
        )
        assert build_payload(run).extracted_text == FAILURE_MESSAGE

    def test_unfinished_run_rejected(self, image_document: Document) -> None:
        run = _done_run(image_document, status=RunStatus.RECOGNIZING)
        with pytest.raises(ValueError):
            build_payload(run)

    def test_default_timestamp_is_utc(self, image_document: Document) -> None:
        payload = build_payload(_done_run(image_document))
        assert payload.processed_at.tzinfo is not None


class TestDownloadFilename:
    """Tests for download_filename."""

    def test_explicit_timestamp(self) -> None:
        assert download_filename(1700000000123) == "ocr-output-1700000000123.json"

    def test_default_timestamp(self) -> None:
        name = download_filename()
        assert name.startswith("ocr-output-")
        assert name.endswith(".json")
        assert name[len("ocr-output-") : -len(".json")].isdigit()
