"""Command-line interface for single-document extraction.

Runs the OCR pipeline over one image or PDF and prints or saves the
JSON payload, or starts the HTTP service.
"""

import argparse
import sys
from pathlib import Path

from ocr_parser.export.payload import build_payload, download_filename
from ocr_parser.main import serve
from ocr_parser.ocr.document import Document
from ocr_parser.ocr.document_processor import DocumentProcessor, RunStatus
from ocr_parser.utils.config import load_config
from ocr_parser.utils.errors import EngineUnavailable, UnsupportedMediaType
from ocr_parser.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _print_progress(status: RunStatus, message: str) -> None:
    if message:
        print(message, file=sys.stderr)


def extract_file(
    file_path: Path,
    config_path: Path | None = None,
    structure: bool = True,
    verbose: bool = False,
) -> tuple[bool, str]:
    """Run the pipeline over a single document file.

    Args:
        file_path: Image or PDF file to process.
        config_path: Optional YAML configuration file.
        structure: Whether to call the remote structuring service.
        verbose: Whether to print progress messages to stderr.

    Returns:
        Tuple of (run succeeded, payload JSON).

    Raises:
        UnsupportedMediaType: If the file is neither an image nor a PDF.
        EngineUnavailable: If the OCR engine cannot be initialized.
    """
    config = load_config(config_path)
    document = Document.from_path(file_path)
    logger.info("Processing %s (%s)", document.name, document.kind)

    processor = DocumentProcessor.from_config(
        config,
        on_progress=_print_progress if verbose else None,
        structure=structure,
    )
    processor.initialize()

    run = processor.extract(document)
    return run.status is RunStatus.DONE, build_payload(run).to_json()


def _write_output(output: Path, content: str) -> Path:
    if output.is_dir():
        output = output / download_filename()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content)
    return output


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="OCR text extraction for images and PDFs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser("extract", help="Process a single document")
    extract_parser.add_argument("file", type=Path, help="Image or PDF to process")
    extract_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output JSON file, or a directory for ocr-output-<ms>.json",
    )
    extract_parser.add_argument(
        "--no-structure",
        action="store_true",
        help="Skip the remote structuring step",
    )
    extract_parser.add_argument("-c", "--config", type=Path, help="YAML config file")
    extract_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print progress to stderr"
    )

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    if args.command == "extract":
        setup_logging("DEBUG" if args.verbose else "WARNING")
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            ok, output_str = extract_file(
                args.file, args.config, not args.no_structure, args.verbose
            )
        except (UnsupportedMediaType, EngineUnavailable) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)

        if args.output:
            written = _write_output(args.output, output_str)
            print(f"Output written to {written}")
        else:
            print(output_str)
        if not ok:
            sys.exit(1)
    elif args.command == "serve":
        serve(args.host, args.port)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
