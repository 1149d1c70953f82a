"""Application entry point for the OCR parser API server."""

import uvicorn

from ocr_parser.api.app import app
from ocr_parser.utils.config import load_config
from ocr_parser.utils.logger import setup_logging


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI application server."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host=host, port=port)


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
