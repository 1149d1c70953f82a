"""Configuration management for the OCR parser.

Loads and validates YAML configuration with sensible defaults
for OCR, PDF rendering, and remote structuring settings.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class OCRConfig(BaseModel):
    """Configuration for Tesseract OCR and PDF rendering."""

    tesseract_cmd: str | None = None
    psm: int = 3
    pdf_scale: float = Field(default=2.0, gt=0)
    poppler_path: str | None = None


class StructuringConfig(BaseModel):
    """Configuration for the remote language-model structuring step."""

    enabled: bool = True
    model: str = "gemini-1.5-flash"
    base_url: str | None = GEMINI_OPENAI_BASE_URL
    api_key_env: str = "GEMINI_API_KEY"
    timeout_s: float = 60.0

    def api_key(self) -> str | None:
        """Read the service credential from the configured environment variable."""
        return os.environ.get(self.api_key_env) or None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    structuring: StructuringConfig = Field(default_factory=StructuringConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
