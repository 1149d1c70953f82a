"""OCR Parser.

Extracts text from images and PDFs with Tesseract OCR, normalizes it,
and optionally structures it into key-value JSON with a remote
language model.
"""

__version__ = "1.0.0"
