"""Whitespace normalization for raw OCR output.

Collapses OCR line-break artifacts into a single line of prose.
"""

import re

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_TRAILING_BLANKS = re.compile(r"[ \t]+\n")
_MULTI_SPACE = re.compile(r" {2,}")


def normalize_text(text: str) -> str:
    """Flatten OCR text into a single line.

    The steps run in a fixed order, each consuming the previous output:
    cap newline runs at two, drop trailing blanks before newlines, turn
    paragraph breaks and then line breaks into spaces, squeeze repeated
    spaces, trim.

    The result never contains a newline or two consecutive spaces, and
    ``normalize_text(normalize_text(s)) == normalize_text(s)``.

    Args:
        text: Raw OCR text.

    Returns:
        Normalized single-line text.
    """
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _TRAILING_BLANKS.sub("\n", text)
    text = text.replace("\n\n", " ")
    text = text.replace("\n", " ")
    text = _MULTI_SPACE.sub(" ", text)
    return text.strip()
