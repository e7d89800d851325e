"""
Response Parser

Turns a free-form model response into an :class:`Annotation`.

Two formats are understood:

- A JSON object with the four annotation keys (requested when JSON mode
  is enabled).
- The numbered-section convention (``1) ... 2) ... 3) ... 4) ...``). The
  text is split on every ``<digits>)`` marker and fragments are assigned
  positionally. Anything before the first marker is discarded.

The numbered split is also the fallback for responses that claim to be
JSON but do not validate.
"""

from __future__ import annotations

import re
import logging

from pydantic import ValidationError

from .models import Annotation

logger = logging.getLogger("mctx.parser")

SECTION_MARKER = re.compile(r"\d+\)")

DEFAULT_FALLBACK_LENGTH = 200


def parse_annotation(text: str, fallback_length: int = DEFAULT_FALLBACK_LENGTH) -> Annotation:
    """
    Parse a model response into an Annotation.

    Parameters
    ----------
    text : str
        Raw response text.
    fallback_length : int
        Number of leading characters of the raw response used as summary
        when no summary section is present.
    """
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            annotation = Annotation.model_validate_json(stripped)
        except ValidationError:
            logger.debug("Response is not a valid JSON annotation, using numbered sections")
        else:
            if not annotation.summary.strip():
                annotation = annotation.model_copy(update={"summary": text[:fallback_length]})
            return annotation

    return parse_numbered_sections(text, fallback_length)


def parse_numbered_sections(text: str, fallback_length: int = DEFAULT_FALLBACK_LENGTH) -> Annotation:
    sections = SECTION_MARKER.split(text)

    def _section(position: int) -> str:
        if position < len(sections):
            return sections[position].strip()
        return ""

    return Annotation(
        summary=_section(1) or text[:fallback_length],
        key_insights=_section(2),
        suggested_tags=_section(3),
        notable_features=_section(4),
    )
