"""Turns raw provider text into an AIResponse, tolerating formatting noise."""

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .errors import MalformedResponse
from .models import AIResponse, ChangeProposal

logger = logging.getLogger(__name__)

DEFAULT_TEXT = "Here is the code."

_LEADING_FENCE = re.compile(r"^\s*```[\w+.#-]*[ \t]*(?:\r?\n)?")
_TRAILING_FENCE = re.compile(r"(?:\r?\n)?```\s*$")


def strip_fences(raw_text: str) -> str:
    """Removes one leading and one trailing code fence line, whatever the label."""
    cleaned = _LEADING_FENCE.sub("", raw_text, count=1)
    return _TRAILING_FENCE.sub("", cleaned, count=1)


def decode(raw_text: str) -> Dict[str, Any]:
    """Decodes provider text as a single JSON object.

    Raises
    ------
    MalformedResponse
        If the cleaned text is not valid JSON or not an object.
    """
    cleaned = strip_fences(raw_text)
    try:
        document = json.loads(cleaned)
    except ValueError as e:
        raise MalformedResponse(raw_text, str(e)) from e
    if not isinstance(document, dict):
        kind = type(document).__name__
        raise MalformedResponse(raw_text, f"expected an object, got {kind}")
    return document


def parse_proposal(value: Any) -> Optional[ChangeProposal]:
    """Validates a structuredData value as a whole; anything malformed is None."""
    if not isinstance(value, dict):
        return None
    try:
        return ChangeProposal.model_validate(value)
    except ValidationError as e:
        logger.warning("Discarding malformed structuredData: %s", e.errors())
        return None


def parse(raw_text: str) -> AIResponse:
    """Extracts the conversational reply and optional change proposal.

    Never raises: text that cannot be decoded becomes a plain chat reply
    carrying the raw, uncleaned input.
    """
    try:
        document = decode(raw_text)
    except MalformedResponse as e:
        logger.warning("Failed to parse JSON response (%s)", e.message)
        return AIResponse(text=raw_text, structured_data=None)

    text = document.get("text")
    if not isinstance(text, str):
        text = DEFAULT_TEXT
    return AIResponse(
        text=text, structured_data=parse_proposal(document.get("structuredData"))
    )
