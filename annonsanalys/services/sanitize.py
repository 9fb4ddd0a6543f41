# annonsanalys/services/sanitize.py
from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..errors import UnparsableResponse

logger = logging.getLogger(__name__)

FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")
TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def clean_model_text(raw: str) -> str:
    """Reduce a model reply to the text most likely to be a JSON object."""
    text = (raw or "").strip()
    text = FENCE_OPEN.sub("", text)
    text = FENCE_CLOSE.sub("", text).strip()

    s, e = text.find("{"), text.rfind("}")
    if s >= 0 and e > s:
        text = text[s:e + 1]

    return TRAILING_COMMA.sub(r"\1", text)


def parse_model_json(raw: str) -> Any:
    """
    Parse the JSON object out of a free-form model reply.

    Code fences and prose around the outermost braces are dropped, and a
    comma directly before a closing brace or bracket is removed. Raises
    UnparsableResponse (with both texts attached) when that still isn't JSON.
    """
    cleaned = clean_model_text(raw)
    try:
        return json.loads(cleaned)
    except ValueError as e:
        logger.error("could not parse model JSON: %s\nraw: %r\ncleaned: %r", e, raw, cleaned)
        raise UnparsableResponse(f"model reply is not valid JSON: {e}", raw_text=raw, cleaned_text=cleaned) from e
