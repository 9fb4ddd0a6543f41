# annonsanalys/services/ai.py
from __future__ import annotations

import logging
from typing import Any, Optional

import openai

from ..errors import EmptyModelResponse, ModelBlocked, ModelUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
SYSTEM_PROMPT = "You compare job ads for candidates and answer with JSON only."

_BLOCK_CODES = {"content_filter", "content_policy_violation"}


def _response_format(schema: Optional[dict]) -> dict:
    if schema:
        return {
            "type": "json_schema",
            "json_schema": {"name": "ad_comparison", "schema": schema, "strict": False},
        }
    return {"type": "json_object"}


def call_json_model(
    client,
    prompt: str,
    *,
    schema: Optional[dict] = None,
    model: Optional[str] = None,
    max_tokens: int = 4096,
    temperature: float = 0.4,
) -> str:
    """
    Send one prompt to the chat model and return its raw text.

    JSON output is requested, but the provider is not trusted to honour it;
    callers still have to run the text through ``parse_model_json``.
    Nothing is retried here.
    """
    model = model or DEFAULT_MODEL
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format=_response_format(schema),
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except openai.APIStatusError as e:
        code = getattr(e, "code", None)
        if code in _BLOCK_CODES:
            raise ModelBlocked(code) from e
        logger.exception("model call failed (model=%s)", model)
        raise ModelUnavailable(f"model call failed: {e.message}", status=e.status_code) from e
    except openai.APIError as e:
        # connection errors and timeouts carry no status
        logger.exception("model call failed (model=%s)", model)
        raise ModelUnavailable(f"model call failed: {e}") from e

    choices = getattr(resp, "choices", None) or []
    if not choices:
        raise EmptyModelResponse("model returned no choices")

    choice: Any = choices[0]
    message = getattr(choice, "message", None)
    refusal = getattr(message, "refusal", None)
    if refusal:
        raise ModelBlocked(refusal)
    finish_reason = getattr(choice, "finish_reason", None)
    if finish_reason == "content_filter":
        raise ModelBlocked("content_filter")

    text = (getattr(message, "content", None) or "").strip()
    if not text:
        raise EmptyModelResponse("model returned an empty text")
    if finish_reason == "length":
        logger.warning("model output hit max_tokens=%s; JSON is probably truncated", max_tokens)
    return text
