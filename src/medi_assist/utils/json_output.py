"""
Parsing helpers to extract structured data from model responses.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

# Pattern for JSON block in markdown or raw text
_JSON_BLOCK_RE = re.compile(
    r"```(?:json)?\s*([\s\S]*?)```",
    re.IGNORECASE,
)

_decoder = json.JSONDecoder()


def extract_json_from_response(response: str) -> Optional[str]:
    """
    Extract a JSON object string from a model response (markdown code block or raw JSON).

    :param response: Raw response text that may contain JSON.
    :return: First decodable JSON object as a string, or None if not found.
    """
    if not response or not response.strip():
        return None

    # Prefer ```json ... ``` block
    for match in _JSON_BLOCK_RE.finditer(response):
        candidate = match.group(1).strip()
        if candidate.startswith("{") and candidate.endswith("}"):
            return candidate

    # Fallback: first '{' from which a whole object decodes
    start = response.find("{")
    while start != -1:
        try:
            _, end = _decoder.raw_decode(response, start)
        except json.JSONDecodeError:
            start = response.find("{", start + 1)
            continue
        return response[start:end]
    return None


def parse_json_object(response: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the first JSON object in response; None if there is none."""
    if not response:
        return None
    text = response.strip()
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        candidate = extract_json_from_response(text)
        if candidate is None:
            return None
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            logger.debug("json_candidate_undecodable", preview=candidate[:120])
            return None
    return value if isinstance(value, dict) else None
