"""Recover a JSON object from model output that may wrap it in prose or markdown fences."""

import json
import re
from typing import Any, Dict, Iterator

from utils.logger import get_logger

logger = get_logger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_DECODER = json.JSONDecoder()


def _candidates(raw: str) -> Iterator[str]:
    yield raw.strip()
    for block in _FENCED_BLOCK_RE.findall(raw):
        yield block.strip()


def _first_object(text: str) -> Dict[str, Any] | None:
    # raw_decode stops at the end of the first complete value, trailing prose is ignored
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def parse_json(raw: str) -> Dict[str, Any]:
    """Return the first JSON object found in ``raw``.

    Tries the whole text, then each fenced block, then the first decodable ``{...}`` span.
    Raises ``json.JSONDecodeError`` when nothing decodes to an object.
    """
    for candidate in _candidates(raw):
        found = _first_object(candidate)
        if found is not None:
            return found

    logger.warning("json_parse_failed", raw_preview=raw[:200])
    raise json.JSONDecodeError("No JSON object found in model output", raw, 0)
