"""
Parser for the line-oriented action protocol the model answers in::

    ACTION: use_tool | respond | think
    TOOL: <tool name>
    PARAMETERS: { ...json, may span lines... }
    RESPONSE: <text, may span lines>
    REASONING: <one line>

Malformed output never raises: it degrades to empty parameters or to ``Unparseable``.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from utils.logger import get_logger

logger = get_logger(__name__)

_PARAMETERS_MARKER = "PARAMETERS:"
_RESPONSE_START_RE = re.compile(r"^[ \t]*RESPONSE:", re.MULTILINE)
_SINGLE_LINE_PREFIXES = ("ACTION:", "TOOL:", "REASONING:")
_RESPONSE_END_RE = re.compile(r"\n[ \t]*(?:ACTION|TOOL|PARAMETERS|REASONING):")


@dataclass(frozen=True)
class UseTool:
    tool_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    reasoning: Optional[str] = None


@dataclass(frozen=True)
class Respond:
    text: str
    reasoning: Optional[str] = None


@dataclass(frozen=True)
class Think:
    reasoning: Optional[str] = None


@dataclass(frozen=True)
class Unparseable:
    raw: str
    reasoning: Optional[str] = None


ParsedAction = Union[UseTool, Respond, Think, Unparseable]


def _prefixed_fields(text: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        for prefix in _SINGLE_LINE_PREFIXES:
            if stripped.startswith(prefix) and prefix not in fields:
                fields[prefix] = stripped[len(prefix):].strip()
    return fields


def extract_response(text: str) -> Optional[str]:
    """Text after a line starting with ``RESPONSE:`` up to the next protocol field or the end of the output."""
    start = _RESPONSE_START_RE.search(text)
    if start is None:
        return None
    after = text[start.end():]
    match = _RESPONSE_END_RE.search(after)
    return (after[:match.start()] if match else after).strip()


def _balanced_object_end(text: str, start: int) -> int:
    """Index of the brace closing the object opened at *start*, or -1. Braces inside strings are ignored."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract_parameters(text: str) -> Dict[str, Any]:
    """Brace-balanced JSON object after ``PARAMETERS:``; ``{}`` whenever that is not possible."""
    index = text.find(_PARAMETERS_MARKER)
    if index == -1:
        return {}

    after = text[index + len(_PARAMETERS_MARKER):]
    open_brace = after.find("{")
    if open_brace == -1:
        logger.debug("parameters_without_object")
        return {}

    close_brace = _balanced_object_end(after, open_brace)
    if close_brace == -1:
        logger.warning("parameters_unbalanced_braces", preview=after[:200])
        return {}

    candidate = after[open_brace:close_brace + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("parameters_invalid_json", error=str(exc), preview=candidate[:200])
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse(raw_text: str) -> ParsedAction:
    text = raw_text or ""
    fields = _prefixed_fields(text)
    action = fields.get("ACTION:", "").strip().lower()
    reasoning = fields.get("REASONING:") or None
    response = extract_response(text)

    if action == "use_tool":
        tool_name = fields.get("TOOL:", "").strip()
        if not tool_name:
            return Unparseable(raw=text, reasoning=reasoning)
        return UseTool(tool_name=tool_name, parameters=extract_parameters(text), reasoning=reasoning)

    if action == "respond" or (not action and response is not None):
        return Respond(text=response or "", reasoning=reasoning)

    if action == "think":
        return Think(reasoning=reasoning)

    return Unparseable(raw=text, reasoning=reasoning)
