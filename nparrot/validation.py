"""Clean-up of tool-call JSON parameters that arrive malformed or with trailing text."""

from __future__ import annotations

import json
from typing import Any, Optional

__all__ = ["ParameterError", "sanitize_json_parameters", "extract_error_context"]

_ALLOWED_PUNCTUATION = " .,!?;:-_()[]{}\"'"


class ParameterError(ValueError):
    """Raised when parameters cannot be turned into valid JSON."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def _sanitize_string(text: str) -> str:
    kept = "".join(
        c for c in text
        if c.isascii() or c.isalpha() or c.isnumeric() or c in _ALLOWED_PUNCTUATION
    )
    return kept.strip()


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        cleaned: dict[str, Any] = {}
        for key, item in sorted(value.items()):
            clean_key = _sanitize_string(key)
            if clean_key:
                cleaned[clean_key] = _sanitize_value(item)
        return cleaned
    if isinstance(value, list):
        return [_sanitize_value(item) for item in value]
    if isinstance(value, str):
        return _sanitize_string(value)
    return value


def _extract_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced JSON object in ``text``, ignoring what follows it."""
    trimmed = text.strip()
    if not trimmed.startswith("{"):
        return None
    depth = 0
    in_string = False
    escape_next = False
    for position, ch in enumerate(trimmed):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
        elif ch == '"':
            in_string = not in_string
        elif ch == "{" and not in_string:
            depth += 1
        elif ch == "}" and not in_string:
            depth -= 1
            if depth == 0:
                return trimmed[: position + 1]
    return None


def _clean_malformed_json(text: str) -> str:
    """Unescape control sequences, wrap bare members in braces and close what is open."""
    cleaned = text.replace("\\n", "\n").replace("\\t", "\t").replace("\\r", "\r")
    head = cleaned.lstrip()
    if not head.startswith("{") and not head.startswith("["):
        cleaned = "{" + cleaned + "}"

    braces = 0
    brackets = 0
    in_string = False
    escape_next = False
    for ch in cleaned:
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
        elif ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "{":
                braces += 1
            elif ch == "}" and braces > 0:
                braces -= 1
            elif ch == "[":
                brackets += 1
            elif ch == "]" and brackets > 0:
                brackets -= 1
    return cleaned + "}" * braces + "]" * brackets


def sanitize_json_parameters(params: str) -> str:
    """Return compact, sanitized JSON for ``params``; raise ParameterError if unrecoverable."""
    if not params.strip():
        return "{}"

    first = _extract_first_json_object(params)
    if first is not None:
        try:
            return _dumps(_sanitize_value(_loads(first)))
        except ValueError:
            pass

    try:
        return _dumps(_sanitize_value(_loads(params)))
    except ValueError as original:
        try:
            return _dumps(_sanitize_value(_loads(_clean_malformed_json(params))))
        except ValueError:
            raise ParameterError(f"Invalid JSON parameters: {original}") from original


def extract_error_context(error: str) -> str:
    """Turn a JSON parsing error message into advice for the caller."""
    if "trailing characters" in error:
        return (
            "Parameter JSON contains extra characters after valid JSON. "
            "Check for unclosed quotes or brackets."
        )
    if "expected" in error:
        return "Parameter JSON is malformed. Check syntax and structure."
    if "invalid type" in error:
        return "Parameter contains wrong data type. Check field types match expected schema."
    return f"JSON parsing error: {error}"