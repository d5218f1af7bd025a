"""Pull handler parameter values out of free text."""

from __future__ import annotations

import json
import re
from typing import Any

from Wasit.capabilities.schema import HandlerDescriptor, ParameterDescriptor
from Wasit.intent.keywords import AMOUNT_KEYS, RECIPIENT_KEYS

_NUM = r"-?\d+(?:\.\d+)?"
_NUMBER = rf"({_NUM})"
_NUMERIC_FALLBACKS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        rf"\b(?:send|transfer|mint|burn|stake|unstake|withdraw|deposit|pay)\s+{_NUMBER}",
        rf"\bamount\s*[=:]?\s*{_NUMBER}",
        rf"{_NUMBER}\s+tokens?\b",
        rf"{_NUMBER}\s+to\b",
    )
)
_BARE_NUMBER = re.compile(rf"(?<![\w.]){_NUMBER}(?![\w.])")
# Calculator operands; each shape names both groups, earlier shapes win.
_OPERAND_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p.format(a=rf"(?P<a>{_NUM})", b=rf"(?P<b>{_NUM})"), re.IGNORECASE)
    for p in (
        r"\badd\s+{a}\s+(?:and|to|\+)\s+{b}",
        r"\bsum\s+of\s+{a}\s+and\s+{b}",
        r"{a}\s*\+\s*{b}",
        r"{a}\s+plus\s+{b}",
        r"{a}\s+added?\s+to\s+{b}",
        r"\bsubtract\s+{a}\s+from\s+{b}",
        r"\btake\s+(?:away\s+)?{a}\s+from\s+{b}",
        r"\bminus\s+{a}\s+from\s+{b}",
        r"\bdivide\s+{a}\s+by\s+{b}",
        r"{a}\s*/\s*{b}",
        r"{a}\s+divided\s+by\s+{b}",
        r"\bmultiply\s+{a}\s+(?:by|and|with)\s+{b}",
        r"{a}\s*\*\s*{b}",
        r"{a}\s+times\s+{b}",
        r"{a}\s*-\s*{b}",
        r"{a}\s+(?:and|with)\s+{b}",
    )
)
_OPERAND_NAMES = ("a", "b")
_ADDRESS_FALLBACKS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bto\s+([A-Za-z0-9_-]+)",
        r"\brecipient[:\s]+([A-Za-z0-9_-]+)",
        r"\btarget[:\s]+([A-Za-z0-9_-]+)",
        r"\bbalance\s+(?:for|of)\s+([A-Za-z0-9_-]+)",
        r"\bfor\s+([A-Za-z0-9_-]+)",
    )
)
_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")
_STOPWORDS = frozenset(("me", "my", "the", "a", "an", "it", "them"))


def _to_number(raw: str) -> int | float | None:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return int(value) if value.is_integer() and "." not in raw else value


def convert_value(raw: str, param_type: str) -> Any:
    """Convert a captured string to the parameter's type; None means absent."""
    if param_type == "number":
        return _to_number(raw)
    if param_type == "boolean":
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        return None
    if param_type == "json":
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def _is_address_like(param: ParameterDescriptor) -> bool:
    return param.type == "address" or (param.type == "string" and param.name.lower() in RECIPIENT_KEYS)


def _named_candidates(text: str, name: str) -> list[str]:
    escaped = re.escape(name)
    found: list[str] = []
    for pattern in (
        rf"\b{escaped}\s*[=:]\s*[\"']?([^\"'\s,]+)[\"']?",
        rf"\b{escaped}\s+[\"']?([^\"'\s,]+)[\"']?",
    ):
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            found.append(match.group(1))
    return found


def _operand_candidates(text: str, param: ParameterDescriptor) -> list[str]:
    name = param.name.lower()
    if param.type != "number" or name not in _OPERAND_NAMES:
        return []
    for pattern in _OPERAND_PATTERNS:
        match = pattern.search(text)
        if match:
            return [match.group(name)]
    return []


def _fallback_candidates(text: str, param: ParameterDescriptor) -> list[str]:
    found: list[str] = []
    if param.type == "number":
        for pattern in _NUMERIC_FALLBACKS:
            match = pattern.search(text)
            if match:
                found.append(match.group(1))
        if param.name.lower() in AMOUNT_KEYS:
            match = _BARE_NUMBER.search(text)
            if match:
                found.append(match.group(1))
    elif _is_address_like(param):
        for pattern in _ADDRESS_FALLBACKS:
            match = pattern.search(text)
            if match and match.group(1).lower() not in _STOPWORDS:
                found.append(match.group(1))
    return found


def extract_parameter(text: str, param: ParameterDescriptor) -> Any:
    candidates = (
        _operand_candidates(text, param)
        + _named_candidates(text, param.name)
        + _fallback_candidates(text, param)
    )
    for raw in candidates:
        value = convert_value(raw, param.type)
        if value is not None:
            return value
    return None


def extract_parameters(text: str, handler: HandlerDescriptor) -> dict[str, Any]:
    """Extract every declared parameter found in ``text``. Pure and idempotent."""
    values: dict[str, Any] = {}
    for param in handler.parameters:
        value = extract_parameter(text or "", param)
        if value is not None:
            values[param.name] = value
    return values
