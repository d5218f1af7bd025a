"""Decide whether a request reads or writes process state."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.intent.keywords import (
    HIGH_RISK_ACTIONS,
    READ_PATTERNS,
    READ_VERBS,
    WRITE_PATTERNS,
    WRITE_VERBS,
    words_of,
)

logger = logging.getLogger(__name__)

OPERATION_MODES: tuple[str, ...] = ("auto", "read", "write", "validate")
RISK_ORDER: tuple[str, ...] = ("low", "medium", "high")


@dataclass(frozen=True)
class OperationClassification:
    operation_type: str  # read | write | validate | unknown
    confidence: float
    method: str  # explicit | registry | keyword | pattern | fallback
    risk_level: str
    reasoning: str

    @property
    def is_write(self) -> bool:
        return self.operation_type == "write"


def handler_risk(handler: HandlerDescriptor) -> str:
    action = handler.action.lower()
    if any(word in action for word in HIGH_RISK_ACTIONS):
        return "high"
    return "medium" if handler.is_write else "low"


def _scan_verbs(text: str) -> tuple[str, str, float] | None:
    """Return ``(operation, verb, weight)`` for the table whose strongest verb wins.

    Each table contributes its highest-weighted verb. A side wins only when
    its weight is strictly greater than the other's and above 0.6; a tie
    returns None so phrase patterns and the read default decide.
    """
    best: dict[str, tuple[str, float]] = {"write": ("", 0.0), "read": ("", 0.0)}
    for word in words_of(text):
        for op, table in (("write", WRITE_VERBS), ("read", READ_VERBS)):
            weight = table.get(word, 0.0)
            if weight > best[op][1]:
                best[op] = (word, weight)

    (write_verb, write_score), (read_verb, read_score) = best["write"], best["read"]
    if write_score > read_score and write_score > 0.6:
        return "write", write_verb, write_score
    if read_score > write_score and read_score > 0.6:
        return "read", read_verb, read_score
    if write_score or read_score:
        logger.debug("No decisive verb in %r (write=%s, read=%s)", text, write_score, read_score)
    return None


def classify(
    text: str,
    handler: HandlerDescriptor | None = None,
    mode: str = "auto",
) -> OperationClassification:
    """Classify a request.

    Precedence: explicit mode, a handler's declared write flag, verbs in the
    text, phrase patterns, then a read default.
    """
    mode = (mode or "auto").strip().lower()
    if mode != "auto":
        if mode not in OPERATION_MODES:
            return OperationClassification(
                "unknown", 0.5, "explicit", "low", f"Unsupported operation mode '{mode}'"
            )
        return OperationClassification(
            mode,
            1.0,
            "explicit",
            "medium" if mode == "write" else "low",
            f"Operation type explicitly set to {mode}",
        )

    if handler is not None and handler.write_declared:
        op = "write" if handler.is_write else "read"
        return OperationClassification(
            op,
            0.9,
            "registry",
            handler_risk(handler),
            f"Handler '{handler.action}' declares isWrite={str(handler.is_write).lower()}",
        )

    if not (text or "").strip():
        return OperationClassification("unknown", 0.0, "fallback", "low", "Empty request")

    hit = _scan_verbs(text)
    if hit is not None:
        op, verb, weight = hit
        risk = "medium" if op == "write" else "low"
        return OperationClassification(op, weight, "keyword", risk, f"Found {op} verb '{verb}'")

    for pattern in WRITE_PATTERNS:
        if pattern.search(text):
            return OperationClassification(
                "write", 0.8, "pattern", "medium", f"Matched write phrase /{pattern.pattern}/"
            )
    for pattern in READ_PATTERNS:
        if pattern.search(text):
            return OperationClassification(
                "read", 0.8, "pattern", "low", f"Matched read phrase /{pattern.pattern}/"
            )

    logger.debug("No operation keywords in %r, defaulting to read", text)
    return OperationClassification(
        "read", 0.3, "fallback", "low", "No patterns matched, defaulting to read operation for safety"
    )
