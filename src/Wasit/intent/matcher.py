"""Score declared handlers against free text and pick the best one."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.intent.extraction import extract_parameters
from Wasit.intent.keywords import ACTION_SYNONYMS, words_of

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.3

RuleFn = Callable[[str, frozenset[str], HandlerDescriptor], float]


@dataclass(frozen=True)
class ScoringRule:
    """One named contribution to a handler's match score."""

    name: str
    score: RuleFn


@dataclass
class MatchResult:
    handler: HandlerDescriptor | None
    confidence: float = 0.0
    parameters: dict[str, Any] = field(default_factory=dict)
    provenance: str = ""
    reasons: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.handler is not None


def _action_name(text: str, words: frozenset[str], handler: HandlerDescriptor) -> float:
    if handler.action.lower() in text:
        return 0.6 if handler.provenance == "registry" else 0.5
    return 0.0


def _synonym(text: str, words: frozenset[str], handler: HandlerDescriptor) -> float:
    action = handler.action.lower()
    for key, synonyms in ACTION_SYNONYMS.items():
        if key not in action:
            continue
        for synonym in synonyms:
            hit = synonym in words if synonym.isalnum() else f" {synonym} " in f" {text} "
            if hit:
                return 0.4
    return 0.0


def _description_words(text: str, words: frozenset[str], handler: HandlerDescriptor) -> float:
    described = {w for w in words_of(handler.description) if len(w) > 2}
    return 0.1 * sum(1 for w in words if len(w) > 2 and w in described)


def _parameter_names(text: str, words: frozenset[str], handler: HandlerDescriptor) -> float:
    return 0.2 * sum(1 for p in handler.parameters if p.name.lower() in text)


def _example_words(text: str, words: frozenset[str], handler: HandlerDescriptor) -> float:
    total = 0.0
    for example in handler.examples:
        shared = {w for w in words_of(example) if len(w) > 2} & words
        total += 0.05 * len(shared)
    return total


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule("action-name", _action_name),
    ScoringRule("synonym", _synonym),
    ScoringRule("description", _description_words),
    ScoringRule("parameter-names", _parameter_names),
    ScoringRule("examples", _example_words),
)


def score_handler(
    text: str,
    handler: HandlerDescriptor,
    rules: tuple[ScoringRule, ...] = SCORING_RULES,
) -> tuple[float, list[str]]:
    """Return the clipped score and the non-zero rule contributions."""
    lowered = (text or "").lower()
    words = frozenset(words_of(lowered))
    total = 0.0
    reasons: list[str] = []
    for rule in rules:
        value = rule.score(lowered, words, handler)
        if value:
            total += value
            reasons.append(f"{rule.name}+{value:.2f}")
    return max(0.0, min(1.0, total)), reasons


def match_request(
    text: str,
    handlers: tuple[HandlerDescriptor, ...] | list[HandlerDescriptor],
    *,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    rules: tuple[ScoringRule, ...] = SCORING_RULES,
) -> MatchResult:
    """Pick the best-scoring handler above ``threshold``; earlier handlers win ties."""
    best: HandlerDescriptor | None = None
    best_score = 0.0
    best_reasons: list[str] = []
    for handler in handlers:
        score, reasons = score_handler(text, handler, rules)
        if score <= threshold:
            continue
        if best is None or score > best_score:
            best, best_score, best_reasons = handler, score, reasons

    if best is None:
        logger.debug("No handler scored above %.2f for %r", threshold, text)
        return MatchResult(handler=None)

    return MatchResult(
        handler=best,
        confidence=best_score,
        parameters=extract_parameters(text, best),
        provenance=best.provenance,
        reasons=best_reasons,
    )
