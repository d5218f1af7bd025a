"""Risk assessment, confirmation prompts and transaction previews."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.config import Settings
from Wasit.intent.classifier import RISK_ORDER, OperationClassification
from Wasit.intent.keywords import (
    ADMIN_ACTIONS,
    ADMIN_PARAM_KEYS,
    AMOUNT_KEYS,
    IRREVERSIBLE_VERBS,
    PERMANENT_FLAGS,
    VALUE_TRANSFER_VERBS,
)
from Wasit.intent.request import ExecutionRequest

logger = logging.getLogger(__name__)

BATCH_WARNING = "Failure may affect subsequent operations in batch"
BATCH_CONSEQUENCE = "This is part of a batch operation; failure may affect subsequent operations"

_CONSEQUENCES: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("transfer", "send"), (
        "Your token balance will decrease",
        "The transaction cannot be reversed without recipient cooperation",
    )),
    (("burn",), ("Tokens will be permanently destroyed", "This action cannot be undone")),
    (("mint",), ("New tokens will be created and added to circulation", "Total supply will increase")),
    (("delete",), ("Data will be permanently removed", "This action cannot be undone")),
)

# verbs -> (estimated outcome, potential risks)
_PREVIEW_TABLE: tuple[tuple[tuple[str, ...], tuple[str, ...], tuple[str, ...]], ...] = (
    (("transfer", "send"),
     ("Tokens will be transferred from your account", "Recipient balance will increase"),
     ("Insufficient balance", "Invalid recipient address")),
    (("mint",),
     ("New tokens will be created", "Total supply will increase"),
     ("Minting limits may be exceeded",)),
    (("burn",),
     ("Tokens will be permanently destroyed", "Total supply will decrease"),
     ("Tokens cannot be recovered after burning",)),
    (("delete", "remove"),
     ("Data will be permanently deleted",),
     ("Data cannot be recovered after deletion",)),
)

_MESSAGE_SUFFIX = {
    "high": "This is a high-risk operation that may have significant consequences. "
    "Please review the details carefully before proceeding.",
    "medium": "Please review the operation details and confirm you want to proceed.",
    "low": "Click proceed to continue.",
}

_TITLE_FORMAT = {
    "high": "⚠️ High Risk Operation: {}",
    "medium": "⚡ Confirm Operation: {}",
    "low": "✓ Confirm: {}",
}


@dataclass(frozen=True)
class ConfirmationOption:
    action: str  # proceed | cancel | simulate | modify
    id: str
    label: str
    recommended: bool = False


@dataclass
class TransactionPreview:
    handler: str
    operation: str
    process_id: str
    parameters: dict[str, Any] = field(default_factory=dict)
    estimated_outcome: list[str] = field(default_factory=list)
    potential_risks: list[str] = field(default_factory=list)
    resource_cost: int = 0
    reversible: bool = True
    token_requirement: str | None = None


@dataclass
class RiskAssessment:
    level: str
    confirmation_required: bool
    title: str
    message: str
    warnings: list[str] = field(default_factory=list)
    consequences: list[str] = field(default_factory=list)
    factors: list[str] = field(default_factory=list)
    preview: TransactionPreview | None = None
    options: list[ConfirmationOption] = field(default_factory=list)

    @property
    def recommended(self) -> ConfirmationOption | None:
        return next((o for o in self.options if o.recommended), None)

    def to_dict(self) -> dict[str, Any]:
        preview = self.preview
        return {
            "level": self.level,
            "confirmationRequired": self.confirmation_required,
            "title": self.title,
            "message": self.message,
            "warnings": list(self.warnings),
            "consequences": list(self.consequences),
            "factors": list(self.factors),
            "preview": None if preview is None else {
                "handler": preview.handler,
                "operation": preview.operation,
                "processId": preview.process_id,
                "parameters": dict(preview.parameters),
                "estimatedOutcome": list(preview.estimated_outcome),
                "potentialRisks": list(preview.potential_risks),
                "resourceCost": preview.resource_cost,
                "reversible": preview.reversible,
                "tokenRequirement": preview.token_requirement,
            },
            "options": [
                {"action": o.action, "id": o.id, "label": o.label, "recommended": o.recommended}
                for o in self.options
            ],
        }


def escalate(current: str, target: str) -> str:
    """Return the higher of two risk levels."""
    return max(current, target, key=RISK_ORDER.index)


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _amount_values(parameters: dict[str, Any]) -> list[tuple[str, float]]:
    found: list[tuple[str, float]] = []
    for key, value in parameters.items():
        if key.lower() in AMOUNT_KEYS:
            number = _numeric(value)
            if number is not None:
                found.append((key, number))
    return found


def _is_truthy(value: Any) -> bool:
    return value is True or str(value).strip().lower() == "true"


def confirmation_options(level: str) -> list[ConfirmationOption]:
    """Options offered for a level; exactly one is recommended."""
    if level == "high":
        return [
            ConfirmationOption("simulate", "simulate", "Simulate first (recommended)", recommended=True),
            ConfirmationOption("proceed", "proceed", "Proceed with transaction"),
            ConfirmationOption("cancel", "cancel", "Cancel transaction"),
            ConfirmationOption("modify", "modify", "Modify parameters"),
        ]
    if level == "medium":
        return [
            ConfirmationOption("proceed", "proceed", "Proceed with transaction"),
            ConfirmationOption("cancel", "cancel", "Cancel transaction", recommended=True),
            ConfirmationOption("simulate", "simulate", "Simulate first"),
        ]
    return [
        ConfirmationOption("proceed", "proceed", "Proceed with transaction", recommended=True),
        ConfirmationOption("cancel", "cancel", "Cancel transaction"),
    ]


_REPLY_WORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("simulate", ("simulate", "simulation", "dry run", "dry-run", "test first")),
    ("modify", ("modify", "change", "edit")),
    ("cancel", ("no", "cancel", "stop", "abort", "nope")),
    ("proceed", ("yes", "yep", "y", "proceed", "confirm", "confirmed", "ok", "okay", "go")),
)


def resolve_confirmation_reply(text: str, options: list[ConfirmationOption] | None = None) -> str | None:
    """Map a free-text answer to one of the offered option actions."""
    norm = re.sub(r"\s+", " ", (text or "").strip().lower())
    if not norm:
        return None
    allowed = {o.action for o in options} if options else None
    if allowed is not None:
        for option in options or []:
            if norm in (option.id, option.label.lower()):
                return option.action
    padded = f" {norm} "
    for action, words in _REPLY_WORDS:
        if allowed is not None and action not in allowed:
            continue
        if any(f" {word} " in padded for word in words):
            return action
    return None


class RiskAssessor:
    """Escalate a classifier baseline into a full confirmation prompt."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self.large_amount_threshold = settings.large_amount_threshold
        self.high_value_threshold = settings.high_value_threshold
        self.verify_amount_threshold = settings.verify_amount_threshold

    def _parameter_risk(self, parameters: dict[str, Any], level: str, warnings: list[str], factors: list[str]) -> str:
        for _key, amount in _amount_values(parameters):
            if amount > self.large_amount_threshold:
                factors.append("Very large transaction amount")
                warnings.append("This involves a significant amount of tokens")
                level = escalate(level, "high")
            elif amount > self.verify_amount_threshold:
                factors.append("Large transaction amount")
                warnings.append("Please verify the amount is correct")
                level = escalate(level, "medium")

        if any(any(k in key.lower() for k in ADMIN_PARAM_KEYS) for key in parameters):
            factors.append("Administrative parameter detected")
            warnings.append("This affects system permissions or roles")
            level = escalate(level, "high")

        if any(key.lower() in PERMANENT_FLAGS and _is_truthy(v) for key, v in parameters.items()):
            factors.append("Permanent action requested")
            warnings.append("This action cannot be reversed")
            level = escalate(level, "high")
        return level

    def assess(
        self,
        request: ExecutionRequest,
        classification: OperationClassification,
        handler: HandlerDescriptor | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> RiskAssessment:
        params = dict(request.parameters if parameters is None else parameters)
        action = handler.action if handler else (request.action or "")
        action_lower = action.lower()
        label = action or request.label or "request"
        operation = classification.operation_type

        level = classification.risk_level if classification.risk_level in RISK_ORDER else "low"
        warnings: list[str] = []
        factors: list[str] = []

        if any(verb in action_lower for verb in IRREVERSIBLE_VERBS):
            factors.append("Irreversible operation")
            warnings.append("This action cannot be undone")
            level = escalate(level, "high")
        if any(admin in action_lower for admin in ADMIN_ACTIONS):
            factors.append("Administrative operation")
            warnings.append("This affects system permissions or ownership")
            level = escalate(level, "high")
        if any(verb in action_lower for verb in VALUE_TRANSFER_VERBS):
            factors.append("Value transfer operation")
            level = escalate(level, "medium")

        level = self._parameter_risk(params, level, warnings, factors)

        if operation == "write":
            factors.append("State-modifying operation")
            level = escalate(level, "medium")
        if request.batch is not None:
            factors.append("Part of batch operation with cascading effects")
            warnings.append(BATCH_WARNING)
            level = escalate(level, "medium")

        high_value = any(amount > self.high_value_threshold for _k, amount in _amount_values(params))
        confirmation_required = level == "high" or request.require_confirmation or high_value

        assessment = RiskAssessment(
            level=level,
            confirmation_required=confirmation_required,
            title=_TITLE_FORMAT[level].format(label),
            message=(
                f"You are about to execute a {operation} operation on process "
                f"{request.process_id}. {_MESSAGE_SUFFIX[level]}"
            ),
            warnings=warnings,
            consequences=self._consequences(action_lower, request),
            factors=factors,
            preview=self._preview(request, label, action_lower, operation, params),
            options=confirmation_options(level),
        )
        logger.debug("Risk for %s on %s: %s (%s)", label, request.process_id, level, ", ".join(factors))
        return assessment

    @staticmethod
    def _consequences(action_lower: str, request: ExecutionRequest) -> list[str]:
        consequences: list[str] = []
        for verbs, lines in _CONSEQUENCES:
            if any(v in action_lower for v in verbs):
                consequences.extend(lines)
                break
        if request.batch is not None:
            consequences.append(BATCH_CONSEQUENCE)
        return consequences

    @staticmethod
    def _preview(
        request: ExecutionRequest,
        label: str,
        action_lower: str,
        operation: str,
        params: dict[str, Any],
    ) -> TransactionPreview:
        outcome: list[str] = []
        risks: list[str] = []
        for verbs, outcomes, potential in _PREVIEW_TABLE:
            if any(v in action_lower for v in verbs):
                outcome.extend(outcomes)
                risks.extend(potential)
                break

        amount = next((params[k] for k in ("amount", "quantity", "value") if params.get(k) not in (None, "")), None)
        if amount is not None:
            outcome.append(f"Amount processed: {amount}")
        target = params.get("recipient") or params.get("target")
        if target:
            outcome.append(f"Target account: {target}")

        cost = 100
        if operation == "write":
            cost += 200
        cost += 10 * len(params)
        if request.batch is not None:
            cost += 50

        return TransactionPreview(
            handler=label,
            operation=f"{operation.upper()} operation",
            process_id=request.process_id,
            parameters=dict(params),
            estimated_outcome=outcome,
            potential_risks=risks,
            resource_cost=cost,
            reversible=not any(v in action_lower for v in IRREVERSIBLE_VERBS),
            token_requirement=None if amount is None else str(amount),
        )
