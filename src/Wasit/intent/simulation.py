"""Dry-run a request without sending anything to the process."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.intent.classifier import OperationClassification
from Wasit.intent.keywords import AMOUNT_KEYS, RECIPIENT_KEYS
from Wasit.intent.request import ExecutionRequest
from Wasit.intent.risk import RiskAssessment
from Wasit.intent.validation import validate_parameters

logger = logging.getLogger(__name__)

PROCESS_ID_LENGTH = 43
BATCHING_COST_THRESHOLD = 500
CHUNKING_BATCH_SIZE = 5


@dataclass(frozen=True)
class SimulationFinding:
    severity: str  # error | warning
    message: str


@dataclass
class SimulationResult:
    can_proceed: bool
    estimated_cost: int
    findings: list[SimulationFinding] = field(default_factory=list)
    expected_response: dict[str, Any] = field(default_factory=dict)
    state_changes: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [f.message for f in self.findings if f.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [f.message for f in self.findings if f.severity == "warning"]

    def to_dict(self) -> dict[str, Any]:
        return {
            "canProceed": self.can_proceed,
            "estimatedCost": self.estimated_cost,
            "errors": self.errors,
            "warnings": self.warnings,
            "expectedResponse": dict(self.expected_response),
            "stateChanges": list(self.state_changes),
            "recommendations": list(self.recommendations),
        }


def _expected_outcome(action: str, params: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    lowered = action.lower()
    amount = next((params[k] for k in AMOUNT_KEYS if k in params), None)
    recipient = next((params[k] for k in RECIPIENT_KEYS if k in params), None)
    if "transfer" in lowered or "send" in lowered:
        return (
            {"Action": "Transfer-Notice", "Quantity": amount, "Recipient": recipient},
            ["Sender balance decreases", "Recipient balance increases"],
        )
    if "mint" in lowered:
        return ({"Action": "Mint-Notice", "Quantity": amount}, ["Total supply increases"])
    if "burn" in lowered:
        return ({"Action": "Burn-Notice", "Quantity": amount}, ["Total supply decreases"])
    if "balance" in lowered:
        return ({"Action": "Balance-Response", "Target": recipient}, [])
    if "info" in lowered:
        return ({"Action": "Info-Response"}, [])
    return ({"Action": f"{action}-Response" if action else "Response"}, [])


def simulate(
    request: ExecutionRequest,
    classification: OperationClassification,
    handler: HandlerDescriptor | None,
    parameters: dict[str, Any],
    assessment: RiskAssessment | None = None,
) -> SimulationResult:
    """Predict what executing the request would do and whether it should go ahead."""
    findings: list[SimulationFinding] = []
    action = handler.action if handler else (request.action or "")
    is_write = classification.is_write or bool(handler and handler.is_write)

    if len(request.process_id) != PROCESS_ID_LENGTH:
        findings.append(SimulationFinding(
            "warning", f"Process ID is {len(request.process_id)} characters, expected {PROCESS_ID_LENGTH}"
        ))
    if handler is None:
        findings.append(SimulationFinding("error", "No handler matched the request"))
    else:
        findings += [SimulationFinding("error", p) for p in validate_parameters(handler, parameters)]

    if is_write:
        for key in AMOUNT_KEYS:
            if key not in parameters:
                continue
            try:
                amount = float(parameters[key])
            except (TypeError, ValueError):
                continue
            if amount <= 0:
                findings.append(SimulationFinding("error", f"Parameter '{key}' must be greater than 0"))
        lowered = action.lower()
        if ("transfer" in lowered or "send" in lowered) and not any(parameters.get(k) for k in RECIPIENT_KEYS):
            findings.append(SimulationFinding("error", "Transfer requires a recipient"))

    expected, state_changes = _expected_outcome(action, parameters)
    cost = 100 + (200 if is_write else 0) + 10 * len(parameters)
    if request.batch is not None:
        cost += 50

    recommendations: list[str] = []
    if cost > BATCHING_COST_THRESHOLD:
        recommendations.append("Consider batching related operations to reduce cost")
    if assessment is not None and assessment.level == "high":
        recommendations.append("Review the simulation carefully before executing this high-risk operation")
    if request.batch is not None and request.batch.total_operations > CHUNKING_BATCH_SIZE:
        recommendations.append("Split large batches into smaller chunks")

    can_proceed = not any(f.severity == "error" for f in findings)
    logger.debug("Simulated %s on %s: can_proceed=%s", action or "request", request.process_id, can_proceed)
    return SimulationResult(
        can_proceed=can_proceed,
        estimated_cost=cost,
        findings=findings,
        expected_response=expected,
        state_changes=state_changes if is_write else [],
        recommendations=recommendations,
    )
