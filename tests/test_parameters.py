"""Parameter validation and dry-run simulation."""

from __future__ import annotations

import pytest

from Wasit.capabilities.schema import (
    HandlerDescriptor,
    ParameterDescriptor,
    ParameterValidation,
    ProcessCapabilitySnapshot,
)
from Wasit.intent.classifier import classify
from Wasit.intent.extraction import extract_parameters
from Wasit.intent.request import BatchContext, ExecutionRequest
from Wasit.intent.simulation import simulate
from Wasit.intent.validation import validate_handler_action, validate_parameters

from conftest import PROCESS_ID

VOTE = HandlerDescriptor(
    action="Vote",
    is_write=True,
    parameters=(
        ParameterDescriptor("proposal", type="number", required=True, validation=ParameterValidation(min=1, max=99)),
        ParameterDescriptor("choice", required=True, validation=ParameterValidation(enum=("yes", "no"))),
        ParameterDescriptor("public", type="boolean"),
        ParameterDescriptor("voter", type="address", validation=ParameterValidation(pattern=r"^[a-z]{3}$")),
    ),
)
TRANSFER = HandlerDescriptor(
    action="Transfer",
    is_write=True,
    parameters=(
        ParameterDescriptor("target", type="address"),
        ParameterDescriptor("amount", type="number", required=True),
    ),
)


def test_valid_parameters() -> None:
    assert validate_parameters(VOTE, {"proposal": 3, "choice": "yes", "public": True, "voter": "bob"}) == []


@pytest.mark.parametrize(
    ("params", "problem"),
    [
        ({"choice": "yes"}, "Required parameter 'proposal' is missing"),
        ({"proposal": "abc", "choice": "yes"}, "Parameter 'proposal' must be a number"),
        ({"proposal": 0, "choice": "yes"}, "Parameter 'proposal' must be at least 1"),
        ({"proposal": 100, "choice": "yes"}, "Parameter 'proposal' must be at most 99"),
        ({"proposal": 5, "choice": "maybe"}, "Parameter 'choice' must be one of: yes, no"),
        ({"proposal": 5, "choice": "no", "public": "sometimes"}, "Parameter 'public' must be a boolean"),
        ({"proposal": 5, "choice": "no", "voter": "Robert"}, "Parameter 'voter' does not match required pattern"),
    ],
)
def test_validation_problems(params: dict, problem: str) -> None:
    assert problem in validate_parameters(VOTE, params)


def test_validate_handler_action_checks_name_then_parameters() -> None:
    snapshot = ProcessCapabilitySnapshot(process_id=PROCESS_ID, handlers=(VOTE, TRANSFER))

    assert validate_handler_action(snapshot, "vote", {"proposal": 3, "choice": "yes"}) == []
    assert validate_handler_action(snapshot, "Transfer") == ["Required parameter 'amount' is missing"]
    [problem] = validate_handler_action(snapshot, "Stake", {})
    assert problem == "Handler 'Stake' not found. Available handlers: Vote, Transfer"


def _simulate(params: dict, handler: HandlerDescriptor = TRANSFER, **kwargs):
    request = ExecutionRequest(process_id=PROCESS_ID, request="transfer", parameters=params, **kwargs)
    return simulate(request, classify("transfer"), handler, params)


def test_simulation_passes_for_valid_transfer() -> None:
    result = _simulate({"target": "alice", "amount": 10})
    assert result.can_proceed is True
    assert result.expected_response["Action"] == "Transfer-Notice"
    assert "Recipient balance increases" in result.state_changes
    assert result.estimated_cost == 320


def test_simulation_flags_non_positive_amount_and_missing_recipient() -> None:
    result = _simulate({"amount": 0})
    assert result.can_proceed is False
    assert "Parameter 'amount' must be greater than 0" in result.errors
    assert "Transfer requires a recipient" in result.errors


def test_simulation_catches_negative_amount_typed_in_text() -> None:
    text = "transfer -5 tokens to bob"
    params = extract_parameters(text, TRANSFER)
    request = ExecutionRequest(process_id=PROCESS_ID, request=text, parameters=params)
    result = simulate(request, classify(text), TRANSFER, params)

    assert params["amount"] == -5
    assert result.can_proceed is False
    assert "Parameter 'amount' must be greater than 0" in result.errors


def test_simulation_warns_about_process_id_length() -> None:
    request = ExecutionRequest(process_id="short", request="transfer", parameters={"target": "a", "amount": 1})
    result = simulate(request, classify("transfer"), TRANSFER, dict(request.parameters))
    assert result.can_proceed is True
    assert any("expected 43" in w for w in result.warnings)


def test_simulation_recommends_chunking_large_batches() -> None:
    context = BatchContext(batch_id="b", sequence_number=1, total_operations=8)
    result = _simulate({"target": "alice", "amount": 1}, batch=context)
    assert "Split large batches into smaller chunks" in result.recommendations
