"""Handler matching and parameter extraction."""

from __future__ import annotations

import pytest

from Wasit.capabilities.discovery import build_snapshot
from Wasit.capabilities.schema import HandlerDescriptor, ParameterDescriptor
from Wasit.intent.extraction import extract_parameters
from Wasit.intent.matcher import ScoringRule, match_request, score_handler

from conftest import PROCESS_ID, TOKEN_REGISTRY

HANDLERS = build_snapshot(PROCESS_ID, TOKEN_REGISTRY, discovered_at=0.0).handlers

TRANSFER = HandlerDescriptor(
    action="Transfer",
    is_write=True,
    write_declared=True,
    parameters=(
        ParameterDescriptor(name="target", type="address", required=True),
        ParameterDescriptor(name="amount", type="number", required=True),
    ),
)


def test_transfer_scenario() -> None:
    result = match_request("transfer 100 tokens to alice", (TRANSFER,))
    assert result.handler is TRANSFER
    assert result.parameters == {"target": "alice", "amount": 100}
    assert result.confidence > 0.3


@pytest.mark.parametrize(
    ("text", "action"),
    [
        ("transfer 5 tokens to bob", "Transfer"),
        ("send 5 to bob", "Transfer"),
        ("check my balance", "Balance"),
        ("get token info", "Info"),
        ("burn 20 tokens", "Burn"),
        ("mint 1000", "Mint"),
    ],
)
def test_registry_matching(text: str, action: str) -> None:
    result = match_request(text, HANDLERS)
    assert result.handler is not None
    assert result.handler.action == action


def test_no_candidate_above_threshold() -> None:
    result = match_request("sing me a song", HANDLERS)
    assert result.handler is None
    assert result.confidence == 0.0
    assert result.parameters == {}


def test_threshold_is_strict() -> None:
    only_at_threshold = ScoringRule("flat", lambda text, words, handler: 0.3)
    result = match_request("anything", (TRANSFER,), rules=(only_at_threshold,))
    assert result.handler is None


def test_ties_resolve_to_declaration_order() -> None:
    first = HandlerDescriptor(action="Alpha")
    second = HandlerDescriptor(action="Beta")
    flat = ScoringRule("flat", lambda text, words, handler: 0.5)
    result = match_request("whatever", (first, second), rules=(flat,))
    assert result.handler is first


def test_score_is_clipped() -> None:
    handler = HandlerDescriptor(
        action="Transfer",
        description="transfer tokens to target account amount",
        parameters=(ParameterDescriptor("target"), ParameterDescriptor("amount")),
        examples=("transfer tokens to target account",),
    )
    score, reasons = score_handler("transfer tokens to target account amount send", handler)
    assert score == 1.0
    assert reasons[0].startswith("action-name")


def test_legacy_action_scores_lower() -> None:
    registry = HandlerDescriptor(action="Ping")
    legacy = HandlerDescriptor(action="Ping", provenance="legacy")
    assert score_handler("ping", registry)[0] == pytest.approx(0.6)
    assert score_handler("ping", legacy)[0] == pytest.approx(0.5)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("transfer amount=25 target=bob", {"amount": 25, "target": "bob"}),
        ("transfer amount: 2.5 to carol", {"amount": 2.5, "target": "carol"}),
        ("send 7 tokens to Dave_01", {"amount": 7, "target": "Dave_01"}),
        ("transfer target 'xyz-123' amount 9", {"amount": 9, "target": "xyz-123"}),
        ("transfer some tokens", {}),
    ],
)
def test_extraction(text: str, expected: dict) -> None:
    assert extract_parameters(text, TRANSFER) == expected


def test_non_numeric_amount_is_absent() -> None:
    handler = HandlerDescriptor(action="Stake", parameters=(ParameterDescriptor("duration", type="number"),))
    assert extract_parameters("stake with duration=forever", handler) == {}


def test_boolean_and_regex_escaped_names() -> None:
    handler = HandlerDescriptor(
        action="Configure",
        parameters=(
            ParameterDescriptor("dry.run", type="boolean"),
            ParameterDescriptor("label"),
        ),
    )
    assert extract_parameters("configure dry.run=true label=main", handler) == {
        "dry.run": True,
        "label": "main",
    }
    assert extract_parameters("configure dryXrun=true", handler) == {}


def test_extraction_is_idempotent() -> None:
    text = "transfer 42 tokens to erin"
    assert extract_parameters(text, TRANSFER) == extract_parameters(text, TRANSFER)


CALCULATOR = tuple(
    HandlerDescriptor(
        action=action,
        is_write=True,
        parameters=(ParameterDescriptor("a", type="number"), ParameterDescriptor("b", type="number")),
    )
    for action in ("Add", "Subtract", "Multiply", "Divide")
)


@pytest.mark.parametrize(
    ("text", "a", "b"),
    [
        ("add 15 and 7", 15, 7),
        ("sum of 15 and 7", 15, 7),
        ("15 + 7", 15, 7),
        ("what is 15 plus 7", 15, 7),
        ("subtract 15 from 20", 15, 20),
        ("take away 3 from 10", 3, 10),
        ("20 - 15", 20, 15),
        ("divide 15 by 7", 15, 7),
        ("15 / 2.5", 15, 2.5),
        ("15 divided by 3", 15, 3),
        ("multiply 15 by 7", 15, 7),
        ("15 * 7", 15, 7),
        ("15 times 7", 15, 7),
        ("add -3 and 4", -3, 4),
        ("calculate with a=2 b=9", 2, 9),
    ],
)
def test_calculator_operands(text: str, a: float, b: float) -> None:
    assert extract_parameters(text, CALCULATOR[0]) == {"a": a, "b": b}


def test_calculator_request_matches_and_fills_operands() -> None:
    result = match_request("15 times 7", CALCULATOR)
    assert result.handler.action == "Multiply"
    assert result.parameters == {"a": 15, "b": 7}


def test_negative_amount_keeps_its_sign() -> None:
    assert extract_parameters("transfer -5 tokens to bob", TRANSFER) == {"amount": -5, "target": "bob"}
