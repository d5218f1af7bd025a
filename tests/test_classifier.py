from __future__ import annotations

import pytest

from Wasit.capabilities.schema import HandlerDescriptor
from Wasit.intent.classifier import classify

TRANSFER = HandlerDescriptor(action="Transfer", is_write=True, write_declared=True)
BURN = HandlerDescriptor(action="Burn", is_write=True, write_declared=True)
BALANCE = HandlerDescriptor(action="Balance", is_write=False, write_declared=True)
LEGACY_SEND = HandlerDescriptor(action="Send", is_write=True, provenance="legacy")


@pytest.mark.parametrize("mode", ["read", "write", "validate"])
def test_explicit_mode_always_wins(mode: str) -> None:
    result = classify("transfer 100 tokens", TRANSFER, mode)
    assert result.operation_type == mode
    assert result.confidence == 1.0
    assert result.method == "explicit"


def test_invalid_mode_is_unknown() -> None:
    result = classify("transfer 5", mode="sideways")
    assert result.operation_type == "unknown"
    assert "sideways" in result.reasoning


def test_declared_write_flag_is_authoritative() -> None:
    result = classify("show me something", TRANSFER)
    assert result.operation_type == "write"
    assert result.method == "registry"
    assert result.risk_level == "medium"

    assert classify("send it", BALANCE).operation_type == "read"
    assert classify("burn 5", BURN).risk_level == "high"


def test_inferred_flag_is_not_authoritative() -> None:
    result = classify("check the ledger", LEGACY_SEND)
    assert result.operation_type == "read"
    assert result.method == "keyword"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("transfer 100 tokens to alice", "write"),
        ("please mint 50", "write"),
        ("what's my balance", "read"),
        ("show total supply", "read"),
        ("check my funds and transfer 100 tokens to bob", "write"),
        ("send the status", "write"),
        ("update and show", "read"),
        ("10 tokens to bob", "write"),
        ("what is my allowance", "read"),
    ],
)
def test_free_text_scan(text: str, expected: str) -> None:
    assert classify(text).operation_type == expected


def test_no_match_defaults_to_read() -> None:
    result = classify("hello there")
    assert result.operation_type == "read"
    assert result.method == "fallback"
    assert result.confidence == pytest.approx(0.3)


def test_empty_text_is_unknown() -> None:
    result = classify("   ")
    assert result.operation_type == "unknown"
    assert result.confidence == 0.0


def test_tied_verb_weights_fall_through_to_read_default() -> None:
    result = classify("check balance then transfer")
    assert result.operation_type == "read"
    assert result.method == "fallback"


def test_strongest_verb_decides_regardless_of_order() -> None:
    result = classify("check and transfer 100 tokens to bob")
    assert result.operation_type == "write"
    assert result.method == "keyword"
    assert result.confidence == 0.9
    assert "transfer" in result.reasoning
