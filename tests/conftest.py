"""Shared fakes for Wasit tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from Wasit.capabilities.cache import CapabilityCache
from Wasit.capabilities.discovery import Discovery
from Wasit.config import Settings
from Wasit.dispatch.router import RequestRouter
from Wasit.transport.message import OutboundMessage

PROCESS_ID = "p" * 43

TOKEN_REGISTRY: dict[str, Any] = {
    "Name": "Demo Token",
    "Description": "A token used in tests",
    "Ticker": "DEMO",
    "TotalSupply": "1000000000",
    "Owner": "owner-1",
    "protocolVersion": "1.0",
    "handlers": [
        {
            "action": "Info",
            "category": "core",
            "description": "Get token information",
            "isWrite": False,
            "examples": ["get token info"],
        },
        {
            "action": "Balance",
            "category": "core",
            "description": "Check token balance for an account",
            "isWrite": False,
            "parameters": [
                {"name": "target", "type": "address", "required": False, "description": "Account to check"}
            ],
            "examples": ["check my balance", "get balance for alice"],
        },
        {
            "action": "Transfer",
            "category": "core",
            "description": "Send tokens to another account",
            "isWrite": True,
            "parameters": [
                {"name": "target", "type": "address", "required": True},
                {"name": "amount", "type": "number", "required": True, "validation": {"min": 0}},
            ],
            "examples": ["transfer 10 tokens to bob"],
        },
        {
            "action": "Mint",
            "category": "utility",
            "description": "Create new tokens",
            "isWrite": True,
            "compensatingAction": "Burn",
            "parameters": [{"name": "quantity", "type": "number", "required": True}],
        },
        {
            "action": "Burn",
            "category": "utility",
            "description": "Destroy tokens permanently",
            "isWrite": True,
            "parameters": [{"name": "quantity", "type": "number", "required": True}],
        },
    ],
    "capabilities": {"supportsHandlerRegistry": True, "supportsExamples": True},
}


def envelope(data: Any, tags: list[dict[str, str]] | None = None) -> dict[str, Any]:
    if not isinstance(data, str):
        data = json.dumps(data)
    message: dict[str, Any] = {"Data": data}
    if tags is not None:
        message["Tags"] = tags
    return {"Messages": [message]}


class FakeTransport:
    """In-memory ProcessTransport with scripted responses per action."""

    def __init__(self, info: Any = None, *, info_delay: float = 0.0) -> None:
        self.info_response: dict[str, Any] = envelope(TOKEN_REGISTRY if info is None else info)
        self.info_delay = info_delay
        self.responses: dict[str, dict[str, Any]] = {}
        self.sent: list[OutboundMessage] = []
        self.dry_runs: list[OutboundMessage] = []
        self._pending: dict[str, OutboundMessage] = {}

    @property
    def executed_actions(self) -> list[str]:
        return [m.action for m in self.sent + self.dry_runs if m.action != "Info"]

    async def _respond(self, message: OutboundMessage) -> dict[str, Any]:
        if message.action == "Info":
            if self.info_delay:
                await asyncio.sleep(self.info_delay)
            return self.info_response
        return self.responses.get(message.action, envelope({"ok": True, "action": message.action}))

    async def send(self, message: OutboundMessage) -> str:
        self.sent.append(message)
        message_id = f"msg-{len(self.sent)}"
        self._pending[message_id] = message
        return message_id

    async def result(self, process_id: str, message_id: str) -> dict[str, Any]:
        return await self._respond(self._pending[message_id])

    async def dry_run(self, message: OutboundMessage) -> dict[str, Any]:
        self.dry_runs.append(message)
        return await self._respond(message)


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def settings() -> Settings:
    return Settings(discovery_timeout_ms=200, execution_timeout_ms=200)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def router(transport: FakeTransport, settings: Settings) -> RequestRouter:
    cache = CapabilityCache(Discovery(transport, settings), ttl_seconds=settings.cache_ttl_seconds)
    return RequestRouter(cache, transport, settings)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    from Wasit.config import get_settings

    monkeypatch.setenv("WASIT_CONFIG_DIR", str(tmp_path / "wasit-config"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
