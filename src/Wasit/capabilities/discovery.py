"""Discover what a remote process can do by asking it for ``Action=Info``."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from Wasit.capabilities.documentation import render_documentation
from Wasit.capabilities.legacy import parse_legacy_documentation
from Wasit.capabilities.protocol import parse_registry_document
from Wasit.capabilities.schema import HandlerDescriptor, ProcessCapabilitySnapshot
from Wasit.config import Settings
from Wasit.errors import DiscoveryError, ErrorInfo, WasitError, error_info
from Wasit.transport.base import ProcessTransport
from Wasit.transport.message import build_message, first_message_data

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_TIMEOUT_MS = 10_000


@dataclass
class DiscoveryResult:
    """Outcome of one discovery attempt."""

    success: bool
    process_id: str
    snapshot: ProcessCapabilitySnapshot | None = None
    error: ErrorInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "processId": self.process_id,
            "protocol": self.snapshot.protocol if self.snapshot else None,
            "category": self.snapshot.category if self.snapshot else None,
            "handlers": list(self.snapshot.actions) if self.snapshot else [],
            "error": self.error.to_dict() if self.error else None,
        }


def infer_process_category(
    handlers: tuple[HandlerDescriptor, ...] | list[HandlerDescriptor],
    info: dict[str, Any] | None = None,
) -> str:
    """Classify a process by the shape of its handler set."""
    if not handlers:
        return "unknown"
    actions = [h.action.lower() for h in handlers]
    if "balance" in actions and "transfer" in actions and (info or {}).get("Ticker"):
        return "token"
    if "ping" in actions:
        return "basic"
    if any(a in ("propose", "vote") for a in actions):
        return "dao"
    return "custom"


def _decode_payload(data: Any) -> tuple[bool, Any, str | None]:
    """Return ``(is_json, json_value, raw_text)``."""
    if isinstance(data, (dict, list)):
        return True, data, None
    text = str(data)
    try:
        return True, json.loads(text), text
    except (TypeError, ValueError):
        return False, None, text


def build_snapshot(process_id: str, data: Any, *, discovered_at: float) -> ProcessCapabilitySnapshot:
    """Turn an Info payload into a snapshot, trying the formats in order."""
    is_json, payload, raw_text = _decode_payload(data)

    document = parse_registry_document(payload)
    if document is not None:
        handlers = tuple(h.to_descriptor() for h in document.handlers)
        info = document.model_dump(by_alias=True, exclude={"handlers"})
        snapshot = ProcessCapabilitySnapshot(
            process_id=process_id,
            handlers=handlers,
            protocol="registry",
            category=infer_process_category(handlers, info),
            discovered_at=discovered_at,
            name=document.name,
            info=info,
        )
        return dataclasses.replace(snapshot, documentation=render_documentation(snapshot))

    if is_json:
        info = dict(payload) if isinstance(payload, dict) else {}
        snapshot = ProcessCapabilitySnapshot(
            process_id=process_id,
            protocol="legacy",
            category="unknown",
            discovered_at=discovered_at,
            name=str(info.get("Name") or ""),
            info=info,
        )
        return dataclasses.replace(snapshot, documentation=render_documentation(snapshot))

    if raw_text:
        legacy = parse_legacy_documentation(raw_text)
        if legacy is not None:
            info = {"Name": legacy.name, "Description": legacy.description}
            return ProcessCapabilitySnapshot(
                process_id=process_id,
                handlers=tuple(legacy.handlers),
                protocol="legacy",
                documentation=raw_text,
                category=infer_process_category(legacy.handlers, info),
                discovered_at=discovered_at,
                name=legacy.name,
                info=info,
            )

    raise DiscoveryError("Failed to parse process info response", kind="parse-failure")


class Discovery:
    """Fetch and parse process capability documents."""

    def __init__(
        self,
        transport: ProcessTransport,
        settings: Settings | None = None,
        *,
        timeout_ms: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        if timeout_ms is None:
            timeout_ms = settings.discovery_timeout_ms if settings else DEFAULT_DISCOVERY_TIMEOUT_MS
        self._timeout_ms = timeout_ms
        self._clock = clock

    async def _fetch_info(self, process_id: str) -> Any:
        message_id = await self._transport.send(build_message(process_id, "Info"))
        try:
            result = await asyncio.wait_for(
                self._transport.result(process_id, message_id),
                timeout=self._timeout_ms / 1000,
            )
        except asyncio.TimeoutError as exc:
            raise DiscoveryError("Timeout", kind="timeout") from exc

        has_messages, data = first_message_data(result)
        if not has_messages:
            raise DiscoveryError("No response received from process", kind="no-response")
        if data is None or data == "":
            raise DiscoveryError("Empty response data", kind="empty-data")
        return data

    async def discover(self, process_id: str) -> DiscoveryResult:
        try:
            data = await self._fetch_info(process_id)
            snapshot = build_snapshot(process_id, data, discovered_at=self._clock())
        except WasitError as exc:
            logger.warning("Discovery failed for %s: %s", process_id, exc.message)
            return DiscoveryResult(success=False, process_id=process_id, error=exc.to_info())
        except Exception as exc:
            logger.exception("Unexpected discovery failure for %s", process_id)
            return DiscoveryResult(
                success=False,
                process_id=process_id,
                error=error_info(exc, code="DISCOVERY_FAILED"),
            )

        logger.info(
            "Discovered %s (%s, %s) with %d handler(s)",
            process_id,
            snapshot.protocol,
            snapshot.category,
            len(snapshot.handlers),
        )
        return DiscoveryResult(success=True, process_id=process_id, snapshot=snapshot)
