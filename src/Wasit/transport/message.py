"""Outbound message model shared by discovery and dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class OutboundMessage:
    """A tagged message addressed to one process."""

    process_id: str
    tags: tuple[tuple[str, str], ...] = ()
    data: str | None = None

    @property
    def action(self) -> str:
        for name, value in self.tags:
            if name == "Action":
                return value
        return ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "process": self.process_id,
            "tags": [{"name": name, "value": value} for name, value in self.tags],
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


def _tag_name(key: str) -> str:
    return key[:1].upper() + key[1:]


def build_message(
    process_id: str,
    action: str,
    parameters: dict[str, Any] | None = None,
) -> OutboundMessage:
    """Build the wire message for ``action``.

    Each parameter becomes a tag whose name is the capitalised key and whose
    value is ``str(value)``. A string ``data`` parameter is sent as the payload.
    """
    tags: list[tuple[str, str]] = [("Action", action)]
    data: str | None = None
    for key, value in (parameters or {}).items():
        if value is None:
            continue
        if key == "data" and isinstance(value, str):
            data = value
            continue
        if isinstance(value, bool):
            rendered = "true" if value else "false"
        elif isinstance(value, float) and value.is_integer():
            rendered = str(int(value))
        else:
            rendered = str(value)
        tags.append((_tag_name(key), rendered))
    return OutboundMessage(process_id=process_id, tags=tuple(tags), data=data)


def first_message_data(result: dict[str, Any] | None) -> tuple[bool, Any]:
    """Return ``(has_messages, data)`` from a process result envelope."""
    messages = (result or {}).get("Messages") or []
    if not messages:
        return False, None
    first = messages[0] or {}
    return True, first.get("Data")

