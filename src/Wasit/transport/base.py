"""Transport protocol used by discovery and dispatch."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from Wasit.transport.message import OutboundMessage


@runtime_checkable
class ProcessTransport(Protocol):
    """Narrow interface to the messaging layer.

    ``send`` delivers a message and returns its id, ``result`` fetches the
    response correlated to that id, and ``dry_run`` evaluates a read-only
    message without committing it. Result envelopes look like
    ``{"Messages": [{"Data": ..., "Tags": [...]}], "Error": ...}``.
    """

    async def send(self, message: OutboundMessage) -> str: ...

    async def result(self, process_id: str, message_id: str) -> dict[str, Any]: ...

    async def dry_run(self, message: OutboundMessage) -> dict[str, Any]: ...
