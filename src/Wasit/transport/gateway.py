"""HTTP transport that talks to a message gateway in front of remote processes.

Endpoints used:
- ``POST /message``          deliver a message, returns ``{"id": "..."}``
- ``GET  /result/{id}``      fetch the correlated result (``process-id`` query)
- ``POST /dry-run``          evaluate a read-only message (``process-id`` query)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from Wasit.config import Settings
from Wasit.errors import ExecutionError
from Wasit.transport.message import OutboundMessage

logger = logging.getLogger(__name__)


class GatewayTransport:
    """ProcessTransport implementation backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = settings.gateway_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client_instance().request(method, url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:200]
            raise ExecutionError(
                f"Gateway returned HTTP {exc.response.status_code}: {detail}",
                code="GATEWAY_HTTP_ERROR",
            ) from exc
        except httpx.HTTPError as exc:
            raise ExecutionError(
                f"Gateway request failed: {exc}",
                code="GATEWAY_UNREACHABLE",
                solutions=(f"Check that the gateway at {self._base_url} is running",),
            ) from exc
        except ValueError as exc:
            raise ExecutionError("Gateway returned a non-JSON body", code="GATEWAY_BAD_RESPONSE") from exc

    async def send(self, message: OutboundMessage) -> str:
        body = await self._request("POST", "/message", json=message.to_dict())
        message_id = str((body or {}).get("id") or "").strip()
        if not message_id:
            raise ExecutionError("Gateway accepted the message but returned no id", code="GATEWAY_BAD_RESPONSE")
        logger.debug("Sent %s to %s as %s", message.action, message.process_id, message_id)
        return message_id

    async def result(self, process_id: str, message_id: str) -> dict[str, Any]:
        body = await self._request("GET", f"/result/{message_id}", params={"process-id": process_id})
        return body if isinstance(body, dict) else {}

    async def dry_run(self, message: OutboundMessage) -> dict[str, Any]:
        body = await self._request(
            "POST",
            "/dry-run",
            params={"process-id": message.process_id},
            json=message.to_dict(),
        )
        return body if isinstance(body, dict) else {}

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
