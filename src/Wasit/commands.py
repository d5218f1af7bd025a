"""Command boundary: synchronous validation and construction of requests.

Everything here runs before any network work and raises
``InvalidRequestError`` on bad input; the async entry points behind it
report failures as structured results instead.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from Wasit.dispatch.templates import BatchRequest, get_template
from Wasit.errors import InvalidRequestError
from Wasit.intent.classifier import OPERATION_MODES
from Wasit.intent.request import ExecutionRequest


def ensure_process_id(process_id: str | None) -> str:
    value = (process_id or "").strip()
    if not value:
        raise InvalidRequestError("Process ID is required and cannot be empty")
    return value


def ensure_mode(mode: str | None) -> str:
    value = (mode or "auto").strip().lower()
    if value not in OPERATION_MODES:
        raise InvalidRequestError(
            f"Unknown mode '{mode}'. Expected one of: {', '.join(OPERATION_MODES)}"
        )
    return value


def _coerce(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def parse_assignments(pairs: list[str] | None) -> dict[str, Any]:
    """Parse ``key=value`` pairs; JSON-looking values are decoded."""
    values: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidRequestError(f"Expected key=value, got '{pair}'")
        values[key] = _coerce(raw.strip())
    return values


def build_request(
    process_id: str | None,
    request: str | None = "",
    *,
    parameters: dict[str, Any] | None = None,
    mode: str | None = "auto",
    action: str | None = None,
    require_confirmation: bool = False,
    confirmed: bool = False,
) -> ExecutionRequest:
    pid = ensure_process_id(process_id)
    text = (request or "").strip()
    action = (action or "").strip() or None
    if not text and not action:
        raise InvalidRequestError("Request text is required when no action is given")
    return ExecutionRequest(
        process_id=pid,
        request=text,
        parameters=dict(parameters or {}),
        mode=ensure_mode(mode),
        require_confirmation=require_confirmation,
        action=action,
        confirmed=confirmed,
    )


def _batch_item(raw: Any, index: int, confirmed: bool) -> BatchRequest:
    if isinstance(raw, str):
        raw = {"request": raw}
    if not isinstance(raw, dict):
        raise InvalidRequestError(f"Batch item {index} must be a string or an object")
    text = str(raw.get("request") or "").strip()
    action = str(raw.get("action") or "").strip() or None
    if not text and not action:
        raise InvalidRequestError(f"Batch item {index} needs a request or an action")
    params = raw.get("parameters") or {}
    if not isinstance(params, dict):
        raise InvalidRequestError(f"Batch item {index} parameters must be an object")
    return BatchRequest(
        request=text,
        parameters=params,
        mode=ensure_mode(raw.get("mode")),
        require_confirmation=bool(raw.get("requireConfirmation", False)),
        action=action,
        confirmed=confirmed,
    )


def build_batch(items: list[Any], *, confirmed: bool = False) -> list[BatchRequest]:
    if not items:
        raise InvalidRequestError("A batch needs at least one request")
    return [_batch_item(raw, i, confirmed) for i, raw in enumerate(items, start=1)]


def load_batch_file(path: str | Path, *, confirmed: bool = False) -> tuple[list[BatchRequest], bool]:
    """Read a batch file: a JSON list, or ``{"requests": [...], "rollbackOnError": bool}``."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise InvalidRequestError(f"Cannot read batch file {path}: {exc}") from exc
    rollback = False
    if isinstance(payload, dict):
        rollback = bool(payload.get("rollbackOnError", False))
        payload = payload.get("requests")
    if not isinstance(payload, list):
        raise InvalidRequestError("Batch file must contain a list of requests")
    return build_batch(payload, confirmed=confirmed), rollback


def ensure_template(name: str) -> str:
    return get_template(name).name.value
