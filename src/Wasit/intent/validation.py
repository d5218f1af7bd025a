"""Check resolved parameters against a handler's declared parameter schema."""

from __future__ import annotations

import re
from typing import Any

from Wasit.capabilities.schema import HandlerDescriptor, ProcessCapabilitySnapshot


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return None


def validate_parameters(handler: HandlerDescriptor, parameters: dict[str, Any]) -> list[str]:
    """Return a list of human-readable problems; empty means valid."""
    problems: list[str] = []
    for param in handler.parameters:
        value = parameters.get(param.name)
        if value is None or value == "":
            if param.required:
                problems.append(f"Required parameter '{param.name}' is missing")
            continue

        if param.type == "number":
            number = _as_number(value)
            if number is None:
                problems.append(f"Parameter '{param.name}' must be a number")
                continue
            rules = param.validation
            if rules.min is not None and number < rules.min:
                problems.append(f"Parameter '{param.name}' must be at least {rules.min:g}")
            if rules.max is not None and number > rules.max:
                problems.append(f"Parameter '{param.name}' must be at most {rules.max:g}")
        elif param.type == "boolean":
            if not isinstance(value, bool) and str(value).lower() not in ("true", "false"):
                problems.append(f"Parameter '{param.name}' must be a boolean")

        rules = param.validation
        if rules.pattern and not re.search(rules.pattern, str(value)):
            problems.append(f"Parameter '{param.name}' does not match required pattern")
        if rules.enum and str(value) not in rules.enum:
            problems.append(f"Parameter '{param.name}' must be one of: {', '.join(rules.enum)}")
    return problems


def validate_handler_action(
    snapshot: ProcessCapabilitySnapshot,
    action: str,
    parameters: dict[str, Any] | None = None,
) -> list[str]:
    """Validate an explicit action call against a discovered process."""
    handler = snapshot.find_handler(action)
    if handler is None:
        available = ", ".join(snapshot.actions) or "none"
        return [f"Handler '{action}' not found. Available handlers: {available}"]
    return validate_parameters(handler, parameters or {})
