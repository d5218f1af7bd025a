"""Capability schema for remote process handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


ParameterType = str  # string | number | boolean | address | json
HandlerCategory = str  # core | utility | custom
Provenance = str  # registry | legacy
ProcessCategory = str  # token | dao | basic | custom | unknown

PARAMETER_TYPES: tuple[str, ...] = ("string", "number", "boolean", "address", "json")
HANDLER_CATEGORIES: tuple[str, ...] = ("core", "utility", "custom")


@dataclass(frozen=True)
class ParameterValidation:
    pattern: str | None = None
    min: float | None = None
    max: float | None = None
    enum: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return self.pattern is None and self.min is None and self.max is None and not self.enum


@dataclass(frozen=True)
class ParameterDescriptor:
    """One named input a handler accepts."""

    name: str
    type: ParameterType = "string"
    required: bool = False
    description: str = ""
    examples: tuple[str, ...] = ()
    validation: ParameterValidation = field(default_factory=ParameterValidation)


@dataclass(frozen=True)
class HandlerDescriptor:
    """One callable operation of a remote process.

    ``is_write`` is always filled. ``write_declared`` is True only when the
    registry document stated ``isWrite`` itself; inferred values are hints.
    """

    action: str
    description: str = ""
    is_write: bool = False
    write_declared: bool = False
    parameters: tuple[ParameterDescriptor, ...] = ()
    examples: tuple[str, ...] = ()
    category: HandlerCategory = "custom"
    pattern: tuple[str, ...] = ()
    provenance: Provenance = "registry"
    compensating_action: str | None = None

    def parameter(self, name: str) -> ParameterDescriptor | None:
        lowered = name.lower()
        for param in self.parameters:
            if param.name.lower() == lowered:
                return param
        return None


@dataclass(frozen=True)
class ProcessCapabilitySnapshot:
    """What a process declared about itself at ``discovered_at``."""

    process_id: str
    handlers: tuple[HandlerDescriptor, ...] = ()
    protocol: Provenance = "registry"
    documentation: str = ""
    category: ProcessCategory = "unknown"
    discovered_at: float = 0.0
    name: str = ""
    info: dict[str, Any] = field(default_factory=dict)

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(h.action for h in self.handlers)

    def find_handler(self, action: str) -> HandlerDescriptor | None:
        lowered = (action or "").strip().lower()
        for handler in self.handlers:
            if handler.action.lower() == lowered:
                return handler
        return None

    def supports_action(self, action: str) -> bool:
        return self.find_handler(action) is not None
