"""Request types passed from the command boundary into dispatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BatchContext:
    """Where a request sits inside an ordered batch."""

    batch_id: str
    sequence_number: int
    total_operations: int
    rollback_on_error: bool = False


@dataclass(frozen=True)
class ExecutionRequest:
    process_id: str
    request: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    mode: str = "auto"  # auto | read | write | validate
    require_confirmation: bool = False
    batch: BatchContext | None = None
    action: str | None = None
    confirmed: bool = False

    @property
    def label(self) -> str:
        return self.request or (self.action or "")
