"""Named multi-step workflows that expand into batch requests."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from Wasit.errors import TemplateError
from Wasit.intent.classifier import OPERATION_MODES

_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class WorkflowTemplateName(str, Enum):
    TOKEN_TRANSFER_WITH_VERIFICATION = "token-transfer-with-verification"
    MINT_AND_DISTRIBUTE = "mint-and-distribute"
    FULL_TOKEN_AUDIT = "full-token-audit"
    BATCH_BALANCE_CHECK = "batch-balance-check"


@dataclass(frozen=True)
class BatchRequest:
    """One entry of an ordered batch."""

    request: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    mode: str = "auto"
    require_confirmation: bool = False
    action: str | None = None
    confirmed: bool = False

    @property
    def label(self) -> str:
        return self.request or (self.action or "")


@dataclass(frozen=True)
class TemplateStep:
    request: str
    mode: str = "auto"
    parameters: dict[str, Any] = field(default_factory=dict)
    require_confirmation: bool = False

    def placeholders(self) -> set[str]:
        names = set(_PLACEHOLDER_RE.findall(self.request))
        for value in self.parameters.values():
            if isinstance(value, str):
                names.update(_PLACEHOLDER_RE.findall(value))
        return names


@dataclass(frozen=True)
class WorkflowTemplate:
    name: WorkflowTemplateName
    description: str
    steps: tuple[TemplateStep, ...]
    parameters: tuple[str, ...] = ()
    rollback_on_error: bool = False

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError(f"template {self.name.value} has no steps")
        declared = set(self.parameters)
        for index, step in enumerate(self.steps, start=1):
            if step.mode not in OPERATION_MODES:
                raise ValueError(f"template {self.name.value} step {index} has unknown mode {step.mode!r}")
            undeclared = step.placeholders() - declared
            if undeclared:
                raise ValueError(
                    f"template {self.name.value} step {index} uses undeclared "
                    f"placeholder(s): {', '.join(sorted(undeclared))}"
                )


TEMPLATES: dict[WorkflowTemplateName, WorkflowTemplate] = {
    t.name: t
    for t in (
        WorkflowTemplate(
            name=WorkflowTemplateName.TOKEN_TRANSFER_WITH_VERIFICATION,
            description="Transfer tokens with balance check and confirmation",
            parameters=("recipient", "amount"),
            rollback_on_error=False,
            steps=(
                TemplateStep("get my balance", mode="read"),
                TemplateStep(
                    "transfer ${amount} tokens to ${recipient}",
                    mode="write",
                    parameters={"amount": "${amount}", "recipient": "${recipient}"},
                    require_confirmation=True,
                ),
                TemplateStep(
                    "get balance for ${recipient}",
                    mode="read",
                    parameters={"target": "${recipient}"},
                ),
            ),
        ),
        WorkflowTemplate(
            name=WorkflowTemplateName.MINT_AND_DISTRIBUTE,
            description="Mint tokens to a recipient and verify the resulting balance",
            parameters=("recipient", "amount"),
            rollback_on_error=True,
            steps=(
                TemplateStep(
                    "mint ${amount} tokens to ${recipient}",
                    mode="write",
                    parameters={"quantity": "${amount}", "recipient": "${recipient}"},
                    require_confirmation=True,
                ),
                TemplateStep(
                    "get balance for ${recipient}",
                    mode="read",
                    parameters={"target": "${recipient}"},
                ),
            ),
        ),
        WorkflowTemplate(
            name=WorkflowTemplateName.FULL_TOKEN_AUDIT,
            description="Complete audit of token state including info, supply and balances",
            steps=(
                TemplateStep("get token info", mode="read"),
                TemplateStep("get total supply", mode="read"),
                TemplateStep("get all balances", mode="read"),
                TemplateStep("get my balance", mode="read"),
            ),
        ),
        WorkflowTemplate(
            name=WorkflowTemplateName.BATCH_BALANCE_CHECK,
            description="Check balances for multiple accounts",
            parameters=("accounts",),
            steps=(
                TemplateStep(
                    "check balances for multiple accounts: ${accounts}",
                    mode="read",
                    parameters={"accounts": "${accounts}"},
                ),
            ),
        ),
    )
}


def get_template(name: str | WorkflowTemplateName) -> WorkflowTemplate:
    try:
        key = WorkflowTemplateName(name)
    except ValueError as exc:
        known = ", ".join(t.value for t in WorkflowTemplateName)
        raise TemplateError(f"Unknown workflow template '{name}'. Known templates: {known}") from exc
    return TEMPLATES[key]


def list_templates() -> list[dict[str, Any]]:
    return [
        {
            "name": t.name.value,
            "description": t.description,
            "parameters": list(t.parameters),
            "rollbackOnError": t.rollback_on_error,
            "steps": len(t.steps),
        }
        for t in TEMPLATES.values()
    ]


def interpolate_text(text: str, values: dict[str, Any]) -> str:
    """Replace every supplied ``${name}``; unsupplied placeholders stay as written."""

    def _sub(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, text)


def interpolate_parameters(parameters: dict[str, Any], values: dict[str, Any]) -> dict[str, Any]:
    """Whole-value ``${name}`` entries take the supplied value as-is, keeping its type."""
    resolved: dict[str, Any] = {}
    for key, value in parameters.items():
        if isinstance(value, str):
            whole = _PLACEHOLDER_RE.fullmatch(value)
            if whole and whole.group(1) in values:
                resolved[key] = values[whole.group(1)]
                continue
            resolved[key] = interpolate_text(value, values)
        else:
            resolved[key] = value
    return resolved


def expand_template(
    name: str | WorkflowTemplateName,
    values: dict[str, Any],
    *,
    confirmed: bool = False,
) -> tuple[WorkflowTemplate, list[BatchRequest]]:
    template = get_template(name)
    requests = [
        BatchRequest(
            request=interpolate_text(step.request, values),
            parameters=interpolate_parameters(step.parameters, values),
            mode=step.mode,
            require_confirmation=step.require_confirmation,
            confirmed=confirmed,
        )
        for step in template.steps
    ]
    return template, requests
