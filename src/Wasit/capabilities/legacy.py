"""Free-text documentation parser for processes that predate the registry format.

Recognised shape::

    # Process Name
    prose describing the process
    ## Transfer
    Move tokens to another account
    - target: recipient address
    - amount: number of tokens to send
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from Wasit.capabilities.schema import HandlerDescriptor, ParameterDescriptor
from Wasit.intent.keywords import legacy_action_implies_write

_PARAM_RE = re.compile(r"^[-*]\s*`?([A-Za-z_][\w-]*)`?\s*(?:\([^)]*\))?\s*:\s*(.*)$")
_EMPHASIS_RE = re.compile(r"(\*\*|__|\*)(.+?)\1")


@dataclass
class LegacyDocument:
    name: str = ""
    description: str = ""
    handlers: list[HandlerDescriptor] = field(default_factory=list)


@dataclass
class _HandlerDraft:
    action: str
    description: list[str] = field(default_factory=list)
    parameters: list[ParameterDescriptor] = field(default_factory=list)

    def build(self) -> HandlerDescriptor:
        return HandlerDescriptor(
            action=self.action,
            description=" ".join(self.description).strip(),
            is_write=legacy_action_implies_write(self.action),
            write_declared=False,
            parameters=tuple(self.parameters),
            category="custom",
            provenance="legacy",
        )


def _strip_emphasis(text: str) -> str:
    return _EMPHASIS_RE.sub(r"\2", text).strip()


def _infer_parameter(name: str, description: str) -> ParameterDescriptor:
    lowered = description.lower()
    if "number" in lowered or "amount" in lowered or "quantity" in lowered:
        param_type = "number"
    elif "boolean" in lowered or "true/false" in lowered:
        param_type = "boolean"
    elif "object" in lowered or "json" in lowered:
        param_type = "json"
    elif "address" in lowered or "process id" in lowered:
        param_type = "address"
    else:
        param_type = "string"
    return ParameterDescriptor(
        name=name,
        type=param_type,
        required="optional" not in lowered,
        description=description,
    )


def parse_legacy_documentation(text: str) -> LegacyDocument | None:
    """Parse free-text docs. Returns None when no heading is present at all."""
    doc = LegacyDocument()
    intro: list[str] = []
    current: _HandlerDraft | None = None
    saw_heading = False

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("# "):
            doc.name = _strip_emphasis(line[2:])
            saw_heading = True
            continue
        if line.startswith("## "):
            if current is not None:
                doc.handlers.append(current.build())
            current = _HandlerDraft(action=_strip_emphasis(line[3:]))
            saw_heading = True
            continue
        if line.startswith("#"):
            continue

        param = _PARAM_RE.match(line)
        if param and current is not None:
            name = param.group(1)
            description = _strip_emphasis(param.group(2))
            current.parameters.append(_infer_parameter(name, description))
            continue

        prose = _strip_emphasis(line)
        if current is not None:
            current.description.append(prose)
        else:
            intro.append(prose)

    if current is not None:
        doc.handlers.append(current.build())
    if not saw_heading:
        return None
    doc.description = " ".join(intro).strip()
    return doc
