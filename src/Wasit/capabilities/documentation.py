"""Render a capability snapshot as human-readable markdown."""

from __future__ import annotations

from Wasit.capabilities.schema import HandlerDescriptor, ProcessCapabilitySnapshot

_SECTION_TITLES = (
    ("core", "Core Handlers"),
    ("utility", "Utility Handlers"),
    ("custom", "Custom Handlers"),
)


def _render_handler(handler: HandlerDescriptor) -> list[str]:
    lines = [f"#### {handler.action}", ""]
    if handler.description:
        lines += [handler.description, ""]
    if handler.parameters:
        lines.append("**Parameters:**")
        for param in handler.parameters:
            need = "required" if param.required else "optional"
            text = f"- `{param.name}` ({param.type}, {need})"
            if param.description:
                text += f": {param.description}"
            lines.append(text)
            if param.examples:
                lines.append(f"  - Examples: {', '.join(param.examples)}")
        lines.append("")
    if handler.examples:
        lines.append("**Examples:**")
        lines += [f"- {example}" for example in handler.examples]
        lines.append("")
    return lines


def render_documentation(snapshot: ProcessCapabilitySnapshot) -> str:
    """Pure markdown rendering; the same snapshot always yields the same text."""
    info = snapshot.info or {}
    lines = [f"# {snapshot.name or info.get('Name') or 'AO Process'}", ""]
    description = info.get("Description") or ""
    if description:
        lines += [str(description), ""]

    for key, label in (("Ticker", "Ticker"), ("TotalSupply", "Total Supply"), ("Owner", "Owner")):
        if info.get(key):
            lines.append(f"**{label}:** {info[key]}")
    lines.append(f"**Process ID:** {snapshot.process_id}")
    if snapshot.protocol == "registry":
        version = info.get("protocolVersion", "1.0")
        lines.append(f"**Protocol Version:** {version} (Handler Registry Protocol)")
    else:
        lines.append("**Protocol:** legacy documentation")
    lines.append("")

    if snapshot.handlers:
        lines += ["## Available Handlers", ""]
        for category, title in _SECTION_TITLES:
            group = [h for h in snapshot.handlers if h.category == category]
            if not group:
                continue
            lines += [f"### {title}", ""]
            for handler in group:
                lines += _render_handler(handler)

    capabilities = info.get("capabilities") or {}
    has_validation = any(p.validation and not p.validation.is_empty() for h in snapshot.handlers for p in h.parameters)
    has_examples = any(h.examples for h in snapshot.handlers)
    flags = (
        ("Handler Registry", snapshot.protocol == "registry"),
        ("Parameter Validation", bool(capabilities.get("supportsParameterValidation", has_validation))),
        ("Examples", bool(capabilities.get("supportsExamples", has_examples))),
    )
    lines += ["## Capabilities", ""]
    lines += [f"- {'✅' if enabled else '❌'} {label}" for label, enabled in flags]
    return "\n".join(lines).rstrip() + "\n"
