"""Dynamic prompt construction for the service agent's next turn."""

from typing import Optional

from service_intake.prompts.system_prompts import (
    OPTIONAL_FIELD_GUIDANCE,
    OPTIONAL_FIELD_HINTS,
    PORTAL_CONTEXT,
    SERVICE_AGENT_HEADER,
    STYLE_RULES,
    SUBMIT_INSTRUCTION,
)
from service_intake.schemas.service_schema import ServiceDefinition


def format_collected(collected: dict[str, str]) -> str:
    """Render collected data as ``field="value"`` pairs."""
    if not collected:
        return "None"
    return ", ".join(f'{name}="{value}"' for name, value in collected.items())


def build_service_agent_prompt(
    service: ServiceDefinition,
    collected: dict[str, str],
    missing_required: list[str],
    next_field: Optional[str],
    next_is_optional: bool = False,
    correction: Optional[str] = None,
) -> str:
    """Build the system instruction for the next dialogue turn.

    ``correction`` carries the validation error when ``next_field`` is
    being asked again because its earlier value was rejected.
    """
    parts = [
        SERVICE_AGENT_HEADER.format(
            ministry=service.ministry,
            service_name=service.service_name,
            portal_context=PORTAL_CONTEXT,
            style_rules=STYLE_RULES,
        ),
        "FIELDS STATUS:",
        f"ALREADY COLLECTED: {format_collected(collected)}",
        f"STILL NEEDED: {', '.join(missing_required) if missing_required else 'None'}",
        "",
        "WHAT TO DO NOW:",
    ]

    if next_field is None:
        parts.append(SUBMIT_INSTRUCTION)
    elif correction:
        parts.append(f"ASK FOR: {next_field} (the previous value was rejected)")
        parts.append(f"Validation said: {correction}")
        parts.append("Politely ask for the corrected value.")
    elif not next_is_optional:
        parts.append(f"ASK FOR: {next_field} (this is REQUIRED)")
    else:
        parts.append(f"All required fields collected! Now ask for OPTIONAL field: {next_field}")
        parts.append("")
        parts.append(OPTIONAL_FIELD_GUIDANCE)
        hint = OPTIONAL_FIELD_HINTS.get(next_field)
        if hint:
            parts.append("")
            parts.append(hint)

    do_not_ask = ", ".join(collected) or "None"
    parts.append(f"DO NOT ASK FOR: {do_not_ask} (already have these)")
    return "\n".join(parts)
