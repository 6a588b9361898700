"""
cellfilter Kernel - Event Validation

Validates event payloads before they reach the recompute engine or the
controls reducer.
Validation is structural (well-formed?) not semantic (does the field exist?).
Field existence is checked against the Record Store when the filter
state is built (see predicates.apply_event).
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from cellfilter.kernel.types import CONTROL_EVENT_TYPES
from cellfilter.models import PAYLOAD_MODELS

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_event(type: str, payload: Any) -> list[str]:
    """
    Validate an event's type and payload structure.
    Returns a list of error strings. Empty list = valid.
    """
    errors: list[str] = []

    if type not in CONTROL_EVENT_TYPES:
        errors.append(f"Unknown event type: {type}")
        return errors  # can't validate payload for unknown type

    if not isinstance(payload, dict):
        errors.append("Payload must be a non-null object")
        return errors

    model = PAYLOAD_MODELS[type]
    try:
        model.model_validate(payload)
    except ValidationError as exc:
        errors.extend(_format_errors(type, exc))

    return errors


def parse_payload(type: str, payload: dict[str, Any]) -> Any:
    """Validate and return the typed payload model. Raises ValidationError."""
    return PAYLOAD_MODELS[type].model_validate(payload)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _format_errors(type: str, exc: ValidationError) -> list[str]:
    out: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        if loc:
            out.append(f"{type}: '{loc}' {err['msg']}")
        else:
            out.append(f"{type}: {err['msg']}")
    return out
