"""
trace.py

Trace telemetry for one runtime invocation.

Features:
    - Stable SHA-256 hashes of canonical JSON for the card and state.
    - Binding summary counters from the render.
    - Interaction summary when an interaction was translated.
    - Optional capture of the raw inputs (payload, session, state,
      interaction inputs); off by default since they may hold user data.

The runtime only builds trace events when RenderConfig.trace is on.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .canonical import canonical_json
from .context_resolver import BindingContext
from .interaction import apply_updates
from .model import BindingSummary, InteractionEvent, UpdateOperation

logger = logging.getLogger(__name__)

TRACE_EVENT_NAME = "adaptive_card.trace"
HASH_PREFIX = "sha256:"


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "properties": self.properties}


def _sha256_hex(data: str) -> str:
    """Return SHA-256 hex digest of the given string (UTF-8 encoded)."""
    h = hashlib.sha256()
    h.update(data.encode("utf-8"))
    return h.hexdigest()


def hash_value(value: Any) -> Optional[str]:
    """
    "sha256:<hex>" of the canonical JSON form of value.

    Returns None for values that have no JSON form (NaN, sets, objects).
    """
    try:
        return HASH_PREFIX + _sha256_hex(canonical_json(value))
    except (TypeError, ValueError) as e:
        logger.debug("value is not hashable as JSON: %s", e)
        return None


def state_key(context: BindingContext, interaction: Optional[InteractionEvent] = None) -> str:
    """Key a host would store this card's state under."""
    if context.node_id:
        return f"adaptive-card:node:{context.node_id}"
    if interaction is not None:
        return f"adaptive-card:card:{interaction.card_instance_id}"
    return "adaptive-card:default"


def build_trace_event(
    card: Any,
    context: BindingContext,
    summary: BindingSummary,
    interaction: Optional[InteractionEvent] = None,
    updates: Optional[List[UpdateOperation]] = None,
    capture_inputs: bool = False,
) -> TelemetryEvent:
    properties: Dict[str, Any] = {
        "card_hash": hash_value(card),
        "bindings_summary": summary.to_dict(),
    }

    if interaction is not None:
        properties["interaction_summary"] = {
            "type": getattr(interaction.type, "value", None),
            "action_id": interaction.action_id,
            "card_instance_id": interaction.card_instance_id,
            "route": interaction.metadata.get("route"),
        }

    write_hash = None
    if updates:
        write_hash = hash_value(apply_updates(context.state, updates))
    properties["state_summary"] = {
        "state_key": state_key(context, interaction),
        "state_read_hash": hash_value(context.state),
        "state_write_hash": write_hash,
    }

    if capture_inputs:
        properties["inputs"] = {
            "payload": context.payload,
            "session": context.session,
            "state": context.state,
            "interaction_raw_inputs": interaction.raw_inputs if interaction is not None else None,
        }

    return TelemetryEvent(TRACE_EVENT_NAME, properties)
