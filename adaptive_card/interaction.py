"""
interaction.py

Translate a user interaction on a rendered card into a routing event and a
list of declarative update operations.

The translator never applies updates to caller-owned state. apply_updates()
is provided for callers (and tests) that want to see the effect on an
in-memory value; it returns a new object.
"""

import copy
import dataclasses
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import InteractionInvalid
from .lexicon import (
    OPAQUE_KEYS,
    InteractionType,
    Unrecognized,
    is_action_discriminator,
    node_type,
    parse_interaction_type,
)
from .model import InteractionEvent, RoutingEvent, UpdateKind, UpdateOperation, UpdateScope

logger = logging.getLogger(__name__)

FORM_DATA_PATH = "form_data"
ACTIVE_SHOW_CARD_PATH = "ui.active_show_card"
VISIBILITY_PATH = "ui.visibility"
ROUTE_PATH = "route"


def normalize_inputs(raw: Any) -> Dict[str, Any]:
    """
    Coerce raw input values into an object:

        {...}         -> unchanged (copied)
        None          -> {}
        '{"a": 1}'    -> parsed JSON, if it is an object
        other string  -> {"value": string}
        other scalar  -> {"value": scalar}
    """
    if isinstance(raw, dict):
        return copy.deepcopy(raw)
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {"value": raw}
        if isinstance(parsed, dict):
            return parsed
        return {"value": parsed}
    return {"value": copy.deepcopy(raw)}


def find_action(tree: Any, action_id: str) -> Optional[Dict[str, Any]]:
    """First action node (pre-order) whose id equals action_id."""
    if isinstance(tree, list):
        for item in tree:
            found = find_action(item, action_id)
            if found is not None:
                return found
        return None
    if not isinstance(tree, dict):
        return None
    kind = node_type(tree)
    if kind is not None and is_action_discriminator(kind) and tree.get("id") == action_id:
        return tree
    for key, child in tree.items():
        if key in OPAQUE_KEYS:
            continue
        found = find_action(child, action_id)
        if found is not None:
            return found
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _coerce_event(interaction: Union[InteractionEvent, Dict[str, Any]]) -> InteractionEvent:
    if isinstance(interaction, InteractionEvent):
        event = interaction
    else:
        event = InteractionEvent.from_dict(interaction)
    if not isinstance(event.type, InteractionType):
        raw = event.type.raw if isinstance(event.type, Unrecognized) else event.type
        kind = parse_interaction_type(raw)
        if kind is None:
            raise InteractionInvalid(f"unknown interaction type {raw!r}")
        event = dataclasses.replace(event, type=kind)
    if not isinstance(event.action_id, str) or not event.action_id.strip():
        raise InteractionInvalid("interaction.action_id is required")
    if not isinstance(event.card_instance_id, str) or not event.card_instance_id.strip():
        raise InteractionInvalid("interaction.card_instance_id is required")
    return event


def translate(
    interaction: Union[InteractionEvent, Dict[str, Any]],
    tree: Any = None,
) -> Tuple[RoutingEvent, List[UpdateOperation]]:
    """
    Returns (routing event, update operations). Updates are ordered session
    route first, then the state update for the interaction type.

    `tree` is the rendered card; when given it supplies the verb of the
    matching action and the card id.

    Raises:
        InteractionInvalid: unknown type, or empty action_id / card_instance_id.
            No partial updates are returned.
    """
    event = _coerce_event(interaction)
    metadata = copy.deepcopy(event.metadata)
    inputs = normalize_inputs(event.raw_inputs)
    updates: List[UpdateOperation] = []

    route = _str_or_none(metadata.get("route"))
    if route is not None:
        updates.append(UpdateOperation(ROUTE_PATH, UpdateKind.SET, route, UpdateScope.SESSION))

    kind = event.type
    if kind in (InteractionType.SUBMIT, InteractionType.EXECUTE):
        updates.append(UpdateOperation(FORM_DATA_PATH, UpdateKind.MERGE, copy.deepcopy(inputs)))
    elif kind is InteractionType.SHOW_CARD:
        subcard = _str_or_none(metadata.get("subcardId")) or event.action_id
        updates.append(UpdateOperation(
            f"{ACTIVE_SHOW_CARD_PATH}.{event.card_instance_id}", UpdateKind.SET, subcard,
        ))
    elif kind is InteractionType.TOGGLE_VISIBILITY:
        visible = metadata.get("visible")
        updates.append(UpdateOperation(
            f"{VISIBILITY_PATH}.{event.action_id}", UpdateKind.SET,
            visible if isinstance(visible, bool) else True,
        ))
    # OpenUrl: routing only.

    action_node = find_action(tree, event.action_id) if tree is not None else None
    verb = event.verb
    if verb is None and action_node is not None:
        verb = _str_or_none(action_node.get("verb"))

    card_id = _str_or_none(metadata.get("cardId"))
    if card_id is None and isinstance(tree, dict):
        card_id = _str_or_none(tree.get("id"))
    if card_id is None:
        card_id = event.card_instance_id

    routing = RoutingEvent(
        type=kind,
        action_id=event.action_id,
        card_instance_id=event.card_instance_id,
        metadata=metadata,
        verb=verb,
        route=route,
        inputs=inputs,
        card_id=card_id,
        subcard_id=_str_or_none(metadata.get("subcardId")),
    )
    logger.debug("translated %s on %s into %d update(s)", kind.value, event.action_id, len(updates))
    return routing, updates


def apply_updates(target: Any, updates: List[UpdateOperation], scope: UpdateScope = UpdateScope.STATE) -> Dict[str, Any]:
    """
    Apply the updates for one scope to a copy of target.

    Dotted target paths create intermediate objects. MERGE is a shallow
    key merge when both sides are objects, otherwise it replaces.
    """
    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for update in updates:
        if update.scope is not scope:
            continue
        parts = update.target_path.split(".")
        current = result
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        key = parts[-1]
        value = copy.deepcopy(update.value)
        if update.operation is UpdateKind.MERGE and isinstance(current.get(key), dict) and isinstance(value, dict):
            current[key].update(value)
        else:
            current[key] = value
    return result
