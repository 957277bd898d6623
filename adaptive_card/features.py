"""
features.py

Feature summary of a rendered card: which element and action types it
uses and whether it needs media, input, authentication, ShowCard or
ToggleVisibility support. Downstream channels use this to decide whether
they can display the card as-is.

One pre-order walk, no mutation; summarizing the same tree twice gives
equal summaries.
"""

from typing import Any, Dict

from .lexicon import (
    INPUT_ELEMENTS,
    INPUT_PREFIX,
    MEDIA_ELEMENTS,
    OPAQUE_KEYS,
    STRUCTURAL_TYPES,
    ActionType,
    Unrecognized,
    is_action_discriminator,
    node_type,
    parse_action_type,
    parse_element_type,
)
from .model import FeatureSummary


def _action_key(kind: str) -> str:
    action = parse_action_type(kind)
    if isinstance(action, Unrecognized):
        return kind
    return action.short_name


def merge_requires(target: Dict[str, Any], incoming: Any) -> None:
    """Merge a `requires` map into target; the first value seen for a key wins."""
    if not isinstance(incoming, dict):
        return
    for key, value in incoming.items():
        target.setdefault(key, value)


def summarize(tree: Any) -> FeatureSummary:
    summary = FeatureSummary()
    if isinstance(tree, dict) and isinstance(tree.get("version"), str):
        summary.version = tree["version"]

    elements = set()
    actions = set()

    def walk(value: Any) -> None:
        if isinstance(value, list):
            for item in value:
                walk(item)
            return
        if not isinstance(value, dict):
            return

        kind = node_type(value)
        if kind is not None:
            if is_action_discriminator(kind):
                key = _action_key(kind)
                summary.action_counts[key] = summary.action_counts.get(key, 0) + 1
                actions.add(kind)
                action = parse_action_type(kind)
                if action is ActionType.SHOW_CARD:
                    summary.uses_show_card = True
                elif action is ActionType.TOGGLE_VISIBILITY:
                    summary.uses_toggle_visibility = True
            else:
                element = parse_element_type(kind)
                if element not in STRUCTURAL_TYPES:
                    summary.element_counts[kind] = summary.element_counts.get(kind, 0) + 1
                    elements.add(kind)
                if element in MEDIA_ELEMENTS:
                    summary.has_media = True
                if element in INPUT_ELEMENTS or kind.startswith(INPUT_PREFIX):
                    summary.has_inputs = True

        if "authentication" in value:
            summary.has_auth = True
        if "requires" in value:
            merge_requires(summary.requires, value["requires"])

        for key, child in value.items():
            if key in OPAQUE_KEYS:
                continue
            walk(child)

    walk(tree)
    summary.used_elements = sorted(elements)
    summary.used_actions = sorted(actions)
    return summary

