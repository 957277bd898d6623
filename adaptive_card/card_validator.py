"""
card_validator.py

Structural validation of a rendered card.

The validator inspects the tree only; it never renders, resolves or
mutates. Every applicable check runs (no early exit, except for a non-object
root where nothing else is meaningful) and issues are returned in document
pre-order, so two runs over the same tree give identical output.

Check order:
    1. root: invalid-root, invalid-type, missing-version, invalid-version,
       unsupported-version
    2. top-level containers: invalid-body, invalid-actions
    3. pre-order walk over every typed node: unknown types, required
       fields, ids and duplicates, then type-specific rules

Action `data` payloads are opaque and are not walked.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from .config import RenderConfig
from .lexicon import (
    CARD_TYPE,
    INPUT_ELEMENTS,
    INPUT_PREFIX,
    OPAQUE_KEYS,
    ActionType,
    ElementType,
    Unrecognized,
    is_action_discriminator,
    node_type,
    parse_action_type,
    parse_element_type,
)
from .model import Issue, Severity, json_pointer
from .requirements import REQUIRED_FIELDS

logger = logging.getLogger(__name__)


# ==========================================
# ISSUE SEVERITY
# ==========================================
# Codes not listed here are errors.

ISSUE_SEVERITY = {
    "unsupported-version": Severity.WARNING,
    "unknown-element-type": Severity.WARNING,
    "unknown-action-type": Severity.WARNING,
    "duplicate-action-id": Severity.WARNING,
    "missing-title": Severity.WARNING,
    "missing-verb": Severity.WARNING,
}

_VERSION_RE = re.compile(r"^\d+(?:\.\d+)*$")


def parse_version(version: Any) -> Optional[Tuple[int, ...]]:
    """'1.5' -> (1, 5); None if not a dotted numeric string."""
    if not isinstance(version, str) or not _VERSION_RE.match(version.strip()):
        return None
    return tuple(int(p) for p in version.strip().split("."))


def version_in_range(version: Tuple[int, ...], low: Tuple[int, ...], high: Tuple[int, ...]) -> bool:
    # "1.5" and "1.5.0" compare equal.
    width = max(len(version), len(low), len(high))

    def key(v):
        return v + (0,) * (width - len(v))

    return key(low) <= key(version) <= key(high)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CardValidator:
    """Collects Issues for one card. Instances hold no state between calls."""

    def __init__(self, config: RenderConfig = None):
        config = config or RenderConfig()
        self.min_version = config.min_version
        self.max_version = config.max_version

    def validate(self, card: Any) -> List[Issue]:
        issues: List[Issue] = []

        def push(code: str, message: str, parts) -> None:
            issues.append(Issue(code, message, json_pointer(parts), ISSUE_SEVERITY.get(code, Severity.ERROR)))

        if not isinstance(card, dict):
            push("invalid-root", "Card must be a JSON object", ())
            return issues

        self._check_root(card, push)

        if "body" in card and not isinstance(card["body"], list):
            push("invalid-body", "body must be an array", ("body",))
        if "actions" in card and not isinstance(card["actions"], list):
            push("invalid-actions", "actions must be an array", ("actions",))

        seen: Dict[str, Set[str]] = {"input": set(), "action": set()}
        for key, value in card.items():
            if key in OPAQUE_KEYS:
                continue
            self._visit(value, (key,), push, seen)

        logger.debug("validated card: %d issue(s)", len(issues))
        return issues

    # --- root ---

    def _check_root(self, card: Dict[str, Any], push) -> None:
        if card.get("type") != CARD_TYPE:
            push("invalid-type", f"Root type must be {CARD_TYPE}", ("type",))

        if "version" not in card:
            push("missing-version", f"{CARD_TYPE} must include a version", ("version",))
            return
        parsed = parse_version(card["version"])
        if parsed is None:
            push("invalid-version", f"version {card['version']!r} is not a dotted number", ("version",))
            return
        low = parse_version(self.min_version) or (0,)
        high = parse_version(self.max_version) or parsed
        if not version_in_range(parsed, low, high):
            push(
                "unsupported-version",
                f"version {card['version']} is outside {self.min_version}..{self.max_version}",
                ("version",),
            )

    # --- walk ---

    def _visit(self, value: Any, parts: tuple, push, seen: Dict[str, Set[str]]) -> None:
        if isinstance(value, list):
            for index, item in enumerate(value):
                self._visit(item, parts + (index,), push, seen)
            return
        if not isinstance(value, dict):
            return

        kind = node_type(value)
        if kind is not None:
            if is_action_discriminator(kind):
                self._check_action(value, kind, parts, push, seen)
            else:
                self._check_element(value, kind, parts, push, seen)

        for key, child in value.items():
            if key in OPAQUE_KEYS:
                continue
            self._visit(child, parts + (key,), push, seen)

    def _check_required(self, node: Dict[str, Any], kind: str, parts: tuple, push) -> None:
        for name in REQUIRED_FIELDS.get(kind, ()):
            if node.get(name) is None:
                push("missing-field", f"{kind} must include '{name}'", parts + (name,))

    def _check_element(self, node, kind: str, parts: tuple, push, seen) -> None:
        element = parse_element_type(kind)
        is_input = element in INPUT_ELEMENTS or kind.startswith(INPUT_PREFIX)
        if isinstance(element, Unrecognized):
            push("unknown-element-type", f"Unknown element type '{kind}'", parts + ("type",))
            if is_input:
                self._check_input_id(node, parts, push, seen)
            return

        self._check_required(node, kind, parts, push)

        if is_input:
            self._check_input_id(node, parts, push, seen)

        if element is ElementType.INPUT_CHOICE_SET:
            self._check_choice_set(node, parts, push)
        elif element is ElementType.INPUT_TOGGLE:
            if not _non_empty_str(node.get("title")):
                push("missing-title", "Input.Toggle should include a title", parts)
        elif element is ElementType.INPUT_NUMBER:
            low, high = node.get("min"), node.get("max")
            if _is_number(low) and _is_number(high) and low > high:
                push("invalid-range", "Input.Number min must be <= max", parts)
        elif element is ElementType.COLUMN_SET:
            columns = node.get("columns")
            if "columns" in node and not isinstance(columns, list):
                push("invalid-columns", "ColumnSet columns must be an array", parts)
            elif isinstance(columns, list) and not columns:
                push("empty-columns", "ColumnSet columns must not be empty", parts)
        elif element is ElementType.MEDIA:
            self._check_media(node, parts, push)

    @staticmethod
    def _check_input_id(node, parts, push, seen) -> None:
        ident = node.get("id")
        if not _non_empty_str(ident):
            push("missing-id", "Inputs must include a non-empty id", parts)
        elif ident in seen["input"]:
            push("duplicate-id", f"Input id '{ident}' is not unique within the card", parts)
        else:
            seen["input"].add(ident)

    @staticmethod
    def _check_choice_set(node, parts, push) -> None:
        if "choices" not in node:
            push("missing-choices", "Input.ChoiceSet must include choices", parts)
            return
        choices = node["choices"]
        if not isinstance(choices, list):
            push("invalid-choices", "Input.ChoiceSet choices must be an array", parts)
        elif not choices:
            push("empty-choices", "Input.ChoiceSet must include at least one choice", parts)
        elif any(
            not isinstance(c, dict) or not _non_empty_str(c.get("title")) or not _non_empty_str(c.get("value"))
            for c in choices
        ):
            push("invalid-choice", "Choices must include non-empty title and value", parts)

    @staticmethod
    def _check_media(node, parts, push) -> None:
        if "sources" not in node:
            push("missing-sources", "Media must include sources", parts)
            return
        sources = node["sources"]
        if not isinstance(sources, list):
            push("invalid-sources", "Media sources must be an array", parts)
        elif not sources:
            push("missing-sources", "Media must include at least one source", parts)
        elif any(not isinstance(s, dict) or not _non_empty_str(s.get("url")) for s in sources):
            push("invalid-source", "Media sources must include non-empty url", parts)

    def _check_action(self, node, kind: str, parts: tuple, push, seen) -> None:
        action = parse_action_type(kind)
        if isinstance(action, Unrecognized):
            push("unknown-action-type", f"Unknown action type '{kind}'", parts + ("type",))
            return

        self._check_required(node, kind, parts, push)

        ident = node.get("id")
        if isinstance(ident, str):
            if ident in seen["action"]:
                push("duplicate-action-id", f"Action id '{ident}' is not unique within the card", parts)
            else:
                seen["action"].add(ident)

        if action is ActionType.OPEN_URL:
            if not _non_empty_str(node.get("url")):
                push("missing-url", "Action.OpenUrl must include a url", parts)
        elif action is ActionType.EXECUTE:
            if not isinstance(node.get("verb"), str):
                push("missing-verb", "Action.Execute should include a verb", parts)
            self._check_data(node, kind, parts, push)
        elif action is ActionType.SUBMIT:
            self._check_data(node, kind, parts, push)
        elif action is ActionType.SHOW_CARD:
            if "card" not in node:
                push("missing-card", "Action.ShowCard must include a card", parts)
            elif not isinstance(node["card"], dict):
                push("invalid-card", "Action.ShowCard card must be an object", parts)
        elif action is ActionType.TOGGLE_VISIBILITY:
            targets = node.get("targetElements")
            if "targetElements" not in node:
                push("missing-target-elements", "Action.ToggleVisibility must include targetElements", parts)
            elif isinstance(targets, list) and not targets:
                push("empty-target-elements", "Action.ToggleVisibility targetElements must not be empty", parts)

    @staticmethod
    def _check_data(node, kind: str, parts, push) -> None:
        data = node.get("data")
        if data is not None and not isinstance(data, dict):
            push("invalid-data", f"{kind} data should be an object when present", parts)


def validate_card(card: Any, config: RenderConfig = None) -> List[Issue]:
    """Validate a rendered card tree; see CardValidator."""
    return CardValidator(config).validate(card)


def has_errors(issues: List[Issue]) -> bool:
    return any(issue.severity is Severity.ERROR for issue in issues)
