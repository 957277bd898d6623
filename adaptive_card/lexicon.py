"""
Adaptive Card Type Lexicon (Single Source of Truth)

Defines the closed set of element, action and interaction discriminators.
The validator, the feature summarizer and the interaction translator all
classify nodes through this module so they agree on what is known.

Unknown discriminators are not rejected: they parse to Unrecognized(raw) so
forward-compatible payloads can be reported instead of refused.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

CARD_TYPE = "AdaptiveCard"
ACTION_PREFIX = "Action."
INPUT_PREFIX = "Input."


class ElementType(Enum):
    ADAPTIVE_CARD = "AdaptiveCard"
    TEXT_BLOCK = "TextBlock"
    RICH_TEXT_BLOCK = "RichTextBlock"
    TEXT_RUN = "TextRun"
    IMAGE = "Image"
    IMAGE_SET = "ImageSet"
    MEDIA = "Media"
    CONTAINER = "Container"
    COLUMN_SET = "ColumnSet"
    COLUMN = "Column"
    FACT_SET = "FactSet"
    ACTION_SET = "ActionSet"
    TABLE = "Table"
    TABLE_ROW = "TableRow"
    TABLE_CELL = "TableCell"
    INPUT_TEXT = "Input.Text"
    INPUT_NUMBER = "Input.Number"
    INPUT_DATE = "Input.Date"
    INPUT_TIME = "Input.Time"
    INPUT_TOGGLE = "Input.Toggle"
    INPUT_CHOICE_SET = "Input.ChoiceSet"


class ActionType(Enum):
    SUBMIT = "Action.Submit"
    EXECUTE = "Action.Execute"
    OPEN_URL = "Action.OpenUrl"
    SHOW_CARD = "Action.ShowCard"
    TOGGLE_VISIBILITY = "Action.ToggleVisibility"

    @property
    def short_name(self) -> str:
        return self.value[len(ACTION_PREFIX):]


class InteractionType(Enum):
    SUBMIT = "Submit"
    EXECUTE = "Execute"
    OPEN_URL = "OpenUrl"
    SHOW_CARD = "ShowCard"
    TOGGLE_VISIBILITY = "ToggleVisibility"


@dataclass(frozen=True)
class Unrecognized:
    """A discriminator string outside the known lexicon."""
    raw: str


ElementKind = Union[ElementType, Unrecognized]
ActionKind = Union[ActionType, Unrecognized]

_ELEMENTS_BY_NAME = {member.value: member for member in ElementType}
_ACTIONS_BY_NAME = {member.value: member for member in ActionType}

# Interaction types also accept the action discriminator ("Action.Submit")
# and case-insensitive short names ("submit").
_INTERACTIONS_BY_NAME = {}
for _member in InteractionType:
    _INTERACTIONS_BY_NAME[_member.value.lower()] = _member
    _INTERACTIONS_BY_NAME[(ACTION_PREFIX + _member.value).lower()] = _member

INPUT_ELEMENTS = frozenset(
    member for member in ElementType if member.value.startswith(INPUT_PREFIX)
)
MEDIA_ELEMENTS = frozenset({ElementType.MEDIA})

# Typed nodes that are containers or parts of elements rather than body elements.
STRUCTURAL_TYPES = frozenset({ElementType.ADAPTIVE_CARD})

# Keys whose values are opaque payloads and are never walked as card structure.
OPAQUE_KEYS = frozenset({"data"})


def is_action_discriminator(kind: str) -> bool:
    return kind.startswith(ACTION_PREFIX)


def parse_element_type(kind: str) -> ElementKind:
    return _ELEMENTS_BY_NAME.get(kind) or Unrecognized(kind)


def parse_action_type(kind: str) -> ActionKind:
    return _ACTIONS_BY_NAME.get(kind) or Unrecognized(kind)


def parse_interaction_type(kind: Any) -> Optional[InteractionType]:
    """Returns None for anything outside the known interaction types."""
    if isinstance(kind, InteractionType):
        return kind
    if not isinstance(kind, str):
        return None
    return _INTERACTIONS_BY_NAME.get(kind.strip().lower())


def node_type(node: Any) -> Optional[str]:
    """The `type` discriminator of a mapping node, or None."""
    if isinstance(node, dict):
        kind = node.get("type")
        if isinstance(kind, str):
            return kind
    return None
