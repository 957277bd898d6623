"""
model.py

Value types shared by the renderer, validator, translator and summarizer.
All of them are plain data; none performs I/O or holds references into the
card tree they describe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import InteractionInvalid
from .lexicon import InteractionType, Unrecognized, parse_interaction_type


def json_pointer(parts) -> str:
    """("body", 0, "id") -> "/body/0/id"; the empty path is "/"."""
    if not parts:
        return "/"
    escaped = (str(p).replace("~", "~0").replace("/", "~1") for p in parts)
    return "/" + "/".join(escaped)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    """
    A validation issue or render diagnostic.

    path is a JSON-pointer style location ("/body/0/id"); "/" is the root.
    """
    code: str
    message: str
    path: str
    severity: Severity = Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "path": self.path,
            "severity": self.severity.value,
        }


class UpdateKind(Enum):
    SET = "set"
    MERGE = "merge"


class UpdateScope(Enum):
    STATE = "state"
    SESSION = "session"


@dataclass(frozen=True)
class UpdateOperation:
    """A mutation the caller applies to its own state or session store."""
    target_path: str
    operation: UpdateKind
    value: Any
    scope: UpdateScope = UpdateScope.STATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_path": self.target_path,
            "operation": self.operation.value,
            "value": self.value,
            "scope": self.scope.value,
        }


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class InteractionEvent:
    """
    A user interaction with a rendered card.

    `type` is either a known InteractionType or Unrecognized(raw); the
    translator refuses the latter.
    """
    type: Union[InteractionType, Unrecognized]
    action_id: str
    card_instance_id: str
    raw_inputs: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    verb: Optional[str] = None
    enabled: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Any) -> "InteractionEvent":
        """
        Build an event from a camelCase or snake_case mapping.

        Raises:
            InteractionInvalid: if data is not a mapping or metadata is not an object.
        """
        if not isinstance(data, dict):
            raise InteractionInvalid(
                f"interaction must be an object, got {type(data).__name__}"
            )
        raw_type = _first(data, "interactionType", "interaction_type", "type", default="")
        parsed = parse_interaction_type(raw_type)
        kind = parsed if parsed is not None else Unrecognized(str(raw_type))

        metadata = _first(data, "metadata", default=None)
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise InteractionInvalid("interaction.metadata must be an object")

        verb = data.get("verb")
        enabled = data.get("enabled")
        return cls(
            type=kind,
            action_id=str(_first(data, "actionId", "action_id", default="") or ""),
            card_instance_id=str(_first(data, "cardInstanceId", "card_instance_id", default="") or ""),
            raw_inputs=_first(data, "rawInputs", "raw_inputs", default=None),
            metadata=metadata,
            verb=verb if isinstance(verb, str) else None,
            enabled=enabled if isinstance(enabled, bool) else None,
        )


@dataclass(frozen=True)
class RoutingEvent:
    """What the caller should route on after an interaction."""
    type: InteractionType
    action_id: str
    card_instance_id: str
    metadata: Dict[str, Any]
    verb: Optional[str] = None
    route: Optional[str] = None
    inputs: Any = None
    card_id: Optional[str] = None
    subcard_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "action_id": self.action_id,
            "card_instance_id": self.card_instance_id,
            "metadata": self.metadata,
            "verb": self.verb,
            "route": self.route,
            "inputs": self.inputs,
            "card_id": self.card_id,
            "subcard_id": self.subcard_id,
        }


@dataclass
class FeatureSummary:
    """Feature usage of one rendered card, for downstream channel decisions."""
    version: Optional[str] = None
    element_counts: Dict[str, int] = field(default_factory=dict)
    action_counts: Dict[str, int] = field(default_factory=dict)
    used_elements: List[str] = field(default_factory=list)
    used_actions: List[str] = field(default_factory=list)
    has_media: bool = False
    has_inputs: bool = False
    has_auth: bool = False
    uses_show_card: bool = False
    uses_toggle_visibility: bool = False
    requires: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "element_counts": dict(self.element_counts),
            "action_counts": dict(self.action_counts),
            "used_elements": list(self.used_elements),
            "used_actions": list(self.used_actions),
            "has_media": self.has_media,
            "has_inputs": self.has_inputs,
            "has_auth": self.has_auth,
            "uses_show_card": self.uses_show_card,
            "uses_toggle_visibility": self.uses_toggle_visibility,
            "requires": dict(self.requires),
        }


@dataclass
class BindingSummary:
    """Counters collected while rendering one card."""
    template_expansions: int = 0
    placeholder_replacements: int = 0
    expression_evaluations: int = 0
    missing_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_expansions": self.template_expansions,
            "placeholder_replacements": self.placeholder_replacements,
            "expression_evaluations": self.expression_evaluations,
            "missing_paths": list(self.missing_paths),
        }
