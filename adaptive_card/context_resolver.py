"""
context_resolver.py

Binding Context for the adaptive card runtime
---------------------------------------------

Four namespaces are consulted when a placeholder names a path:

    payload  : data handed in with this invocation
    session  : conversation-scoped data owned by the host
    state    : card/flow state owned by the host
    params   : template parameters supplied with the card (alias: template)

Qualified paths ("session.user.name") address one namespace directly.
Unqualified paths ("user.name") are tried in precedence order
payload -> session -> state -> params; the first namespace in which the
*full* path resolves wins.

A path that does not resolve yields ABSENT, never an error. Only malformed
path syntax raises (PathSyntaxError), since the two have different
failure policies downstream.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from .errors import PathSyntaxError


# -------------------------------------------------------------------------
# Absent sentinel
# -------------------------------------------------------------------------


class _Absent:
    """Result of resolving a path that no namespace contains."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


ABSENT = _Absent()


def is_absent(value: Any) -> bool:
    return value is ABSENT


# -------------------------------------------------------------------------
# Path compilation
# -------------------------------------------------------------------------

NAMESPACES = ("payload", "session", "state", "params")
NAMESPACE_ALIASES = {"template": "params"}

CompiledPath = Tuple[Union[str, int], ...]

_NAME_RE = re.compile(r"[^.\[\]\s]+")
_INDEX_RE = re.compile(r"\[\s*(\d+)\s*\]")


def compile_path(path: str) -> CompiledPath:
    """
    Compile "user.tiers[0].name" into ("user", "tiers", 0, "name").

    Dotted numeric segments ("tiers.0") are kept as strings and act as list
    indices when the value at that point is a list.

    Raises:
        PathSyntaxError: empty path, empty segment, stray brackets.
    """
    if not isinstance(path, str):
        raise PathSyntaxError(repr(path), "path must be a string")
    text = path.strip()
    if not text:
        raise PathSyntaxError(path, "empty path")

    segments = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "[":
            m = _INDEX_RE.match(text, pos)
            if m is None or not segments:
                raise PathSyntaxError(path, f"invalid index at offset {pos}")
            segments.append(int(m.group(1)))
            pos = m.end()
            continue
        if segments:
            if ch != ".":
                raise PathSyntaxError(path, f"unexpected {ch!r} at offset {pos}")
            pos += 1
        m = _NAME_RE.match(text, pos)
        if m is None:
            raise PathSyntaxError(path, f"empty segment at offset {pos}")
        segments.append(m.group(0))
        pos = m.end()
    return tuple(segments)


def walk_path(root: Any, segments: CompiledPath) -> Any:
    """Follow segments from root. Any miss is ABSENT."""
    current = root
    for seg in segments:
        if isinstance(current, dict):
            key = seg if isinstance(seg, str) else str(seg)
            if key not in current:
                return ABSENT
            current = current[key]
        elif isinstance(current, list):
            if isinstance(seg, int):
                index = seg
            elif seg.isdigit():
                index = int(seg)
            else:
                return ABSENT
            if index >= len(current):
                return ABSENT
            current = current[index]
        else:
            return ABSENT
    return current


# -------------------------------------------------------------------------
# Binding context
# -------------------------------------------------------------------------


def _as_namespace(value: Any) -> Any:
    # A missing namespace behaves like an empty object.
    return {} if value is None else copy.deepcopy(value)


@dataclass(frozen=True)
class BindingContext:
    """
    Immutable lookup surface over the four namespaces.

    The namespaces are deep-copied on construction and resolved values are
    deep-copied on the way out, so a rendered tree never aliases caller data.
    """
    payload: Any = None
    session: Any = None
    state: Any = None
    params: Any = None
    node_id: Optional[str] = None

    def __post_init__(self):
        for name in NAMESPACES:
            object.__setattr__(self, name, _as_namespace(getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: Any) -> "BindingContext":
        """
        Build a context from {"payload", "session", "state", "params" | "template", "node_id"}.

        An existing BindingContext is returned unchanged.
        """
        if isinstance(data, BindingContext):
            return data
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"context must be a mapping, got {type(data).__name__}")
        params = data.get("params")
        if params is None:
            params = data.get("template")
        node_id = data.get("node_id")
        return cls(
            payload=data.get("payload"),
            session=data.get("session"),
            state=data.get("state"),
            params=params,
            node_id=node_id if isinstance(node_id, str) else None,
        )

    @property
    def template(self) -> Any:
        return self.params

    def namespace(self, name: str) -> Any:
        name = NAMESPACE_ALIASES.get(name, name)
        if name not in NAMESPACES:
            raise KeyError(name)
        return getattr(self, name)

    def resolve(self, path: Union[str, CompiledPath]) -> Any:
        """
        Resolve a path to a (copied) value or ABSENT.

        Raises:
            PathSyntaxError: if a string path is malformed.
        """
        segments = compile_path(path) if isinstance(path, str) else tuple(path)
        if not segments:
            return ABSENT
        value = self._resolve_segments(segments)
        return value if value is ABSENT else copy.deepcopy(value)

    def _resolve_segments(self, segments: CompiledPath) -> Any:
        head = segments[0]
        if isinstance(head, str):
            qualified = NAMESPACE_ALIASES.get(head, head)
            if qualified in NAMESPACES:
                return walk_path(getattr(self, qualified), segments[1:])

        for name in NAMESPACES:
            value = walk_path(getattr(self, name), segments)
            if value is not ABSENT:
                return value
        return ABSENT

    def has(self, path: Union[str, CompiledPath]) -> bool:
        return self.resolve(path) is not ABSENT
