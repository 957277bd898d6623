"""
handlebars.py

Handlebars-style {{...}} templates inside string leaves.

Supported constructs:

    {{path}}  {{{path}}}                         value interpolation (no escaping)
    {{#if path}} ... {{else}} ... {{/if}}
    {{#unless path}} ... {{else}} ... {{/unless}}
    {{#each path}} ... {{else}} ... {{/each}}    this, @index, @key, @first, @last

Paths resolve against a scope stack: innermost {{#each}} item first, then
outward to the template root. "../" skips one scope. Missing values render
as the empty string.

Which block helpers may run is decided by TemplatePolicy; anything outside
it, and any malformed template, raises TemplateError.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from arpeggio import ParserPython, PTNodeVisitor, visit_parse_tree, ZeroOrMore, Optional, EOF, NoMatch
from arpeggio import RegExMatch as _

from .canonical import stringify_value
from .config import TemplatePolicy
from .context_resolver import ABSENT, compile_path, walk_path
from .errors import PathSyntaxError, TemplateError
from .expression import flatten_children

logger = logging.getLogger(__name__)


# ==========================================
# 1. AST
# ==========================================

class HbNode:
    pass


@dataclass(frozen=True)
class HbPath:
    raw: str
    parents: int
    segments: Tuple[Any, ...]

    @property
    def is_data(self) -> bool:
        return self.raw.lstrip("./").startswith("@")


@dataclass(frozen=True)
class Text(HbNode):
    text: str


@dataclass(frozen=True)
class Mustache(HbNode):
    path: HbPath


@dataclass(frozen=True)
class Block(HbNode):
    helper: str  # "if" | "unless" | "each"
    path: HbPath
    body: Tuple[HbNode, ...]
    inverse: Tuple[HbNode, ...] = ()


@dataclass(frozen=True)
class Body:
    nodes: Tuple[HbNode, ...]


class _ElseMarker:
    def __repr__(self):
        return "ELSE"


ELSE = _ElseMarker()


# ==========================================
# 2. GRAMMAR (whitespace significant)
# ==========================================

def hb_path():
    return _(r"(?!else\s*\}\})(?:\.\./)*(?:@(?:index|key|first|last)\b|[^\W\d][\w-]*(?:\.(?:[^\W\d][\w-]*|\d+)|\[\d+\])*)")


def hb_text():
    return _(r"(?:(?!\{\{)[\s\S])+")


def raw_mustache():
    return _(r"\{\{\{\s*"), hb_path, _(r"\s*\}\}\}")


def mustache():
    return _(r"\{\{\s*"), hb_path, _(r"\s*\}\}")


def else_tag():
    return _(r"\{\{\s*else\s*\}\}")


def if_open():
    return _(r"\{\{#if\s+"), hb_path, _(r"\s*\}\}")


def if_close():
    return _(r"\{\{/if\s*\}\}")


def unless_open():
    return _(r"\{\{#unless\s+"), hb_path, _(r"\s*\}\}")


def unless_close():
    return _(r"\{\{/unless\s*\}\}")


def each_open():
    return _(r"\{\{#each\s+"), hb_path, _(r"\s*\}\}")


def each_close():
    return _(r"\{\{/each\s*\}\}")


def if_block():
    return if_open, body, Optional(else_tag, body), if_close


def unless_block():
    return unless_open, body, Optional(else_tag, body), unless_close


def each_block():
    return each_open, body, Optional(else_tag, body), each_close


def body():
    return ZeroOrMore([if_block, unless_block, each_block, raw_mustache, mustache, hb_text])


def template():
    return body, EOF


# ==========================================
# 3. PARSE TREE -> AST
# ==========================================

def _compile_hb_path(raw: str) -> HbPath:
    parents = 0
    rest = raw
    while rest.startswith("../"):
        parents += 1
        rest = rest[3:]
    if rest.startswith("@"):
        return HbPath(raw, parents, (rest[1:],))
    try:
        segments = compile_path(rest)
    except PathSyntaxError as e:
        raise TemplateError(str(e)) from e
    return HbPath(raw, parents, segments)


class TemplateBuilder(PTNodeVisitor):

    def visit_hb_path(self, node, children):
        return _compile_hb_path(node.value)

    def visit_hb_text(self, node, children):
        return Text(node.value)

    def visit_raw_mustache(self, node, children):
        return Mustache(self._path(children))

    def visit_mustache(self, node, children):
        return Mustache(self._path(children))

    def visit_else_tag(self, node, children):
        return ELSE

    def visit_if_open(self, node, children):
        return self._path(children)

    visit_unless_open = visit_if_open
    visit_each_open = visit_if_open

    def visit_if_close(self, node, children):
        return None

    visit_unless_close = visit_if_close
    visit_each_close = visit_if_close

    def visit_if_block(self, node, children):
        return self._block("if", children)

    def visit_unless_block(self, node, children):
        return self._block("unless", children)

    def visit_each_block(self, node, children):
        return self._block("each", children)

    def visit_body(self, node, children):
        return Body(tuple(c for c in flatten_children(children) if isinstance(c, HbNode)))

    def visit_template(self, node, children):
        for child in flatten_children(children):
            if isinstance(child, Body):
                return child
        return Body(())

    @staticmethod
    def _path(children) -> HbPath:
        for child in flatten_children(children):
            if isinstance(child, HbPath):
                return child
        raise TemplateError("tag without a path")

    def _block(self, helper: str, children) -> Block:
        # An empty body may not surface as a child, so split on the else marker.
        flat = flatten_children(children)
        path = self._path(flat)
        main, inverse = (), ()
        seen_else = False
        for child in flat:
            if child is ELSE:
                seen_else = True
            elif isinstance(child, Body):
                if seen_else:
                    inverse = child.nodes
                else:
                    main = child.nodes
        return Block(helper, path, main, inverse)


# ==========================================
# 4. RENDERING
# ==========================================

def is_truthy(value: Any) -> bool:
    """Handlebars truthiness: absent, null, false, "", 0 and [] are falsy."""
    if value is ABSENT or value is None or value is False:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)) and value == 0:
        return False
    if isinstance(value, (str, list)) and len(value) == 0:
        return False
    return True


@dataclass
class _Frame:
    value: Any
    data: Dict[str, Any] = field(default_factory=dict)


class HandlebarsRenderer:
    """
    Parses and renders one template string at a time.

    Each instance owns its parser. render() returns the output text and the
    number of tags that were expanded.
    """

    def __init__(self, policy: TemplatePolicy = None):
        self.policy = policy or TemplatePolicy()
        self._parser = ParserPython(template, skipws=False)

    def parse(self, text: str) -> Tuple[HbNode, ...]:
        try:
            tree = self._parser.parse(text)
        except NoMatch as e:
            offset = getattr(e, "position", 0)
            raise TemplateError("malformed template", offset) from e
        return visit_parse_tree(tree, TemplateBuilder()).nodes

    def render(self, text: str, root: Dict[str, Any]) -> Tuple[str, int]:
        """
        Raises:
            TemplateError: malformed template, disallowed block helper, or
                an {{#each}} beyond policy.max_iterations.
        """
        if not self.policy.enabled:
            raise TemplateError("templates are disabled")
        nodes = self.parse(text)
        counter = [0]
        out: List[str] = []
        self._render_nodes(nodes, [_Frame(root)], out, counter)
        logger.debug("template %r expanded %d tag(s)", text, counter[0])
        return "".join(out), counter[0]

    def _render_nodes(self, nodes, scopes: List[_Frame], out: List[str], counter: List[int]) -> None:
        for node in nodes:
            if isinstance(node, Text):
                out.append(node.text)
            elif isinstance(node, Mustache):
                counter[0] += 1
                value = self.lookup(node.path, scopes)
                if value is not ABSENT:
                    out.append(stringify_value(value))
            elif isinstance(node, Block):
                counter[0] += 1
                self._render_block(node, scopes, out, counter)

    def _render_block(self, block: Block, scopes, out, counter) -> None:
        if block.helper in ("if", "unless") and not self.policy.allow_conditionals:
            raise TemplateError(f"{{{{#{block.helper}}}}} is not allowed by the template policy")
        if block.helper == "each" and not self.policy.allow_loops:
            raise TemplateError("{{#each}} is not allowed by the template policy")

        value = self.lookup(block.path, scopes)
        if block.helper == "if":
            branch = block.body if is_truthy(value) else block.inverse
            self._render_nodes(branch, scopes, out, counter)
            return
        if block.helper == "unless":
            branch = block.inverse if is_truthy(value) else block.body
            self._render_nodes(branch, scopes, out, counter)
            return

        if isinstance(value, dict):
            items = [(key, key, item) for key, item in value.items()]
        elif isinstance(value, list):
            items = [(index, None, item) for index, item in enumerate(value)]
        else:
            items = []
        if not items:
            self._render_nodes(block.inverse, scopes, out, counter)
            return
        if len(items) > self.policy.max_iterations:
            raise TemplateError(
                f"{{{{#each {block.path.raw}}}}} has {len(items)} items, limit is {self.policy.max_iterations}"
            )
        last = len(items) - 1
        for position, (index, key, item) in enumerate(items):
            data = {"index": position, "first": position == 0, "last": position == last}
            if key is not None:
                data["key"] = key
            self._render_nodes(block.body, scopes + [_Frame(item, data)], out, counter)

    @staticmethod
    def lookup(path: HbPath, scopes: List[_Frame]) -> Any:
        visible = scopes[:max(1, len(scopes) - path.parents)]
        if path.is_data:
            name = path.segments[0]
            for frame in reversed(visible):
                if name in frame.data:
                    return frame.data[name]
            return ABSENT

        segments = path.segments
        if segments and segments[0] == "this":
            return walk_path(visible[-1].value, segments[1:])
        for frame in reversed(visible):
            value = walk_path(frame.value, segments)
            if value is not ABSENT:
                return value
        return ABSENT


def has_template(text: str) -> bool:
    return "{{" in text
