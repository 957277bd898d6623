"""
expression.py

Expression language for ${...} placeholders.

Grammar (PEG, precedence low -> high):

    expression := ternary EOF
    ternary    := equality ('?' ternary ':' ternary)?
    equality   := coalesce (('==' | '!=') coalesce)?
    coalesce   := primary ('||' primary)*
    primary    := '(' ternary ')' | string | number | true | false | null | path

Parsing is total: text either yields an AST or raises ExpressionParseError
with the failing offset. Evaluation never raises on missing data: a path
that no namespace resolves evaluates to ABSENT. The only evaluation
failure is ExpressionTypeError (e.g. a non-boolean ternary condition).

Mixed strings ("Hello @{user.name}, ${count}") are parsed separately into
an Interpolation node whose segments are concatenated as text.
"""

import copy
import re
import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple, Union

from arpeggio import ParserPython, PTNodeVisitor, visit_parse_tree, ZeroOrMore, Optional, EOF, NoMatch
from arpeggio import RegExMatch as _

from .canonical import stringify_value, values_equal
from .context_resolver import ABSENT, BindingContext, compile_path
from .errors import ExpressionParseError, ExpressionTypeError, PathSyntaxError
from .placeholders import (
    BINDING_MARKER,
    EXPRESSION_MARKER,
    NO_DEFAULT,
    parse_binding,
    split_segments,
)

logger = logging.getLogger(__name__)


# ==========================================
# 1. AST
# ==========================================

class Node:
    """Base class for expression AST nodes."""


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class PathRef(Node):
    path: str
    segments: Tuple[Union[str, int], ...]
    default: Any = NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True)
class Equality(Node):
    left: Node
    right: Node
    negate: bool = False


@dataclass(frozen=True)
class Coalesce(Node):
    left: Node
    right: Node


@dataclass(frozen=True)
class Ternary(Node):
    condition: Node
    then: Node
    otherwise: Node


@dataclass(frozen=True)
class Embedded(Node):
    """A ${...} expression inside an interpolated string; source is its raw text."""
    expression: Node
    source: str


@dataclass(frozen=True)
class Interpolation(Node):
    segments: Tuple[Node, ...]


# ==========================================
# 2. GRAMMAR
# ==========================================

_IDENT = r"[^\W\d][\w-]*"


def string_literal():
    return _(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'')


def number_literal():
    return _(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?(?![\w.])")


def keyword_literal():
    # Lookahead keeps "true_flag" and "null.x" parsing as paths.
    return _(r"(?:true|false|null)(?![\w.\[-])")


def path():
    return _(_IDENT + r"(?:\.(?:" + _IDENT + r"|\d+)|\[\s*\d+\s*\])*")


def group():
    return _(r"\("), ternary, _(r"\)")


def primary():
    # Literals before path so keywords never parse as identifiers.
    return [group, string_literal, number_literal, keyword_literal, path]


def coalesce():
    return primary, ZeroOrMore(_(r"\|\|"), primary)


def equality():
    return coalesce, Optional(_(r"==|!="), coalesce)


def ternary():
    return equality, Optional(_(r"\?"), ternary, _(r":"), ternary)


def expression():
    return ternary, EOF


# ==========================================
# 3. PARSE TREE -> AST
# ==========================================

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)


def _unescape(body: str) -> str:
    def repl(m):
        esc = m.group(1)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        return _ESCAPES.get(esc, esc)
    return _ESCAPE_RE.sub(repl, body)


def flatten_children(children) -> list:
    # Repetitions may hand back (op, operand) groups; inline them.
    flat = []
    for child in children:
        if isinstance(child, (list, tuple)):
            flat.extend(flatten_children(child))
        else:
            flat.append(child)
    return flat


def _nodes(children) -> List[Node]:
    # Operator and bracket terminals come through as plain strings.
    return [c for c in flatten_children(children) if isinstance(c, Node)]


class AstBuilder(PTNodeVisitor):
    """Turns an arpeggio parse tree into expression AST nodes."""

    def visit_string_literal(self, node, children):
        return Literal(_unescape(node.value[1:-1]))

    def visit_number_literal(self, node, children):
        text = node.value
        if any(ch in text for ch in ".eE"):
            return Literal(float(text))
        return Literal(int(text))

    def visit_keyword_literal(self, node, children):
        return Literal({"true": True, "false": False, "null": None}[node.value])

    def visit_path(self, node, children):
        return PathRef(node.value, compile_path(node.value))

    def visit_group(self, node, children):
        return _nodes(children)[0]

    def visit_primary(self, node, children):
        return _nodes(children)[0]

    def visit_coalesce(self, node, children):
        operands = _nodes(children)
        result = operands[0]
        for operand in operands[1:]:
            result = Coalesce(result, operand)
        return result

    def visit_equality(self, node, children):
        operands = _nodes(children)
        if len(operands) == 1:
            return operands[0]
        negate = "!=" in [c for c in flatten_children(children) if isinstance(c, str)]
        return Equality(operands[0], operands[1], negate=negate)

    def visit_ternary(self, node, children):
        operands = _nodes(children)
        if len(operands) == 1:
            return operands[0]
        condition, then, otherwise = operands
        return Ternary(condition, then, otherwise)

    def visit_expression(self, node, children):
        return _nodes(children)[0]


class ExpressionParser:
    """
    Parser for ${...} content.

    Each instance owns its arpeggio parser; instances are not shared between
    threads, so no locking is needed.
    """

    def __init__(self):
        self._parser = ParserPython(expression, ignore_case=False)

    def parse(self, text: str) -> Node:
        """
        Raises:
            ExpressionParseError: malformed syntax, with the failing offset.
        """
        if not isinstance(text, str):
            raise ExpressionParseError("expression must be a string", 0)
        try:
            tree = self._parser.parse(text)
        except NoMatch as e:
            offset = getattr(e, "position", 0)
            raise ExpressionParseError(f"invalid expression {text!r}", offset, text) from e
        return visit_parse_tree(tree, AstBuilder())

    def parse_interpolation(self, text: str, markers: Sequence[str] = (BINDING_MARKER, EXPRESSION_MARKER)) -> Interpolation:
        """
        Parse a mixed string into literal, @{path||default} and ${expr} segments.

        Raises:
            ExpressionParseError: if an embedded token is malformed. Offsets are
                relative to `text`.
        """
        return Interpolation(tuple(self._segments(text, tuple(markers), 0)))

    def _segments(self, text: str, markers: Tuple[str, ...], base: int) -> List[Node]:
        if not markers:
            return [Literal(text)] if text else []
        marker, rest = markers[0], markers[1:]
        out: List[Node] = []
        for kind, content, offset in split_segments(text, marker):
            if kind == "text":
                out.extend(self._segments(content, rest, base + offset))
            elif marker == BINDING_MARKER:
                out.append(self._binding(content, base + offset))
            else:
                out.append(self._embedded(content, base + offset))
        return out

    def _binding(self, content: str, offset: int) -> PathRef:
        try:
            return parse_binding_placeholder(content)
        except ExpressionParseError as e:
            raise ExpressionParseError(str(e.__cause__ or e), offset, content) from e

    def _embedded(self, content: str, offset: int) -> Embedded:
        try:
            return Embedded(self.parse(content.strip()), content.strip())
        except ExpressionParseError as e:
            raise ExpressionParseError(f"invalid expression {content.strip()!r}", offset + 2 + e.offset, content) from e


def parse_binding_placeholder(content: str) -> PathRef:
    """
    Parse the inside of @{...} ("path||default").

    Raises:
        ExpressionParseError: if the path part is malformed.
    """
    path_text, default = parse_binding(content)
    try:
        segments = compile_path(path_text)
    except PathSyntaxError as e:
        raise ExpressionParseError(str(e), 0, content) from e
    return PathRef(path_text, segments, default)


# ==========================================
# 4. EVALUATION
# ==========================================

class ExpressionEvaluator:
    """
    Evaluates AST nodes against a BindingContext.

    missing_paths collects the sources of interpolation segments that
    rendered as absent without a default, in evaluation order.
    """

    def __init__(self, context: BindingContext):
        self.context = context
        self.missing_paths: List[str] = []

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, PathRef):
            value = self.context.resolve(node.segments)
            if node.has_default and (value is ABSENT or value is None):
                return copy.deepcopy(node.default)
            return value
        if isinstance(node, Embedded):
            return self.evaluate(node.expression)
        if isinstance(node, Coalesce):
            left = self.evaluate(node.left)
            if left is ABSENT or left is None:
                return self.evaluate(node.right)
            return left
        if isinstance(node, Equality):
            result = self._equal(self.evaluate(node.left), self.evaluate(node.right))
            return not result if node.negate else result
        if isinstance(node, Ternary):
            condition = self.evaluate(node.condition)
            if not isinstance(condition, bool):
                shown = "absent" if condition is ABSENT else type(condition).__name__
                raise ExpressionTypeError(f"ternary condition must be boolean, got {shown}")
            # Only the chosen branch is evaluated.
            return self.evaluate(node.then if condition else node.otherwise)
        if isinstance(node, Interpolation):
            return self._interpolate(node)
        raise ExpressionTypeError(f"unsupported expression node {type(node).__name__}")

    @staticmethod
    def _equal(left: Any, right: Any) -> bool:
        if left is ABSENT or right is ABSENT:
            return left is ABSENT and right is ABSENT
        return values_equal(left, right)

    def _interpolate(self, node: Interpolation) -> str:
        parts = []
        for segment in node.segments:
            value = self.evaluate(segment)
            if value is ABSENT:
                if isinstance(segment, PathRef):
                    self.missing_paths.append(segment.path)
                elif isinstance(segment, Embedded):
                    self.missing_paths.append(segment.source)
                parts.append("")
                continue
            parts.append(stringify_value(value))
        return "".join(parts)


def evaluate_expression(text: str, context: BindingContext, parser: ExpressionParser = None) -> Any:
    """
    Parse and evaluate one standalone expression.

    Unlike placeholder rendering, failures propagate to the caller.

    Raises:
        ExpressionParseError, ExpressionTypeError
    """
    parser = parser or ExpressionParser()
    ast = parser.parse(text)
    logger.debug("evaluating %r -> %r", text, ast)
    return ExpressionEvaluator(context).evaluate(ast)
