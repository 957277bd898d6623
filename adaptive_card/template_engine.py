"""
template_engine.py

Renders a card tree against a BindingContext.

The tree is walked depth-first and every string leaf goes through three
passes, each feeding the next:

    1. {{...}}           Handlebars-style blocks (handlebars.py)
    2. @{path||default}  binding placeholders
    3. ${expr}           expressions (expression.py)

A leaf that is exactly one placeholder is replaced by the typed value; an
embedded placeholder is replaced by its string rendering. Failures are
contained to their leaf and recorded as diagnostics. Only string leaves are
rewritten; object keys and non-string scalars pass through unchanged.

The input tree is never mutated; render() always builds a new one.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .config import RenderConfig
from .context_resolver import ABSENT, BindingContext
from .errors import (
    ExpressionParseError,
    ExpressionTypeError,
    MissingPathWarning,
    TemplateError,
)
from .expression import ExpressionEvaluator, ExpressionParser, PathRef, Embedded, parse_binding_placeholder
from .handlebars import HandlebarsRenderer, has_template
from .model import BindingSummary, Issue, Severity, json_pointer
from .placeholders import BINDING_MARKER, EXPRESSION_MARKER, has_token, whole_token

logger = logging.getLogger(__name__)

# Diagnostic codes
MISSING_PATH = "missing-path"
INVALID_PATH = "invalid-path"
TEMPLATE_ERROR = "template-error"
EXPRESSION_PARSE_ERROR = "expression-parse-error"
EXPRESSION_TYPE_ERROR = "expression-type-error"

# Keys of the template root that state.input entries may not shadow.
RESERVED_ROOT_KEYS = frozenset(
    {"payload", "state", "params", "template", "node", "node_id", "node_payload"}
)


@dataclass
class RenderResult:
    tree: Any
    diagnostics: List[Issue] = field(default_factory=list)
    summary: BindingSummary = field(default_factory=BindingSummary)

    def missing_path_warnings(self) -> List[MissingPathWarning]:
        return [
            MissingPathWarning(f"{d.path}: {d.message}")
            for d in self.diagnostics if d.code == MISSING_PATH
        ]


def build_template_root(context: BindingContext) -> Dict[str, Any]:
    """
    Root scope for {{...}} templates.

    state.input keys are promoted to the top level unless they would shadow
    a reserved name. When the context names a node that exists under
    state.nodes, that node is exposed as node / node_payload.
    """
    state = context.state if isinstance(context.state, dict) else {}
    root: Dict[str, Any] = {}

    promoted = state.get("input")
    if isinstance(promoted, dict):
        for key, value in promoted.items():
            if key not in RESERVED_ROOT_KEYS:
                root[key] = value

    root["payload"] = context.payload
    root["state"] = context.state
    root["params"] = context.params
    root["template"] = context.params

    nodes = state.get("nodes")
    if context.node_id and isinstance(nodes, dict) and context.node_id in nodes:
        node = nodes[context.node_id]
        root["node_id"] = context.node_id
        root["node"] = node
        root["node_payload"] = node.get("payload") if isinstance(node, dict) else None
    return root


class _RenderPass:
    """Per-render scratch state: diagnostics and counters for one tree."""

    def __init__(self, engine: "TemplateEngine", context: BindingContext):
        self.engine = engine
        self.context = context
        self.diagnostics: List[Issue] = []
        self.summary = BindingSummary()
        self._template_root = None

    @property
    def template_root(self) -> Dict[str, Any]:
        if self._template_root is None:
            self._template_root = build_template_root(self.context)
        return self._template_root

    def issue(self, code: str, message: str, parts, severity: Severity = Severity.ERROR) -> None:
        self.diagnostics.append(Issue(code, message, json_pointer(parts), severity))

    def missing(self, path: str, parts) -> None:
        self.summary.missing_paths.append(path)
        self.issue(MISSING_PATH, f"path {path!r} did not resolve", parts, Severity.WARNING)

    # --- tree walk ---

    def walk(self, value: Any, parts: tuple) -> Any:
        if isinstance(value, dict):
            return {key: self.walk(item, parts + (key,)) for key, item in value.items()}
        if isinstance(value, list):
            return [self.walk(item, parts + (index,)) for index, item in enumerate(value)]
        if isinstance(value, str):
            return self.render_leaf(value, parts)
        return value

    def render_leaf(self, text: str, parts: tuple) -> Any:
        value: Any = text

        policy = self.engine.config.template_policy
        if policy.enabled and has_template(value):
            try:
                value, expanded = self.engine.templates.render(value, self.template_root)
                self.summary.template_expansions += expanded
            except TemplateError as e:
                self.issue(TEMPLATE_ERROR, str(e), parts)

        if has_token(value, BINDING_MARKER):
            value = self.bindings(value, parts)
            if not isinstance(value, str):
                return value

        if has_token(value, EXPRESSION_MARKER):
            value = self.expressions(value, parts)
        return value

    # --- pass 2: @{path||default} ---

    def bindings(self, text: str, parts: tuple) -> Any:
        evaluator = ExpressionEvaluator(self.context)
        inner = whole_token(text, BINDING_MARKER)
        if inner is not None:
            try:
                ref = parse_binding_placeholder(inner)
            except ExpressionParseError as e:
                self.issue(INVALID_PATH, str(e), parts)
                return None
            self.summary.placeholder_replacements += 1
            value = evaluator.evaluate(ref)
            if value is ABSENT:
                self.missing(ref.path, parts)
                return None
            return value

        try:
            interpolation = self.engine.expressions.parse_interpolation(text, (BINDING_MARKER,))
        except ExpressionParseError as e:
            self.issue(INVALID_PATH, str(e), parts)
            return None
        self.summary.placeholder_replacements += sum(
            1 for seg in interpolation.segments if isinstance(seg, PathRef)
        )
        rendered = evaluator.evaluate(interpolation)
        for path in evaluator.missing_paths:
            self.missing(path, parts)
        return rendered

    # --- pass 3: ${expr} ---

    def expressions(self, text: str, parts: tuple) -> Any:
        evaluator = ExpressionEvaluator(self.context)
        parser = self.engine.expressions
        inner = whole_token(text, EXPRESSION_MARKER)
        try:
            if inner is not None:
                node = parser.parse(inner)
                self.summary.expression_evaluations += 1
                value = evaluator.evaluate(node)
                if value is ABSENT:
                    self.missing(inner, parts)
                    return None
                return value

            interpolation = parser.parse_interpolation(text, (EXPRESSION_MARKER,))
            self.summary.expression_evaluations += sum(
                1 for seg in interpolation.segments if isinstance(seg, Embedded)
            )
            rendered = evaluator.evaluate(interpolation)
        except ExpressionParseError as e:
            self.issue(EXPRESSION_PARSE_ERROR, str(e), parts)
            return None
        except ExpressionTypeError as e:
            self.issue(EXPRESSION_TYPE_ERROR, str(e), parts)
            return None
        for source in evaluator.missing_paths:
            self.missing(source, parts)
        return rendered


class TemplateEngine:
    """
    Placeholder and template renderer.

    An engine owns its parsers and is meant for one thread at a time; create
    one per worker (CardRuntime creates one per render).
    """

    def __init__(self, config: RenderConfig = None):
        self.config = config or RenderConfig()
        self.expressions = ExpressionParser()
        self.templates = HandlebarsRenderer(self.config.template_policy)

    def render(self, card: Any, context: Any = None) -> RenderResult:
        """
        Render card against context (a BindingContext or a mapping with
        payload/session/state/params keys).

        Never raises for missing data or bad placeholders; see
        RenderResult.diagnostics.
        """
        ctx = BindingContext.from_mapping(context)
        render_pass = _RenderPass(self, ctx)
        tree = render_pass.walk(card, ())
        logger.debug(
            "rendered card: %d diagnostic(s), summary=%s",
            len(render_pass.diagnostics), render_pass.summary.to_dict(),
        )
        return RenderResult(tree, render_pass.diagnostics, render_pass.summary)


def render_card(card: Any, context: Any = None, config: RenderConfig = None) -> RenderResult:
    """Convenience wrapper: render with a fresh engine."""
    return TemplateEngine(config).render(card, context)
