"""
Adaptive Card Runtime - binding, validation and interaction handling for
Adaptive Card JSON.

Public API:
- CardRuntime: Canonical runtime entrypoint (recommended)
- BindingContext: Layered payload / session / state / params lookup
- TemplateEngine / render_card: Placeholder and template rendering
- validate_card: Structural validation of a rendered card
- translate: Interaction -> routing event + update operations
- summarize: Feature summary of a rendered card
"""

from .card_runtime import CardResult, CardRuntime, InvocationMode, RenderOutcome, ValidationMode
from .card_validator import validate_card
from .config import RenderConfig, TemplatePolicy, configure_debug_logging
from .context_resolver import ABSENT, BindingContext
from .errors import (
    CardError,
    CardValidationError,
    ExpressionParseError,
    ExpressionTypeError,
    InteractionInvalid,
    MissingPathWarning,
    PathSyntaxError,
    TemplateError,
)
from .expression import evaluate_expression
from .features import summarize
from .interaction import apply_updates, translate
from .template_engine import TemplateEngine, render_card

# Derive version from package metadata
try:
    from importlib.metadata import version
    __version__ = version("adaptive-card-runtime")
except Exception:
    __version__ = "0.1.0"

configure_debug_logging()

__all__ = [
    "ABSENT",
    "BindingContext",
    "CardError",
    "CardResult",
    "CardRuntime",
    "CardValidationError",
    "ExpressionParseError",
    "ExpressionTypeError",
    "InteractionInvalid",
    "InvocationMode",
    "MissingPathWarning",
    "PathSyntaxError",
    "RenderConfig",
    "RenderOutcome",
    "TemplateEngine",
    "TemplateError",
    "TemplatePolicy",
    "ValidationMode",
    "apply_updates",
    "evaluate_expression",
    "render_card",
    "summarize",
    "translate",
    "validate_card",
]
