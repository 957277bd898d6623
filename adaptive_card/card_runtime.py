"""
card_runtime.py

The CardRuntime is the unified entrypoint for one card invocation.

It connects:
    - BindingContext   (layered payload / session / state / params lookup)
    - TemplateEngine   ({{...}}, @{...} and ${...} rendering)
    - CardValidator    (structural issues)
    - translate        (interaction -> routing event + update operations)
    - summarize        (feature summary)
    - trace            (optional telemetry event)

Everything happens in memory. The runtime loads nothing and persists
nothing; update operations are returned for the caller to apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .card_validator import has_errors, validate_card
from .config import RenderConfig
from .context_resolver import BindingContext
from .errors import CardValidationError
from .features import summarize
from .interaction import translate
from .model import (
    BindingSummary,
    FeatureSummary,
    InteractionEvent,
    Issue,
    RoutingEvent,
    Severity,
    UpdateOperation,
    UpdateScope,
)
from .template_engine import TemplateEngine
from .trace import TelemetryEvent, build_trace_event

logger = logging.getLogger(__name__)


class InvocationMode(Enum):
    RENDER = "render"
    VALIDATE = "validate"
    RENDER_AND_VALIDATE = "render_and_validate"


class ValidationMode(Enum):
    OFF = "off"
    WARN = "warn"      # issues are reported in the result
    ERROR = "error"    # error-severity issues raise CardValidationError


# -------------------------------------------------------------------------
# Result objects
# -------------------------------------------------------------------------

@dataclass
class RenderOutcome:
    card: Any
    diagnostics: List[Issue] = field(default_factory=list)
    binding_summary: BindingSummary = field(default_factory=BindingSummary)
    features: FeatureSummary = field(default_factory=FeatureSummary)


@dataclass
class CardResult:
    """
    Public result returned by CardRuntime.process(...)

    rendered_card is None in InvocationMode.VALIDATE. event is None when no
    interaction was given or the interaction was disabled.
    """
    rendered_card: Any
    event: Optional[RoutingEvent] = None
    state_updates: List[UpdateOperation] = field(default_factory=list)
    session_updates: List[UpdateOperation] = field(default_factory=list)
    features: FeatureSummary = field(default_factory=FeatureSummary)
    validation_issues: List[Issue] = field(default_factory=list)
    diagnostics: List[Issue] = field(default_factory=list)
    binding_summary: BindingSummary = field(default_factory=BindingSummary)
    telemetry_events: List[TelemetryEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rendered_card": self.rendered_card,
            "event": self.event.to_dict() if self.event else None,
            "state_updates": [u.to_dict() for u in self.state_updates],
            "session_updates": [u.to_dict() for u in self.session_updates],
            "card_features": self.features.to_dict(),
            "validation_issues": [i.to_dict() for i in self.validation_issues],
            "diagnostics": [i.to_dict() for i in self.diagnostics],
            "binding_summary": self.binding_summary.to_dict(),
            "telemetry_events": [e.to_dict() for e in self.telemetry_events],
        }


# -------------------------------------------------------------------------
# Runtime Core
# -------------------------------------------------------------------------

class CardRuntime:
    """
    Responsibilities:
        - render the card against the binding context
        - validate the rendered tree according to the validation mode
        - translate an interaction (unless it is disabled)
        - summarize features and, when enabled, build a trace event

    A runtime holds only its configuration, so one instance can serve
    concurrent calls; each render gets its own TemplateEngine.
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config if config is not None else RenderConfig.from_env()

    def render(self, card: Any, context: Any = None) -> RenderOutcome:
        ctx = BindingContext.from_mapping(context)
        result = TemplateEngine(self.config).render(card, ctx)
        return RenderOutcome(
            card=result.tree,
            diagnostics=result.diagnostics,
            binding_summary=result.summary,
            features=summarize(result.tree),
        )

    def validate(self, card: Any) -> List[Issue]:
        return validate_card(card, self.config)

    def process(
        self,
        card: Any,
        context: Any = None,
        interaction: Union[InteractionEvent, Dict[str, Any], None] = None,
        mode: InvocationMode = InvocationMode.RENDER_AND_VALIDATE,
        validation_mode: ValidationMode = ValidationMode.WARN,
    ) -> CardResult:
        """
        Raises:
            InteractionInvalid: the interaction cannot be translated.
            CardValidationError: validation_mode is ERROR and the rendered card
                has error-severity issues.
        """
        ctx = BindingContext.from_mapping(context)
        outcome = self.render(card, ctx)

        issues: List[Issue] = []
        if mode is not InvocationMode.RENDER and validation_mode is not ValidationMode.OFF:
            issues = self.validate(outcome.card)
            if validation_mode is ValidationMode.ERROR and has_errors(issues):
                raise CardValidationError([i for i in issues if i.severity is Severity.ERROR])

        event = None
        updates: List[UpdateOperation] = []
        interaction_event = None
        if interaction is not None:
            interaction_event = (
                interaction if isinstance(interaction, InteractionEvent)
                else InteractionEvent.from_dict(interaction)
            )
            if interaction_event.enabled is False:
                logger.debug("interaction %s is disabled; ignoring", interaction_event.action_id)
                interaction_event = None
            else:
                event, updates = translate(interaction_event, outcome.card)

        telemetry: List[TelemetryEvent] = []
        if self.config.trace:
            telemetry.append(build_trace_event(
                card, ctx, outcome.binding_summary, interaction_event, updates,
                capture_inputs=self.config.trace_capture_inputs,
            ))

        return CardResult(
            rendered_card=None if mode is InvocationMode.VALIDATE else outcome.card,
            event=event,
            state_updates=[u for u in updates if u.scope is UpdateScope.STATE],
            session_updates=[u for u in updates if u.scope is UpdateScope.SESSION],
            features=outcome.features,
            validation_issues=issues,
            diagnostics=outcome.diagnostics,
            binding_summary=outcome.binding_summary,
            telemetry_events=telemetry,
        )
