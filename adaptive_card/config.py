"""
config.py - Render configuration

Dataclass defaults can be overridden from the environment with
RenderConfig.from_env(). ADAPTIVE_CARD_DEBUG=1 routes the package's debug
logging to stderr.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

PACKAGE_LOGGER = "adaptive_card"

# Card schema versions accepted without an 'unsupported-version' warning.
MIN_SUPPORTED_VERSION = "1.0"
MAX_SUPPORTED_VERSION = "1.6"


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TemplatePolicy:
    """
    Which {{...}} constructs the template pass accepts.

    Plain variable interpolation is always allowed while enabled; block
    helpers outside the policy are reported as template errors.
    """
    enabled: bool = True
    allow_conditionals: bool = True   # {{#if}}, {{#unless}}
    allow_loops: bool = True          # {{#each}}
    max_iterations: int = 1000        # per {{#each}} block


@dataclass(frozen=True)
class RenderConfig:
    template_policy: TemplatePolicy = field(default_factory=TemplatePolicy)
    min_version: str = MIN_SUPPORTED_VERSION
    max_version: str = MAX_SUPPORTED_VERSION
    trace: bool = False
    trace_capture_inputs: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RenderConfig":
        env = os.environ if environ is None else environ
        policy = TemplatePolicy(
            enabled=_env_flag(env, "ADAPTIVE_CARD_TEMPLATES", True),
            allow_conditionals=_env_flag(env, "ADAPTIVE_CARD_TEMPLATE_CONDITIONALS", True),
            allow_loops=_env_flag(env, "ADAPTIVE_CARD_TEMPLATE_LOOPS", True),
        )
        return cls(
            template_policy=policy,
            min_version=env.get("ADAPTIVE_CARD_MIN_VERSION", MIN_SUPPORTED_VERSION),
            max_version=env.get("ADAPTIVE_CARD_MAX_VERSION", MAX_SUPPORTED_VERSION),
            trace=_env_flag(env, "ADAPTIVE_CARD_TRACE", False),
            trace_capture_inputs=_env_flag(env, "ADAPTIVE_CARD_TRACE_CAPTURE_INPUTS", False),
        )


def configure_debug_logging(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Attach a stderr handler to the package logger when ADAPTIVE_CARD_DEBUG=1.

    Returns True if debug output was enabled.
    """
    env = os.environ if environ is None else environ
    if env.get("ADAPTIVE_CARD_DEBUG", "0") != "1":
        return False
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(getattr(h, "_adaptive_card_debug", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        handler._adaptive_card_debug = True
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return True
