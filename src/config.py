"""
AppConfig: Immutable application configuration.

This module contains ONLY static configuration that doesn't change during a
design session. All runtime state belongs in ConversationState (see state.py).

Design principles:
- Frozen dataclasses prevent accidental mutation
- Configuration loaded once at startup
- Environment variables can override config file values
- No global mutable state
"""

import json
import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet

from logging_utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationRules:
    """Thresholds and keyword lists used by the stage validators."""
    context_min_length: int = 6
    big_idea_min_length: int = 10
    essential_question_min_length: int = 15
    challenge_min_length: int = 20
    journey_min_length: int = 20
    deliverables_min_length: int = 10

    # Order matters: checked left to right
    action_verbs: tuple[str, ...] = ("create", "design", "solve", "build", "develop")
    subject_keywords: tuple[str, ...] = ("subject", "topic")
    grade_keywords: tuple[str, ...] = ("grade", "year", "student")

    @classmethod
    def from_dict(cls, data: dict) -> "ValidationRules":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        for key in ("action_verbs", "subject_keywords", "grade_keywords"):
            if key in known:
                known[key] = tuple(str(word).lower() for word in known[key])
        return cls(**known)


@dataclass(frozen=True)
class ClassifierConfig:
    """Confidence ladder thresholds."""
    immediate_min_length: int = 15
    review_max_attempts: int = 2

    @classmethod
    def from_dict(cls, data: dict) -> "ClassifierConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class LLMConfig:
    """Immutable configuration of the optional coaching model."""
    base_url: str
    model: str
    temperature: float = 0.7
    enabled: bool = False
    # Oldest exchanges are dropped once the coaching history exceeds this
    history_token_budget: int = 4000

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """Create LLMConfig from environment variables."""
        return cls(
            base_url=os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            model=os.environ.get("COACH_MODEL_NAME", ""),
            temperature=float(os.environ.get("COACH_TEMPERATURE", "0.7")),
            enabled=_env_flag("COACH_ENABLED"),
        )


@dataclass(frozen=True)
class AppConfig:
    """
    Complete immutable application configuration.

    Create once at startup and pass to the components that need it.
    """
    validation: ValidationRules = ValidationRules()
    classifier: ClassifierConfig = ClassifierConfig()
    llm: LLMConfig = field(default_factory=LLMConfig.from_env)
    log_level: str = "INFO"
    sessions_dir: str = "sessions"

    # Stage ids registered with required=False
    optional_stages: FrozenSet[str] = frozenset()


def default_config_path() -> str:
    """Location of the JSON config file next to the source tree."""
    src_dir = os.path.dirname(os.path.abspath(__file__))
    root_dir = os.path.dirname(src_dir)
    return os.path.join(root_dir, "inputs", "coach_config.json")


def load_config(config_path: str | None = None) -> AppConfig:
    """
    Load configuration from JSON file and environment variables.

    Priority: Environment variables > Config file > Defaults

    Args:
        config_path: Path to JSON config file. If None, uses default location.

    Returns:
        Immutable AppConfig instance.
    """
    if config_path is None:
        config_path = default_config_path()

    config_data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)
            config_data = {}

    # Set environment variables from config (env vars take priority)
    _set_env_if_not_exists("OPENAI_API_KEY", config_data.get("OPENAI_API_KEY", ""))
    _set_env_if_not_exists("OPENAI_BASE_URL", config_data.get("OPENAI_BASE_URL", ""))
    _set_env_if_not_exists("COACH_MODEL_NAME", config_data.get("COACH_MODEL_NAME", ""))

    llm = LLMConfig.from_env()
    if "coach_enabled" in config_data and "COACH_ENABLED" not in os.environ:
        llm = replace(llm, enabled=bool(config_data["coach_enabled"]))
    if "coach_history_tokens" in config_data:
        llm = replace(llm, history_token_budget=int(config_data["coach_history_tokens"]))

    return AppConfig(
        validation=ValidationRules.from_dict(config_data.get("validation", {})),
        classifier=ClassifierConfig.from_dict(config_data.get("classifier", {})),
        llm=llm,
        log_level=os.environ.get("COACH_LOG_LEVEL", config_data.get("log_level", "INFO")),
        sessions_dir=config_data.get("sessions_dir", "sessions"),
        optional_stages=frozenset(config_data.get("optional_stages", [])),
    )


def _set_env_if_not_exists(key: str, value: str) -> None:
    """Set environment variable only if not already set and value is non-empty."""
    if key not in os.environ or not os.environ[key]:
        if value:
            os.environ[key] = value


def _env_flag(key: str) -> bool:
    return os.environ.get(key, "").strip().lower() in ("1", "true", "yes", "on")
