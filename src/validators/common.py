"""
Common types shared across validator modules.

Contains:
- ValidationResult, the value every validator returns
- accept/reject constructors
- The Validator callable signature
"""

from dataclasses import dataclass
from typing import Callable, Sequence

from config import ValidationRules
from state import ProjectContext


DEFAULT_RULES = ValidationRules()


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of checking one input against the active stage.

    Produced fresh on every call and never stored; only its effects
    (captured data, messaging) are retained.
    """
    is_valid: bool
    error_message: str | None = None
    suggestions: tuple[str, ...] = ()
    capture_data: bool = False
    data_key: str | None = None


# (raw_input, context) -> ValidationResult, after rules are bound
Validator = Callable[[str, ProjectContext], ValidationResult]


def accept(data_key: str | None = None, suggestions: Sequence[str] = ()) -> ValidationResult:
    """Valid result; captures under data_key when one is given."""
    return ValidationResult(
        is_valid=True,
        suggestions=tuple(suggestions),
        capture_data=data_key is not None,
        data_key=data_key,
    )


def reject(error_message: str, suggestions: Sequence[str]) -> ValidationResult:
    """Invalid result. Every rejection must carry guidance the caller can show."""
    return ValidationResult(
        is_valid=False,
        error_message=error_message,
        suggestions=tuple(suggestions),
    )


def contains_any(text: str, words: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in words)
