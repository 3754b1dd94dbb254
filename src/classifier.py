"""
Confidence Classifier: how much confirmation does an input need?

The rules form a tie-break ladder. Each rule is consulted only if the ones
above it did not match, and the order is part of the contract: moving the
validity check below the first-attempt check would let short, invalid first
attempts through as 'immediate'.

    1. picked from a suggestion          -> immediate
    2. failed validation                 -> refine
    3. first attempt and longer than 15  -> immediate
    4. attempts <= 2                     -> review
    5. otherwise                         -> refine
"""

from config import ClassifierConfig
from state import ConfirmationLevel, InputSource
from validators import ValidationResult


DEFAULT_CLASSIFIER_CONFIG = ClassifierConfig()


def classify(
    validation: ValidationResult,
    attempts: int,
    source: InputSource | str,
    value: str,
    config: ClassifierConfig = DEFAULT_CLASSIFIER_CONFIG,
) -> ConfirmationLevel:
    """
    Map a validated input onto a confirmation level.

    Args:
        validation: Result of the active stage's validator.
        attempts: Submissions made in the current stage, including this one.
        source: Where the input came from.
        value: The raw input; only its trimmed length is used.
        config: Ladder thresholds.

    Returns:
        ConfirmationLevel for the input.
    """
    if InputSource(source) is InputSource.SUGGESTION:
        return ConfirmationLevel.IMMEDIATE

    if not validation.is_valid:
        return ConfirmationLevel.REFINE

    if attempts == 1 and len(value.strip()) > config.immediate_min_length:
        return ConfirmationLevel.IMMEDIATE

    if attempts <= config.review_max_attempts:
        return ConfirmationLevel.REVIEW

    return ConfirmationLevel.REFINE


def needs_confirmation(level: ConfirmationLevel) -> bool:
    """True when the input must be held as pending instead of applied."""
    return level is not ConfirmationLevel.IMMEDIATE
