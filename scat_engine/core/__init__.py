"""
Core Package - SCAT5 Assessment Engine
scat_engine/core/__init__.py

Core infrastructure: exceptions.
"""

from scat_engine.core.exceptions import (
    AssessmentException,
    DigitSpanFinishedError,
    DisplayTransitionError,
    InvariantViolation,
    ModuleIndexError,
    ModuleResultLockedError,
    SessionConfigurationError,
)

__all__ = [
    "AssessmentException",
    "DigitSpanFinishedError",
    "DisplayTransitionError",
    "InvariantViolation",
    "ModuleIndexError",
    "ModuleResultLockedError",
    "SessionConfigurationError",
]
