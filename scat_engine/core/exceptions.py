"""
Custom Exceptions - SCAT5 Assessment Engine
scat_engine/core/exceptions.py

Exception taxonomy for session sequencing, module results and the display
handshake. Input normalization never raises; see scoring/rules.py.
"""


class AssessmentException(Exception):
    """Base exception for assessment engine errors."""

    pass


class InvariantViolation(AssessmentException):
    """Programming error. Never expected in correct operation, never swallowed."""

    pass


class ModuleResultLockedError(InvariantViolation):
    """Mutation attempted on a result whose module is already complete."""

    def __init__(self, module: str, operation: str):
        self.module = module
        self.operation = operation
        super().__init__(f"Cannot {operation}: {module} result is complete and locked")


class ModuleIndexError(InvariantViolation):
    """Module, sequence, question or trial index out of range."""

    def __init__(self, what: str, index: int, length: int):
        self.what = what
        self.index = index
        self.length = length
        super().__init__(f"{what} index {index} out of range (length {length})")


class DigitSpanFinishedError(InvariantViolation):
    """Digit response recorded after digit span presentation ended."""

    def __init__(self, message: str = "Digit span presentation has already ended"):
        self.message = message
        super().__init__(message)


class SessionConfigurationError(AssessmentException):
    """Invalid module order for a session."""

    def __init__(self, message: str = "Invalid session configuration"):
        self.message = message
        super().__init__(message)


class DisplayTransitionError(AssessmentException):
    """Display show/hide request failed or timed out after retries."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Display {action} failed: {reason}")
