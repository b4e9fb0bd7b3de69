"""Evaluation specific exceptions."""


class EvaluationError(Exception):
    """Base exception for project evaluation errors."""

    pass


class InvalidPatternError(EvaluationError):
    """Raised when an include or exclude glob cannot be interpreted."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class ProjectFileError(EvaluationError):
    """Raised when a project file cannot be read or is ambiguous."""

    pass
