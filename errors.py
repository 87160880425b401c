"""
Failure taxonomy of the grading pipeline.

Mandatory-stage failures (execution) reach the caller; optional-stage failures
(challenge generation, qualitative evaluation) are absorbed by the component
that owns the fallback.
"""

from __future__ import annotations


class GradingError(Exception):
    """Base class for every pipeline failure."""


class CatalogDefinitionError(GradingError, ValueError):
    """A static or generated challenge is not gradable (no tests, bad value shapes)."""


class CatalogUnavailable(GradingError):
    """Challenge generation failed; recovered with the static catalog."""


class EmptySubmission(GradingError):
    def __init__(self, message: str = "Please write some code first.") -> None:
        super().__init__(message)


class UnsupportedLanguage(GradingError):
    def __init__(self, language: str) -> None:
        super().__init__(f"unsupported language: {language!r}")
        self.language = language


class ExecutionUnavailable(GradingError):
    """The sandbox could not be reached or answered with a non-success status."""


class ExecutionTimeout(ExecutionUnavailable):
    """The sandbox call (or the submitted program) ran past its time limit."""


class EvaluationUnavailable(GradingError):
    """The language-model backend is unreachable, unconfigured or rate-limited."""


class EvaluationMalformed(GradingError):
    """The language-model backend answered, but nothing usable could be parsed."""
