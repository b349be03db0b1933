"""Exceptions and non-fatal warnings raised during impact analysis."""

from dataclasses import dataclass
from typing import Optional


class ImpactAnalysisError(Exception):
    """Base class for all errors raised by the analysis core."""


class MissingInputError(ImpactAnalysisError):
    """A required input (shared roots or application roots) is missing."""

    def __init__(self, input_name: str, detail: str = ""):
        self.input_name = input_name
        message = f"No {input_name} found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SourceReadError(ImpactAnalysisError):
    """A source file could not be read or decoded as text."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class AnalysisCancelledError(ImpactAnalysisError):
    """The run was cancelled between two phases."""

    def __init__(self, phase: str):
        self.phase = phase
        super().__init__(f"Analysis cancelled before phase '{phase}'")


@dataclass(frozen=True)
class AnalysisWarning:
    """A per-file problem reported alongside the results."""
    message: str
    phase: str
    path: Optional[str] = None

    def to_dict(self):
        return {'phase': self.phase, 'path': self.path, 'message': self.message}
