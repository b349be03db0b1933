"""Source file model, scanning and error types."""

from .errors import (
    ImpactAnalysisError, MissingInputError, SourceReadError,
    AnalysisCancelledError, AnalysisWarning
)
from .source_files import (
    SourceFile, ScanResult, SourceScanner, read_source_file, normalize_path,
    SHARED_PLATFORM
)
from .git_info import RevisionInfo, describe_revision

__all__ = [
    "ImpactAnalysisError", "MissingInputError", "SourceReadError",
    "AnalysisCancelledError", "AnalysisWarning",
    "SourceFile", "ScanResult", "SourceScanner", "read_source_file", "normalize_path",
    "SHARED_PLATFORM",
    "RevisionInfo", "describe_revision"
]
