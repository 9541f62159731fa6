"""Analysis-related exceptions: languages, spans, file access."""

from pathlib import Path
from typing import List

from .base import ComplexityLensError


class AnalysisError(ComplexityLensError):
    """Base class for analysis-related errors."""
    pass


class UnsupportedLanguageError(AnalysisError):
    """Raised when no rule set is registered for a language."""

    def __init__(self, language: str, supported_languages: List[str]):
        super().__init__(
            f"Unsupported language: {language}",
            details={"language": language, "supported": ", ".join(supported_languages)},
        )
        self.language = language
        self.supported_languages = supported_languages


class MalformedSpanError(AnalysisError):
    """Raised when a function entity's token span disagrees with the token stream.

    This is an internal consistency failure between the boundary detector
    and the scorer, never a problem with the analyzed source.
    """

    def __init__(self, entity_name: str, reason: str):
        super().__init__(
            f"Malformed span for function: {entity_name}",
            details={"function": entity_name, "reason": reason},
        )
        self.entity_name = entity_name
        self.reason = reason


class FileAccessError(AnalysisError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason
