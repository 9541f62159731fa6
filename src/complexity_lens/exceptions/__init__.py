"""Exception hierarchy for complexity-lens."""

from .analysis import (
    AnalysisError,
    FileAccessError,
    MalformedSpanError,
    UnsupportedLanguageError,
)
from .base import ComplexityLensError
from .config import ConfigurationError, InvalidConfigError

__all__ = [
    "ComplexityLensError",
    "AnalysisError",
    "UnsupportedLanguageError",
    "MalformedSpanError",
    "FileAccessError",
    "ConfigurationError",
    "InvalidConfigError",
]
