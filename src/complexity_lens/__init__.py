"""
complexity-lens - Lexical cyclomatic complexity analysis

Computes a McCabe-style score for every function in Java, Kotlin,
TypeScript/JavaScript, Go and C-family sources without a parser: a
comment- and string-aware tokenizer, a function boundary detector and a
table-driven decision-point scorer.
"""

__version__ = "0.1.0"

from .config import EngineConfig, load_config
from .engine import ComplexityEngine, analyze, analyze_all
from .scanning import (
    FunctionResult,
    ScanResult,
    register_language,
    rules_for,
    supported_languages,
)

__all__ = [
    "analyze",  # Main entry point
    "analyze_all",
    "ComplexityEngine",
    "EngineConfig",
    "load_config",
    "FunctionResult",
    "ScanResult",
    "register_language",
    "rules_for",
    "supported_languages",
]
