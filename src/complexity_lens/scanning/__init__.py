"""Lexical scanning: language rules, tokenizer, boundary detection, scoring."""

from .detector import Declaration, DetectionResult, FunctionEntity, detect
from .languages import (
    LANGUAGES,
    CommentSyntax,
    DecisionRule,
    LanguageRules,
    QuoteRule,
    SignatureGrammar,
    detect_language,
    register_language,
    rules_for,
    supported_languages,
)
from .models import DeclarationResult, DecisionPoint, FunctionResult, ScanResult
from .scanner import scan
from .scorer import DEFAULT_SCORING, ScoreCard, ScoringOptions, score
from .tokens import Token, TokenKind, TokenStream

__all__ = [
    # Registry
    "LANGUAGES",
    "CommentSyntax",
    "DecisionRule",
    "LanguageRules",
    "QuoteRule",
    "SignatureGrammar",
    "detect_language",
    "register_language",
    "rules_for",
    "supported_languages",
    # Pipeline
    "Token",
    "TokenKind",
    "TokenStream",
    "scan",
    "Declaration",
    "DetectionResult",
    "FunctionEntity",
    "detect",
    "DEFAULT_SCORING",
    "ScoreCard",
    "ScoringOptions",
    "score",
    # Results
    "DeclarationResult",
    "DecisionPoint",
    "FunctionResult",
    "ScanResult",
]
