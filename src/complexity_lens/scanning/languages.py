"""Language rules: the single source of truth for all per-language syntax.

Adding a new language:
  1. Build a LanguageRules entry (comments, quotes, keywords, operators,
     decision rules, signature grammar).
  2. Call register_language() at startup, or add it to LANGUAGES below.
  3. That's it. Scanner, detector and scorer pick it up automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Union

from ..exceptions import UnsupportedLanguageError
from . import predicates as p
from .tokens import TokenStream

Predicate = Callable[[TokenStream, int], bool]


@dataclass(frozen=True)
class CommentSyntax:
    """Comment delimiters.

    Attributes:
        line: Markers that start a comment running to end of line
        block: (open, close) pairs for block comments
        nested: True if block comments nest (`/* /* */ */` is one comment)
    """

    line: tuple[str, ...] = ()
    block: tuple[tuple[str, str], ...] = ()
    nested: bool = False


@dataclass(frozen=True)
class QuoteRule:
    """One kind of string or character literal.

    Attributes:
        open: Opening delimiter
        close: Closing delimiter
        escape: Escape character (None for raw literals)
        multiline: False if a newline ends the literal (recovery for stray quotes)
        interpolation: Opener of an embedded expression that reopens code
            context until the matching '}' (None if interpolated code is
            treated as opaque string content)
    """

    open: str
    close: str
    escape: Optional[str] = "\\"
    multiline: bool = False
    interpolation: Optional[str] = None


@dataclass(frozen=True)
class DecisionRule:
    """A token pattern that raises complexity.

    Attributes:
        name: Human-readable rule name (e.g. "If", "Lambda")
        category: Grouping used in reports (e.g. "Control Flow", "Operators")
        tokens: Token texts that must appear consecutively, starting at the
            token being scored
        increment: Score added per occurrence
        predicate: Optional disambiguation check, called with the token
            stream and the index of the first matched token
        opens_lambda: The match is a lambda arrow; what follows it is the
            lambda body (skipped when lambda internals are not counted)
    """

    name: str
    category: str
    tokens: tuple[str, ...]
    increment: int = 1
    predicate: Optional[Predicate] = field(default=None, compare=False)
    opens_lambda: bool = False


@dataclass(frozen=True)
class SignatureGrammar:
    """Shape of a function definition, `modifiers* name(params) trailer {`.

    Attributes:
        introducers: Keywords that introduce a function (`fun`, `func`, `function`)
        bare_methods: Accept `name(params) trailer {` without an introducer
        receiver_group: A parenthesised receiver may follow the introducer (Go)
        trailer_leads: Tokens allowed to start the text between `)` and `{`;
            None means any type-like token may start it
        trailer_tokens: Punctuation allowed inside the trailer
        expression_body: Tokens that end a signature with an expression body
        arrow_assignments: Recognise `const f = (...) => {` and `const f = function (...) {`
        non_names: Keywords that look like calls but are never function names
        prefix_punctuation: Tokens allowed right before a bare method name
    """

    introducers: frozenset[str] = frozenset()
    bare_methods: bool = False
    receiver_group: bool = False
    trailer_leads: Optional[frozenset[str]] = frozenset()
    trailer_tokens: frozenset[str] = frozenset()
    expression_body: frozenset[str] = frozenset()
    arrow_assignments: bool = False
    non_names: frozenset[str] = frozenset()
    prefix_punctuation: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LanguageRules:
    """Everything the engine needs to know about a language."""

    name: str
    extensions: tuple[str, ...]
    comments: CommentSyntax
    quotes: tuple[QuoteRule, ...]
    keywords: frozenset[str] = frozenset()
    # Multi-character operators, matched longest first
    operators: tuple[str, ...] = ()
    decision_rules: tuple[DecisionRule, ...] = ()
    signature: SignatureGrammar = field(default_factory=SignatureGrammar)

    _rules_by_lead: dict[str, tuple[DecisionRule, ...]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, list[DecisionRule]] = {}
        for rule in self.decision_rules:
            if not rule.tokens:
                raise ValueError(f"{self.name}: decision rule '{rule.name}' has no tokens")
            index.setdefault(rule.tokens[0], []).append(rule)
        object.__setattr__(
            self, "_rules_by_lead", {lead: tuple(rules) for lead, rules in index.items()}
        )
        object.__setattr__(
            self, "operators", tuple(sorted(set(self.operators), key=len, reverse=True))
        )
        object.__setattr__(
            self, "quotes", tuple(sorted(self.quotes, key=lambda q: len(q.open), reverse=True))
        )

    @property
    def interpolates(self) -> bool:
        """True if any string kind reopens code context."""
        return any(q.interpolation for q in self.quotes)

    def rules_starting_with(self, text: str) -> tuple[DecisionRule, ...]:
        """Decision rules whose first token is ``text``."""
        return self._rules_by_lead.get(text, ())


# ── Re-usable building blocks ──────────────────────────────────────

_C_COMMENTS = CommentSyntax(line=("//",), block=(("/*", "*/"),))
_NESTED_C_COMMENTS = CommentSyntax(line=("//",), block=(("/*", "*/"),), nested=True)

_DOUBLE_QUOTE = QuoteRule('"', '"')
_SINGLE_QUOTE = QuoteRule("'", "'")

_C_OPERATORS = (
    "&&", "||", "==", "!=", "<=", ">=", "++", "--", "+=", "-=", "*=", "/=",
    "%=", "&=", "|=", "^=", "->", "::",
)

_CONTROL_WORDS = frozenset(
    {"if", "else", "for", "while", "do", "switch", "case", "catch", "try",
     "return", "throw", "new", "sizeof", "typeof", "synchronized", "super", "this",
     "assert", "yield"}
)


def _rule(
    name: str,
    category: str,
    *tokens: str,
    predicate: Optional[Predicate] = None,
    opens_lambda: bool = False,
):
    return DecisionRule(
        name=name, category=category, tokens=tokens, predicate=predicate, opens_lambda=opens_lambda
    )


_IF = _rule("If", "Control Flow", "if")
_FOR = _rule("For", "Control Flow", "for")
_WHILE = _rule("While", "Control Flow", "while", predicate=p.not_do_while_tail)
_DO = _rule("Do While", "Control Flow", "do")
_CASE = _rule("Case", "Control Flow", "case")
_CATCH = _rule("Catch", "Control Flow", "catch")
_AND = _rule("AND", "Operators", "&&")
_OR = _rule("OR", "Operators", "||")
_TERNARY = _rule("Ternary", "Operators", "?", predicate=p.is_ternary)


# ── Language definitions ───────────────────────────────────────────

JAVA = LanguageRules(
    name="java",
    extensions=(".java",),
    comments=_C_COMMENTS,
    quotes=(QuoteRule('"""', '"""', multiline=True), _DOUBLE_QUOTE, _SINGLE_QUOTE),
    keywords=frozenset(
        {"abstract", "boolean", "break", "byte", "case", "catch", "char", "class",
         "continue", "default", "do", "double", "else", "enum", "extends", "final",
         "finally", "float", "for", "if", "implements", "import", "instanceof", "int",
         "interface", "long", "native", "new", "package", "private", "protected",
         "public", "return", "short", "static", "super", "switch", "synchronized",
         "this", "throw", "throws", "transient", "try", "void", "volatile", "while"}
    ),
    operators=_C_OPERATORS + (">>>=", "<<=", ">>=", "..."),
    decision_rules=(
        _IF, _FOR, _WHILE, _DO, _CASE, _CATCH, _AND, _OR, _TERNARY,
        _rule("Lambda", "Java Specific", "->", predicate=p.is_java_lambda_arrow, opens_lambda=True),
        _rule("Anonymous Class", "Java Specific", "new", predicate=p.opens_anonymous_body),
    ),
    signature=SignatureGrammar(
        bare_methods=True,
        trailer_leads=frozenset({"throws"}),
        trailer_tokens=frozenset({".", ","}),
        non_names=_CONTROL_WORDS,
        prefix_punctuation=frozenset({">", "]", "{", "}", ";"}),
    ),
)

KOTLIN = LanguageRules(
    name="kotlin",
    extensions=(".kt", ".kts"),
    comments=_NESTED_C_COMMENTS,
    quotes=(
        QuoteRule('"""', '"""', escape=None, multiline=True, interpolation="${"),
        QuoteRule('"', '"', interpolation="${"),
        _SINGLE_QUOTE,
    ),
    keywords=frozenset(
        {"as", "break", "catch", "class", "companion", "continue", "do", "else",
         "false", "finally", "for", "fun", "if", "import", "in", "interface", "is",
         "null", "object", "override", "package", "private", "protected", "public",
         "return", "super", "this", "throw", "true", "try", "typealias", "val", "var",
         "when", "while", "internal", "open", "data", "sealed", "suspend", "inline",
         "where"}
    ),
    operators=_C_OPERATORS + ("?.", "?:", "!!", "..", "===", "!==", "..<"),
    decision_rules=(
        _IF, _FOR, _WHILE, _DO, _CATCH, _AND, _OR,
        _rule("Elvis", "Operators", "?:"),
        _rule("When Branch", "Control Flow", "->", predicate=p.is_when_branch),
        _rule("Lambda", "Kotlin Specific", "->", predicate=p.is_kotlin_lambda_arrow, opens_lambda=True),
        _rule("Anonymous Function", "Kotlin Specific", "fun", predicate=p.is_function_literal),
        _rule("Object Expression", "Kotlin Specific", "object", ":", predicate=p.not_companion),
        *(
            _rule("Scope Function", "Kotlin Specific", ".", name, predicate=p.opens_scope_block)
            for name in p.KOTLIN_SCOPE_FUNCTIONS
            if name != "with"
        ),
        _rule("Scope Function", "Kotlin Specific", "with", predicate=p.opens_with_block),
    ),
    signature=SignatureGrammar(
        introducers=frozenset({"fun"}),
        trailer_leads=frozenset({":", "where"}),
        trailer_tokens=frozenset({".", ",", "<", ">", "?", ":", "(", ")", "*", "->"}),
        expression_body=frozenset({"="}),
    ),
)

_TS_KEYWORDS = frozenset(
    {"async", "await", "break", "case", "catch", "class", "const", "continue",
     "debugger", "default", "delete", "do", "else", "export", "extends", "finally",
     "for", "function", "if", "import", "in", "instanceof", "let", "new", "return",
     "super", "switch", "this", "throw", "try", "typeof", "var", "void", "while",
     "with", "yield"}
)

_TS_OPERATORS = _C_OPERATORS + (
    "===", "!==", "=>", "??", "?.", "**", "&&=", "||=", "??=", "...", "**=",
)

_TS_DECISIONS = (
    _IF, _FOR, _WHILE, _DO, _CASE, _CATCH, _AND, _OR, _TERNARY,
    _rule("Nullish", "Operators", "??"),
    _rule("AND Assignment", "Operators", "&&="),
    _rule("OR Assignment", "Operators", "||="),
    _rule("Nullish Assignment", "Operators", "??="),
    _rule("Arrow Function", "TypeScript Specific", "=>", predicate=p.is_value_arrow, opens_lambda=True),
    _rule("Function Expression", "TypeScript Specific", "function", predicate=p.is_function_literal),
    _rule("Optional Chaining", "TypeScript Specific", "?.", predicate=p.starts_optional_chain),
)

_TS_SIGNATURE = SignatureGrammar(
    introducers=frozenset({"function"}),
    bare_methods=True,
    trailer_leads=frozenset({":"}),
    trailer_tokens=frozenset({".", ",", "<", ">", "[", "]", "|", "&", "?", ":"}),
    arrow_assignments=True,
    non_names=_CONTROL_WORDS
    | frozenset({"function", "await", "import", "with", "void", "in", "of", "instanceof"}),
    prefix_punctuation=frozenset({"{", "}", ";", "*"}),
)

TYPESCRIPT = LanguageRules(
    name="typescript",
    extensions=(".ts", ".tsx", ".mts", ".cts"),
    comments=_C_COMMENTS,
    quotes=(QuoteRule("`", "`", multiline=True, interpolation="${"), _DOUBLE_QUOTE, _SINGLE_QUOTE),
    keywords=_TS_KEYWORDS
    | frozenset({"type", "interface", "declare", "enum", "implements", "namespace",
                 "public", "private", "protected", "readonly", "abstract"}),
    operators=_TS_OPERATORS,
    decision_rules=_TS_DECISIONS,
    signature=_TS_SIGNATURE,
)

JAVASCRIPT = LanguageRules(
    name="javascript",
    extensions=(".js", ".jsx", ".mjs", ".cjs"),
    comments=_C_COMMENTS,
    quotes=(QuoteRule("`", "`", multiline=True, interpolation="${"), _DOUBLE_QUOTE, _SINGLE_QUOTE),
    keywords=_TS_KEYWORDS,
    operators=_TS_OPERATORS,
    decision_rules=_TS_DECISIONS,
    signature=_TS_SIGNATURE,
)

GO = LanguageRules(
    name="go",
    extensions=(".go",),
    comments=_C_COMMENTS,
    quotes=(QuoteRule("`", "`", escape=None, multiline=True), _DOUBLE_QUOTE, _SINGLE_QUOTE),
    keywords=frozenset(
        {"break", "case", "chan", "const", "continue", "default", "defer", "else",
         "fallthrough", "for", "func", "go", "goto", "if", "import", "interface", "map",
         "package", "range", "return", "select", "struct", "switch", "type", "var"}
    ),
    operators=_C_OPERATORS + (":=", "<-", "&^", "&^=", "..."),
    decision_rules=(
        _IF, _FOR, _CASE, _AND, _OR,
        _rule("Function Literal", "Go Specific", "func", predicate=p.is_function_literal),
    ),
    signature=SignatureGrammar(
        introducers=frozenset({"func"}),
        receiver_group=True,
        trailer_leads=None,
        trailer_tokens=frozenset({".", ",", "*", "[", "]", "(", ")", "<-"}),
    ),
)

C = LanguageRules(
    name="c",
    extensions=(".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hxx"),
    comments=_C_COMMENTS,
    quotes=(_DOUBLE_QUOTE, _SINGLE_QUOTE),
    keywords=frozenset(
        {"auto", "break", "case", "catch", "char", "class", "const", "continue",
         "default", "delete", "do", "double", "else", "enum", "extern", "float", "for",
         "goto", "if", "inline", "int", "long", "namespace", "new", "noexcept",
         "override", "private", "protected", "public", "register", "return", "short",
         "signed", "sizeof", "static", "struct", "switch", "template", "this", "throw",
         "try", "typedef", "union", "unsigned", "virtual", "void", "volatile", "while"}
    ),
    operators=_C_OPERATORS + ("<<=", ">>=", "...", ".*", "->*"),
    decision_rules=(_IF, _FOR, _WHILE, _DO, _CASE, _CATCH, _AND, _OR, _TERNARY),
    signature=SignatureGrammar(
        bare_methods=True,
        trailer_leads=frozenset({"const", "noexcept", "override", "final", "->"}),
        trailer_tokens=frozenset({"::", "<", ">", "*", "&"}),
        non_names=_CONTROL_WORDS
        | frozenset({"defined", "define", "alignof", "decltype", "static_assert"}),
        prefix_punctuation=frozenset({"*", "&", ">", "]", "{", "}", ";", "::", "~"}),
    ),
)


LANGUAGES: dict[str, LanguageRules] = {
    rules.name: rules for rules in (JAVA, KOTLIN, TYPESCRIPT, JAVASCRIPT, GO, C)
}


def rules_for(language: str) -> LanguageRules:
    """Look up a language by name. Raises UnsupportedLanguageError if unknown."""
    try:
        return LANGUAGES[language]
    except KeyError:
        raise UnsupportedLanguageError(language, supported_languages())


def supported_languages() -> list[str]:
    """Names of all registered languages, sorted."""
    return sorted(LANGUAGES)


def register_language(rules: LanguageRules, replace: bool = False) -> None:
    """Register an additional language at startup.

    Raises:
        ValueError: If the name is taken and ``replace`` is False
    """
    if rules.name in LANGUAGES and not replace:
        raise ValueError(f"Language '{rules.name}' is already registered")
    LANGUAGES[rules.name] = rules


def detect_language(filepath: Union[str, Path]) -> str:
    """Detect language from file extension.

    Returns:
        Language name (e.g., "java", "go") or "unknown"
    """
    ext = Path(filepath).suffix.lower()
    for rules in LANGUAGES.values():
        if ext in rules.extensions:
            return rules.name
    return "unknown"
