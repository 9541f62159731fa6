"""Disambiguation predicates referenced by decision rules.

Each predicate receives the significant token stream and the index of the
first token a rule matched, and answers whether that occurrence really is a
decision point. They only look at neighbouring tokens and bracket structure;
none of them keeps state, so a rule table stays plain data.
"""

from __future__ import annotations

from .tokens import TokenKind, TokenStream

# Tokens that can follow a '?' that is an optional/nullable marker rather
# than a conditional operator: `x?: T`, `f(x?)`, `<?>`, `x?.y`
_NON_TERNARY_NEXT = frozenset({":", ")", ",", "=", ";", "]", ">", "."})
_NON_TERNARY_PREV = frozenset({"<", ",", "("})

_TYPE_STATEMENTS = frozenset({"type", "interface", "declare"})
_STATEMENT_MODIFIERS = frozenset({"export", "default"})

KOTLIN_SCOPE_FUNCTIONS = ("let", "also", "run", "apply", "with")

_LAMBDA_PARAM_PUNCTUATION = frozenset({",", ":", "(", ")", "<", ">", "?", "."})

_LITERAL_STOP = frozenset({";", "}", ",", ")", "]", "="})

_TYPE_ARGUMENT_STOP = frozenset({"(", "[", "{", "}", ";", "=", "&&", "||"})


def is_ternary(stream: TokenStream, i: int) -> bool:
    """'?' is a conditional operator, not an optional marker or a wildcard."""
    if i + 1 >= len(stream):
        return False
    if stream.text(i + 1) in _NON_TERNARY_NEXT:
        return False
    return stream.text(i - 1) not in _NON_TERNARY_PREV


def not_do_while_tail(stream: TokenStream, i: int) -> bool:
    """A `while` closing `do { ... } while (...)` belongs to the `do`."""
    prev = i - 1
    if not stream.is_code_text(prev, "}"):
        return True
    opener = stream.match(prev)
    if opener is None:
        return True
    return stream.text(opener - 1) != "do"


def is_java_lambda_arrow(stream: TokenStream, i: int) -> bool:
    """'->' is a lambda, not a switch-rule arrow (`case X ->`, `default ->`)."""
    start = stream.statement_start(i)
    return stream.text(start) not in ("case", "default")


def _statement_head(stream: TokenStream, i: int) -> int:
    """First token of the outermost statement containing ``i``."""
    start = stream.statement_start(i)
    while start > 0 and stream.text(start - 1) in ("(", "["):
        start = stream.statement_start(start - 1)
    return start


def _opens_type_statement(stream: TokenStream, start: int) -> bool:
    j = start
    while stream.text(j) in _STATEMENT_MODIFIERS:
        j += 1
    return stream.text(j) in _TYPE_STATEMENTS


def is_value_arrow(stream: TokenStream, i: int) -> bool:
    """'=>' builds a function value rather than spelling a function type.

    Function types appear in `type`/`interface`/`declare` statements and in
    annotations, where the parameter list follows ':' or a generic '<', or
    a ',' between type arguments as in `Map<string, () => void>`.
    """
    if _opens_type_statement(stream, _statement_head(stream, i)):
        return False

    brace = stream.enclosing_brace(i)
    if brace >= 0 and _opens_type_statement(stream, _statement_head(stream, brace)):
        return False

    if stream.is_code_text(i - 1, ")"):
        opener = stream.match(i - 1)
        if opener is not None:
            before = stream.text(opener - 1)
            if before in (":", "<", "|", "&"):
                return False
            if before == "," and _in_type_arguments(stream, opener - 1, i):
                return False
    return True


def _in_type_arguments(stream: TokenStream, comma: int, arrow: int) -> bool:
    """The ``comma`` separates arguments of a `<...>` group that closes after ``arrow``."""
    depth = 0
    j = comma - 1
    while j >= 0:
        text = stream.text(j)
        if text in (")", "]"):
            opener = stream.match(j)
            if opener is None or opener >= j:
                return False
            j = opener - 1
            continue
        if text in _TYPE_ARGUMENT_STOP:
            return False
        if text in (">", ">>", ">>>"):
            depth += len(text)
        elif text == "<":
            if depth == 0:
                # `a < b, (x) => x` is a comparison; a type group closes past the arrow
                return stream.skip_angle_group(j) > arrow
            depth -= 1
        j -= 1
    return False


def opens_anonymous_body(stream: TokenStream, i: int) -> bool:
    """`new Type(args) {` instantiates an anonymous class."""
    j = i + 1
    if not stream.is_word(j):
        return False
    while stream.is_word(j) or stream.text(j) == ".":
        j += 1
    if stream.text(j) == "<":
        after = stream.skip_angle_group(j)
        if after == j:
            return False
        j = after
    if not stream.is_code_text(j, "("):
        return False
    close = stream.match(j)
    if close is None:
        return False
    return stream.is_code_text(close + 1, "{")


def is_function_literal(stream: TokenStream, i: int) -> bool:
    """Anonymous `function (...) {`, `fun (...) {` or Go `func(...) {` literal.

    The body brace must be reached from the parameter list without crossing
    a statement break; a bare function type such as `func(int) error` has no
    body.
    """
    if not stream.is_code_text(i + 1, "("):
        return False
    close = stream.match(i + 1)
    if close is None:
        return False
    j = close + 1
    while j < len(stream):
        text = stream.text(j)
        if text == "{":
            return True
        if text in _LITERAL_STOP:
            return False
        if stream.tokens[j].line != stream.tokens[j - 1].line:
            return False
        if text in ("(", "["):
            nxt = stream.match(j)
            if nxt is None or nxt <= j:
                return False
            j = nxt
        j += 1
    return False


def starts_optional_chain(stream: TokenStream, i: int) -> bool:
    """First '?.' of a member-access chain; `a?.b?.c` counts once."""
    j = i - 1
    while j >= 0:
        if stream.tokens[j].line != stream.tokens[j + 1].line and not (
            stream.text(j) in (".", "?.") or stream.text(j + 1) in (".", "?.")
        ):
            break
        text = stream.text(j)
        if text == "?.":
            return False
        if text in (")", "]"):
            opener = stream.match(j)
            if opener is None or opener >= j:
                break
            j = opener - 1
            continue
        if stream.tokens[j].kind is TokenKind.IDENTIFIER or text in (".", "!"):
            j -= 1
            continue
        break
    return True


# ── Kotlin ──────────────────────────────────────────────────────────


def _kotlin_block_kind(stream: TokenStream, brace: int) -> str:
    """Classify the `{` at ``brace``: 'when', 'scope' or 'block'."""
    before = stream.text(brace - 1)
    if before == "when":
        return "when"
    if before == ")":
        opener = stream.match(brace - 1)
        if opener is not None:
            head = stream.text(opener - 1)
            if head == "when":
                return "when"
            if head == "with":
                return "scope"
    if before in KOTLIN_SCOPE_FUNCTIONS and stream.text(brace - 2) == ".":
        return "scope"
    return "block"


def is_when_branch(stream: TokenStream, i: int) -> bool:
    """'->' separating a `when` condition from its branch; `else ->` is free."""
    brace = stream.enclosing_brace(i)
    if brace < 0 or _kotlin_block_kind(stream, brace) != "when":
        return False
    return stream.text(i - 1) != "else"


def is_kotlin_lambda_arrow(stream: TokenStream, i: int) -> bool:
    """'->' ending the parameter list of a lambda literal `{ a, b -> ... }`.

    Scope-function blocks are already counted by their call, and a `when`
    block's arrows are branches.
    """
    brace = stream.enclosing_brace(i)
    if brace < 0 or _kotlin_block_kind(stream, brace) != "block":
        return False
    for j in range(brace + 1, i):
        tok = stream.tokens[j]
        if tok.kind is TokenKind.IDENTIFIER:
            continue
        if tok.kind is TokenKind.PUNCTUATION or tok.kind is TokenKind.OPERATOR:
            if tok.text in _LAMBDA_PARAM_PUNCTUATION:
                continue
        return False
    return True


def opens_scope_block(stream: TokenStream, i: int) -> bool:
    """`.let {`, `.also {` ...: the scope function takes a block."""
    return stream.is_code_text(i + 2, "{")


def opens_with_block(stream: TokenStream, i: int) -> bool:
    """`with(receiver) {`."""
    if not stream.is_code_text(i + 1, "("):
        return False
    close = stream.match(i + 1)
    return close is not None and stream.is_code_text(close + 1, "{")


def not_companion(stream: TokenStream, i: int) -> bool:
    """`object :` is an expression unless it declares a companion."""
    return stream.text(i - 1) != "companion"
