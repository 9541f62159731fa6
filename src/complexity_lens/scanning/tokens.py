"""Token model shared by the scanner, the boundary detector and the scorer.

The scanner produces a flat sequence of ``Token`` objects covering the whole
source. ``TokenStream`` keeps only the significant ones (everything except
whitespace, newlines and comments) and precomputes bracket structure so that
disambiguation predicates can look around a token cheaply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class TokenKind(str, Enum):
    """Lexical class of a token."""

    WHITESPACE = "whitespace"
    NEWLINE = "newline"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    STRING = "string"
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"


TRIVIA_KINDS = frozenset(
    {TokenKind.WHITESPACE, TokenKind.NEWLINE, TokenKind.LINE_COMMENT, TokenKind.BLOCK_COMMENT}
)

WORD_KINDS = frozenset({TokenKind.IDENTIFIER, TokenKind.KEYWORD})

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}


@dataclass(frozen=True)
class Token:
    """A classified slice of source text.

    Attributes:
        kind: Lexical class
        text: Raw text of the token
        start: Offset of the first character
        end: Offset one past the last character
        line: 1-indexed line of the first character
    """

    kind: TokenKind
    text: str
    start: int
    end: int
    line: int

    @property
    def is_word(self) -> bool:
        return self.kind in WORD_KINDS

    @property
    def is_code(self) -> bool:
        """True for tokens whose text is real code (not trivia, not string contents)."""
        return self.kind not in TRIVIA_KINDS and self.kind is not TokenKind.STRING


@dataclass
class TokenStream:
    """Significant tokens of one file with bracket structure.

    Attributes:
        tokens: Significant tokens in source order
        matches: Index of the matching bracket for every bracket token that
            has one. Unclosed openers are matched to the last index.
        enclosing: For each token, index of the innermost unclosed ``{``
            before it, or -1 at top level
    """

    tokens: list[Token]
    matches: dict[int, int] = field(default_factory=dict)
    enclosing: list[int] = field(default_factory=list)

    @classmethod
    def from_tokens(cls, tokens: Iterable[Token]) -> TokenStream:
        significant = [t for t in tokens if t.kind not in TRIVIA_KINDS]
        stream = cls(tokens=significant)
        stream._index_brackets()
        return stream

    def __len__(self) -> int:
        return len(self.tokens)

    def _index_brackets(self) -> None:
        stack: list[int] = []
        braces: list[int] = []
        last = len(self.tokens) - 1

        for i, tok in enumerate(self.tokens):
            self.enclosing.append(braces[-1] if braces else -1)
            if tok.kind is not TokenKind.PUNCTUATION:
                continue
            if tok.text in OPENERS:
                stack.append(i)
                if tok.text == "{":
                    braces.append(i)
            elif tok.text in CLOSERS:
                opener = CLOSERS[tok.text]
                # Unmatched closers are ignored; an opener of another kind
                # left open in between is treated as implicitly closed.
                for depth in range(len(stack) - 1, -1, -1):
                    if self.tokens[stack[depth]].text == opener:
                        for dangling in stack[depth + 1 :]:
                            self.matches[dangling] = i - 1
                        self.matches[stack[depth]] = i
                        self.matches[i] = stack[depth]
                        del stack[depth:]
                        break
                while braces and braces[-1] not in stack:
                    braces.pop()

        for dangling in stack:
            self.matches[dangling] = last

    # ── Navigation helpers used by predicates and recognizers ──────────

    def text(self, i: int) -> str:
        """Text of token ``i``, or empty string when out of range."""
        if 0 <= i < len(self.tokens):
            return self.tokens[i].text
        return ""

    def is_code_text(self, i: int, text: str) -> bool:
        """True if token ``i`` is code (not a string literal) with exactly ``text``."""
        if not 0 <= i < len(self.tokens):
            return False
        tok = self.tokens[i]
        return tok.text == text and tok.kind is not TokenKind.STRING

    def is_word(self, i: int) -> bool:
        return 0 <= i < len(self.tokens) and self.tokens[i].is_word

    def match(self, i: int) -> Optional[int]:
        """Index of the bracket matching token ``i``."""
        return self.matches.get(i)

    def enclosing_brace(self, i: int) -> int:
        """Index of the innermost ``{`` enclosing token ``i`` (-1 at top level)."""
        if 0 <= i < len(self.enclosing):
            return self.enclosing[i]
        return -1

    def skip_angle_group(self, i: int) -> int:
        """Given ``<`` at ``i``, return the index after its closing ``>``.

        Angle brackets are not tracked as brackets because they double as
        comparison operators, so they are balanced here on demand. Returns
        ``i`` unchanged if the group does not close before a statement break.
        """
        depth = 0
        j = i
        while j < len(self.tokens):
            t = self.tokens[j].text
            if t == "<":
                depth += 1
            elif t in (">", ">>", ">>>"):
                depth -= len(t)
                if depth <= 0:
                    return j + 1
            elif t in (";", "{", "}", "&&", "||"):
                return i
            j += 1
        return i

    def statement_start(self, i: int) -> int:
        """Index of the first token of the statement or sub-expression containing ``i``.

        Walks backwards, jumping over balanced ``(...)`` and ``[...]`` groups,
        and stops after ``;``, ``{``, ``}`` or an unmatched ``(``/``[``.
        """
        j = i - 1
        while j >= 0:
            tok = self.tokens[j]
            if tok.kind is TokenKind.PUNCTUATION:
                if tok.text in (")", "]"):
                    opener = self.matches.get(j)
                    if opener is None or opener >= j:
                        return j + 1
                    j = opener - 1
                    continue
                if tok.text in (";", "{", "}", "(", "["):
                    return j + 1
            j -= 1
        return 0
