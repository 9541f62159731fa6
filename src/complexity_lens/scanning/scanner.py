"""Comment- and string-aware token scanner.

A single left-to-right pass over the source with a small mode stack:

    code             -> identifiers, numbers, operators, punctuation
    line comment     -> until newline
    block comment    -> until the closer (depth-counted when comments nest)
    string           -> until the quote rule's closer, honouring escapes
    interpolation    -> code inside `${ ... }` of a string, until the
                        brace that balances the opener

The scanner never fails. Unterminated comments and strings run to end of
input; a single-line string that meets a newline is closed before it.
"""

from __future__ import annotations

from typing import Iterator, Optional

from .languages import LanguageRules, QuoteRule
from .tokens import Token, TokenKind

_PUNCTUATION = frozenset("{}()[];,.")


def scan(source: str, rules: LanguageRules) -> Iterator[Token]:
    """Tokenize ``source`` lazily.

    Args:
        source: Raw source text
        rules: Language rules providing comment, quote and operator syntax

    Yields:
        Tokens covering the whole source, in order
    """
    return _Scanner(source, rules).tokens()


class _Scanner:
    def __init__(self, source: str, rules: LanguageRules):
        self.src = source
        self.rules = rules
        self.pos = 0
        self.line = 1
        # Brace depth for each open interpolation, innermost last
        self.interpolations: list[tuple[QuoteRule, int]] = []

    def tokens(self) -> Iterator[Token]:
        src = self.src
        n = len(src)
        while self.pos < n:
            ch = src[self.pos]

            if ch == "\n":
                yield self._emit(TokenKind.NEWLINE, self.pos + 1)
                continue
            if ch.isspace():
                end = self.pos + 1
                while end < n and src[end].isspace() and src[end] != "\n":
                    end += 1
                yield self._emit(TokenKind.WHITESPACE, end)
                continue

            comment = self._comment_at(self.pos)
            if comment is not None:
                yield comment
                continue

            quote = self._quote_at(self.pos)
            if quote is not None:
                yield from self._string(quote, self.pos, len(quote.open))
                continue

            if self.interpolations and ch in "{}":
                rule, depth = self.interpolations[-1]
                if ch == "}" and depth == 0:
                    # Closing brace of `${ ... }` resumes the enclosing string
                    self.interpolations.pop()
                    yield from self._string(rule, self.pos, 1)
                    continue
                self.interpolations[-1] = (rule, depth + (1 if ch == "{" else -1))

            if ch.isalpha() or ch in "_$":
                end = self.pos + 1
                while end < n and (src[end].isalnum() or src[end] in "_$"):
                    end += 1
                word = src[self.pos : end]
                kind = TokenKind.KEYWORD if word in self.rules.keywords else TokenKind.IDENTIFIER
                yield self._emit(kind, end)
                continue

            if ch.isdigit():
                end = self.pos + 1
                while end < n and (src[end].isalnum() or src[end] in "_."):
                    if src[end] == "." and not (end + 1 < n and src[end + 1].isdigit()):
                        break
                    end += 1
                yield self._emit(TokenKind.NUMBER, end)
                continue

            for op in self.rules.operators:
                if src.startswith(op, self.pos):
                    yield self._emit(TokenKind.OPERATOR, self.pos + len(op))
                    break
            else:
                kind = TokenKind.PUNCTUATION if ch in _PUNCTUATION else TokenKind.OPERATOR
                yield self._emit(kind, self.pos + 1)

    def _emit(self, kind: TokenKind, end: int) -> Token:
        text = self.src[self.pos : end]
        tok = Token(kind=kind, text=text, start=self.pos, end=end, line=self.line)
        self.line += text.count("\n")
        self.pos = end
        return tok

    def _comment_at(self, pos: int) -> Optional[Token]:
        src = self.src
        comments = self.rules.comments
        for opener, closer in comments.block:
            if src.startswith(opener, pos):
                return self._emit(TokenKind.BLOCK_COMMENT, self._block_end(pos, opener, closer))
        for marker in comments.line:
            if src.startswith(marker, pos):
                end = src.find("\n", pos)
                return self._emit(TokenKind.LINE_COMMENT, len(src) if end < 0 else end)
        return None

    def _block_end(self, pos: int, opener: str, closer: str) -> int:
        src = self.src
        depth = 0
        i = pos
        while i < len(src):
            if src.startswith(opener, i) and (depth == 0 or self.rules.comments.nested):
                depth += 1
                i += len(opener)
                continue
            if src.startswith(closer, i):
                depth -= 1
                i += len(closer)
                if depth == 0:
                    return i
                continue
            i += 1
        return len(src)

    def _quote_at(self, pos: int) -> Optional[QuoteRule]:
        for quote in self.rules.quotes:
            if self.src.startswith(quote.open, pos):
                return quote
        return None

    def _string(self, quote: QuoteRule, start: int, skip: int) -> Iterator[Token]:
        """Emit a string literal starting at ``start`` with ``skip`` opener chars.

        Stops early, leaving interpolation mode pushed, when the literal
        contains an interpolation opener.
        """
        src = self.src
        i = start + skip
        n = len(src)
        while i < n:
            ch = src[i]
            if quote.escape is not None and ch == quote.escape:
                i += 2
                continue
            if src.startswith(quote.close, i):
                yield self._emit(TokenKind.STRING, i + len(quote.close))
                return
            if quote.interpolation is not None and src.startswith(quote.interpolation, i):
                yield self._emit(TokenKind.STRING, i + len(quote.interpolation))
                self.interpolations.append((quote, 0))
                return
            if ch == "\n" and not quote.multiline:
                yield self._emit(TokenKind.STRING, i)
                return
            i += 1
        yield self._emit(TokenKind.STRING, n)
