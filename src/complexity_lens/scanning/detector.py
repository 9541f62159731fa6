"""Function boundary detection over the token stream.

Finds function/method *definitions* (a signature followed by a body block)
and tells them apart from declarations (a signature followed by a
terminator). Signatures are recognised in three shapes, each switched on by
the language's SignatureGrammar:

    introducer     fun <T> Recv.name(params): Type {      func (r *T) Name(p) error {
    bare method    public int name(params) throws E {     name(params): Type {
    arrow assign   const name = async (params): T => {    const name = function (p) {

Entities are opened at their body `{` and closed at the matching `}` using an
explicit stack of arena indices, so an anonymous class's method detected
inside a method body becomes that method's child.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Union

from ..logging_config import get_logger
from .languages import LanguageRules
from .tokens import Token, TokenKind, TokenStream

logger = get_logger(__name__)

_DECLARATION_TERMINATORS = frozenset({";", "}"})
_ARROW_KEYWORDS = frozenset({"const", "let", "var"})
_FIELD_MODIFIERS = frozenset({"public", "private", "protected", "readonly", "static", "override"})
# Statement keywords that may also modify a method declaration
_METHOD_MODIFIERS = frozenset({"synchronized"})
_TYPE_CONNECTORS = frozenset({"|", "&"})


@dataclass
class FunctionEntity:
    """A detected function definition.

    Token indices refer to the detection's TokenStream. ``parent`` and
    ``children`` are indices into the detection arena; the parent link is
    for lookup only.

    Attributes:
        index: Position in the arena (DetectionResult.entities)
        name: Best-effort function name
        signature: Signature text with whitespace collapsed
        signature_start: Index of the first signature token
        body_start: Index of the body's opening `{`
        end: Index of the body's closing `}` (last token if unclosed)
        start: Source offset of the signature
        end_offset: Source offset one past the closing `}`
        start_line: Line of the signature
        end_line: Line of the closing `}`
        parent: Arena index of the enclosing entity
        children: Arena indices of directly nested entities, in source order
        base_score: Score before any decision points
    """

    index: int
    name: str
    signature: str
    signature_start: int
    body_start: int
    end: int
    start: int
    end_offset: int
    start_line: int
    end_line: int
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    base_score: int = 1


@dataclass(frozen=True)
class Declaration:
    """A signature without a body (interface method, prototype, overload)."""

    name: str
    signature: str
    offset: int
    line: int


@dataclass
class DetectionResult:
    """Output of detect(): the entity arena and its forest."""

    stream: TokenStream
    source: str
    entities: list[FunctionEntity] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)

    def children_of(self, entity: FunctionEntity) -> list[FunctionEntity]:
        return [self.entities[i] for i in entity.children]

    def parent_of(self, entity: FunctionEntity) -> Optional[FunctionEntity]:
        if entity.parent is None:
            return None
        return self.entities[entity.parent]

    def walk(self) -> Iterator[FunctionEntity]:
        """Depth-first, pre-order over the forest."""
        pending = [self.entities[i] for i in reversed(self.roots)]
        while pending:
            entity = pending.pop()
            yield entity
            pending.extend(self.entities[i] for i in reversed(entity.children))


@dataclass(frozen=True)
class _Signature:
    name: str
    start: int
    body: int


_Found = Union[_Signature, Declaration, None]


def detect(tokens: Iterable[Token], rules: LanguageRules) -> DetectionResult:
    """Detect function definitions.

    Args:
        tokens: Full token sequence from scan() (trivia included)
        rules: Language rules providing the signature grammar

    Returns:
        DetectionResult with the entity forest and declaration-only occurrences
    """
    all_tokens = list(tokens)
    source = "".join(t.text for t in all_tokens)
    stream = TokenStream.from_tokens(all_tokens)
    result = DetectionResult(stream=stream, source=source)

    recognizer = _Recognizer(stream, source, rules)
    signatures: dict[int, _Signature] = {}
    seen_declarations: set[int] = set()

    for i in range(len(stream)):
        found = recognizer.at(i)
        if isinstance(found, _Signature):
            signatures.setdefault(found.body, found)
        elif isinstance(found, Declaration) and found.offset not in seen_declarations:
            seen_declarations.add(found.offset)
            result.declarations.append(found)

    open_stack: list[int] = []
    for i, tok in enumerate(stream.tokens):
        if tok.kind is TokenKind.PUNCTUATION and tok.text == "{" and i in signatures:
            limit = result.entities[open_stack[-1]].end if open_stack else None
            entity = _open_entity(result, signatures[i], len(result.entities), limit)
            result.entities.append(entity)
            open_stack.append(entity.index)
        while open_stack and result.entities[open_stack[-1]].end <= i:
            _close_entity(result, open_stack)

    while open_stack:
        _close_entity(result, open_stack)

    logger.debug(
        f"{rules.name}: {len(result.entities)} functions, "
        f"{len(result.declarations)} declarations"
    )
    return result


def _open_entity(
    result: DetectionResult, sig: _Signature, index: int, limit: Optional[int]
) -> FunctionEntity:
    stream = result.stream
    end = stream.match(sig.body)
    if end is None or end < sig.body:
        end = sig.body
    if limit is not None:
        # Recovery can mis-match braces; a child never outlives its parent
        end = min(end, limit)
    first = stream.tokens[sig.start]
    last = stream.tokens[end]
    signature = " ".join(result.source[first.start : stream.tokens[sig.body].start].split())
    return FunctionEntity(
        index=index,
        name=sig.name,
        signature=signature,
        signature_start=sig.start,
        body_start=sig.body,
        end=end,
        start=first.start,
        end_offset=last.end,
        start_line=first.line,
        end_line=last.line,
    )


def _close_entity(result: DetectionResult, open_stack: list[int]) -> None:
    entity = result.entities[open_stack.pop()]
    if open_stack:
        entity.parent = open_stack[-1]
        result.entities[entity.parent].children.append(entity.index)
    else:
        result.roots.append(entity.index)


class _Recognizer:
    """Signature recognizers for one stream, configured by the grammar."""

    def __init__(self, stream: TokenStream, source: str, rules: LanguageRules):
        self.s = stream
        self.source = source
        self.g = rules.signature

    def at(self, i: int) -> _Found:
        s = self.s
        tok = s.tokens[i]
        if not tok.is_word:
            return None
        if tok.text in self.g.introducers:
            return self._introducer(i)
        if self.g.arrow_assignments:
            found = self._arrow_assignment(i)
            if found is not None:
                return found
        if self.g.bare_methods and s.is_code_text(i + 1, "("):
            return self._bare_method(i)
        return None

    # ── shapes ──────────────────────────────────────────────────────

    def _introducer(self, i: int) -> _Found:
        s = self.s
        j = i + 1
        if s.text(j) == "*":
            j += 1
        if self.g.receiver_group and s.is_code_text(j, "("):
            close = s.match(j)
            if close is None or not s.is_word(close + 1):
                return None
            j = close + 1
        if s.text(j) == "<":
            after = s.skip_angle_group(j)
            if after == j:
                return None
            j = after

        name: Optional[str] = None
        while j < len(s):
            text = s.text(j)
            if s.is_word(j):
                name = text
                j += 1
            elif text in (".", "?") and name is not None:
                j += 1
            elif text == "<" and name is not None:
                after = s.skip_angle_group(j)
                if after == j:
                    break
                j = after
            else:
                break
        if name is None:
            return None
        if s.is_code_text(j, "[") and self.g.receiver_group:
            # Go type parameters: func Map[T any](...)
            close = s.match(j)
            if close is None:
                return None
            j = close + 1
        if not s.is_code_text(j, "("):
            return None
        close = s.match(j)
        if close is None:
            return None
        return self._finish(name, i, close, typed=True)

    def _bare_method(self, i: int) -> _Found:
        s = self.s
        name = s.text(i)
        if name in self.g.non_names:
            return None
        typed = False
        if i > 0:
            prev = s.text(i - 1)
            if s.is_word(i - 1):
                if prev in self.g.non_names and prev not in _METHOD_MODIFIERS:
                    return None
                typed = True
            elif prev in self.g.prefix_punctuation:
                typed = prev in (">", "]", "*", "&")
            else:
                return None
        close = s.match(i + 1)
        if close is None:
            return None
        return self._finish(name, i, close, typed=typed)

    def _arrow_assignment(self, i: int) -> _Found:
        s = self.s
        if s.text(i) in _ARROW_KEYWORDS:
            j = i + 1
        elif self._is_class_field(i):
            j = i
        else:
            return None
        if not s.is_word(j):
            return None
        name = s.text(j)
        j += 1
        if s.text(j) == ":":
            j = self._skip_annotation(j + 1, ("=",))
        if s.text(j) != "=":
            return None
        j += 1
        if s.text(j) == "async":
            j += 1

        if s.text(j) == "function":
            j += 1
            if s.text(j) == "*":
                j += 1
            if s.is_word(j):
                j += 1
            if not s.is_code_text(j, "("):
                return None
            close = s.match(j)
            if close is None:
                return None
            return self._finish(name, i, close, typed=True)

        if s.text(j) == "<":
            after = s.skip_angle_group(j)
            if after == j:
                return None
            j = after
        if s.is_code_text(j, "("):
            close = s.match(j)
            if close is None:
                return None
            k = close + 1
        elif s.is_word(j) and s.text(j + 1) == "=>":
            k = j + 1
        else:
            return None
        if s.text(k) == ":":
            k = self._skip_annotation(k + 1, ("=>",))
        if s.text(k) != "=>" or not s.is_code_text(k + 1, "{"):
            return None
        return _Signature(name=name, start=self._line_start(i), body=k + 1)

    # ── helpers ─────────────────────────────────────────────────────

    def _is_class_field(self, i: int) -> bool:
        """`handler = (e) => {` directly inside a class body."""
        s = self.s
        if s.text(i + 1) not in ("=", ":"):
            return False
        j = i - 1
        while s.text(j) in _FIELD_MODIFIERS:
            j -= 1
        if j >= 0 and s.text(j) not in ("{", "}", ";"):
            return False
        brace = s.enclosing_brace(i)
        if brace < 0:
            return False
        head = s.statement_start(brace)
        return any(s.text(k) == "class" for k in range(head, brace))

    def _skip_annotation(self, j: int, stops: tuple[str, ...]) -> int:
        """Skip a type annotation up to one of ``stops`` (index of the stop)."""
        s = self.s
        line = s.tokens[j - 1].line if 0 < j <= len(s) else 0
        while j < len(s):
            text = s.text(j)
            if text in stops or text in (";", "{", "}") or s.tokens[j].line != line:
                return j
            if text in ("(", "["):
                close = s.match(j)
                if close is None or close <= j:
                    return j
                j = close
            elif text == "<":
                after = s.skip_angle_group(j)
                if after != j:
                    j = after
                    continue
            j += 1
        return j

    def _line_start(self, i: int) -> int:
        """First token of ``i``'s statement that sits on ``i``'s line."""
        s = self.s
        start = s.statement_start(i)
        line = s.tokens[i].line
        while start < i and s.tokens[start].line < line:
            start += 1
        return start

    def _finish(self, name: str, sig_start: int, close: int, typed: bool) -> _Found:
        """Classify what follows the parameter list closing at ``close``."""
        s = self.s
        g = self.g
        j = close + 1
        has_trailer = False

        if j < len(s) and not s.is_code_text(j, "{"):
            text = s.text(j)
            same_line = s.tokens[j].line == s.tokens[close].line
            if g.trailer_leads is None:
                starts = same_line and (s.is_word(j) or text in g.trailer_tokens)
            else:
                starts = text in g.trailer_leads
            if starts:
                has_trailer = True
                j = self._skip_trailer(j)

        start = self._line_start(sig_start)
        if s.is_code_text(j, "{"):
            return _Signature(name=name, start=start, body=j)
        if s.text(j) in g.expression_body:
            return None

        last = j - 1
        terminated = (
            j >= len(s)
            or s.text(j) in _DECLARATION_TERMINATORS
            or s.tokens[j].line != s.tokens[last].line
        )
        if not terminated or not (typed or has_trailer):
            return None
        first = s.tokens[start]
        signature = " ".join(self.source[first.start : s.tokens[last].end].split())
        return Declaration(name=name, signature=signature, offset=first.start, line=first.line)

    def _skip_trailer(self, j: int) -> int:
        """Index of the first token after the trailer starting at ``j``."""
        s = self.s
        g = self.g
        leads = g.trailer_leads or frozenset()
        while j < len(s):
            text = s.text(j)
            if s.is_code_text(j, "{"):
                if s.text(j - 1) not in leads | _TYPE_CONNECTORS:
                    return j
                # Object type in a return annotation: `): { a: number } {`
                close = s.match(j)
                if close is None or close <= j:
                    return j
                j = close + 1
                continue
            if s.tokens[j].line != s.tokens[j - 1].line and s.text(j - 1) not in (",", ":"):
                if text not in leads:
                    return j
            if text in ("(", "[") and text in g.trailer_tokens:
                close = s.match(j)
                if close is None or close <= j:
                    return j
                j = close + 1
                continue
            if s.is_word(j):
                j += 1
                continue
            if text in g.trailer_tokens or text in leads:
                j += 1
                continue
            return j
        return j
