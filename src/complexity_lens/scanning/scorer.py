"""Cyclomatic complexity scoring for detected functions.

A function scores 1 plus the increment of every decision token in its own
body. Tokens that belong to a nested function (its signature through its
closing brace) are skipped: the nested function is scored on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..exceptions import MalformedSpanError
from .detector import DetectionResult, FunctionEntity
from .languages import DecisionRule, LanguageRules
from .models import DecisionPoint
from .tokens import TokenStream

_EXPRESSION_ENDS = frozenset({",", ")", ";", "]", "}"})


@dataclass(frozen=True)
class ScoringOptions:
    """Knobs for scoring.

    Attributes:
        count_lambda_internals: Count decision tokens inside expression-bodied
            lambdas toward the enclosing function. The lambda arrow itself is
            always counted.
    """

    count_lambda_internals: bool = True


DEFAULT_SCORING = ScoringOptions()


@dataclass(frozen=True)
class ScoreCard:
    score: int
    decision_points: tuple[DecisionPoint, ...] = ()


def score(
    entity: FunctionEntity,
    detection: DetectionResult,
    rules: LanguageRules,
    options: Optional[ScoringOptions] = None,
) -> ScoreCard:
    """Score one entity.

    Args:
        entity: Entity from ``detection``
        detection: Detection output holding the token stream and entity arena
        rules: Rules of the language the stream was scanned with
        options: Scoring options (defaults to DEFAULT_SCORING)

    Returns:
        ScoreCard with the score and the decision points that produced it

    Raises:
        MalformedSpanError: If the entity's indices disagree with the stream
    """
    options = options or DEFAULT_SCORING
    stream = detection.stream
    children = sorted(detection.children_of(entity), key=lambda c: c.signature_start)
    _validate(entity, children, stream)

    total = entity.base_score
    points: list[DecisionPoint] = []
    pending = iter(children)
    child = next(pending, None)

    i = entity.body_start + 1
    while i <= entity.end:
        while child is not None and child.end < i:
            child = next(pending, None)
        if child is not None and i >= child.signature_start:
            i = child.end + 1
            child = next(pending, None)
            continue

        tok = stream.tokens[i]
        rule = _first_match(stream, i, rules) if tok.is_code else None
        if rule is None:
            i += 1
            continue

        total += rule.increment
        points.append(
            DecisionPoint(
                rule=rule.name,
                category=rule.category,
                text=" ".join(rule.tokens),
                line=tok.line,
                increment=rule.increment,
            )
        )
        i += len(rule.tokens)
        if rule.opens_lambda and not options.count_lambda_internals:
            i = _expression_end(stream, i, entity.end)

    return ScoreCard(score=total, decision_points=tuple(points))


def _first_match(stream: TokenStream, i: int, rules: LanguageRules) -> Optional[DecisionRule]:
    for rule in rules.rules_starting_with(stream.tokens[i].text):
        if not all(
            stream.is_code_text(i + k, text) for k, text in enumerate(rule.tokens)
        ):
            continue
        if rule.predicate is None or rule.predicate(stream, i):
            return rule
    return None


def _expression_end(stream: TokenStream, i: int, limit: int) -> int:
    """Index where an expression lambda body starting at ``i`` ends.

    A block body (`-> {`) is not an expression; scoring resumes inside it.
    """
    if stream.is_code_text(i, "{"):
        return i
    while i <= limit:
        text = stream.text(i)
        if stream.tokens[i].is_code:
            if text in _EXPRESSION_ENDS:
                return i
            if text in ("(", "[", "{"):
                close = stream.match(i)
                if close is not None and i < close <= limit:
                    i = close + 1
                    continue
        i += 1
    return i


def _validate(
    entity: FunctionEntity, children: list[FunctionEntity], stream: TokenStream
) -> None:
    n = len(stream)
    if not 0 <= entity.signature_start <= entity.body_start < n:
        raise MalformedSpanError(
            entity.name,
            f"body_start {entity.body_start} outside stream of {n} tokens",
        )
    if not stream.is_code_text(entity.body_start, "{"):
        raise MalformedSpanError(
            entity.name, f"token at body_start is {stream.text(entity.body_start)!r}, not '{{'"
        )
    if not entity.body_start <= entity.end < n:
        raise MalformedSpanError(
            entity.name, f"end {entity.end} outside body starting at {entity.body_start}"
        )
    for child in children:
        if not (entity.body_start < child.signature_start and child.end <= entity.end):
            raise MalformedSpanError(
                entity.name, f"nested function {child.name} extends outside the body"
            )
