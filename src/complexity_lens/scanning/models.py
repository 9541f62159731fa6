"""Data models for the scanning layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterator, Optional


@dataclass(frozen=True)
class DecisionPoint:
    """One token that raised a function's score."""

    rule: str
    category: str
    text: str
    line: int
    increment: int = 1


@dataclass(frozen=True)
class FunctionResult:
    """Scored function with its nested functions.

    Attributes:
        name: Best-effort function name
        signature: Signature text up to the body, whitespace collapsed
        start: Source offset of the signature
        end: Source offset one past the closing brace
        start_line: Line of the signature
        end_line: Line of the closing brace
        score: Cyclomatic complexity (1 + decision points)
        decision_points: What raised the score, in source order
        children: Directly nested functions, in source order
    """

    name: str
    signature: str
    start: int
    end: int
    start_line: int
    end_line: int
    score: int
    decision_points: tuple[DecisionPoint, ...] = ()
    children: tuple[FunctionResult, ...] = ()

    @property
    def lines(self) -> int:
        return self.end_line - self.start_line + 1

    def walk(self) -> Iterator[FunctionResult]:
        """This function, then its descendants depth-first."""
        pending = [self]
        while pending:
            function = pending.pop()
            yield function
            pending.extend(reversed(function.children))


@dataclass(frozen=True)
class DeclarationResult:
    """A function signature without a body."""

    name: str
    signature: str
    line: int


@dataclass(frozen=True)
class ScanResult:
    """Analysis outcome for one file.

    ``error`` is set only by the batch entry point, when analysis of this
    file failed and the failure was recorded instead of raised.
    """

    file_id: str
    language: str
    functions: tuple[FunctionResult, ...] = ()
    declarations: tuple[DeclarationResult, ...] = ()
    real_lines_of_code: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def iter_functions(self) -> Iterator[FunctionResult]:
        """Every function in the file, parents before children."""
        for function in self.functions:
            yield from function.walk()

    @property
    def total_complexity(self) -> int:
        return sum(f.score for f in self.iter_functions())

    @property
    def function_count(self) -> int:
        return sum(1 for _ in self.iter_functions())

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict suitable for JSON output."""
        data = asdict(self)
        data["total_complexity"] = self.total_complexity
        data["function_count"] = self.function_count
        return data

