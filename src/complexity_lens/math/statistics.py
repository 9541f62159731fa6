"""Descriptive statistics over function complexity scores."""

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from ..scanning.models import ScanResult


@dataclass(frozen=True)
class Hotspot:
    """A function whose score reached the hotspot threshold."""

    file_id: str
    name: str
    start_line: int
    score: int


@dataclass(frozen=True)
class ComplexitySummary:
    """Distribution of scores across a batch.

    Attributes:
        function_count: Number of scored functions, nested ones included
        total: Sum of all scores
        mean: Arithmetic mean score
        median: Median score
        p90: 90th percentile (linear interpolation)
        max: Highest score
        hotspots: Functions with score >= threshold, highest first
    """

    function_count: int = 0
    total: int = 0
    mean: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    max: int = 0
    hotspots: list[Hotspot] = field(default_factory=list)


def summarize(results: Iterable[ScanResult], threshold: int = 10) -> ComplexitySummary:
    """
    Summarize the scores of every function in ``results``.

    Files that recorded an error contribute nothing.

    Args:
        results: Scan results
        threshold: Minimum score for a function to be reported as a hotspot

    Returns:
        ComplexitySummary (all zeros when there are no functions)
    """
    scores: list[int] = []
    hotspots: list[Hotspot] = []
    for result in results:
        for function in result.iter_functions():
            scores.append(function.score)
            if function.score >= threshold:
                hotspots.append(
                    Hotspot(
                        file_id=result.file_id,
                        name=function.name,
                        start_line=function.start_line,
                        score=function.score,
                    )
                )

    if not scores:
        return ComplexitySummary()

    values = np.asarray(scores, dtype=float)
    hotspots.sort(key=lambda h: (-h.score, h.file_id, h.start_line))
    return ComplexitySummary(
        function_count=len(scores),
        total=int(values.sum()),
        mean=float(np.mean(values)),
        median=float(np.median(values)),
        p90=float(np.percentile(values, 90)),
        max=int(values.max()),
        hotspots=hotspots,
    )
