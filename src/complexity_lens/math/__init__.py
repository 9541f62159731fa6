"""Mathematical utilities for complexity reports."""

from .statistics import ComplexitySummary, Hotspot, summarize

__all__ = [
    "ComplexitySummary",
    "Hotspot",
    "summarize",
]
