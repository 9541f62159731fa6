"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import EngineConfig, load_config

console = Console()


def score_style(score: int, threshold: int) -> str:
    """Rich style for a complexity score relative to the hotspot threshold."""
    if score >= threshold * 2:
        return "bold red"
    if score >= threshold:
        return "yellow"
    return "green"


def resolve_config(
    config: Optional[Path] = None,
    threshold: Optional[int] = None,
    workers: Optional[int] = None,
) -> EngineConfig:
    """Build engine configuration from CLI options."""
    return load_config(config_file=config, hotspot_threshold=threshold, workers=workers)
