"""Shared test fixtures for complexity-lens tests."""

from pathlib import Path

import pytest

from complexity_lens.config import EngineConfig
from complexity_lens.engine import ComplexityEngine
from complexity_lens.scanning.models import ScanResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"

_LANGUAGE_DIRS = {
    ".java": "java",
    ".kt": "kotlin",
    ".ts": "typescript",
    ".go": "go",
    ".c": "c",
}


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def _load_fixture(name: str) -> str:
    """Read a fixture source file by name, e.g. 'NestedSwitch.java'."""
    language_dir = _LANGUAGE_DIRS[Path(name).suffix]
    path = FIXTURES_DIR / language_dir / name
    assert path.exists(), f"Missing fixture: {path}"
    return path.read_text(encoding="utf-8")


@pytest.fixture
def fixture_source():
    """Loader for fixture sources by file name."""
    return _load_fixture


@pytest.fixture
def engine():
    """Engine with default configuration."""
    return ComplexityEngine()


@pytest.fixture
def analyze_fixture(engine):
    """Analyze a fixture file with the default engine."""

    def _analyze(name: str) -> ScanResult:
        language = _LANGUAGE_DIRS[Path(name).suffix]
        return engine.analyze(name, _load_fixture(name), language)

    return _analyze


@pytest.fixture
def sequential_config():
    """Config that never uses the thread pool."""
    return EngineConfig(workers=1)


@pytest.fixture
def fixtures_dir():
    """Directory holding per-language fixture sources."""
    return FIXTURES_DIR
