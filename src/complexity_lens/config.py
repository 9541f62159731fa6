"""Configuration loading and management for complexity-lens.

Configuration sources are merged in priority order:
    1. Defaults (defined in EngineConfig)
    2. Project config (./complexity-lens.toml)
    3. Explicit config file
    4. Environment variables (CLENS_* prefix)
    5. Overrides (passed as kwargs, typically from CLI flags)

Example:
    >>> config = load_config(workers=4)
    >>> config.workers
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, get_type_hints

from .exceptions import InvalidConfigError

_ENV_PREFIX = "CLENS_"
_PROJECT_CONFIG_NAME = "complexity-lens.toml"

# Default worker count: CPU count, capped at 8
_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for engine execution and the collaborators around it.

    Attributes:
        Batch execution:
            workers: Worker threads for batch analysis (None = auto-detect)
            parallel_threshold: Batches smaller than this run sequentially

        Scoring:
            count_lambda_internals: Count decision tokens inside expression lambdas
            hotspot_threshold: Score at which a function is reported as a hotspot

        File discovery:
            max_file_size_mb: Files above this size are skipped
            exclude_patterns: Glob patterns excluded from discovery
            follow_symlinks: Follow symbolic links while walking directories
            allow_hidden_files: Include entries whose name starts with '.'
    """

    workers: Optional[int] = None
    parallel_threshold: int = 10

    count_lambda_internals: bool = True
    hotspot_threshold: int = 10

    max_file_size_mb: float = 5.0
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "node_modules/*",
            "vendor/*",
            "dist/*",
            "build/*",
            "target/*",
            ".git/*",
            "*.min.js",
            "*.bundle.js",
            "*.generated.*",
        ]
    )
    follow_symlinks: bool = False
    allow_hidden_files: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.parallel_threshold < 1:
            raise InvalidConfigError(
                "parallel_threshold", self.parallel_threshold, "must be at least 1"
            )
        if self.hotspot_threshold < 1:
            raise InvalidConfigError(
                "hotspot_threshold", self.hotspot_threshold, "must be at least 1"
            )
        if self.max_file_size_mb <= 0:
            raise InvalidConfigError("max_file_size_mb", self.max_file_size_mb, "must be positive")

    @property
    def max_workers(self) -> int:
        """Resolved worker count."""
        return self.workers or _DEFAULT_WORKERS

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)


DEFAULT_CONFIG = EngineConfig()


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> EngineConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options fall through.

    Returns:
        Validated EngineConfig instance

    Raises:
        InvalidConfigError: If a config file is missing or invalid, or a value
            fails validation
    """
    merged: dict[str, Any] = {}

    project_config = Path.cwd() / _PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_read_config_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise InvalidConfigError("config_file", config_file, "file not found")
        merged.update(_read_config_file(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return EngineConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise InvalidConfigError("config", sorted(merged), str(e))


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read a TOML file, accepting either top-level keys or a [complexity-lens] table."""
    try:
        data = _load_toml_file(path)
    except InvalidConfigError:
        raise
    except Exception as e:
        raise InvalidConfigError("config_file", path, f"cannot parse TOML: {e}")
    section = data.get("complexity-lens")
    if isinstance(section, dict):
        return dict(section)
    return data


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CLENS_* environment variables.

    Supported environment variables:
        CLENS_WORKERS: int
        CLENS_PARALLEL_THRESHOLD: int
        CLENS_COUNT_LAMBDA_INTERNALS: bool (true/false/1/0)
        CLENS_HOTSPOT_THRESHOLD: int
        CLENS_MAX_FILE_SIZE_MB: float
        CLENS_FOLLOW_SYMLINKS: bool
        CLENS_ALLOW_HIDDEN_FILES: bool

    Returns:
        Dict of field_name -> parsed_value for any CLENS_* vars found.
    """
    type_hints = get_type_hints(EngineConfig)

    result: dict[str, Any] = {}

    for field_name in EngineConfig.__dataclass_fields__:
        env_key = f"{_ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value or None if the field type is not settable from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    # List fields (exclude_patterns) are not settable from the environment
    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        InvalidConfigError: If no TOML parser is available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise InvalidConfigError(
                "config_file", path, "TOML support requires Python 3.11+ or the 'tomli' package"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
