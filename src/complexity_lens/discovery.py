"""
Source file discovery for complexity-lens.

Walks a directory (or accepts a single file), filters by exclude patterns,
hidden entries and size, and detects each file's language by extension.
Reading happens here too; the engine only ever sees text.
"""

import fnmatch
from collections.abc import Generator, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_CONFIG, EngineConfig
from .exceptions import FileAccessError
from .logging_config import get_logger
from .scanning.languages import detect_language
from .scanning.models import ScanResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A discovered source file.

    Attributes:
        path: Absolute path on disk
        file_id: Path relative to the discovery root, '/'-separated
        language: Detected language name
    """

    path: Path
    file_id: str
    language: str

    def read(self, encoding: str = "utf-8", errors: str = "replace") -> str:
        """Read the file's text.

        Raises:
            FileAccessError: If the file cannot be read
        """
        try:
            with open(self.path, encoding=encoding, errors=errors) as f:
                return f.read()
        except OSError as e:
            raise FileAccessError(self.path, f"OS error: {e}")


def discover_files(
    root: Union[str, Path],
    config: Optional[EngineConfig] = None,
    language: Optional[str] = None,
) -> list[SourceFile]:
    """Find analyzable source files under ``root``.

    Args:
        root: Directory to walk, or a single file
        config: Filtering configuration (defaults to DEFAULT_CONFIG)
        language: Only keep files of this language

    Returns:
        Source files sorted by file_id

    Raises:
        FileAccessError: If ``root`` does not exist
    """
    config = config or DEFAULT_CONFIG
    root = Path(root)
    if not root.exists():
        raise FileAccessError(root, "Path does not exist")

    if root.is_file():
        base = root.parent
        candidates: list[Path] = [root]
    else:
        base = root
        candidates = list(_walk(root, config))

    files = []
    for path in candidates:
        detected = detect_language(path)
        if detected == "unknown" or (language and detected != language):
            continue
        try:
            size = path.stat().st_size
        except OSError as e:
            logger.warning(f"Skipping {path}: {e}")
            continue
        if size > config.max_file_size_bytes:
            logger.info(f"Skipping {path}: {size} bytes exceeds size limit")
            continue
        file_id = path.relative_to(base).as_posix()
        files.append(SourceFile(path=path.resolve(), file_id=file_id, language=detected))

    files.sort(key=lambda f: f.file_id)
    logger.debug(f"Discovered {len(files)} source files under {root}")
    return files


def load_sources(
    files: Iterable[SourceFile],
) -> tuple[list[tuple[str, str, str]], list[ScanResult]]:
    """Read discovered files into (file_id, text, language) triples.

    A file that cannot be read (deleted or made unreadable after discovery)
    does not stop the others; it becomes an error ScanResult instead.

    Returns:
        (sources ready for ComplexityEngine.analyze_all, unreadable results)
    """
    sources = []
    unreadable = []
    for source_file in files:
        try:
            text = source_file.read()
        except FileAccessError as e:
            logger.warning(f"Failed to read {source_file.file_id}: {e}")
            unreadable.append(
                ScanResult(file_id=source_file.file_id, language=source_file.language, error=str(e))
            )
            continue
        sources.append((source_file.file_id, text, source_file.language))
    return sources, unreadable


def _walk(root: Path, config: EngineConfig) -> Generator[Path, None, None]:
    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning(f"Cannot list {directory}: {e}")
            continue
        for path in entries:
            if path.name.startswith(".") and not config.allow_hidden_files:
                continue
            if path.is_symlink() and not config.follow_symlinks:
                continue
            rel = path.relative_to(root).as_posix()
            if path.is_dir():
                if not _is_excluded(rel + "/", config.exclude_patterns):
                    pending.append(path)
            elif path.is_file() and not _is_excluded(rel, config.exclude_patterns):
                yield path


def _is_excluded(rel_path: str, patterns: list[str]) -> bool:
    name = rel_path.rstrip("/").rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
            return True
        # "node_modules/*" excludes the directory itself at any depth
        if pattern.endswith("/*") and f"/{pattern[:-2]}/" in f"/{rel_path}":
            return True
    return False
