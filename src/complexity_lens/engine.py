"""Engine orchestrator: scan -> detect -> score, per file and per batch.

Per-file analysis is a pure function of (source text, language rules), so a
batch fans out one task per file on a thread pool with no shared mutable
state. Results come back in completion order; ``file_id`` identifies each.
"""

from __future__ import annotations

import re
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Iterator, Optional

from .config import DEFAULT_CONFIG, EngineConfig
from .exceptions import AnalysisError, MalformedSpanError
from .logging_config import get_logger
from .scanning.detector import DetectionResult, FunctionEntity, detect
from .scanning.languages import LanguageRules, rules_for
from .scanning.models import DeclarationResult, FunctionResult, ScanResult
from .scanning.scanner import scan
from .scanning.scorer import ScoringOptions, score

logger = get_logger(__name__)

SourceInput = tuple[str, str, str]
"""(file_id, source_text, language_id)"""

_Task = Callable[[], ScanResult]

# Only CR, LF and CRLF end a line; form feeds and other separators do not
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def count_real_lines(source: str) -> int:
    """Number of non-blank lines."""
    return sum(1 for line in _LINE_BREAK.split(source) if line.strip())


class ComplexityEngine:
    """Computes per-function cyclomatic complexity for source files."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.options = ScoringOptions(count_lambda_internals=self.config.count_lambda_internals)

    def analyze(self, file_id: str, source: str, language: str) -> ScanResult:
        """Analyze one file.

        Args:
            file_id: Caller-chosen identifier, echoed in the result
            source: Source text
            language: Registered language name

        Returns:
            ScanResult with top-level functions carrying their nested functions

        Raises:
            UnsupportedLanguageError: If ``language`` has no registered rules
            MalformedSpanError: On an internal detector/scorer disagreement
        """
        try:
            rules = rules_for(language)
            detection = detect(scan(source, rules), rules)
            functions = self._build(detection, rules)
        except MalformedSpanError as e:
            logger.error(str(e.for_file(file_id)))
            raise
        except AnalysisError as e:
            e.for_file(file_id)
            raise

        declarations = tuple(
            DeclarationResult(name=d.name, signature=d.signature, line=d.line)
            for d in detection.declarations
        )
        result = ScanResult(
            file_id=file_id,
            language=rules.name,
            functions=functions,
            declarations=declarations,
            real_lines_of_code=count_real_lines(source),
        )
        logger.debug(
            f"{file_id}: {result.function_count} functions, "
            f"total complexity {result.total_complexity}"
        )
        return result

    def _build(
        self, detection: DetectionResult, rules: LanguageRules
    ) -> tuple[FunctionResult, ...]:
        """Score every entity and assemble the result forest.

        A parent is always opened, and so indexed, before its children, so
        walking the arena backwards finishes every child before its parent
        without recursing once per nesting level.
        """
        built: dict[int, FunctionResult] = {}
        for entity in reversed(detection.entities):
            built[entity.index] = self._function_result(detection, entity, rules, built)
        return tuple(built[i] for i in detection.roots)

    def _function_result(
        self,
        detection: DetectionResult,
        entity: FunctionEntity,
        rules: LanguageRules,
        built: dict[int, FunctionResult],
    ) -> FunctionResult:
        card = score(entity, detection, rules, self.options)
        return FunctionResult(
            name=entity.name,
            signature=entity.signature,
            start=entity.start,
            end=entity.end_offset,
            start_line=entity.start_line,
            end_line=entity.end_line,
            score=card.score,
            decision_points=card.decision_points,
            children=tuple(built.pop(i) for i in entity.children),
        )

    def analyze_all(
        self,
        items: Iterable[SourceInput],
        max_workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> list[ScanResult]:
        """Analyze a batch of in-memory sources.

        A failure in one file is recorded as that file's ScanResult.error and
        never aborts the others.

        Args:
            items: (file_id, source_text, language_id) triples
            max_workers: Upper bound on concurrent files (config default if None)
            cancel: Once set, no further files are started; files already
                running complete and are returned

        Returns:
            Results in completion order
        """
        tasks = [self._source_task(*item) for item in items]
        return self._run(tasks, max_workers, cancel)

    def _source_task(self, file_id: str, source: str, language: str) -> tuple[str, str, _Task]:
        return file_id, language, lambda: self.analyze(file_id, source, language)

    def _run(
        self,
        tasks: list[tuple[str, str, _Task]],
        max_workers: Optional[int],
        cancel: Optional[threading.Event],
    ) -> list[ScanResult]:
        workers = max_workers or self.config.max_workers
        if workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {workers}")

        if workers == 1 or len(tasks) < self.config.parallel_threshold:
            results = list(self._run_sequential(tasks, cancel))
        else:
            results = list(self._run_parallel(tasks, workers, cancel))

        failed = sum(1 for r in results if r.error is not None)
        logger.info(
            f"Analyzed {len(results)} of {len(tasks)} files"
            + (f" ({failed} failed)" if failed else "")
        )
        if cancel is not None and cancel.is_set() and len(results) < len(tasks):
            logger.info(f"Cancelled; {len(tasks) - len(results)} files not started")
        return results

    def _run_sequential(
        self, tasks: list[tuple[str, str, _Task]], cancel: Optional[threading.Event]
    ) -> Iterator[ScanResult]:
        for task in tasks:
            if cancel is not None and cancel.is_set():
                return
            yield _guarded(*task)

    def _run_parallel(
        self,
        tasks: list[tuple[str, str, _Task]],
        workers: int,
        cancel: Optional[threading.Event],
    ) -> Iterator[ScanResult]:
        queue = iter(tasks)
        in_flight: set[Future] = set()

        with ThreadPoolExecutor(max_workers=workers) as executor:

            def dispatch() -> None:
                while len(in_flight) < workers:
                    if cancel is not None and cancel.is_set():
                        return
                    task = next(queue, None)
                    if task is None:
                        return
                    in_flight.add(executor.submit(_guarded, *task))

            dispatch()
            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    in_flight.discard(future)
                    yield future.result()
                dispatch()


def _guarded(file_id: str, language: str, task: _Task) -> ScanResult:
    """Run one file, turning any failure into an error result."""
    try:
        return task()
    except AnalysisError as e:
        if not isinstance(e, MalformedSpanError):
            logger.warning(f"Failed to analyze {file_id}: {e}")
        return ScanResult(file_id=file_id, language=language, error=str(e))
    except Exception as e:
        logger.error(f"Unexpected error analyzing {file_id}: {e.__class__.__name__}: {e}")
        return ScanResult(
            file_id=file_id, language=language, error=f"{e.__class__.__name__}: {e}"
        )


_default_engine: Optional[ComplexityEngine] = None
_default_lock = threading.Lock()


def get_default_engine() -> ComplexityEngine:
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = ComplexityEngine()
        return _default_engine


def analyze(file_id: str, source: str, language: str) -> ScanResult:
    """Analyze one file with the default engine."""
    return get_default_engine().analyze(file_id, source, language)


def analyze_all(
    items: Iterable[SourceInput],
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
) -> list[ScanResult]:
    """Analyze a batch with the default engine."""
    return get_default_engine().analyze_all(items, max_workers=max_workers, cancel=cancel)
