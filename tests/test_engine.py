"""Tests for the engine orchestrator: single-file and batch analysis."""

import json
import logging
import threading

import pytest

import complexity_lens
from complexity_lens.config import EngineConfig
from complexity_lens.engine import ComplexityEngine, count_real_lines
from complexity_lens.exceptions import MalformedSpanError, UnsupportedLanguageError

JAVA_SOURCE = """\
public class Sample {
    public int pick(int a, int b) {
        if (a > b && a > 0) {
            return a;
        }
        return b;
    }
}
"""

KOTLIN_SOURCE = """\
fun label(n: Int): String {
    return when (n) {
        0 -> "zero"
        else -> "many"
    }
}
"""


def _batch(count):
    return [(f"Sample{i}.java", JAVA_SOURCE, "java") for i in range(count)]


class TestAnalyze:
    """Single-file analysis."""

    def test_result_shape(self, engine):
        """The result echoes file id and language and nests functions."""
        result = engine.analyze("Sample.java", JAVA_SOURCE, "java")
        assert result.ok
        assert result.file_id == "Sample.java"
        assert result.language == "java"
        assert [(f.name, f.score) for f in result.functions] == [("pick", 3)]
        assert result.declarations == ()

    def test_function_lines(self, engine):
        """Functions report their first and last line."""
        pick = engine.analyze("Sample.java", JAVA_SOURCE, "java").functions[0]
        assert (pick.start_line, pick.end_line) == (2, 7)
        assert pick.lines == 6
        assert JAVA_SOURCE[pick.start : pick.end].startswith("public int pick(")

    def test_idempotent(self, engine):
        """Analyzing the same input twice gives equal results."""
        first = engine.analyze("k.kt", KOTLIN_SOURCE, "kotlin")
        second = engine.analyze("k.kt", KOTLIN_SOURCE, "kotlin")
        assert first == second

    def test_unsupported_language_raises(self, engine):
        """Unknown languages raise instead of returning a result."""
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            engine.analyze("x.cob", "DISPLAY 'HI'.", "cobol")
        assert exc_info.value.file_id == "x.cob"

    def test_real_lines_of_code(self, engine):
        """Blank lines are not counted."""
        result = engine.analyze("k.kt", KOTLIN_SOURCE + "\n\n   \n", "kotlin")
        assert result.real_lines_of_code == 6

    def test_empty_source(self, engine):
        """Empty input yields an empty, successful result."""
        result = engine.analyze("empty.go", "", "go")
        assert result.ok
        assert result.functions == ()
        assert result.total_complexity == 0
        assert result.real_lines_of_code == 0

    def test_malformed_span_propagates(self, engine, monkeypatch):
        """An internal span disagreement is raised from single-file analysis."""

        def broken(entity, detection, rules, options=None):
            raise MalformedSpanError(entity.name, "forced")

        monkeypatch.setattr("complexity_lens.engine.score", broken)
        with pytest.raises(MalformedSpanError, match="pick"):
            engine.analyze("Sample.java", JAVA_SOURCE, "java")

    def test_to_dict_is_json_serializable(self, engine):
        """to_dict() output survives json.dumps."""
        result = engine.analyze("Sample.java", JAVA_SOURCE, "java")
        data = json.loads(json.dumps(result.to_dict()))
        assert data["total_complexity"] == 3
        assert data["function_count"] == 1
        assert data["functions"][0]["decision_points"][0]["rule"] == "If"

    def test_module_level_analyze(self):
        """The package-level helper uses a shared default engine."""
        result = complexity_lens.analyze("k.kt", KOTLIN_SOURCE, "kotlin")
        assert [(f.name, f.score) for f in result.functions] == [("label", 2)]


class TestCountRealLines:
    """count_real_lines()."""

    def test_counts_non_blank(self):
        assert count_real_lines("a\n\n  b\n\t\n") == 2

    def test_empty(self):
        assert count_real_lines("") == 0

    def test_only_cr_and_lf_break_lines(self):
        """Form feeds and Unicode separators stay inside their line."""
        assert count_real_lines("int a;\fint b;\r\nint c;\u2028int d;\rint e;\n") == 3


class TestAnalyzeAll:
    """Batch analysis."""

    def test_sequential_batch(self, sequential_config):
        """Every input produces exactly one result."""
        engine = ComplexityEngine(sequential_config)
        results = engine.analyze_all(_batch(3))
        assert sorted(r.file_id for r in results) == ["Sample0.java", "Sample1.java", "Sample2.java"]
        assert all(r.total_complexity == 3 for r in results)

    def test_parallel_batch(self):
        """The thread pool returns the same results as sequential analysis."""
        engine = ComplexityEngine(EngineConfig(workers=4, parallel_threshold=1))
        items = _batch(12)
        results = engine.analyze_all(items)
        assert len(results) == 12
        expected = {fid: engine.analyze(fid, src, lang) for fid, src, lang in items}
        assert {r.file_id: r for r in results} == expected

    def test_partial_failure(self, sequential_config, caplog):
        """A failing file is recorded and the rest still complete."""
        engine = ComplexityEngine(sequential_config)
        items = [
            ("a.java", JAVA_SOURCE, "java"),
            ("b.cob", "MOVE A TO B.", "cobol"),
            ("c.kt", KOTLIN_SOURCE, "kotlin"),
        ]
        with caplog.at_level(logging.WARNING, logger="complexity_lens"):
            results = {r.file_id: r for r in engine.analyze_all(items)}

        assert results["a.java"].ok
        assert results["c.kt"].ok
        assert not results["b.cob"].ok
        assert "Unsupported language" in results["b.cob"].error
        assert results["b.cob"].functions == ()
        assert "b.cob" in caplog.text

    def test_partial_failure_in_parallel(self):
        """Failures are isolated on the thread pool too."""
        engine = ComplexityEngine(EngineConfig(workers=3, parallel_threshold=1))
        items = _batch(5) + [("bad.x", "", "nope")]
        results = engine.analyze_all(items)
        assert len(results) == 6
        assert [r.file_id for r in results if not r.ok] == ["bad.x"]

    def test_malformed_span_recorded_in_batch(self, sequential_config, monkeypatch):
        """The batch records a span disagreement as that file's error."""

        def broken(entity, detection, rules, options=None):
            raise MalformedSpanError(entity.name, "forced")

        monkeypatch.setattr("complexity_lens.engine.score", broken)
        engine = ComplexityEngine(sequential_config)
        results = engine.analyze_all([("Sample.java", JAVA_SOURCE, "java"), ("e.go", "", "go")])
        by_id = {r.file_id: r for r in results}
        assert "Malformed span" in by_id["Sample.java"].error
        assert by_id["e.go"].ok

    def test_empty_batch(self, engine):
        """No inputs, no results."""
        assert engine.analyze_all([]) == []

    @pytest.mark.parametrize("workers", [1, 4])
    def test_cancelled_before_start(self, workers):
        """A pre-set cancel event starts nothing."""
        engine = ComplexityEngine(EngineConfig(workers=workers, parallel_threshold=1))
        cancel = threading.Event()
        cancel.set()
        assert engine.analyze_all(_batch(6), cancel=cancel) == []

    def test_cancel_mid_batch(self, sequential_config, monkeypatch):
        """Files already analyzed are kept when the batch is cancelled."""
        engine = ComplexityEngine(sequential_config)
        cancel = threading.Event()
        real_analyze = engine.analyze

        def analyze_then_cancel(file_id, source, language):
            result = real_analyze(file_id, source, language)
            cancel.set()
            return result

        monkeypatch.setattr(engine, "analyze", analyze_then_cancel)
        results = engine.analyze_all(_batch(4), cancel=cancel)
        assert [r.file_id for r in results] == ["Sample0.java"]

    def test_max_workers_override(self, engine):
        """An explicit worker bound of one forces sequential execution."""
        results = engine.analyze_all(_batch(20), max_workers=1)
        assert [r.file_id for r in results] == [f"Sample{i}.java" for i in range(20)]

    def test_invalid_max_workers(self, engine):
        """Negative worker counts are rejected."""
        with pytest.raises(ValueError):
            engine.analyze_all(_batch(2), max_workers=-1)

    @pytest.mark.slow
    def test_large_parallel_batch(self, fixture_source):
        """Hundreds of files through the pool, all accounted for."""
        source = fixture_source("Callbacks.ts")
        items = [(f"cb{i}.ts", source, "typescript") for i in range(400)]
        engine = ComplexityEngine(EngineConfig(workers=8, parallel_threshold=1))
        results = engine.analyze_all(items)
        assert len(results) == 400
        assert {r.total_complexity for r in results} == {9}


class TestFailureIsolation:
    """Whatever goes wrong in one file stays in that file's result."""

    def test_deeply_nested_file(self):
        """Nesting depth is not bounded by the interpreter's recursion limit."""
        depth = 1200
        deep = "".join(f"const f{i} = () => {{\n" for i in range(depth)) + "}\n" * depth
        items = [
            ("ok.ts", "function a() {}\n", "typescript"),
            ("deep.ts", deep, "typescript"),
        ]
        results = {r.file_id: r for r in ComplexityEngine().analyze_all(items, max_workers=1)}

        assert results["ok.ts"].ok
        nested = results["deep.ts"]
        assert nested.ok
        assert nested.function_count == depth
        assert [f.name for f in nested.iter_functions()][:3] == ["f0", "f1", "f2"]
        assert nested.functions[0].children[0].name == "f1"

    def test_unexpected_error_recorded(self, sequential_config, monkeypatch, caplog):
        """A non-analysis exception becomes an error result and is logged."""
        real_count = count_real_lines

        def explode_on_marker(source):
            if "EXPLODE" in source:
                raise RuntimeError("counter broke")
            return real_count(source)

        monkeypatch.setattr("complexity_lens.engine.count_real_lines", explode_on_marker)
        engine = ComplexityEngine(sequential_config)
        items = [
            ("a.java", JAVA_SOURCE, "java"),
            ("b.java", "// EXPLODE\n" + JAVA_SOURCE, "java"),
            ("c.kt", KOTLIN_SOURCE, "kotlin"),
        ]
        with caplog.at_level(logging.ERROR, logger="complexity_lens"):
            results = {r.file_id: r for r in engine.analyze_all(items)}

        assert results["a.java"].ok
        assert results["c.kt"].ok
        assert results["b.java"].error == "RuntimeError: counter broke"
        assert results["b.java"].language == "java"
        assert "b.java" in caplog.text

    def test_unexpected_error_in_parallel(self, monkeypatch):
        """The thread pool records unexpected exceptions the same way."""

        def broken(entity, detection, rules, options=None):
            raise KeyError(entity.name)

        monkeypatch.setattr("complexity_lens.engine.score", broken)
        engine = ComplexityEngine(EngineConfig(workers=3, parallel_threshold=1))
        items = _batch(4) + [("e.go", "", "go")]
        results = {r.file_id: r for r in engine.analyze_all(items)}
        assert len(results) == 5
        assert results["e.go"].ok
        assert all(results[f"Sample{i}.java"].error == "KeyError: 'pick'" for i in range(4))
