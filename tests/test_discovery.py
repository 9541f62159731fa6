"""Tests for source file discovery."""

import logging

import pytest

from complexity_lens.config import EngineConfig
from complexity_lens.discovery import SourceFile, discover_files, load_sources
from complexity_lens.exceptions import FileAccessError


@pytest.fixture
def tree(tmp_path):
    """A small mixed-language project."""
    files = {
        "src/Main.java": "class Main {}\n",
        "src/util/strings.kt": "fun f() {}\n",
        "web/app.ts": "function g() {}\n",
        "web/app.min.js": "function h(){}\n",
        "cmd/main.go": "package main\n",
        "native/clamp.c": "int x;\n",
        "README.md": "# readme\n",
        "node_modules/lib/index.js": "function i() {}\n",
        "web/node_modules/dep.ts": "function j() {}\n",
        ".hidden/Secret.java": "class Secret {}\n",
    }
    for rel, text in files.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return tmp_path


class TestDiscoverFiles:
    """discover_files() filtering and identity."""

    def test_finds_supported_files(self, tree):
        """Known extensions are found, excluded and hidden paths are not."""
        files = discover_files(tree)
        assert [f.file_id for f in files] == [
            "cmd/main.go",
            "native/clamp.c",
            "src/Main.java",
            "src/util/strings.kt",
            "web/app.ts",
        ]

    def test_languages_detected(self, tree):
        by_id = {f.file_id: f.language for f in discover_files(tree)}
        assert by_id["src/util/strings.kt"] == "kotlin"
        assert by_id["cmd/main.go"] == "go"

    def test_language_filter(self, tree):
        """Only the requested language is kept."""
        files = discover_files(tree, language="java")
        assert [f.file_id for f in files] == ["src/Main.java"]

    def test_hidden_files_allowed(self, tree):
        files = discover_files(tree, EngineConfig(allow_hidden_files=True), language="java")
        assert [f.file_id for f in files] == [".hidden/Secret.java", "src/Main.java"]

    def test_custom_excludes(self, tree):
        """Custom patterns replace the defaults."""
        config = EngineConfig(exclude_patterns=["src/*"])
        ids = [f.file_id for f in discover_files(tree, config)]
        assert "src/Main.java" not in ids
        assert "node_modules/lib/index.js" in ids
        assert "web/app.min.js" in ids

    def test_size_limit(self, tree):
        """Files above the size limit are skipped."""
        big = tree / "src" / "Big.java"
        big.write_text("// x\n" * 100_000, encoding="utf-8")
        config = EngineConfig(max_file_size_mb=0.1)
        ids = [f.file_id for f in discover_files(tree, config)]
        assert "src/Big.java" not in ids
        assert "src/Main.java" in ids

    def test_single_file_root(self, tree):
        """A file root yields just that file, identified by its name."""
        files = discover_files(tree / "web" / "app.ts")
        assert [(f.file_id, f.language) for f in files] == [("app.ts", "typescript")]

    def test_single_unknown_file(self, tree):
        assert discover_files(tree / "README.md") == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileAccessError):
            discover_files(tmp_path / "nowhere")

    def test_paths_are_absolute(self, tree):
        assert all(f.path.is_absolute() for f in discover_files(tree))

    def test_fixture_tree(self, fixtures_dir):
        """The bundled fixtures cover every language directory."""
        languages = {f.language for f in discover_files(fixtures_dir)}
        assert languages == {"java", "kotlin", "typescript", "go", "c"}


class TestSourceFile:
    """SourceFile.read()."""

    def test_read(self, tmp_path):
        path = tmp_path / "a.go"
        path.write_text("package a\n", encoding="utf-8")
        assert SourceFile(path=path, file_id="a.go", language="go").read() == "package a\n"

    def test_read_replaces_undecodable_bytes(self, tmp_path):
        path = tmp_path / "latin.c"
        path.write_bytes(b"int caf\xe9;\n")
        text = SourceFile(path=path, file_id="latin.c", language="c").read()
        assert text.startswith("int caf")
        assert "\ufffd" in text

    def test_read_missing(self, tmp_path):
        source = SourceFile(path=tmp_path / "gone.c", file_id="gone.c", language="c")
        with pytest.raises(FileAccessError) as exc_info:
            source.read()
        assert "gone.c" in str(exc_info.value)


class TestLoadSources:
    """load_sources() turns discovered files into engine input."""

    def test_reads_triples(self, tree):
        """Each readable file becomes (file_id, text, language)."""
        sources, unreadable = load_sources(discover_files(tree / "web"))
        assert sources == [("app.ts", "function g() {}\n", "typescript")]
        assert unreadable == []

    def test_missing_file_recorded(self, tmp_path, caplog):
        """A file that vanished after discovery becomes an error result."""
        path = tmp_path / "Main.java"
        path.write_text("class Main {}\n", encoding="utf-8")
        files = [
            SourceFile(path=path, file_id="Main.java", language="java"),
            SourceFile(path=tmp_path / "gone.java", file_id="gone.java", language="java"),
        ]
        with caplog.at_level(logging.WARNING, logger="complexity_lens"):
            sources, unreadable = load_sources(files)

        assert [s[0] for s in sources] == ["Main.java"]
        (failed,) = unreadable
        assert failed.file_id == "gone.java"
        assert failed.language == "java"
        assert not failed.ok
        assert "Cannot access file" in failed.error
        assert "gone.java" in caplog.text
