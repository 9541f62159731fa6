"""Tests for the comment- and string-aware token scanner."""

import types

from complexity_lens.scanning.languages import C, JAVA, KOTLIN, TYPESCRIPT
from complexity_lens.scanning.scanner import scan
from complexity_lens.scanning.tokens import TokenKind, TokenStream


def code_texts(source, rules):
    return [t.text for t in scan(source, rules) if t.is_code]


class TestScannerBasics:
    """Token coverage, classification and positions."""

    def test_returns_lazy_iterator(self):
        """scan() is a generator, not a list."""
        assert isinstance(scan("int x;", JAVA), types.GeneratorType)

    def test_tokens_cover_source_exactly(self):
        """Concatenated token texts reproduce the input."""
        source = 'class A {\n  // note\n  void f() { if (a) { s = "x"; } }\n}\n'
        assert "".join(t.text for t in scan(source, JAVA)) == source

    def test_offsets_are_contiguous(self):
        """Each token starts where the previous one ended."""
        tokens = list(scan("a = b /* c */ + 'd';", JAVA))
        for prev, tok in zip(tokens, tokens[1:]):
            assert tok.start == prev.end

    def test_keywords_vs_identifiers(self):
        """Words in the keyword set are classified as keywords."""
        tokens = [t for t in scan("if (ready) return value;", JAVA) if t.is_word]
        assert [(t.text, t.kind) for t in tokens] == [
            ("if", TokenKind.KEYWORD),
            ("ready", TokenKind.IDENTIFIER),
            ("return", TokenKind.KEYWORD),
            ("value", TokenKind.IDENTIFIER),
        ]

    def test_line_numbers(self):
        """Lines are 1-indexed and count newlines inside tokens."""
        source = "a\n/* one\ntwo */ b\n\nc"
        lines = {t.text: t.line for t in scan(source, JAVA) if t.is_code}
        assert lines == {"a": 1, "b": 3, "c": 5}

    def test_maximal_munch_operators(self):
        """Longest operator wins."""
        assert code_texts("a === b ?? c?.d", TYPESCRIPT) == [
            "a", "===", "b", "??", "c", "?.", "d",
        ]

    def test_numbers(self):
        """Decimal points stay inside numbers; ranges split."""
        assert code_texts("x = 1.5f;", JAVA) == ["x", "=", "1.5f", ";"]
        assert code_texts("1..5", KOTLIN) == ["1", "..", "5"]

    def test_punctuation_kind(self):
        """Brackets and separators are punctuation, everything else operators."""
        tokens = {t.text: t.kind for t in scan("f(a, b);", C) if t.is_code}
        assert tokens["("] is TokenKind.PUNCTUATION
        assert tokens[","] is TokenKind.PUNCTUATION
        assert tokens[";"] is TokenKind.PUNCTUATION


class TestComments:
    """Comments are single opaque tokens."""

    def test_line_comment_hides_code(self):
        """Keywords inside line comments are not code."""
        assert code_texts("int a; // if (x) {\nb", JAVA) == ["int", "a", ";", "b"]

    def test_block_comment_hides_code(self):
        """Keywords inside block comments are not code."""
        assert code_texts("a /* while (x) { } */ b", JAVA) == ["a", "b"]

    def test_kotlin_block_comments_nest(self):
        """A nested opener needs its own closer in Kotlin."""
        assert code_texts("/* a /* b */ c */ d", KOTLIN) == ["d"]

    def test_java_block_comments_do_not_nest(self):
        """The first closer ends a Java block comment."""
        texts = code_texts("/* a /* b */ c */ d", JAVA)
        assert texts[0] == "c"
        assert texts[-1] == "d"

    def test_unterminated_block_comment_runs_to_end(self):
        """An open block comment is closed at end of input."""
        tokens = list(scan("a /* if (x)", JAVA))
        assert tokens[-1].kind is TokenKind.BLOCK_COMMENT
        assert tokens[-1].text == "/* if (x)"


class TestStrings:
    """String literals, escapes, recovery and interpolation."""

    def test_braces_in_strings_are_not_code(self):
        """Braces inside a string never reach the bracket matcher."""
        assert code_texts('s = "{ if }";', JAVA) == ["s", "=", ";"]

    def test_escaped_quote(self):
        """An escape consumes the following quote."""
        strings = [t.text for t in scan(r'x = "a\"b" + c;', JAVA) if t.kind is TokenKind.STRING]
        assert strings == [r'"a\"b"']

    def test_unterminated_string_closes_at_end(self):
        """A string open at end of input is closed there."""
        tokens = list(scan('x = "abc', JAVA))
        assert tokens[-1].kind is TokenKind.STRING
        assert tokens[-1].text == '"abc'

    def test_single_line_string_stops_at_newline(self):
        """A stray quote does not swallow the rest of the file."""
        assert code_texts('x = "abc\ny = 1;', JAVA) == ["x", "=", "y", "=", "1", ";"]

    def test_text_block_spans_lines(self):
        """Triple-quoted strings are multi-line."""
        tokens = [t for t in scan('s = """\nif (x) {\n""";\ny', JAVA) if t.is_code]
        assert [t.text for t in tokens] == ["s", "=", ";", "y"]
        assert tokens[-1].line == 4

    def test_kotlin_interpolation_reopens_code(self):
        """Code inside ${...} is tokenized as code."""
        tokens = [t for t in scan('"${if (a) 1 else 2}"', KOTLIN) if t.kind is not TokenKind.WHITESPACE]
        assert tokens[0].kind is TokenKind.STRING
        assert tokens[0].text == '"${'
        assert tokens[-1].kind is TokenKind.STRING
        assert tokens[-1].text == '}"'
        keywords = [t.text for t in tokens if t.kind is TokenKind.KEYWORD]
        assert keywords == ["if", "else"]

    def test_interpolation_with_nested_braces_and_strings(self):
        """Braces and quotes inside an interpolation balance on their own."""
        source = '"a ${m.map { "x" }.size} b" + c'
        texts = code_texts(source, KOTLIN)
        assert texts[-2:] == ["+", "c"]
        assert "{" in texts and "}" in texts

    def test_template_literal_interpolation(self):
        """TypeScript template literals reopen code context."""
        assert "?" in code_texts("`n: ${a ? b : c}`", TYPESCRIPT)

    def test_go_raw_string_has_no_escapes(self):
        """A backslash before a backtick does not escape it in Go."""
        from complexity_lens.scanning.languages import GO

        strings = [t.text for t in scan("s := `a\\` + b", GO) if t.kind is TokenKind.STRING]
        assert strings == ["`a\\`"]


class TestTokenStream:
    """Significant-token view with bracket structure."""

    def test_drops_trivia(self):
        """Whitespace, newlines and comments are not significant."""
        stream = TokenStream.from_tokens(scan("a // x\n /* y */ b", JAVA))
        assert [t.text for t in stream.tokens] == ["a", "b"]

    def test_bracket_matches(self):
        """Every bracket knows its partner."""
        stream = TokenStream.from_tokens(scan("f(a[1]) { g(); }", JAVA))
        # f ( a [ 1 ] ) { g ( ) ; }
        assert stream.match(1) == 6
        assert stream.match(3) == 5
        assert stream.match(7) == 12
        assert stream.match(12) == 7

    def test_enclosing_brace(self):
        """Tokens know their innermost enclosing brace."""
        stream = TokenStream.from_tokens(scan("f(a[1]) { g(); }", JAVA))
        assert stream.enclosing_brace(7) == -1
        assert stream.enclosing_brace(8) == 7
        assert stream.enclosing_brace(12) == 7

    def test_dangling_opener_matches_last_token(self):
        """An unclosed bracket extends to end of input."""
        stream = TokenStream.from_tokens(scan("void f() { if (x) {", JAVA))
        assert stream.match(4) == len(stream) - 1

    def test_skip_angle_group(self):
        """Nested generics close on consecutive '>' tokens."""
        stream = TokenStream.from_tokens(scan("Map<String, List<Integer>> m;", JAVA))
        assert stream.text(stream.skip_angle_group(1)) == "m"

    def test_skip_angle_group_gives_up_at_statement_end(self):
        """A comparison is not a generic group."""
        stream = TokenStream.from_tokens(scan("a < b; c", JAVA))
        assert stream.skip_angle_group(1) == 1

    def test_statement_start_jumps_groups(self):
        """Walking back skips balanced groups and stops at separators."""
        stream = TokenStream.from_tokens(scan("x; y = foo(a, b) + c;", JAVA))
        # x ; y = foo ( a , b ) + c ;
        assert stream.text(stream.statement_start(10)) == "y"

    def test_text_out_of_range(self):
        """Out-of-range lookups return empty text instead of raising."""
        stream = TokenStream.from_tokens(scan("a", JAVA))
        assert stream.text(-1) == ""
        assert stream.text(5) == ""
        assert not stream.is_code_text(5, "a")
