"""
Tests for the env file lexer.

Tests the critical constraint: write(parse(file)) == file (byte-identical)
"""

import pytest
from envdoctor.core.lexer import (
    TokenType,
    parse,
    parse_env_file,
    render_updates,
    write,
    get_keys,
    update_value,
)
from envdoctor.core.types import VariableDefinition


class TestLexerRoundTrip:
    """Test that parsing and writing produces byte-identical output."""

    def test_empty_file(self):
        """Empty file should round-trip perfectly."""
        content = ""
        assert write(parse(content)) == content

    def test_comments_and_blank_lines(self):
        """Comments and blank lines should be preserved exactly."""
        content = """# Database configuration
DATABASE_URL=postgres://localhost/db


# API settings
API_KEY=secret123
"""
        assert write(parse(content)) == content

    def test_export_and_quotes(self):
        """Export prefixes and quotes should round-trip."""
        content = '''export DATABASE_URL="postgres://localhost/db"
MESSAGE='Hello, World!'
PLAIN=value
'''
        assert write(parse(content)) == content

    def test_no_trailing_newline(self):
        """File without trailing newline should round-trip."""
        content = "KEY=value"
        assert write(parse(content)) == content

    def test_windows_line_endings(self):
        """CRLF line endings should be preserved."""
        content = "KEY=value\r\nOTHER=x\r\n"
        assert write(parse(content)) == content


class TestTokenization:
    """Test token parsing and classification."""

    def test_parse_key_value(self):
        """Key-value pairs should be tokenized correctly."""
        tokens = parse("DATABASE_URL=postgres://localhost/db\n")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.ASSIGNMENT
        assert tokens[0].key == "DATABASE_URL"
        assert tokens[0].value == "postgres://localhost/db"
        assert tokens[0].has_export is False

    def test_parse_export_key_value(self):
        """Exported key-value pairs should be tokenized correctly."""
        tokens = parse("export DATABASE_URL=postgres://localhost/db\n")
        assert tokens[0].key == "DATABASE_URL"
        assert tokens[0].has_export is True

    def test_values_are_exact(self):
        """Values keep quotes and surrounding spaces."""
        tokens = parse('QUOTED="hello world"\nSPACED=  padded  \n')
        assert tokens[0].value == '"hello world"'
        assert tokens[1].value == "  padded  "

    def test_value_with_equals_sign(self):
        """Only the first = separates name and value."""
        tokens = parse("URL=https://example.com?foo=bar\n")
        assert tokens[0].value == "https://example.com?foo=bar"

    def test_crlf_not_in_value(self):
        """The line ending is not part of the value."""
        tokens = parse("KEY=value\r\n")
        assert tokens[0].value == "value"

    def test_unicode_separators_stay_in_value(self):
        """Only \\n, \\r\\n and \\r end a line."""
        content = "A=x\u2028y\nB=page\x0cbreak\nC=z\x85w\n"
        env_file = parse_env_file(content)

        assert env_file.values == {"A": "x\u2028y", "B": "page\x0cbreak", "C": "z\x85w"}
        assert write(parse(content)) == content

    def test_lone_carriage_return_ends_line(self):
        tokens = parse("A=1\rB=2\r")
        assert [t.key for t in tokens] == ["A", "B"]
        assert tokens[0].value == "1"

    def test_unparseable_line_kept_as_comment(self):
        """Lines that are not assignments survive as comments."""
        tokens = parse("not an assignment\n")
        assert tokens[0].type == TokenType.COMMENT


class TestGetKeys:
    """Test key extraction from tokens."""

    def test_get_keys_ignores_comments(self):
        content = "# Comment\nKEY=value\n# Another comment\n"
        assert get_keys(parse(content)) == {"KEY": "value"}

    def test_empty_value_is_kept(self):
        """An empty assignment is present with an empty string."""
        assert get_keys(parse("EMPTY=\n")) == {"EMPTY": ""}

    def test_env_file_values(self):
        env_file = parse_env_file("A=1\nB=2\n")
        assert env_file.values == {"A": "1", "B": "2"}
        assert "A" in env_file
        assert env_file.original_content == "A=1\nB=2\n"


class TestUpdateValue:
    """Test value updating in token stream."""

    def test_update_simple_value(self):
        updated = update_value(parse("KEY=oldvalue\n"), "KEY", "newvalue")
        assert write(updated) == "KEY=newvalue\n"

    def test_update_preserves_export(self):
        updated = update_value(parse("export KEY=old\n"), "KEY", "new")
        assert write(updated) == "export KEY=new\n"

    def test_update_preserves_crlf(self):
        updated = update_value(parse("KEY=old\r\n"), "KEY", "new")
        assert write(updated) == "KEY=new\r\n"

    def test_update_nonexistent_key(self):
        content = "KEY1=value1\n"
        assert write(update_value(parse(content), "NONEXISTENT", "value")) == content


class TestRenderUpdates:
    """Test applying resolved values to an env file."""

    def test_fills_existing_empty_assignment_in_place(self):
        env_file = parse_env_file("# keep me\nA=\nB=2\n")
        result = render_updates(env_file, {"A": "1"})
        assert result == "# keep me\nA=1\nB=2\n"

    def test_appends_new_variables_with_description(self):
        env_file = parse_env_file("A=1\n")
        schema = [VariableDefinition(name="B", description="Second value")]
        result = render_updates(env_file, {"B": "2", "C": "3"}, schema)
        assert result == "A=1\n\n# Second value\nB=2\n\nC=3\n"

    def test_new_file(self):
        result = render_updates(parse_env_file(""), {"A": "1"})
        assert result == "A=1\n"

    def test_no_updates_keeps_content(self):
        content = "A=1\n\n# tail\n"
        assert render_updates(parse_env_file(content), {}) == content


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
