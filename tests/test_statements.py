"""Tests for SQL statement helpers."""

from __future__ import annotations

from snapshot_console.engine.statements import (
    leading_keyword,
    split_statements,
    strip_leading_comments,
)


class TestSplitStatements:
    """Tests for split_statements."""

    def test_single_statement_without_semicolon(self):
        assert split_statements("SELECT 1") == ["SELECT 1"]

    def test_multiple_statements(self):
        assert split_statements("SELECT 1; SELECT 2;") == ["SELECT 1;", "SELECT 2;"]

    def test_semicolon_inside_string_literal(self):
        """Semicolons inside quotes do not split."""
        assert split_statements("SELECT 'a;b' AS v") == ["SELECT 'a;b' AS v"]

    def test_semicolon_inside_trailing_comment(self):
        assert split_statements("SELECT 1 -- trailing; comment") == [
            "SELECT 1 -- trailing; comment"
        ]

    def test_empty_and_comment_only_text(self):
        assert split_statements("") == []
        assert split_statements("  ;  ; ") == []
        assert split_statements("-- only a comment") == []

    def test_trailing_comment_after_last_statement_dropped(self):
        assert split_statements("SELECT 1;\n-- done") == ["SELECT 1;"]


class TestLeadingKeyword:
    """Tests for leading keyword detection."""

    def test_plain_keyword(self):
        assert leading_keyword("select * from posts") == "SELECT"

    def test_skips_whitespace_and_comments(self):
        sql = "  /* header */\n-- note\n  Select 1"
        assert leading_keyword(sql) == "SELECT"

    def test_other_statements(self):
        assert leading_keyword("DROP TABLE missing;") == "DROP"
        assert leading_keyword("WITH x AS (SELECT 1) SELECT * FROM x") == "WITH"

    def test_empty(self):
        assert leading_keyword("   ") == ""
        assert leading_keyword("-- nothing") == ""

    def test_strip_leading_comments_keeps_body(self):
        assert strip_leading_comments("/* a */ SELECT 1 /* b */") == "SELECT 1 /* b */"
