"""SQL text helpers shared by the engine handles and the query runner."""

from __future__ import annotations

import re
import sqlite3

_LEADING_NOISE = re.compile(r"\A(?:\s+|--[^\n]*(?:\n|\Z)|/\*.*?\*/)+", re.DOTALL)
_KEYWORD = re.compile(r"[A-Za-z_]+")


def strip_leading_comments(sql: str) -> str:
    """Remove leading whitespace, line comments and block comments."""
    return _LEADING_NOISE.sub("", sql)


def leading_keyword(sql: str) -> str:
    """Return the first keyword of a statement, upper-cased, or an empty string."""
    match = _KEYWORD.match(strip_leading_comments(sql))
    return match.group(0).upper() if match else ""


def _has_content(statement: str) -> bool:
    return bool(strip_leading_comments(statement).strip(" \t\r\n;"))


def split_statements(sql: str) -> list[str]:
    """Split SQL text into individual statements.

    Semicolons inside string literals, quoted identifiers and comments do not
    end a statement. Trailing text without a semicolon forms the last statement.
    Statements made only of comments or whitespace are dropped.
    """
    statements: list[str] = []
    pieces = sql.split(";")
    buffer = ""
    for index, piece in enumerate(pieces):
        last = index == len(pieces) - 1
        buffer += piece if last else piece + ";"
        if last or sqlite3.complete_statement(buffer):
            if _has_content(buffer):
                statements.append(buffer.strip())
            buffer = ""
    return statements
