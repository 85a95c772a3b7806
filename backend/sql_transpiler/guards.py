"""Input guards applied before SQL reaches the parser."""

import re

from .errors import InputValidationError

_LINE_COMMENT = re.compile(r'--[^\n]*')
_BLOCK_COMMENT = re.compile(r'/\*.*?\*/', re.DOTALL)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_TABLE_KEYWORD = re.compile(r'\b(?:from|join)\b', re.IGNORECASE)
_JOIN_KEYWORD = re.compile(r'\bjoin\b', re.IGNORECASE)


def strip_comments_and_strings(sql: str) -> str:
    """Remove comments and single-quoted literals so keyword counts only see SQL."""
    sql = _BLOCK_COMMENT.sub(' ', sql)
    sql = _LINE_COMMENT.sub(' ', sql)
    return _STRING_LITERAL.sub("''", sql)


def count_table_references(sql: str) -> int:
    return len(_TABLE_KEYWORD.findall(strip_comments_and_strings(sql)))


def count_joins(sql: str) -> int:
    return len(_JOIN_KEYWORD.findall(strip_comments_and_strings(sql)))


def check_input(sql: str, max_query_length: int, max_tables: int, max_joins: int) -> None:
    """
    Reject queries that are empty or exceed the configured size limits.

    Raises:
        InputValidationError: If any guard fails
    """
    if sql is None or not sql.strip():
        raise InputValidationError("SQL query is empty")

    if len(sql) > max_query_length:
        raise InputValidationError(
            f"Query length {len(sql)} exceeds maximum of {max_query_length} characters",
            {"length": len(sql), "limit": max_query_length},
        )

    tables = count_table_references(sql)
    if tables > max_tables:
        raise InputValidationError(
            f"Query references {tables} tables, maximum is {max_tables}",
            {"tables": tables, "limit": max_tables},
        )

    joins = count_joins(sql)
    if joins > max_joins:
        raise InputValidationError(
            f"Query has {joins} joins, maximum is {max_joins}",
            {"joins": joins, "limit": max_joins},
        )
