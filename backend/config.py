"""
Centralized environment configuration for the SQL transpiler

Values come from the process environment (a local .env file is loaded first).
Every setting has a default so the transpiler works without any configuration.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_optional(value: Optional[str], default: str) -> str:
    return value if value else default


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# Dialect used to read SQL and quote identifiers when none is given
DEFAULT_DIALECT = _get_optional(os.getenv('SQL_TRANSPILER_DIALECT'), 'databricks')

# Input guards (applied before the SQL parser runs)
MAX_QUERY_LENGTH = _get_int('SQL_TRANSPILER_MAX_QUERY_LENGTH', 50000)
MAX_TABLES = _get_int('SQL_TRANSPILER_MAX_TABLES', 50)
MAX_JOINS = _get_int('SQL_TRANSPILER_MAX_JOINS', 30)

# Parse result cache capacity (0 disables caching)
CACHE_SIZE = _get_int('SQL_TRANSPILER_CACHE_SIZE', 100)

# Generator defaults
FORMAT_OUTPUT = os.environ.get('SQL_TRANSPILER_FORMAT_OUTPUT', 'True').lower() == 'true'

# Level for the sql_transpiler package logger
LOG_LEVEL = _get_optional(os.getenv('SQL_TRANSPILER_LOG_LEVEL'), 'WARNING').upper()
