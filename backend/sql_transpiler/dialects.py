"""SQL dialect registry: identifier quoting and the sqlglot dialect used to read SQL."""

from pydantic import BaseModel, ConfigDict
from typing import Dict, List

from .errors import InputValidationError


class Dialect(BaseModel):
    """Quoting rules for one SQL dialect."""
    model_config = ConfigDict(frozen=True)

    name: str
    read: str  # sqlglot dialect name
    quote_start: str
    quote_end: str

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier per dialect rules. '*' is never quoted."""
        if name == '*':
            return name
        # Escape the closing quote character by doubling it
        escaped = name.replace(self.quote_end, self.quote_end * 2)
        return f"{self.quote_start}{escaped}{self.quote_end}"


_DIALECTS: Dict[str, Dialect] = {}


def register_dialect(dialect: Dialect, *aliases: str) -> Dialect:
    """Register a dialect under its name and any aliases."""
    _DIALECTS[dialect.name] = dialect
    for alias in aliases:
        _DIALECTS[alias] = dialect
    return dialect


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name (case-insensitive)."""
    key = (name or '').lower()
    if key not in _DIALECTS:
        raise InputValidationError(
            f"Unsupported dialect '{name}'. Available: {', '.join(available_dialects())}"
        )
    return _DIALECTS[key]


def available_dialects() -> List[str]:
    return sorted(_DIALECTS.keys())


# MySQL family: backticks
register_dialect(Dialect(name='mysql', read='mysql', quote_start='`', quote_end='`'), 'mariadb')
register_dialect(Dialect(name='databricks', read='databricks', quote_start='`', quote_end='`'))
register_dialect(Dialect(name='spark', read='spark', quote_start='`', quote_end='`'))
register_dialect(Dialect(name='hive', read='hive', quote_start='`', quote_end='`'))
register_dialect(Dialect(name='bigquery', read='bigquery', quote_start='`', quote_end='`'))

# Postgres family: double quotes
register_dialect(Dialect(name='postgresql', read='postgres', quote_start='"', quote_end='"'), 'postgres')
register_dialect(Dialect(name='sqlite', read='sqlite', quote_start='"', quote_end='"'))
register_dialect(Dialect(name='snowflake', read='snowflake', quote_start='"', quote_end='"'))
register_dialect(Dialect(name='duckdb', read='duckdb', quote_start='"', quote_end='"'))
register_dialect(Dialect(name='redshift', read='redshift', quote_start='"', quote_end='"'))
register_dialect(Dialect(name='trino', read='trino', quote_start='"', quote_end='"'))
register_dialect(Dialect(name='oracle', read='oracle', quote_start='"', quote_end='"'))

# MSSQL: square brackets
register_dialect(Dialect(name='mssql', read='tsql', quote_start='[', quote_end=']'), 'tsql', 'sqlserver')
