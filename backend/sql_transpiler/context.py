"""Settings, caller-owned transpiler context, and per-call parse state."""

import logging
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Set

import config
from .cache import ParseCache
from .dialects import Dialect, get_dialect
from .model_types import Position
from .qualified_names import QualifiedNameIndex

logger = logging.getLogger(__name__)

# Canvas grid for newly created tables
GRID_BASE_X = 100
GRID_BASE_Y = 100
GRID_SPACING = 300
GRID_COLUMNS = 3


class TranspilerSettings(BaseModel):
    """Snapshot of transpiler configuration."""
    dialect: str = 'databricks'
    max_query_length: int = Field(50000, gt=0)
    max_tables: int = Field(50, gt=0)
    max_joins: int = Field(30, ge=0)
    cache_size: int = Field(100, ge=0)
    format_output: bool = True

    @classmethod
    def from_env(cls) -> 'TranspilerSettings':
        """Build settings from the environment-driven config module."""
        return cls(
            dialect=config.DEFAULT_DIALECT,
            max_query_length=config.MAX_QUERY_LENGTH,
            max_tables=config.MAX_TABLES,
            max_joins=config.MAX_JOINS,
            cache_size=config.CACHE_SIZE,
            format_output=config.FORMAT_OUTPUT,
        )


class TranspilerContext:
    """Caller-owned state shared across calls: settings and the parse cache."""

    def __init__(self, settings: Optional[TranspilerSettings] = None, cache: Optional[ParseCache] = None):
        self.settings = settings or TranspilerSettings.from_env()
        self.cache = cache if cache is not None else ParseCache(self.settings.cache_size)

    @property
    def dialect(self) -> Dialect:
        return get_dialect(self.settings.dialect)


class Scope:
    """Name resolution state for one SELECT (outer query, CTE body or subquery)."""

    def __init__(self, origin: Optional[str] = None):
        self.origin = origin
        self.index = QualifiedNameIndex()


class ParseContext:
    """Mutable state for a single parse call. Never shared between calls."""

    def __init__(self, sql: str, dialect: Dialect):
        self.sql = sql
        self.dialect = dialect
        self.warnings: List[str] = []
        self.cte_names: Set[str] = set()
        self._used_table_ids: Set[str] = set()
        self._counters: Dict[str, int] = {}
        self._table_count = 0

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            logger.debug(f"[ParseContext] {message}")
            self.warnings.append(message)

    def next_id(self, prefix: str) -> str:
        count = self._counters.get(prefix, 0) + 1
        self._counters[prefix] = count
        return f"{prefix}_{count}"

    def claim_table_id(self, base: str) -> str:
        """Reserve a unique table id, suffixing _2, _3, ... on collision."""
        candidate = base
        suffix = 2
        while candidate.lower() in self._used_table_ids:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._used_table_ids.add(candidate.lower())
        return candidate

    def next_position(self) -> Position:
        index = self._table_count
        self._table_count += 1
        return Position(
            x=GRID_BASE_X + (index % GRID_COLUMNS) * GRID_SPACING,
            y=GRID_BASE_Y + (index // GRID_COLUMNS) * GRID_SPACING,
        )
