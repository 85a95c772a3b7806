"""
SQL Generator - Converts a QueryModel back to SQL.

Clauses are assembled in a fixed order (WITH, SELECT, FROM, JOIN, WHERE,
GROUP BY, HAVING, ORDER BY, LIMIT, OFFSET) and empty clauses are omitted.
Only top-level elements are rendered; CTE bodies and virtual tables are
emitted from their stored SQL text.
"""

import logging
import re
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Tuple, Union

from .dialects import Dialect, get_dialect
from .errors import GenerationError
from .model_types import (
    DEFAULT_NAMESPACE,
    AggregationBlock,
    FilterCondition,
    JoinRelation,
    QueryModel,
    SelectColumn,
    TableNode,
)
from .validator import BARE_COLUMN_ENTRY, UNQUALIFIED_TABLE, WILDCARD_TABLE, check_generatable

logger = logging.getLogger(__name__)

JOIN_PRIORITY = {'INNER': 0, 'LEFT': 1, 'RIGHT': 2, 'FULL': 3}
JOIN_KEYWORDS = {
    'INNER': 'INNER JOIN',
    'LEFT': 'LEFT JOIN',
    'RIGHT': 'RIGHT JOIN',
    'FULL': 'FULL OUTER JOIN',
}
FLIPPED_JOIN_TYPES = {'INNER': 'INNER', 'LEFT': 'RIGHT', 'RIGHT': 'LEFT', 'FULL': 'FULL'}
OPERATOR_SQL = {
    'equals': '=',
    'not_equals': '!=',
    'greater_than': '>',
    'less_than': '<',
    'greater_than_or_equal': '>=',
    'less_than_or_equal': '<=',
    'like': 'LIKE',
}

MAX_JOINS_BEFORE_WARNING = 5
MAX_FILTERS_BEFORE_WARNING = 10

_QUALIFIED_ENTRY = re.compile(r'^([^.\s()]+)\.([^.\s()]+)$')

# Short keywords a derived alias must not collide with
RESERVED_ALIASES = frozenset({
    'add', 'all', 'and', 'any', 'are', 'as', 'asc', 'at', 'by', 'div', 'do',
    'end', 'for', 'get', 'go', 'if', 'in', 'int', 'is', 'key', 'mod', 'new',
    'no', 'not', 'of', 'old', 'on', 'or', 'out', 'ref', 'row', 'set', 'sql',
    'to', 'top', 'use', 'xor',
})


class GenerationOptions(BaseModel):
    """Options controlling SQL generation."""
    dialect: str = 'databricks'
    format_output: bool = True
    use_table_aliases: bool = True
    alias_strategy: Literal['derived', 'table_id'] = 'derived'
    reorder_joins: bool = False
    quote_identifiers: bool = True
    indent_size: int = Field(2, ge=0)


class GeneratedSQL(BaseModel):
    sql: str
    warnings: List[str] = []
    complexity: Literal['simple', 'medium', 'complex'] = 'simple'
    metadata: Dict[str, Union[int, float, str]] = {}


def derive_alias(table_name: str) -> str:
    """
    First letter of each word of the table name (split on '_' and whitespace), at most 3.
    An alias that is a SQL keyword gets a trailing underscore.
    """
    words = [word for word in re.split(r'[_\s]+', table_name) if word]
    alias = ''.join(word[0] for word in words)[:3].lower()
    if not alias or not alias[0].isalpha():
        return 't'
    if alias in RESERVED_ALIASES:
        return f"{alias}_"
    return alias


def format_value(value) -> str:
    """Format a literal value for SQL."""
    if value is None:
        return "NULL"
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def complexity_score(tables: int, joins: int, filters: int, aggregations: int) -> float:
    return tables + 2 * joins + filters + 1.5 * aggregations


def classify_complexity(score: float) -> str:
    if score <= 3:
        return 'simple'
    if score <= 8:
        return 'medium'
    return 'complex'


def model_to_sql(model: QueryModel, options: Optional[GenerationOptions] = None) -> GeneratedSQL:
    """
    Convert a QueryModel to SQL.

    Raises:
        GenerationError: If the model has no tables
        ReferentialIntegrityError: If a join references a missing table or ids are duplicated
    """
    options = options or GenerationOptions()
    warnings = check_generatable(model)
    renderer = _Renderer(model, options, get_dialect(options.dialect))
    if not renderer.model.tables:
        raise GenerationError("Query model has no top-level tables")
    sql = renderer.render()
    warnings.extend(renderer.warnings)

    top = renderer.model
    score = complexity_score(len(top.tables), len(top.joins), len(top.filters), len(top.aggregations))
    complexity = classify_complexity(score)
    logger.debug(f"[SQLGenerator] Generated {len(sql)} characters ({complexity})")

    return GeneratedSQL(
        sql=sql,
        warnings=warnings,
        complexity=complexity,
        metadata={
            'tables': len(top.tables),
            'joins': len(top.joins),
            'filters': len(top.filters),
            'aggregations': len(top.aggregations),
            'complexity_score': score,
            'dialect': options.dialect,
        },
    )


class _Renderer:
    """Renders one model. Holds the alias assignment for its tables."""

    def __init__(self, model: QueryModel, options: GenerationOptions, dialect: Dialect):
        self.source = model
        self.model = model.top_level()
        self.options = options
        self.dialect = dialect
        self.warnings: List[str] = []
        self.indent = ' ' * options.indent_size
        self.aliases: Dict[str, Optional[str]] = {}
        self.qualifiers: Dict[str, str] = {}
        self._extra_predicates: List[str] = []
        self._assign_aliases()

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    # -- identifiers -------------------------------------------------------

    def quote(self, identifier: str) -> str:
        if not self.options.quote_identifiers:
            return identifier
        return self.dialect.quote_identifier(identifier)

    def _assign_aliases(self) -> None:
        used = set()
        names = [t.name.lower() for t in self.model.tables]
        for table in self.model.tables:
            if self.options.use_table_aliases:
                if self.options.alias_strategy == 'table_id':
                    alias = table.id
                else:
                    alias = derive_alias(table.name)
            elif table.is_virtual or names.count(table.name.lower()) > 1:
                alias = table.id
            else:
                alias = None

            if alias is not None and alias.lower() in used:
                suffix = 2
                while f"{alias}{suffix}".lower() in used:
                    suffix += 1
                renamed = f"{alias}{suffix}"
                self.warn(f"Alias '{alias}' is used by more than one table; '{table.id}' uses '{renamed}'")
                alias = renamed
            if alias is not None:
                used.add(alias.lower())

            self.aliases[table.id] = alias
            self.qualifiers[table.id] = alias or table.name

    def column_ref(self, table: str, column: str) -> str:
        if table == WILDCARD_TABLE or (table == UNQUALIFIED_TABLE and column == '*'):
            return '*'
        column_sql = '*' if column == '*' else self.quote(column)
        if table == UNQUALIFIED_TABLE:
            return column_sql
        if table in self.qualifiers:
            return f"{self.quote(self.qualifiers[table])}.{column_sql}"
        # Qualifier that is not a table of this query, kept as written
        qualifier = '.'.join(self.quote(part) for part in table.split('.'))
        return f"{qualifier}.{column_sql}"

    def clause_ref(self, entry: str) -> str:
        """
        GROUP BY / ORDER BY entry: '<table id>.<column>' is re-qualified, a bare
        column name is quoted, anything else is verbatim.
        """
        match = _QUALIFIED_ENTRY.match(entry)
        if match and match.group(1) in self.qualifiers:
            return self.column_ref(match.group(1), match.group(2))
        if BARE_COLUMN_ENTRY.match(entry):
            return self.column_ref(UNQUALIFIED_TABLE, entry)
        return entry

    def table_ref(self, table: TableNode) -> str:
        if table.kind == 'subquery':
            body = f"({table.definition})"
        elif table.kind == 'function':
            body = table.definition or self.quote(table.name)
        elif table.kind == 'cte':
            body = self.quote(table.name)
        else:
            parts = [table.name]
            if table.schema_ != DEFAULT_NAMESPACE or table.catalog != DEFAULT_NAMESPACE:
                parts.insert(0, table.schema_)
            if table.catalog != DEFAULT_NAMESPACE:
                parts.insert(0, table.catalog)
            body = '.'.join(self.quote(part) for part in parts)

        alias = self.aliases.get(table.id)
        if alias and (table.is_virtual or alias != table.name):
            # No AS keyword for table aliases
            return f"{body} {self.quote(alias)}"
        return body

    # -- clauses -------------------------------------------------------------

    def render(self) -> str:
        parts = []

        with_clause = self.render_with()
        if with_clause:
            parts.append(with_clause)

        parts.append(self.render_select())
        parts.extend(self.render_from())

        where = self._conditions(self.model.filters) + self._extra_predicates
        if where:
            parts.append("WHERE " + self._join_conditions(where))

        if self.model.group_by_columns:
            parts.append("GROUP BY " + ", ".join(self.clause_ref(c) for c in self.model.group_by_columns))

        if self.model.having:
            parts.append("HAVING " + self._join_conditions(self._conditions(self.model.having)))

        if self.model.order_by_columns:
            order_parts = [f"{self.clause_ref(o.column)} {o.direction}" for o in self.model.order_by_columns]
            parts.append("ORDER BY " + ", ".join(order_parts))

        parts.extend(self.render_paging())

        if len(self.model.joins) > MAX_JOINS_BEFORE_WARNING:
            self.warn(f"Query has {len(self.model.joins)} joins; consider simplifying it")
        if len(self.model.filters) > MAX_FILTERS_BEFORE_WARNING:
            self.warn(f"Query has {len(self.model.filters)} filters; consider simplifying it")

        separator = "\n" if self.options.format_output else " "
        return separator.join(parts)

    def render_with(self) -> str:
        if not self.source.ctes:
            return ""
        ctes = [f"{self.quote(cte.name)} AS ({cte.definition})" for cte in self.source.ctes]
        separator = ",\n" if self.options.format_output else ", "
        return "WITH " + separator.join(ctes)

    def render_select(self) -> str:
        items: List[Tuple[int, int, str]] = []
        for position, column in enumerate(self.model.selected_columns):
            items.append((self._ordinal(column.ordinal), position, self._select_column(column)))
        offset = len(self.model.selected_columns)
        for position, aggregation in enumerate(self.model.aggregations):
            items.append((self._ordinal(aggregation.ordinal), offset + position, self._aggregation(aggregation)))
        items.sort(key=lambda item: (item[0], item[1]))
        columns = [text for _, _, text in items]

        if not columns:
            self.warn("No columns selected; SELECT * is used")
            columns = ['*']
        if '*' in columns or any(c.endswith('.*') for c in columns):
            self.warn("SELECT * returns every column; consider selecting specific columns")

        keyword = "SELECT DISTINCT" if self.model.distinct else "SELECT"
        top = self._top_clause()
        if top:
            keyword = f"{keyword} {top}"

        if self.options.format_output and len(columns) > 1:
            return f"{keyword}\n{self.indent}" + f",\n{self.indent}".join(columns)
        return f"{keyword} " + ", ".join(columns)

    @staticmethod
    def _ordinal(ordinal: Optional[int]) -> int:
        return ordinal if ordinal is not None else 1 << 30

    def _select_column(self, column: SelectColumn) -> str:
        if column.expression is not None:
            result = column.expression
        else:
            result = self.column_ref(column.table, column.column)
        if column.alias:
            result += f" AS {self.quote(column.alias)}"
        return result

    def _aggregate_call(self, function: str, table: str, column: str) -> str:
        if column == '*':
            reference = '*'
        else:
            reference = self.column_ref(table, column)
        if function == 'COUNT_DISTINCT':
            return f"COUNT(DISTINCT {reference})"
        return f"{function}({reference})"

    def _aggregation(self, aggregation: AggregationBlock) -> str:
        result = self._aggregate_call(aggregation.function, aggregation.table, aggregation.column)
        if aggregation.alias:
            result += f" AS {self.quote(aggregation.alias)}"
        return result

    def render_from(self) -> List[str]:
        """FROM root plus JOIN lines. Joins are emitted once one endpoint is available."""
        tables = self.model.tables
        top_ids = {t.id for t in tables}
        joins = []
        for join in self.model.joins:
            if join.source_table in top_ids and join.target_table in top_ids:
                joins.append(join)
            else:
                self.warn(f"Join '{join.id}' references a table inside a CTE or subquery and was not rendered")
        if self.options.reorder_joins:
            joins.sort(key=lambda j: JOIN_PRIORITY[j.join_type])

        lines = ["FROM " + self.table_ref(tables[0])]
        emitted = {tables[0].id}
        pending = joins

        while True:
            pending = self._emit_joins(pending, emitted, lines)
            remaining = [t for t in tables if t.id not in emitted]
            if not remaining:
                break
            orphan = remaining[0]
            self.warn(f"Table '{orphan.id}' has no join relation; rendered as CROSS JOIN")
            lines.append("CROSS JOIN " + self.table_ref(orphan))
            emitted.add(orphan.id)

        return lines

    def _emit_joins(self, pending: List[JoinRelation], emitted: set, lines: List[str]) -> List[JoinRelation]:
        progress = True
        while pending and progress:
            progress = False
            for join in pending:
                source_in = join.source_table in emitted
                target_in = join.target_table in emitted
                if not source_in and not target_in:
                    continue

                condition = (
                    f"{self.column_ref(join.source_table, join.source_column)} = "
                    f"{self.column_ref(join.target_table, join.target_column)}"
                )
                if source_in and target_in:
                    self.warn(f"Join '{join.id}' connects tables that are already joined; rendered as a WHERE predicate")
                    self._extra_predicates.append(condition)
                elif source_in:
                    table = self.model.get_table(join.target_table)
                    lines.append(f"{JOIN_KEYWORDS[join.join_type]} {self.table_ref(table)} ON {condition}")
                    emitted.add(table.id)
                else:
                    table = self.model.get_table(join.source_table)
                    join_type = FLIPPED_JOIN_TYPES[join.join_type]
                    lines.append(f"{JOIN_KEYWORDS[join_type]} {self.table_ref(table)} ON {condition}")
                    emitted.add(table.id)

                pending = [j for j in pending if j is not join]
                progress = True
                break
        return pending

    def _conditions(self, conditions: List[FilterCondition]) -> List[str]:
        return [self._condition(c) for c in conditions]

    def _condition(self, condition: FilterCondition) -> str:
        if condition.aggregate:
            subject = self._aggregate_call(condition.aggregate, condition.table, condition.column)
        else:
            subject = self.column_ref(condition.table, condition.column)

        if condition.operator == 'is_null':
            return f"{subject} IS NULL"
        if condition.operator == 'is_not_null':
            return f"{subject} IS NOT NULL"
        if condition.operator == 'in':
            values = ", ".join(format_value(v) for v in condition.value)
            return f"{subject} IN ({values})"
        return f"{subject} {OPERATOR_SQL[condition.operator]} {format_value(condition.value)}"

    def _join_conditions(self, conditions: List[str]) -> str:
        if self.options.format_output:
            return f"\n{self.indent}AND ".join(conditions)
        return " AND ".join(conditions)

    # -- paging --------------------------------------------------------------

    def _is_tsql(self) -> bool:
        return self.dialect.read == 'tsql'

    def _top_clause(self) -> str:
        if self._is_tsql() and self.model.limit is not None and self.model.offset is None:
            return f"TOP {self.model.limit}"
        return ""

    def render_paging(self) -> List[str]:
        limit, offset = self.model.limit, self.model.offset
        if self._is_tsql():
            if offset is None:
                return []
            lines = [f"OFFSET {offset} ROWS"]
            if limit is not None:
                lines.append(f"FETCH NEXT {limit} ROWS ONLY")
            if not self.model.order_by_columns:
                self.warn("OFFSET without ORDER BY is not valid in this dialect")
            return lines

        lines = []
        if limit is not None:
            lines.append(f"LIMIT {limit}")
        if offset is not None:
            lines.append(f"OFFSET {offset}")
        return lines
