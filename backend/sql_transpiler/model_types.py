"""Pydantic models for the query model shared by the parser and the SQL generator.

Field names are snake_case in Python and serialize to the camelCase names the
visual builder consumes (``model.model_dump(by_alias=True)``).
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Literal, Optional, Union

JoinType = Literal['INNER', 'LEFT', 'RIGHT', 'FULL']
AggregateFunction = Literal['COUNT', 'SUM', 'AVG', 'MIN', 'MAX', 'COUNT_DISTINCT']
FilterOperator = Literal[
    'equals',
    'not_equals',
    'greater_than',
    'less_than',
    'greater_than_or_equal',
    'less_than_or_equal',
    'like',
    'in',
    'is_null',
    'is_not_null',
]
TableKind = Literal['table', 'cte', 'subquery', 'function']

# bool must come before int to prevent coercion
Scalar = Union[bool, int, float, str, None]

NULL_OPERATORS = ('is_null', 'is_not_null')
DEFAULT_NAMESPACE = 'default'


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Position(_Frozen):
    """Grid coordinate of a table on the canvas (UI only)."""
    x: float = 0
    y: float = 0


class ColumnInfo(_Frozen):
    """Column metadata supplied by the catalog browser. Never inspected here."""
    name: str
    data_type: str = Field('unknown', alias='dataType')
    nullable: bool = True
    comment: Optional[str] = None


class TableNode(_Frozen):
    """A table (or virtual table) referenced by the query."""
    id: str
    name: str
    schema_: str = Field(DEFAULT_NAMESPACE, alias='schema')
    catalog: str = DEFAULT_NAMESPACE
    columns: List[ColumnInfo] = []
    position: Position = Position()
    kind: TableKind = 'table'
    definition: Optional[str] = None  # SQL body of a subquery/function table
    origin: Optional[str] = None  # set when inlined from a CTE, subquery or set operation

    @property
    def is_virtual(self) -> bool:
        return self.kind in ('subquery', 'function')

    @property
    def qualified_name(self) -> str:
        parts = [self.name]
        if self.schema_ != DEFAULT_NAMESPACE or self.catalog != DEFAULT_NAMESPACE:
            parts.insert(0, self.schema_)
        if self.catalog != DEFAULT_NAMESPACE:
            parts.insert(0, self.catalog)
        return '.'.join(parts)


class JoinRelation(_Frozen):
    """Single column-to-column equality join between two tables."""
    id: str
    source_table: str = Field(..., alias='sourceTable')
    target_table: str = Field(..., alias='targetTable')
    source_column: str = Field(..., alias='sourceColumn')
    target_column: str = Field(..., alias='targetColumn')
    join_type: JoinType = Field('INNER', alias='joinType')
    origin: Optional[str] = None


class SelectColumn(_Frozen):
    """A plain column (or opaque expression) in the SELECT list."""
    id: str
    table: str  # table id, 'unknown' when unqualified, '*' for a bare wildcard
    column: str
    alias: Optional[str] = None
    expression: Optional[str] = None  # SQL text for anything that is not a plain column
    ordinal: Optional[int] = None
    origin: Optional[str] = None


class FilterCondition(_Frozen):
    """A single predicate of a WHERE (or HAVING) conjunction."""
    id: str
    table: str
    column: str
    operator: FilterOperator
    value: Union[Scalar, List[Scalar]] = None
    aggregate: Optional[AggregateFunction] = None  # HAVING conditions on an aggregate
    origin: Optional[str] = None

    @model_validator(mode='after')
    def check_value(self):
        """Validate operator/value constraints."""
        if self.operator in NULL_OPERATORS:
            return self
        if self.value is None:
            raise ValueError(f"value is required for operator '{self.operator}'")
        if self.operator == 'in' and not isinstance(self.value, list):
            raise ValueError("operator 'in' requires a list value")
        if self.operator != 'in' and isinstance(self.value, list):
            raise ValueError(f"operator '{self.operator}' requires a scalar value")
        return self


class AggregationBlock(_Frozen):
    """An aggregate call in the SELECT list. COUNT(*) uses column '*'."""
    id: str
    table: str
    column: str
    function: AggregateFunction
    alias: Optional[str] = None
    ordinal: Optional[int] = None
    origin: Optional[str] = None


class OrderByColumn(_Frozen):
    column: str
    direction: Literal['ASC', 'DESC'] = 'ASC'


class CommonTableExpression(_Frozen):
    name: str
    definition: str


class QueryModel(_Frozen):
    """Canonical, dialect-independent representation of a query."""
    tables: List[TableNode] = []
    joins: List[JoinRelation] = []
    filters: List[FilterCondition] = []
    aggregations: List[AggregationBlock] = []
    selected_columns: List[SelectColumn] = Field([], alias='selectedColumns')
    group_by_columns: List[str] = Field([], alias='groupByColumns')
    order_by_columns: List[OrderByColumn] = Field([], alias='orderByColumns')
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct: bool = False
    having: List[FilterCondition] = []
    ctes: List[CommonTableExpression] = []
    unparsed_sql: Optional[str] = Field(None, alias='unparsedSql')

    @property
    def is_unparsed(self) -> bool:
        return self.unparsed_sql is not None

    def table_ids(self) -> List[str]:
        return [table.id for table in self.tables]

    def get_table(self, table_id: str) -> Optional[TableNode]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def top_level(self) -> 'QueryModel':
        """Return a copy holding only the elements that belong to the outer query."""
        return self.model_copy(update={
            'tables': [t for t in self.tables if t.origin is None],
            'joins': [j for j in self.joins if j.origin is None],
            'filters': [f for f in self.filters if f.origin is None],
            'aggregations': [a for a in self.aggregations if a.origin is None],
            'selected_columns': [c for c in self.selected_columns if c.origin is None],
            'having': [h for h in self.having if h.origin is None],
        })

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
