"""AST extractor: sqlglot expression tree -> QueryModel."""

import logging
from pydantic import BaseModel
from sqlglot import exp
from typing import List, Optional, Tuple, Type, TypeVar

from .context import ParseContext, Scope
from .errors import SQLSyntaxError, UnsupportedConstructError
from .model_types import (
    DEFAULT_NAMESPACE,
    AggregationBlock,
    CommonTableExpression,
    FilterCondition,
    JoinRelation,
    OrderByColumn,
    QueryModel,
    SelectColumn,
    TableNode,
)
from .validator import BARE_COLUMN_ENTRY, UNQUALIFIED_TABLE, WILDCARD_TABLE, check_referential_integrity

logger = logging.getLogger(__name__)

QUERY_TYPES = (exp.Select, exp.Union, exp.Intersect, exp.Except)
SET_OPERATION_TYPES = (exp.Union, exp.Intersect, exp.Except)
AGGREGATE_TYPES = (exp.Count, exp.Sum, exp.Avg, exp.Min, exp.Max)

COMPARISON_OPERATORS = {
    exp.EQ: 'equals',
    exp.NEQ: 'not_equals',
    exp.GT: 'greater_than',
    exp.LT: 'less_than',
    exp.GTE: 'greater_than_or_equal',
    exp.LTE: 'less_than_or_equal',
    exp.Like: 'like',
}

# Comparisons that NOT can be folded into
NEGATABLE_TYPES = (exp.EQ, exp.NEQ, exp.GT, exp.LT, exp.GTE, exp.LTE)

# Operator to use when the literal is written on the left-hand side
FLIPPED_OPERATORS = {
    'equals': 'equals',
    'not_equals': 'not_equals',
    'greater_than': 'less_than',
    'less_than': 'greater_than',
    'greater_than_or_equal': 'less_than_or_equal',
    'less_than_or_equal': 'greater_than_or_equal',
}

NEGATED_OPERATORS = {
    'equals': 'not_equals',
    'not_equals': 'equals',
    'greater_than': 'less_than_or_equal',
    'less_than': 'greater_than_or_equal',
    'greater_than_or_equal': 'less_than',
    'less_than_or_equal': 'greater_than',
}

E = TypeVar('E', bound=exp.Expression)


class ExtractionResult(BaseModel):
    model: QueryModel
    warnings: List[str] = []


class _ModelParts:
    """Accumulates model elements while the tree is walked."""

    def __init__(self):
        self.tables: List[TableNode] = []
        self.joins: List[JoinRelation] = []
        self.filters: List[FilterCondition] = []
        self.having: List[FilterCondition] = []
        self.aggregations: List[AggregationBlock] = []
        self.selected_columns: List[SelectColumn] = []
        self.group_by: List[str] = []
        self.order_by: List[OrderByColumn] = []
        self.ctes: List[CommonTableExpression] = []
        self.limit: Optional[int] = None
        self.offset: Optional[int] = None
        self.distinct = False
        self.union_branches = 0

    def build(self) -> QueryModel:
        return QueryModel(
            tables=self.tables,
            joins=self.joins,
            filters=self.filters,
            aggregations=self.aggregations,
            selected_columns=self.selected_columns,
            group_by_columns=self.group_by,
            order_by_columns=self.order_by,
            limit=self.limit,
            offset=self.offset,
            distinct=self.distinct,
            having=self.having,
            ctes=self.ctes,
        )


def extract(ast: exp.Expression, original_sql: str, context: ParseContext) -> ExtractionResult:
    """
    Convert a parsed statement into a QueryModel.

    Args:
        ast: Root expression of the first statement
        original_sql: The SQL text the tree was parsed from
        context: Per-call parse state (ids, positions, warnings)

    Returns:
        ExtractionResult with the model and every simplification warning

    Raises:
        UnsupportedConstructError: For non-query statements and recursive CTEs
        SQLSyntaxError: For an empty SELECT list
        ReferentialIntegrityError: If the extracted model fails the integrity check
    """
    if not isinstance(ast, QUERY_TYPES + (exp.Subquery,)):
        statement = ast.key.upper()
        raise UnsupportedConstructError(
            f"{statement} statements are not supported; only SELECT queries can be shown in the query builder",
            [statement],
            hint="Use the SQL editor for DDL and DML statements",
        )

    logger.debug(f"[ASTExtractor] Extracting {len(original_sql)} characters of SQL")
    parts = _ModelParts()
    _extract_query(ast, parts, context, origin=None)
    model = parts.build()

    for warning in check_referential_integrity(model):
        context.warn(warning)

    logger.debug(
        f"[ASTExtractor] Extracted {len(model.tables)} tables, {len(model.joins)} joins, "
        f"{len(model.filters)} filters"
    )
    return ExtractionResult(model=model, warnings=list(context.warnings))


def _child(node: exp.Expression, kind: Type[E]) -> Optional[E]:
    """First direct child of the given type (clause lookup independent of arg key names)."""
    for child in node.iter_expressions():
        if isinstance(child, kind):
            return child
    return None


def _sql(node: exp.Expression, context: ParseContext) -> str:
    return node.sql(dialect=context.dialect.read)


def _extract_query(node: exp.Expression, parts: _ModelParts, context: ParseContext, origin: Optional[str]) -> None:
    """Dispatch on the query node type."""
    if isinstance(node, exp.Subquery):
        _extract_query(node.this, parts, context, origin)
    elif isinstance(node, SET_OPERATION_TYPES):
        _extract_set_operation(node, parts, context, origin)
    elif isinstance(node, exp.Select):
        _extract_select(node, parts, context, origin)
    else:
        raise UnsupportedConstructError(
            f"Unsupported query expression: {node.key.upper()}", [node.key.upper()]
        )


def _extract_set_operation(node: exp.Expression, parts: _ModelParts, context: ParseContext, origin: Optional[str]) -> None:
    """UNION/INTERSECT/EXCEPT: the first branch is the query, the others are shown for reference."""
    operation = node.key.upper()
    _extract_ctes(node, parts, context, origin)

    _extract_query(node.this, parts, context, origin)

    parts.union_branches += 1
    branch_origin = f"union:{parts.union_branches}"
    _extract_query(node.expression, parts, context, branch_origin)
    context.warn(
        f"{operation} is partially supported: only the first branch is regenerated, "
        f"other branches are shown for reference"
    )

    if _child(node, exp.Order) or _child(node, exp.Limit) or _child(node, exp.Fetch):
        context.warn(f"ORDER BY/LIMIT/FETCH applied to the whole {operation} are not represented")


def _extract_ctes(node: exp.Expression, parts: _ModelParts, context: ParseContext, origin: Optional[str]) -> None:
    with_clause = _child(node, exp.With)
    if with_clause is None:
        return

    if with_clause.args.get('recursive'):
        raise UnsupportedConstructError(
            "Recursive CTEs are not supported",
            ["RECURSIVE_CTE"],
            hint="Use the SQL editor for recursive queries",
        )

    for cte in with_clause.expressions:
        name = cte.alias
        context.cte_names.add(name.lower())
        _extract_query(cte.this, parts, context, origin=f"cte:{name}")
        if origin is None:
            parts.ctes.append(CommonTableExpression(name=name, definition=_sql(cte.this, context)))
        context.warn(f"CTE '{name}' was flattened into the diagram; its body is kept as SQL text")


def _extract_select(select: exp.Select, parts: _ModelParts, context: ParseContext, origin: Optional[str]) -> None:
    scope = Scope(origin)
    top_level = origin is None

    _extract_ctes(select, parts, context, origin)

    # FROM (comma-separated sources may appear as expressions on older sqlglot trees)
    from_clause = _child(select, exp.From)
    if from_clause is not None:
        for source in [from_clause.this] + list(from_clause.expressions):
            if source is not None:
                _register_source(source, scope, parts, context)

    for join in select.args.get('joins') or []:
        table_id = _register_source(join.this, scope, parts, context)
        _extract_join(join, table_id, scope, parts, context)

    if not select.expressions:
        raise SQLSyntaxError("SELECT list is empty")

    for ordinal, item in enumerate(select.expressions):
        _extract_select_item(item, ordinal, scope, parts, context)

    where = _child(select, exp.Where)
    if where is not None:
        _extract_conditions(where.this, scope, parts.filters, parts, context)

    having = _child(select, exp.Having)
    if having is not None:
        _extract_conditions(having.this, scope, parts.having, parts, context, in_having=True)

    if not top_level:
        return

    distinct = select.args.get('distinct')
    if distinct is not None:
        parts.distinct = True
        if distinct.args.get('on'):
            context.warn("DISTINCT ON is not supported; rendered as plain DISTINCT")

    group = _child(select, exp.Group)
    if group is not None:
        parts.group_by = [_clause_column(e, scope, context) for e in group.expressions]
        if group.args.get('rollup') or group.args.get('cube') or group.args.get('grouping_sets'):
            context.warn("ROLLUP/CUBE/GROUPING SETS are not represented")

    order = _child(select, exp.Order)
    if order is not None:
        for ordered in order.expressions:
            target = ordered.this if isinstance(ordered, exp.Ordered) else ordered
            direction = 'DESC' if ordered.args.get('desc') else 'ASC'
            parts.order_by.append(OrderByColumn(column=_clause_column(target, scope, context), direction=direction))

    limit = _child(select, exp.Limit)
    if limit is not None:
        parts.limit = _clause_integer(limit, 'LIMIT', context)

    offset = _child(select, exp.Offset)
    if offset is not None:
        parts.offset = _clause_integer(offset, 'OFFSET', context)

    fetch = _child(select, exp.Fetch)
    if fetch is not None and parts.limit is None:
        parts.limit = _fetch_limit(fetch, context)


def _fetch_limit(fetch: exp.Fetch, context: ParseContext) -> Optional[int]:
    """FETCH FIRST/NEXT n ROWS ONLY as a row limit. A missing count means one row."""
    options = fetch.args.get('limit_options') or fetch
    if options.args.get('percent'):
        context.warn(f"'{_sql(fetch, context)}' limits by percentage and was ignored")
        return None
    if options.args.get('with_ties'):
        context.warn("FETCH ... WITH TIES is read as a plain row limit")
    if fetch.args.get('count') is None:
        return 1
    return _clause_integer(fetch, 'FETCH', context)


def _clause_integer(clause: exp.Expression, label: str, context: ParseContext) -> Optional[int]:
    if isinstance(clause, exp.Fetch):
        value_expr = clause.args.get('count')
    else:
        value_expr = clause.expression if clause.expression is not None else clause.this
    if isinstance(value_expr, exp.Literal) and not value_expr.is_string:
        try:
            return int(value_expr.this)
        except ValueError:
            pass
    context.warn(f"{label} value '{_sql(clause, context)}' is not an integer literal and was ignored")
    return None


def _register_source(source: exp.Expression, scope: Scope, parts: _ModelParts, context: ParseContext) -> str:
    """Create the TableNode for a FROM/JOIN source and return its id."""
    alias = source.alias or None

    # Physical table (or a reference to a CTE)
    if isinstance(source, exp.Table) and isinstance(source.this, exp.Identifier):
        name = source.name
        schema = source.db or DEFAULT_NAMESPACE
        catalog = source.catalog or DEFAULT_NAMESPACE
        kind = 'cte' if not source.db and name.lower() in context.cte_names else 'table'
        table_id = context.claim_table_id(alias or name)
        parts.tables.append(TableNode(
            id=table_id,
            name=name,
            schema=schema,
            catalog=catalog,
            position=context.next_position(),
            kind=kind,
            origin=scope.origin,
        ))
        warning = scope.index.register(table_id, name, schema, catalog, alias)
        if warning:
            context.warn(warning)
        return table_id

    # Derived table
    if isinstance(source, exp.Subquery):
        table_id = context.claim_table_id(alias or 'subquery')
        parts.tables.append(TableNode(
            id=table_id,
            name=table_id,
            position=context.next_position(),
            kind='subquery',
            definition=_sql(source.this, context),
            origin=scope.origin,
        ))
        scope.index.register(table_id, table_id, alias=alias)
        _extract_query(source.this, parts, context, origin=table_id)
        context.warn(f"Subquery '{table_id}' was flattened into the diagram; its body is kept as SQL text")
        return table_id

    # Table-valued function, UNNEST, VALUES, LATERAL, ...
    body = source.copy()
    body.set('alias', None)
    definition = _sql(body, context)
    table_id = context.claim_table_id(alias or 'function')
    parts.tables.append(TableNode(
        id=table_id,
        name=table_id,
        position=context.next_position(),
        kind='function',
        definition=definition,
        origin=scope.origin,
    ))
    scope.index.register(table_id, table_id, alias=alias)
    context.warn(f"Table source '{definition}' is shown as a virtual table '{table_id}'")
    return table_id


def _extract_join(join: exp.Join, table_id: str, scope: Scope, parts: _ModelParts, context: ParseContext) -> None:
    """Build the JoinRelation for a JOIN whose condition is a single column equality."""
    kind = (join.kind or '').upper()
    side = (join.side or '').upper()
    method = (join.method or '').upper()

    if method or kind == 'CROSS':
        label = f"{method} JOIN" if method else "CROSS JOIN"
        context.warn(f"{label} with '{table_id}' has no column equality; table added without a relation")
        return
    if kind in ('SEMI', 'ANTI'):
        context.warn(f"{kind} JOIN with '{table_id}' is not supported; table added without a relation")
        return

    join_type = side if side in ('LEFT', 'RIGHT', 'FULL') else 'INNER'

    using = join.args.get('using')
    condition = join.args.get('on')

    if using:
        if len(using) != 1:
            context.warn(f"JOIN USING with multiple columns on '{table_id}' is not supported; no relation created")
            return
        source_id = scope.index.previous_table(table_id)
        if source_id is None:
            context.warn(f"JOIN USING on '{table_id}' has no preceding table; no relation created")
            return
        column = using[0].name
        parts.joins.append(JoinRelation(
            id=context.next_id('join'),
            source_table=source_id,
            target_table=table_id,
            source_column=column,
            target_column=column,
            join_type=join_type,
            origin=scope.origin,
        ))
        return

    if condition is None:
        context.warn(f"Join with '{table_id}' has no join condition; table added without a relation")
        return

    condition = condition.unnest()
    if not (isinstance(condition, exp.EQ)
            and isinstance(condition.this, exp.Column)
            and isinstance(condition.expression, exp.Column)):
        context.warn(
            f"Join condition '{_sql(condition, context)}' is not a single column equality; "
            f"table '{table_id}' added without a relation"
        )
        return

    left, right = condition.this, condition.expression
    left_table = _resolve_join_side(left, scope, context)
    right_table = _resolve_join_side(right, scope, context)
    if left_table is None or right_table is None:
        context.warn(
            f"Join condition '{_sql(condition, context)}' references a table that could not be resolved; "
            f"no relation created"
        )
        return

    # Orient so the joined table is the target
    if left_table == table_id and right_table != table_id:
        left, right = right, left
        left_table, right_table = right_table, left_table

    parts.joins.append(JoinRelation(
        id=context.next_id('join'),
        source_table=left_table,
        target_table=right_table,
        source_column=left.name,
        target_column=right.name,
        join_type=join_type,
        origin=scope.origin,
    ))


def _resolve_join_side(column: exp.Column, scope: Scope, context: ParseContext) -> Optional[str]:
    table = _resolve_column_table(column, scope, context)
    if table == UNQUALIFIED_TABLE and len(scope.index.table_ids) == 1:
        return scope.index.table_ids[0]
    return table if table in scope.index.table_ids else None


def _qualifier(column: exp.Column) -> str:
    return '.'.join(part for part in (column.catalog, column.db, column.table) if part)


def _resolve_column_table(column: exp.Column, scope: Scope, context: ParseContext) -> str:
    """Table id for a column reference. Unqualified columns map to 'unknown'."""
    qualifier = _qualifier(column)
    if not qualifier:
        return UNQUALIFIED_TABLE
    table_id = scope.index.resolve(qualifier)
    if table_id is not None:
        return table_id
    if scope.index.is_ambiguous(qualifier):
        context.warn(f"Qualifier '{qualifier}' is ambiguous; kept as written")
    return qualifier


def _clause_column(node: exp.Expression, scope: Scope, context: ParseContext) -> str:
    """
    GROUP BY / ORDER BY entry.

    Qualified columns become '<table id>.<column>'. Unqualified columns with a
    plain name are stored bare; other names keep their quoted SQL. Anything
    else is SQL text, parenthesized when it would read as a bare column.
    """
    if isinstance(node, exp.Column) and not node.is_star:
        if _qualifier(node):
            return f"{_resolve_column_table(node, scope, context)}.{node.name}"
        if BARE_COLUMN_ENTRY.match(node.name):
            return node.name
        return _sql(node, context)
    text = _sql(node, context)
    if BARE_COLUMN_ENTRY.match(text):
        return f"({text})"
    return text


def _aggregate_parts(node: exp.Expression, scope: Scope, context: ParseContext) -> Optional[Tuple[str, str, str]]:
    """(function, table, column) for an aggregate over a column or '*', else None."""
    if not isinstance(node, AGGREGATE_TYPES):
        return None

    function = type(node).__name__.upper()
    target = node.this

    # COUNT(DISTINCT col) wraps the column in a Distinct node
    if isinstance(node, exp.Count) and isinstance(target, exp.Distinct):
        if len(target.expressions) != 1:
            return None
        function = 'COUNT_DISTINCT'
        target = target.expressions[0]

    if isinstance(target, exp.Star):
        return (function, WILDCARD_TABLE, '*') if function == 'COUNT' else None
    if isinstance(target, exp.Column) and not target.is_star:
        return function, _resolve_column_table(target, scope, context), target.name
    return None


def _extract_select_item(item: exp.Expression, ordinal: int, scope: Scope, parts: _ModelParts, context: ParseContext) -> None:
    alias = None
    node = item
    if isinstance(item, exp.Alias):
        alias = item.alias
        node = item.this

    if isinstance(node, exp.Star):
        parts.selected_columns.append(SelectColumn(
            id=context.next_id('col'),
            table=WILDCARD_TABLE,
            column='*',
            alias=alias,
            ordinal=ordinal,
            origin=scope.origin,
        ))
        return

    if isinstance(node, exp.Column):
        if node.is_star:
            table = _resolve_column_table(node, scope, context)
            column = '*'
        else:
            table = _resolve_column_table(node, scope, context)
            column = node.name
        parts.selected_columns.append(SelectColumn(
            id=context.next_id('col'),
            table=table,
            column=column,
            alias=alias,
            ordinal=ordinal,
            origin=scope.origin,
        ))
        return

    aggregate = _aggregate_parts(node, scope, context)
    if aggregate is not None:
        function, table, column = aggregate
        parts.aggregations.append(AggregationBlock(
            id=context.next_id('agg'),
            table=table,
            column=column,
            function=function,
            alias=alias,
            ordinal=ordinal,
            origin=scope.origin,
        ))
        return

    expression = _sql(node, context)
    if isinstance(node, exp.Window):
        context.warn(f"Window function '{expression}' is kept as an opaque expression")
    elif not isinstance(node, (exp.Literal, exp.Boolean, exp.Null)):
        context.warn(f"Expression '{expression}' in SELECT is kept as opaque SQL")

    parts.selected_columns.append(SelectColumn(
        id=context.next_id('col'),
        table=UNQUALIFIED_TABLE,
        column=alias or expression,
        alias=alias,
        expression=expression,
        ordinal=ordinal,
        origin=scope.origin,
    ))


def _extract_conditions(
    node: exp.Expression,
    scope: Scope,
    target: List[FilterCondition],
    parts: _ModelParts,
    context: ParseContext,
    in_having: bool = False,
) -> None:
    """Flatten an AND tree into filter conditions."""
    node = node.unnest()
    if isinstance(node, exp.And):
        for child in node.flatten():
            _extract_conditions(child, scope, target, parts, context, in_having)
    elif isinstance(node, exp.Or):
        context.warn(
            "OR conditions were flattened into a list of filters; "
            "the filter list no longer represents the exact boolean expression"
        )
        for child in node.flatten():
            _extract_conditions(child, scope, target, parts, context, in_having)
    else:
        conditions = _extract_leaf(node, scope, parts, context, in_having)
        if conditions is None:
            context.warn(f"Condition '{_sql(node, context)}' could not be represented as a filter and was dropped")
        else:
            target.extend(conditions)


def _literal_value(node: exp.Expression) -> Tuple[bool, object]:
    """(is_literal, python value) for a literal expression."""
    if isinstance(node, exp.Boolean):
        return True, node.this
    if isinstance(node, exp.Null):
        return True, None
    if isinstance(node, exp.Neg) and isinstance(node.this, exp.Literal) and not node.this.is_string:
        ok, value = _literal_value(node.this)
        if isinstance(value, (int, float)):
            return ok, -value
        return False, None
    if isinstance(node, exp.Literal):
        value = node.this
        if node.is_string:
            return True, value
        try:
            return True, int(value)
        except ValueError:
            pass
        try:
            return True, float(value)
        except ValueError:
            return True, value
    return False, None


def _filter_subject(node: exp.Expression, scope: Scope, context: ParseContext, in_having: bool) -> Optional[Tuple[str, str, Optional[str]]]:
    """(table, column, aggregate) for the column side of a condition."""
    if isinstance(node, exp.Column) and not node.is_star:
        return _resolve_column_table(node, scope, context), node.name, None
    if in_having:
        aggregate = _aggregate_parts(node, scope, context)
        if aggregate is not None:
            function, table, column = aggregate
            return table, column, function
    return None


def _extract_leaf(
    node: exp.Expression,
    scope: Scope,
    parts: _ModelParts,
    context: ParseContext,
    in_having: bool,
) -> Optional[List[FilterCondition]]:
    """Conditions for one predicate, [] when it became a join, None when unsupported."""
    negate = False
    if isinstance(node, exp.Not):
        inner = node.this.unnest()
        if isinstance(inner, exp.Is):
            return _null_check(inner, 'is_not_null', scope, context, in_having)
        if not isinstance(inner, NEGATABLE_TYPES):
            return None
        node = inner
        negate = True

    if isinstance(node, exp.Is):
        return _null_check(node, 'is_null', scope, context, in_having)

    if isinstance(node, exp.Between):
        subject = _filter_subject(node.this, scope, context, in_having)
        low_ok, low = _literal_value(node.args.get('low'))
        high_ok, high = _literal_value(node.args.get('high'))
        if subject is None or not low_ok or not high_ok or low is None or high is None:
            return None
        context.warn(f"BETWEEN on '{subject[1]}' was split into two filters")
        return [
            _condition(subject, 'greater_than_or_equal', low, scope, context),
            _condition(subject, 'less_than_or_equal', high, scope, context),
        ]

    if isinstance(node, exp.In):
        subject = _filter_subject(node.this, scope, context, in_having)
        if subject is None or node.args.get('query') or not node.expressions:
            return None
        values = []
        for value_node in node.expressions:
            ok, value = _literal_value(value_node)
            if not ok:
                return None
            values.append(value)
        return [_condition(subject, 'in', values, scope, context)]

    operator = COMPARISON_OPERATORS.get(type(node))
    if operator is None:
        return None

    left, right = node.this, node.expression
    left_subject = _filter_subject(left, scope, context, in_having)
    right_subject = _filter_subject(right, scope, context, in_having)

    # Column = column across two tables is an implicit join
    if left_subject is not None and right_subject is not None:
        if in_having:
            return None
        return _implicit_join(node, operator, negate, scope, parts, context)

    if left_subject is not None:
        subject, value_node = left_subject, right
    elif right_subject is not None and operator in FLIPPED_OPERATORS:
        subject, value_node = right_subject, left
        operator = FLIPPED_OPERATORS[operator]
    else:
        return None

    ok, value = _literal_value(value_node)
    if not ok:
        return None
    if value is None:
        context.warn(f"Comparison of '{subject[1]}' with NULL is never true; use IS NULL")
        return None

    if negate:
        operator = NEGATED_OPERATORS[operator]
    return [_condition(subject, operator, value, scope, context)]


def _condition(subject: Tuple[str, str, Optional[str]], operator: str, value, scope: Scope, context: ParseContext) -> FilterCondition:
    table, column, aggregate = subject
    return FilterCondition(
        id=context.next_id('filter'),
        table=table,
        column=column,
        operator=operator,
        value=value,
        aggregate=aggregate,
        origin=scope.origin,
    )


def _null_check(node: exp.Is, operator: str, scope: Scope, context: ParseContext, in_having: bool) -> Optional[List[FilterCondition]]:
    if not isinstance(node.expression, exp.Null):
        return None
    subject = _filter_subject(node.this, scope, context, in_having)
    if subject is None:
        return None
    return [_condition(subject, operator, None, scope, context)]


def _implicit_join(
    node: exp.Expression,
    operator: str,
    negate: bool,
    scope: Scope,
    parts: _ModelParts,
    context: ParseContext,
) -> Optional[List[FilterCondition]]:
    """Turn ``a.x = b.y`` in WHERE into an INNER JoinRelation."""
    if operator != 'equals' or negate:
        return None
    left, right = node.this, node.expression
    if not isinstance(left, exp.Column) or not isinstance(right, exp.Column):
        return None
    left_table = _resolve_join_side(left, scope, context)
    right_table = _resolve_join_side(right, scope, context)
    if left_table is None or right_table is None or left_table == right_table:
        return None

    parts.joins.append(JoinRelation(
        id=context.next_id('join'),
        source_table=left_table,
        target_table=right_table,
        source_column=left.name,
        target_column=right.name,
        join_type='INNER',
        origin=scope.origin,
    ))
    context.warn(
        f"Implicit join between '{left_table}' and '{right_table}' in WHERE was converted to an INNER JOIN"
    )
    return []
