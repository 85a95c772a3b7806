"""Parse strategies tried in order by the fallback parser."""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import sqlglot
from sqlglot.errors import SqlglotError

from .context import ParseContext
from .errors import SQLSyntaxError
from .extractor import extract
from .model_types import DEFAULT_NAMESPACE, JoinRelation, QueryModel, SelectColumn, TableNode
from .results import ParseResult

logger = logging.getLogger(__name__)


class ParseStrategy(ABC):
    """A way of turning SQL text into a QueryModel."""
    name = "base"

    @abstractmethod
    def parse(self, sql: str, context: ParseContext) -> ParseResult:
        """Return a successful ParseResult or raise a TranspilerError."""
        pass


def _describe_parse_error(error: SqlglotError) -> str:
    details = getattr(error, 'errors', None)
    if details:
        first = details[0]
        return f"{first.get('description')} (line {first.get('line')}, column {first.get('col')})"
    return str(error)


class ASTStrategy(ParseStrategy):
    """Primary strategy: sqlglot grammar plus the AST extractor."""
    name = "ast"

    def parse(self, sql: str, context: ParseContext) -> ParseResult:
        try:
            statements = [s for s in sqlglot.parse(sql, read=context.dialect.read) if s is not None]
        except SqlglotError as e:
            raise SQLSyntaxError(f"Failed to parse SQL: {_describe_parse_error(e)}")

        if not statements:
            raise SQLSyntaxError("No SQL statement found")
        if len(statements) > 1:
            context.warn(f"Only the first statement was parsed ({len(statements)} statements found)")

        extraction = extract(statements[0], sql, context)
        return ParseResult(
            success=True,
            data=extraction.model,
            warnings=extraction.warnings,
            strategy=self.name,
        )


# Identifier: bare or quoted with ``, "" or []
_IDENT = r'(?:[A-Za-z_][\w$]*|`[^`]+`|"[^"]+"|\[[^\]]+\])'
_QUALIFIED = rf'{_IDENT}(?:\.{_IDENT}){{0,2}}'
_RESERVED = r'(?!(?:AS|INNER|LEFT|RIGHT|FULL|OUTER|CROSS|JOIN|ON|WHERE|GROUP|ORDER|LIMIT|HAVING|UNION)\b)'
_ALIAS = rf'(?:\s+(?:AS\s+)?{_RESERVED}(?P<alias>{_IDENT}))?'

_STATEMENT = re.compile(r'^\s*SELECT\s+(?P<columns>.+?)\s+FROM\s+(?P<rest>.+?)\s*;?\s*$', re.IGNORECASE | re.DOTALL)
_FROM_TABLE = re.compile(rf'(?P<table>{_QUALIFIED}){_ALIAS}', re.IGNORECASE)
_JOIN = re.compile(
    rf'\s+(?:(?P<type>INNER|LEFT|RIGHT|FULL)(?:\s+OUTER)?\s+)?JOIN\s+(?P<table>{_QUALIFIED}){_ALIAS}'
    rf'\s+ON\s+(?P<left>{_IDENT})\.(?P<left_column>{_IDENT})\s*=\s*(?P<right>{_IDENT})\.(?P<right_column>{_IDENT})',
    re.IGNORECASE,
)
_COLUMN = re.compile(
    rf'^(?:(?P<table>{_IDENT})\.)?(?P<column>{_IDENT}|\*)(?:\s+(?:AS\s+)?(?P<alias>{_IDENT}))?$',
    re.IGNORECASE,
)


def _unquote(identifier: str) -> str:
    if identifier[:1] in ('`', '"', '['):
        return identifier[1:-1]
    return identifier


def _split_name(qualified: str) -> Tuple[str, str, str]:
    """(catalog, schema, name) of a dotted table name."""
    parts = [_unquote(p) for p in re.findall(_IDENT, qualified)]
    name = parts[-1]
    schema = parts[-2] if len(parts) >= 2 else DEFAULT_NAMESPACE
    catalog = parts[-3] if len(parts) >= 3 else DEFAULT_NAMESPACE
    return catalog, schema, name


class PatternStrategy(ParseStrategy):
    """
    Secondary strategy: anchored text patterns for plain SELECT ... FROM ... JOIN ... ON queries.

    Recognizes only column lists, (catalog.)(schema.)table references with
    optional aliases, and joins on a single column equality.
    """
    name = "pattern"

    def parse(self, sql: str, context: ParseContext) -> ParseResult:
        statement = _STATEMENT.match(sql)
        if statement is None or re.search(r'\bSELECT\b', statement.group('rest'), re.IGNORECASE):
            raise SQLSyntaxError("Query does not match any supported pattern")

        rest = statement.group('rest')
        head = _FROM_TABLE.match(rest)
        if head is None:
            raise SQLSyntaxError("Query does not match any supported pattern")

        tables: List[TableNode] = []
        lookup = {}
        join_matches = []
        self._table(head.group('table'), head.group('alias'), context, tables, lookup)

        position = head.end()
        while position < len(rest):
            join = _JOIN.match(rest, position)
            if join is None:
                raise SQLSyntaxError("Query does not match any supported pattern")
            table_id = self._table(join.group('table'), join.group('alias'), context, tables, lookup)
            join_matches.append((join, table_id))
            position = join.end()

        joins = []
        for join, table_id in join_matches:
            source = lookup.get(_unquote(join.group('left')).lower())
            target = lookup.get(_unquote(join.group('right')).lower())
            if source is None or target is None:
                raise SQLSyntaxError("Join condition references an unknown table")
            source_column, target_column = join.group('left_column'), join.group('right_column')
            if source == table_id and target != table_id:
                source, target = target, source
                source_column, target_column = target_column, source_column
            joins.append(JoinRelation(
                id=context.next_id('join'),
                source_table=source,
                target_table=target,
                source_column=_unquote(source_column),
                target_column=_unquote(target_column),
                join_type=(join.group('type') or 'INNER').upper(),
            ))

        columns = self._columns(statement.group('columns'), context, lookup)
        context.warn("Parsed with the pattern matcher; only simple SELECT/JOIN queries are recognized")
        model = QueryModel(tables=tables, joins=joins, selected_columns=columns)
        return ParseResult(success=True, data=model, warnings=list(context.warnings), strategy=self.name)

    def _table(self, qualified: str, alias: Optional[str], context: ParseContext, tables: List[TableNode], lookup: dict) -> str:
        catalog, schema, name = _split_name(qualified)
        alias = _unquote(alias) if alias else None
        table_id = context.claim_table_id(alias or name)
        tables.append(TableNode(
            id=table_id,
            name=name,
            schema=schema,
            catalog=catalog,
            position=context.next_position(),
        ))
        lookup[table_id.lower()] = table_id
        if alias:
            lookup[alias.lower()] = table_id
        else:
            lookup.setdefault(name.lower(), table_id)
        return table_id

    def _columns(self, text: str, context: ParseContext, lookup: dict) -> List[SelectColumn]:
        columns = []
        for ordinal, item in enumerate(part.strip() for part in text.split(',')):
            match = _COLUMN.match(item)
            if match is None:
                raise SQLSyntaxError(f"Select item '{item}' does not match any supported pattern")
            column = match.group('column')
            qualifier = match.group('table')
            if qualifier:
                table = lookup.get(_unquote(qualifier).lower(), _unquote(qualifier))
            else:
                table = '*' if column == '*' else 'unknown'
            alias = match.group('alias')
            columns.append(SelectColumn(
                id=context.next_id('col'),
                table=table,
                column=_unquote(column),
                alias=_unquote(alias) if alias else None,
                ordinal=ordinal,
            ))
        return columns


class DegradedStrategy(ParseStrategy):
    """Last resort: keep the SQL as opaque text with an empty model."""
    name = "degraded"

    def parse(self, sql: str, context: ParseContext) -> ParseResult:
        logger.warning(f"[DegradedStrategy] Keeping {len(sql or '')} characters of SQL unparsed")
        return ParseResult(
            success=False,
            data=QueryModel(unparsed_sql=sql),
            warnings=list(context.warnings),
            strategy=self.name,
        )
