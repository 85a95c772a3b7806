"""
Fallback parser: runs parse strategies in order until one produces a model.

Order: AST (sqlglot) -> pattern matcher -> degraded (unparsed SQL kept as text).
The pattern matcher only runs when the AST strategy failed or found no tables.
Input validation failures and unsupported constructs skip straight to the
degraded result.
"""

import logging
import re
import time
import traceback
from typing import List, Optional

from .context import ParseContext, TranspilerContext
from .errors import InputValidationError, TranspilerError, UnsupportedConstructError, format_error
from .guards import check_input
from .model_types import QueryModel
from .results import ParseMetadata, ParseResult
from .strategies import ASTStrategy, DegradedStrategy, ParseStrategy, PatternStrategy

logger = logging.getLogger(__name__)

FUNCTION_CALL = re.compile(r"\b(?!OVER\b)[A-Za-z_]\w*\s*\(", re.IGNORECASE)
WINDOW_CALL = re.compile(r"\bOVER\s*\(", re.IGNORECASE)


class FallbackParser:
    """Chain of parse strategies sharing one TranspilerContext (settings and cache)."""

    def __init__(self, context: Optional[TranspilerContext] = None, strategies: Optional[List[ParseStrategy]] = None):
        self.context = context or TranspilerContext()
        self.strategies = strategies if strategies is not None else [ASTStrategy(), PatternStrategy()]
        self.degraded = DegradedStrategy()

    def parse(self, sql: str) -> ParseResult:
        started = time.perf_counter()
        dialect_name = self.context.settings.dialect
        cached = self.context.cache.get(sql, dialect_name) if sql else None
        if cached is not None:
            logger.debug("[FallbackParser] Cache hit")
            result = cached.model_copy(deep=True)
            result.cache_hit = True
            result.metadata.parse_time_ms = _elapsed_ms(started)
            return result

        result = self._parse(sql)
        result.metadata = parse_metadata(sql, dialect_name, result.data, _elapsed_ms(started))
        if result.success and sql:
            self.context.cache.put(sql, dialect_name, result.model_copy(deep=True))
        return result

    def _parse(self, sql: str) -> ParseResult:
        settings = self.context.settings
        errors: List[str] = []

        try:
            dialect = self.context.dialect
            check_input(sql, settings.max_query_length, settings.max_tables, settings.max_joins)
        except InputValidationError as e:
            logger.warning(f"[FallbackParser] Input rejected: {e.message}")
            return self._degrade(sql, [e.format()])

        empty_result = None
        errors_before_empty: List[str] = []
        carried_before_empty: List[str] = []
        # Warnings raised by strategies that went on to fail
        carried: List[str] = []
        for strategy in self.strategies:
            context = ParseContext(sql, dialect)
            try:
                result = strategy.parse(sql, context)
            except (InputValidationError, UnsupportedConstructError) as e:
                logger.info(f"[FallbackParser] {strategy.name} rejected query: {e.message}")
                errors.append(e.format())
                return self._degrade(sql, errors)
            except TranspilerError as e:
                logger.warning(f"[FallbackParser] {strategy.name} strategy failed: {e.message}")
                errors.append(e.format())
                carried.extend(context.warnings)
                continue
            except Exception as e:
                logger.error(f"[FallbackParser] {strategy.name} strategy crashed: {e}")
                logger.error(traceback.format_exc())
                errors.append(format_error(e))
                carried.extend(context.warnings)
                continue

            if not result.data.tables:
                logger.info(f"[FallbackParser] {strategy.name} strategy found no tables")
                if empty_result is None:
                    empty_result = result
                    errors_before_empty = list(errors)
                    carried_before_empty = list(carried)
                continue

            return self._finish(result, errors, carried)

        if empty_result is not None:
            return self._finish(empty_result, errors_before_empty, carried_before_empty + ["Query references no tables"])
        return self._degrade(sql, errors)

    def _finish(self, result: ParseResult, errors: List[str], extra_warnings: List[str]) -> ParseResult:
        logger.info(f"[FallbackParser] Parsed with {result.strategy} strategy")
        fallback_warnings = [f"Fell back to the {result.strategy} parser after: {error}" for error in errors]
        warnings = []
        for warning in fallback_warnings + extra_warnings + list(result.warnings):
            if warning not in warnings:
                warnings.append(warning)
        return result.model_copy(update={
            'warnings': warnings,
        })

    def _degrade(self, sql: str, errors: List[str]) -> ParseResult:
        result = self.degraded.parse(sql, ParseContext(sql, None))
        return result.model_copy(update={'errors': errors})


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def parse_metadata(sql: Optional[str], dialect: str, model: Optional[QueryModel], parse_time_ms: float) -> ParseMetadata:
    """Size and shape of a parsed model, counted over every scope (CTEs, subqueries, set branches)."""
    metadata = ParseMetadata(parse_time_ms=parse_time_ms, sql_length=len(sql or ''), dialect=dialect)
    if model is None or model.is_unparsed:
        return metadata

    subqueries = [t for t in model.tables if t.kind == 'subquery']
    table_functions = [t for t in model.tables if t.kind == 'function']
    cte_names = {t.origin for t in model.tables if t.origin and t.origin.startswith('cte:')}
    expressions = [c.expression for c in model.selected_columns if c.expression]

    features = []
    if model.ctes or cte_names:
        features.append('ctes')
    if subqueries:
        features.append('subqueries')
    if any(t.origin and t.origin.startswith('union:') for t in model.tables):
        features.append('set_operations')
    if any(WINDOW_CALL.search(e) for e in expressions):
        features.append('window_functions')
    if len(model.joins) > 2:
        features.append('complex_joins')
    if model.aggregations:
        features.append('aggregations')

    function_count = len(model.aggregations) + len(table_functions)
    function_count += sum(len(FUNCTION_CALL.findall(e)) for e in expressions)

    return metadata.model_copy(update={
        'table_count': len(model.tables),
        'join_count': len(model.joins),
        'subquery_count': len(subqueries),
        'cte_count': max(len(model.ctes), len(cte_names)),
        'function_count': function_count,
        'features': features,
    })
