"""Public entry points: parse, generate, validate_round_trip, capabilities."""

import logging
import traceback
from typing import Optional

from .cache import ParseCache
from .context import TranspilerContext, TranspilerSettings
from .dialects import available_dialects
from .errors import TranspilerError, format_error
from .generator import GenerationOptions, model_to_sql
from .model_types import QueryModel
from .orchestrator import FallbackParser
from .results import GenerationResult, ParseResult, RoundTripResult
from .round_trip import validate_round_trip as _validate_round_trip

logger = logging.getLogger(__name__)

SUPPORTED_FEATURES = [
    'SELECT with columns, aliases and wildcards',
    'INNER, LEFT, RIGHT and FULL joins on a single column equality',
    'JOIN ... USING with a single column',
    'WHERE conditions combined with AND',
    'Comparison, LIKE, IN, IS NULL and IS NOT NULL filters',
    'BETWEEN (as two filters)',
    'COUNT, SUM, AVG, MIN, MAX and COUNT(DISTINCT)',
    'GROUP BY, HAVING, ORDER BY, LIMIT and OFFSET',
    'FETCH FIRST/NEXT n ROWS ONLY and TOP (as LIMIT)',
    'SELECT DISTINCT',
    'catalog.schema.table names',
]
PARTIAL_FEATURES = [
    'OR conditions (flattened into a filter list)',
    'Common table expressions (flattened, body kept as SQL)',
    'Subqueries in FROM (flattened, body kept as SQL)',
    'UNION, INTERSECT and EXCEPT (first branch regenerated)',
    'Window functions and other expressions (kept as opaque SQL)',
    'Implicit joins in WHERE (converted to INNER JOIN)',
    'Table-valued functions (shown as virtual tables)',
    'Multiple statements (first statement only)',
]
UNSUPPORTED_FEATURES = [
    'DDL and DML statements',
    'Recursive CTEs',
    'Stored procedures',
    'Window frame clauses as structured elements',
]


def get_capabilities(settings: Optional[TranspilerSettings] = None, cache: Optional[ParseCache] = None) -> dict:
    """Describe supported, partially supported and unsupported SQL features, limits and cache usage."""
    settings = settings or TranspilerSettings.from_env()
    if cache is None:
        cache = ParseCache(settings.cache_size)
    return {
        'supported': list(SUPPORTED_FEATURES),
        'partial': list(PARTIAL_FEATURES),
        'unsupported': list(UNSUPPORTED_FEATURES),
        'dialects': available_dialects(),
        'default_dialect': settings.dialect,
        'limits': {
            'max_query_length': settings.max_query_length,
            'max_tables': settings.max_tables,
            'max_joins': settings.max_joins,
        },
        'cache': cache.stats(),
    }


def parse(sql: str, context: Optional[TranspilerContext] = None) -> ParseResult:
    """Parse SQL into a QueryModel. Never raises."""
    return FallbackParser(context).parse(sql)


def generate(
    model: QueryModel,
    options: Optional[GenerationOptions] = None,
    context: Optional[TranspilerContext] = None,
) -> GenerationResult:
    """Generate SQL from a QueryModel. Never raises."""
    if options is None:
        settings = context.settings if context else TranspilerSettings.from_env()
        options = GenerationOptions(dialect=settings.dialect, format_output=settings.format_output)

    try:
        generated = model_to_sql(model, options)
    except TranspilerError as e:
        logger.warning(f"[SQLGenerator] {e.format()}")
        return GenerationResult(success=False, errors=[e.format()])
    except Exception as e:
        logger.error(f"[SQLGenerator] Unexpected error: {e}")
        logger.error(traceback.format_exc())
        return GenerationResult(success=False, errors=[format_error(e)])

    return GenerationResult(
        success=True,
        sql=generated.sql,
        warnings=generated.warnings,
        complexity=generated.complexity,
        metadata=generated.metadata,
    )


def validate_round_trip(
    sql: str,
    context: Optional[TranspilerContext] = None,
    options: Optional[GenerationOptions] = None,
) -> RoundTripResult:
    """Parse, regenerate and compare. Never raises."""
    try:
        return _validate_round_trip(sql, FallbackParser(context), options)
    except Exception as e:
        logger.error(f"[RoundTrip] Unexpected error: {e}")
        logger.error(traceback.format_exc())
        return RoundTripResult(success=False, errors=[format_error(e)])


class SQLTranspiler:
    """Caller-owned transpiler holding its own settings and parse cache."""

    def __init__(self, settings: Optional[TranspilerSettings] = None):
        self.context = TranspilerContext(settings)

    @property
    def cache(self) -> ParseCache:
        return self.context.cache

    def sql_to_model(self, sql: str) -> ParseResult:
        return parse(sql, self.context)

    def model_to_sql(self, model: QueryModel, options: Optional[GenerationOptions] = None) -> GenerationResult:
        return generate(model, options, self.context)

    def validate_round_trip(self, sql: str, options: Optional[GenerationOptions] = None) -> RoundTripResult:
        return validate_round_trip(sql, self.context, options)

    def get_capabilities(self) -> dict:
        return get_capabilities(self.context.settings, self.context.cache)

    def clear_cache(self) -> None:
        self.context.cache.clear()
