"""Round-trip validation: SQL -> QueryModel -> SQL, then compare.

Equivalence is judged on three levels:
1. Syntactic: normalized texts are identical
2. Structural: lexical clause features match (similarity ratio >= 0.8)
3. Semantic: re-parsing the regenerated SQL yields the same model signature
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .errors import TranspilerError
from .generator import GenerationOptions, model_to_sql
from .guards import count_joins, count_table_references, strip_comments_and_strings
from .model_types import QueryModel
from .orchestrator import FallbackParser
from .results import RoundTripAnalysis, RoundTripResult, StructureFeatures

logger = logging.getLogger(__name__)

STRUCTURAL_EQUIVALENCE_THRESHOLD = 0.8
MEDIUM_IMPACT_THRESHOLD = 0.5

_QUOTE_CHARS = re.compile(r'["\'`\[\]]')


def normalize_sql(sql: str) -> str:
    """Normalize SQL for comparison (no comments, collapsed whitespace, lowercase, no quotes)."""
    sql = re.sub(r'--.*$', '', sql, flags=re.MULTILINE)
    sql = re.sub(r'/\*.*?\*/', '', sql, flags=re.DOTALL)
    sql = ' '.join(sql.split())
    sql = sql.rstrip(';').strip()
    return _QUOTE_CHARS.sub('', sql.lower())


def extract_structure(sql: str) -> StructureFeatures:
    """Detect which clauses a statement has, ignoring comments and string literals."""
    text = strip_comments_and_strings(sql)

    def has(pattern: str) -> bool:
        return re.search(pattern, text, re.IGNORECASE) is not None

    return StructureFeatures(
        has_select=has(r'\bselect\b'),
        has_from=has(r'\bfrom\b'),
        has_where=has(r'\bwhere\b'),
        has_group_by=has(r'\bgroup\s+by\b'),
        has_order_by=has(r'\border\s+by\b'),
        has_limit=has(r'\blimit\b'),
        join_count=count_joins(sql),
        table_count=count_table_references(sql),
    )


def compare_structure(original: StructureFeatures, regenerated: StructureFeatures) -> Tuple[float, List[str]]:
    """Similarity ratio over all features, plus a description of each mismatch."""
    before = original.model_dump()
    after = regenerated.model_dump()
    differences = [
        f"{feature}: {before[feature]} -> {after[feature]}"
        for feature in before
        if before[feature] != after[feature]
    ]
    similarity = (len(before) - len(differences)) / len(before)
    return similarity, differences


def _canonical_join(source: str, target: str, source_column: str, target_column: str, join_type: str) -> tuple:
    if join_type == 'RIGHT':
        source, target = target, source
        source_column, target_column = target_column, source_column
        join_type = 'LEFT'
    if join_type in ('INNER', 'FULL') and (target, target_column) < (source, source_column):
        source, target = target, source
        source_column, target_column = target_column, source_column
    return source, source_column, target, target_column, join_type


def model_signature(model: QueryModel) -> Dict[str, object]:
    """Alias-independent summary of the top-level query, keyed by table name."""
    top = model.top_level()
    names = {t.id: t.qualified_name.lower() for t in top.tables}

    def table_name(table_id: str) -> str:
        return names.get(table_id, table_id.lower())

    return {
        'tables': sorted(names.values()),
        'joins': sorted(
            _canonical_join(
                table_name(j.source_table),
                table_name(j.target_table),
                j.source_column.lower(),
                j.target_column.lower(),
                j.join_type,
            )
            for j in top.joins
        ),
        'filters': sorted(
            (table_name(f.table), f.column.lower(), f.operator, repr(f.value), f.aggregate or '')
            for f in top.filters
        ),
        'selected_columns': len(top.selected_columns),
        'aggregations': sorted((a.function, a.column.lower()) for a in top.aggregations),
        'group_by': len(top.group_by_columns),
        'having': len(top.having),
        'order_by': [o.direction for o in top.order_by_columns],
        'limit': top.limit,
        'offset': top.offset,
        'distinct': top.distinct,
    }


def compare_models(original: QueryModel, regenerated: QueryModel) -> List[str]:
    before = model_signature(original)
    after = model_signature(regenerated)
    return [f"model {key} differs" for key in before if before[key] != after[key]]


def performance_impact(exact: bool, structural: bool, similarity: float) -> str:
    if exact:
        return 'none'
    if structural:
        return 'low'
    if similarity >= MEDIUM_IMPACT_THRESHOLD:
        return 'medium'
    return 'high'


def validate_round_trip(sql: str, parser: FallbackParser, options: Optional[GenerationOptions] = None) -> RoundTripResult:
    """
    Parse SQL, regenerate it, and check that the meaning survived.

    Args:
        sql: Original SQL text
        parser: Fallback parser (carries settings and cache)
        options: Generation options; defaults to table-id aliases without join reordering

    Returns:
        RoundTripResult; success is False when parsing or generation failed
    """
    settings = parser.context.settings
    options = options or GenerationOptions(
        dialect=settings.dialect,
        format_output=settings.format_output,
        alias_strategy='table_id',
        reorder_joins=False,
    )

    parsed = parser.parse(sql)
    if not parsed.success:
        return RoundTripResult(success=False, errors=parsed.errors, warnings=parsed.warnings)

    try:
        generated = model_to_sql(parsed.data, options)
    except TranspilerError as e:
        logger.warning(f"[RoundTrip] Generation failed: {e.message}")
        return RoundTripResult(success=False, errors=[e.format()], warnings=parsed.warnings)

    new_sql = generated.sql
    warnings = list(parsed.warnings) + list(generated.warnings)
    exact = normalize_sql(sql) == normalize_sql(new_sql)

    similarity, differences = compare_structure(extract_structure(sql), extract_structure(new_sql))
    structural = similarity >= STRUCTURAL_EQUIVALENCE_THRESHOLD

    reparsed = parser.parse(new_sql)
    if reparsed.success:
        model_differences = compare_models(parsed.data, reparsed.data)
    else:
        model_differences = ["regenerated SQL could not be parsed"]
    differences.extend(model_differences)

    analysis = RoundTripAnalysis(
        syntactic_equivalence=exact,
        structural_equivalence=structural,
        semantic_equivalence=not model_differences,
        similarity=similarity,
        performance_impact=performance_impact(exact, structural, similarity) if reparsed.success else 'high',
    )
    # Regenerated SQL that does not re-parse to the same model is never equivalent
    is_equivalent = (exact or not differences) and not model_differences
    logger.info(f"[RoundTrip] equivalent={is_equivalent} similarity={similarity:.2f}")

    return RoundTripResult(
        success=True,
        is_equivalent=is_equivalent,
        new_sql=new_sql,
        differences=differences,
        analysis=analysis,
        warnings=warnings,
    )
