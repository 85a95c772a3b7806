"""Integrity rules for the query model."""

import re
from typing import List

from .errors import GenerationError, ReferentialIntegrityError
from .model_types import QueryModel

# Table placeholders that never name a real table
UNQUALIFIED_TABLE = 'unknown'
WILDCARD_TABLE = '*'

# GROUP BY / ORDER BY entry that names an unqualified column
BARE_COLUMN_ENTRY = re.compile(r'^[^\W\d]\w*$')


def check_referential_integrity(model: QueryModel) -> List[str]:
    """
    Validate table ids and references.

    Duplicate table ids and joins naming a missing table are errors. Columns,
    filters and aggregations that name a missing table only produce warnings
    (they can refer to an outer query or an ambiguous name).

    Raises:
        ReferentialIntegrityError: If table ids are duplicated or a join is dangling
    """
    seen = set()
    for table in model.tables:
        if table.id in seen:
            raise ReferentialIntegrityError(
                f"Duplicate table id '{table.id}'", {"table_id": table.id}
            )
        seen.add(table.id)

    for join in model.joins:
        for table_id in (join.source_table, join.target_table):
            if table_id not in seen:
                raise ReferentialIntegrityError(
                    f"Join '{join.id}' references table '{table_id}' which is not in the model",
                    {"join_id": join.id, "table_id": table_id},
                )

    warnings = []
    references = (
        [("Column", c.id, c.table) for c in model.selected_columns if c.expression is None]
        + [("Aggregation", a.id, a.table) for a in model.aggregations]
        + [("Filter", f.id, f.table) for f in model.filters]
        + [("Having condition", h.id, h.table) for h in model.having]
    )
    for label, element_id, table_id in references:
        if table_id in (UNQUALIFIED_TABLE, WILDCARD_TABLE) or table_id in seen:
            continue
        warnings.append(f"{label} '{element_id}' references unknown table '{table_id}'")
    return warnings


def check_generatable(model: QueryModel) -> List[str]:
    """
    Validate that a model can be rendered as SQL.

    Raises:
        GenerationError: If the model has no tables
        ReferentialIntegrityError: If table ids are duplicated or a join is dangling
    """
    if not model.tables:
        raise GenerationError("Query model has no tables")
    return check_referential_integrity(model)
