"""Result objects returned by the public transpiler operations."""

from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Union

from .model_types import QueryModel


class ParseMetadata(BaseModel):
    """Timing, size and shape of a parsed query."""
    parse_time_ms: float = 0.0
    sql_length: int = 0
    dialect: Optional[str] = None
    table_count: int = 0
    join_count: int = 0
    subquery_count: int = 0
    cte_count: int = 0
    function_count: int = 0
    features: List[str] = []


class ParseResult(BaseModel):
    """Result of SQL -> QueryModel."""
    success: bool
    data: Optional[QueryModel] = None
    errors: List[str] = []
    warnings: List[str] = []
    strategy: Optional[str] = None
    cache_hit: bool = False
    metadata: ParseMetadata = Field(default_factory=ParseMetadata)


class GenerationResult(BaseModel):
    """Result of QueryModel -> SQL."""
    success: bool
    sql: Optional[str] = None
    errors: List[str] = []
    warnings: List[str] = []
    complexity: Optional[Literal['simple', 'medium', 'complex']] = None
    metadata: Optional[Dict[str, Union[int, float, str]]] = None


class StructureFeatures(BaseModel):
    """Lexical shape of a SQL statement."""
    has_select: bool = False
    has_from: bool = False
    has_where: bool = False
    has_group_by: bool = False
    has_order_by: bool = False
    has_limit: bool = False
    join_count: int = 0
    table_count: int = 0


class RoundTripAnalysis(BaseModel):
    syntactic_equivalence: bool = False
    structural_equivalence: bool = False
    semantic_equivalence: bool = False
    similarity: float = 0.0
    performance_impact: Literal['none', 'low', 'medium', 'high'] = 'high'


class RoundTripResult(BaseModel):
    """Result of parse -> generate -> compare."""
    success: bool
    is_equivalent: bool = False
    new_sql: Optional[str] = None
    differences: List[str] = []
    analysis: RoundTripAnalysis = RoundTripAnalysis()
    errors: List[str] = []
    warnings: List[str] = []
