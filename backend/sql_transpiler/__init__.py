"""Bidirectional SQL transpiler for the visual query builder."""

import logging

import config
from .model_types import (
    QueryModel,
    TableNode,
    JoinRelation,
    SelectColumn,
    FilterCondition,
    AggregationBlock,
    OrderByColumn,
    CommonTableExpression,
    ColumnInfo,
    Position,
)
from .errors import (
    TranspilerError,
    InputValidationError,
    SQLSyntaxError,
    UnsupportedConstructError,
    ReferentialIntegrityError,
    GenerationError,
)
from .context import TranspilerContext, TranspilerSettings
from .generator import GenerationOptions, model_to_sql
from .orchestrator import FallbackParser
from .results import ParseMetadata, ParseResult, GenerationResult, RoundTripResult
from .transpiler import SQLTranspiler, parse, generate, validate_round_trip, get_capabilities

logging.getLogger(__name__).setLevel(config.LOG_LEVEL)

__all__ = [
    "QueryModel",
    "TableNode",
    "JoinRelation",
    "SelectColumn",
    "FilterCondition",
    "AggregationBlock",
    "OrderByColumn",
    "CommonTableExpression",
    "ColumnInfo",
    "Position",
    "TranspilerError",
    "InputValidationError",
    "SQLSyntaxError",
    "UnsupportedConstructError",
    "ReferentialIntegrityError",
    "GenerationError",
    "TranspilerContext",
    "TranspilerSettings",
    "GenerationOptions",
    "model_to_sql",
    "FallbackParser",
    "ParseMetadata",
    "ParseResult",
    "GenerationResult",
    "RoundTripResult",
    "SQLTranspiler",
    "parse",
    "generate",
    "validate_round_trip",
    "get_capabilities",
]
