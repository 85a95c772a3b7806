"""Tests for the fallback parser, parse strategies and the parse cache."""

import pytest

from sql_transpiler import SQLTranspiler, TranspilerContext, TranspilerSettings
from sql_transpiler.cache import ParseCache
from sql_transpiler.context import ParseContext
from sql_transpiler.dialects import get_dialect
from sql_transpiler.errors import SQLSyntaxError
from sql_transpiler.orchestrator import FallbackParser
from sql_transpiler.strategies import ASTStrategy, ParseStrategy, PatternStrategy


class FailingStrategy(ParseStrategy):
    name = "failing"

    def parse(self, sql, context):
        context.warn("statement looked partial")
        raise SQLSyntaxError("grammar rejected the query")


class CrashingStrategy(ParseStrategy):
    name = "crashing"

    def parse(self, sql, context):
        raise RuntimeError("boom")


def make_parser(strategies=None, **settings) -> FallbackParser:
    context = TranspilerContext(TranspilerSettings(**settings))
    return FallbackParser(context, strategies)


def pattern_context(sql: str) -> ParseContext:
    return ParseContext(sql, get_dialect('databricks'))


class TestFallbackChain:
    """Test strategy ordering and fallbacks."""

    def test_primary_strategy(self):
        """Test well-formed SQL is parsed by the AST strategy"""
        result = make_parser().parse("SELECT * FROM t1")
        assert result.success
        assert result.strategy == 'ast'
        assert result.errors == []

    def test_fallback_to_pattern(self):
        """Test pattern matcher runs after a failed primary strategy"""
        parser = make_parser([FailingStrategy(), PatternStrategy()])
        result = parser.parse("SELECT o.id FROM orders o JOIN customers c ON o.customer_id = c.id")
        assert result.success
        assert result.strategy == 'pattern'
        assert len(result.data.joins) == 1
        assert any('Fell back to the pattern parser' in w for w in result.warnings)
        assert "statement looked partial" in result.warnings

    def test_crash_is_internal_error(self):
        """Test unexpected exceptions are recorded and the chain continues"""
        parser = make_parser([CrashingStrategy(), PatternStrategy()])
        result = parser.parse("SELECT id FROM users")
        assert result.success
        assert result.strategy == 'pattern'
        assert any('InternalError: boom' in w for w in result.warnings)

    def test_degraded_result(self):
        """Test unparseable SQL keeps the text"""
        sql = "SELECT FROM WHERE"
        result = make_parser().parse(sql)
        assert not result.success
        assert result.strategy == 'degraded'
        assert result.data.unparsed_sql == sql
        assert result.data.is_unparsed
        assert result.errors
        assert all(e.startswith('SyntaxError') for e in result.errors)

    def test_unsupported_is_terminal(self):
        """Test unsupported statements skip the pattern matcher"""
        result = make_parser().parse("DELETE FROM users WHERE id = 1")
        assert not result.success
        assert len(result.errors) == 1
        assert result.errors[0].startswith('UnsupportedConstructError')

    def test_no_tables(self):
        """Test a query without tables is still a success"""
        result = make_parser().parse("SELECT 1")
        assert result.success
        assert result.strategy == 'ast'
        assert result.data.tables == []
        assert "Query references no tables" in result.warnings
        assert not any('Fell back' in w for w in result.warnings)


class TestInputGuards:
    """Test input guards run before parsing."""

    def test_query_too_long(self):
        """Test maximum query length"""
        result = make_parser(max_query_length=20).parse("SELECT id, name, email FROM users")
        assert not result.success
        assert result.errors[0].startswith('InputValidationError')
        assert result.strategy == 'degraded'

    def test_too_many_joins(self):
        """Test maximum join count"""
        sql = "SELECT * FROM a JOIN b ON a.id = b.id JOIN c ON b.id = c.id"
        result = make_parser(max_joins=1).parse(sql)
        assert not result.success
        assert 'joins' in result.errors[0]

    def test_too_many_tables(self):
        """Test maximum table count"""
        sql = "SELECT * FROM a JOIN b ON a.id = b.id"
        result = make_parser(max_tables=1).parse(sql)
        assert not result.success
        assert result.errors[0].startswith('InputValidationError')

    def test_unknown_dialect(self):
        """Test unknown dialect is an input error"""
        result = make_parser(dialect='cobol').parse("SELECT * FROM t")
        assert not result.success
        assert result.errors[0].startswith('InputValidationError')


class TestPatternStrategy:
    """Test the pattern matcher on its own."""

    def test_join_with_aliases_and_schema(self):
        """Test qualified table names, AS aliases and LEFT JOIN"""
        sql = "SELECT o.id, c.name FROM sales.orders o LEFT JOIN customers AS c ON o.customer_id = c.id"
        result = PatternStrategy().parse(sql, pattern_context(sql))
        model = result.data
        assert model.table_ids() == ['o', 'c']
        assert model.get_table('o').schema_ == 'sales'
        assert model.get_table('o').name == 'orders'
        join = model.joins[0]
        assert join.join_type == 'LEFT'
        assert (join.source_table, join.target_table) == ('o', 'c')
        assert [c.table for c in model.selected_columns] == ['o', 'c']

    def test_quoted_identifiers(self):
        """Test backtick-quoted names"""
        sql = "SELECT `id` FROM `my table`"
        result = PatternStrategy().parse(sql, pattern_context(sql))
        assert result.data.tables[0].name == 'my table'
        assert result.data.selected_columns[0].column == 'id'

    def test_where_not_recognized(self):
        """Test queries beyond SELECT/FROM/JOIN are rejected"""
        sql = "SELECT id FROM users WHERE id = 1"
        with pytest.raises(SQLSyntaxError):
            PatternStrategy().parse(sql, pattern_context(sql))

    def test_ast_strategy_syntax_error(self):
        """Test AST strategy raises SQLSyntaxError on bad SQL"""
        sql = "SELECT FROM WHERE"
        with pytest.raises(SQLSyntaxError):
            ASTStrategy().parse(sql, pattern_context(sql))


class TestParseCache:
    """Test parse result caching."""

    def test_cache_hit(self):
        """Test second parse of the same query hits the cache"""
        transpiler = SQLTranspiler(TranspilerSettings())
        first = transpiler.sql_to_model("SELECT * FROM users")
        second = transpiler.sql_to_model("SELECT   *\nFROM users;")
        assert not first.cache_hit
        assert second.cache_hit
        assert second.data == first.data
        assert transpiler.cache.stats()['hits'] == 1

    def test_failures_not_cached(self):
        """Test failed parses are never cached"""
        transpiler = SQLTranspiler(TranspilerSettings())
        transpiler.sql_to_model("SELECT FROM WHERE")
        assert len(transpiler.cache) == 0

    def test_dialect_in_key(self):
        """Test the same SQL under another dialect is a miss"""
        cache = ParseCache(10)
        databricks = FallbackParser(TranspilerContext(TranspilerSettings(), cache))
        mysql = FallbackParser(TranspilerContext(TranspilerSettings(dialect='mysql'), cache))
        databricks.parse("SELECT * FROM users")
        result = mysql.parse("SELECT * FROM users")
        assert not result.cache_hit
        assert len(cache) == 2

    def test_cache_disabled(self):
        """Test cache_size=0 disables caching"""
        transpiler = SQLTranspiler(TranspilerSettings(cache_size=0))
        transpiler.sql_to_model("SELECT * FROM users")
        assert not transpiler.sql_to_model("SELECT * FROM users").cache_hit

    def test_clear_cache(self):
        """Test clear_cache empties the cache"""
        transpiler = SQLTranspiler(TranspilerSettings())
        transpiler.sql_to_model("SELECT * FROM users")
        transpiler.clear_cache()
        assert len(transpiler.cache) == 0
        assert not transpiler.sql_to_model("SELECT * FROM users").cache_hit

    def test_cached_result_is_isolated(self):
        """Test changing a returned result does not change later cache hits"""
        transpiler = SQLTranspiler(TranspilerSettings())
        first = transpiler.sql_to_model("SELECT * FROM users")
        first.warnings.append("added by caller")
        second = transpiler.sql_to_model("SELECT * FROM users")
        second.warnings.append("added again")
        second.errors.append("caller error")
        third = transpiler.sql_to_model("SELECT * FROM users")
        assert third.cache_hit
        assert third.warnings == []
        assert third.errors == []


class TestParseMetadata:
    """Test timing and shape metadata on parse results."""

    def test_counts_and_features(self):
        """Test table, join, CTE and aggregate counts"""
        sql = (
            "WITH recent AS (SELECT * FROM orders WHERE amount > 100) "
            "SELECT c.region, COUNT(*) FROM recent r JOIN customers c ON r.customer_id = c.id GROUP BY c.region"
        )
        result = make_parser().parse(sql)
        assert result.success
        metadata = result.metadata
        assert metadata.sql_length == len(sql)
        assert metadata.dialect == 'databricks'
        assert metadata.parse_time_ms >= 0
        assert metadata.table_count == 3
        assert metadata.join_count == 1
        assert metadata.cte_count == 1
        assert metadata.function_count == 1
        assert 'ctes' in metadata.features
        assert 'aggregations' in metadata.features
        assert 'subqueries' not in metadata.features

    def test_subquery_and_window(self):
        """Test subqueries and window functions are detected"""
        result = make_parser().parse(
            "SELECT s.id, ROW_NUMBER() OVER (ORDER BY s.id) AS rn FROM (SELECT id FROM users) s"
        )
        metadata = result.metadata
        assert metadata.subquery_count == 1
        assert metadata.function_count == 1
        assert 'subqueries' in metadata.features
        assert 'window_functions' in metadata.features

    def test_degraded_metadata(self):
        """Test failed parses still report size and timing"""
        result = make_parser().parse("SELECT FROM WHERE")
        assert not result.success
        assert result.metadata.sql_length == len("SELECT FROM WHERE")
        assert result.metadata.table_count == 0
        assert result.metadata.features == []

    def test_cache_hit_metadata(self):
        """Test a cache hit keeps the counts and reports its own timing"""
        transpiler = SQLTranspiler(TranspilerSettings())
        first = transpiler.sql_to_model("SELECT * FROM a JOIN b ON a.id = b.id")
        second = transpiler.sql_to_model("SELECT * FROM a JOIN b ON a.id = b.id")
        assert second.cache_hit
        assert second.metadata.join_count == first.metadata.join_count == 1
        assert second.metadata.table_count == 2
