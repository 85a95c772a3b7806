"""Tests for the public transpiler entry points."""

from sql_transpiler import (
    QueryModel,
    SQLTranspiler,
    TableNode,
    TranspilerContext,
    TranspilerSettings,
    generate,
    get_capabilities,
    parse,
)


class TestCapabilities:
    """Test the capability report."""

    def test_report(self):
        """Test feature lists, dialects and limits"""
        capabilities = get_capabilities(TranspilerSettings(max_tables=5))
        assert capabilities['supported']
        assert capabilities['partial']
        assert 'Recursive CTEs' in capabilities['unsupported']
        assert 'postgresql' in capabilities['dialects']
        assert capabilities['default_dialect'] == 'databricks'
        assert capabilities['limits'] == {'max_query_length': 50000, 'max_tables': 5, 'max_joins': 30}
        assert capabilities['cache'] == {'size': 0, 'max_size': 100, 'hits': 0, 'misses': 0, 'hit_rate': 0.0}

    def test_transpiler_capabilities(self):
        """Test capabilities reflect the transpiler settings"""
        transpiler = SQLTranspiler(TranspilerSettings(dialect='snowflake'))
        assert transpiler.get_capabilities()['default_dialect'] == 'snowflake'

    def test_cache_usage(self):
        """Test capabilities report the transpiler's cache size and hit rate"""
        transpiler = SQLTranspiler(TranspilerSettings(cache_size=10))
        transpiler.sql_to_model("SELECT * FROM users")
        transpiler.sql_to_model("SELECT * FROM users")
        cache = transpiler.get_capabilities()['cache']
        assert cache['size'] == 1
        assert cache['max_size'] == 10
        assert cache['hits'] == 1
        assert cache['misses'] == 1
        assert cache['hit_rate'] == 0.5


class TestTranspiler:
    """Test the SQLTranspiler facade."""

    def test_settings_drive_generation(self):
        """Test dialect and formatting come from the settings"""
        transpiler = SQLTranspiler(TranspilerSettings(dialect='postgresql', format_output=False))
        model = QueryModel(tables=[TableNode(id='users', name='users')])
        result = transpiler.model_to_sql(model)
        assert result.success
        assert result.sql == 'SELECT * FROM "users" "u"'
        assert result.complexity == 'simple'
        assert result.metadata['dialect'] == 'postgresql'

    def test_sql_to_model_and_back(self):
        """Test parse then generate through the facade"""
        transpiler = SQLTranspiler(TranspilerSettings())
        parsed = transpiler.sql_to_model(
            "SELECT o.id, c.name FROM orders o LEFT JOIN customers c ON o.customer_id = c.id"
        )
        assert parsed.success
        generated = transpiler.model_to_sql(parsed.data)
        assert generated.success
        assert "LEFT JOIN `customers` `c` ON `o`.`customer_id` = `c`.`id`" in generated.sql

    def test_independent_caches(self):
        """Test each transpiler owns its cache"""
        first = SQLTranspiler(TranspilerSettings())
        second = SQLTranspiler(TranspilerSettings())
        first.sql_to_model("SELECT * FROM users")
        assert len(first.cache) == 1
        assert len(second.cache) == 0


class TestModuleFunctions:
    """Test the never-raising module-level functions."""

    def test_parse_with_context(self):
        """Test parse with an explicit context"""
        context = TranspilerContext(TranspilerSettings(dialect='mysql'))
        result = parse("SELECT `id` FROM `users`", context)
        assert result.success
        assert result.data.tables[0].name == 'users'

    def test_parse_never_raises(self):
        """Test garbage input produces a failed result"""
        result = parse("))) not sql (((", TranspilerContext(TranspilerSettings()))
        assert not result.success
        assert result.errors

    def test_generate_failure(self):
        """Test generate reports a failed result"""
        result = generate(QueryModel(), context=TranspilerContext(TranspilerSettings()))
        assert not result.success
        assert result.errors[0].startswith('GenerationError')

    def test_model_serializes(self):
        """Test a parsed model serializes to camelCase JSON"""
        result = parse("SELECT * FROM a JOIN b ON a.id = b.id", TranspilerContext(TranspilerSettings()))
        data = result.data.to_dict()
        assert data['joins'][0]['sourceTable'] == 'a'
        assert data['joins'][0]['joinType'] == 'INNER'
        assert data['tables'][0]['schema'] == 'default'
