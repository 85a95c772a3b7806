"""Unit tests for query model types."""

import pytest
from pydantic import ValidationError

from sql_transpiler.model_types import (
    AggregationBlock,
    FilterCondition,
    JoinRelation,
    QueryModel,
    SelectColumn,
    TableNode,
)


class TestFilterCondition:
    """Test operator/value constraints."""

    def test_value_required_for_comparison(self):
        """Test comparison operators reject a missing value"""
        with pytest.raises(ValidationError):
            FilterCondition(id='f1', table='users', column='age', operator='greater_than')

    def test_null_checks_need_no_value(self):
        """Test IS NULL / IS NOT NULL without a value"""
        condition = FilterCondition(id='f1', table='users', column='email', operator='is_null')
        assert condition.value is None
        condition = FilterCondition(id='f2', table='users', column='email', operator='is_not_null')
        assert condition.operator == 'is_not_null'

    def test_in_requires_list(self):
        """Test IN requires a list value"""
        with pytest.raises(ValidationError):
            FilterCondition(id='f1', table='users', column='region', operator='in', value='EU')
        condition = FilterCondition(id='f1', table='users', column='region', operator='in', value=['EU', 'US'])
        assert condition.value == ['EU', 'US']

    def test_scalar_operator_rejects_list(self):
        """Test comparison operators reject list values"""
        with pytest.raises(ValidationError):
            FilterCondition(id='f1', table='users', column='id', operator='equals', value=[1, 2])

    def test_value_types_preserved(self):
        """Test bool/int/float values are not coerced"""
        flag = FilterCondition(id='f1', table='t', column='active', operator='equals', value=True)
        count = FilterCondition(id='f2', table='t', column='n', operator='equals', value=1)
        price = FilterCondition(id='f3', table='t', column='price', operator='greater_than', value=9.99)
        assert flag.value is True
        assert isinstance(count.value, int) and not isinstance(count.value, bool)
        assert price.value == 9.99

    def test_unknown_operator_rejected(self):
        """Test operators outside the supported set"""
        with pytest.raises(ValidationError):
            FilterCondition(id='f1', table='t', column='c', operator='regex', value='x')


class TestSerialization:
    """Test camelCase aliases."""

    def test_query_model_aliases(self):
        """Test QueryModel serializes to camelCase"""
        data = QueryModel().to_dict()
        assert 'selectedColumns' in data
        assert 'groupByColumns' in data
        assert 'orderByColumns' in data
        assert 'unparsedSql' in data

    def test_join_relation_from_camel_case(self):
        """Test JoinRelation accepts camelCase input"""
        join = JoinRelation(**{
            'id': 'join_1',
            'sourceTable': 'o',
            'targetTable': 'c',
            'sourceColumn': 'customer_id',
            'targetColumn': 'id',
            'joinType': 'LEFT',
        })
        assert join.source_table == 'o'
        assert join.join_type == 'LEFT'
        assert join.model_dump(by_alias=True)['targetColumn'] == 'id'

    def test_table_schema_alias(self):
        """Test TableNode exposes schema under its own name"""
        table = TableNode(id='o', name='orders', schema='sales')
        assert table.schema_ == 'sales'
        assert table.model_dump(by_alias=True)['schema'] == 'sales'
        assert table.catalog == 'default'

    def test_invalid_join_type(self):
        """Test join types outside INNER/LEFT/RIGHT/FULL"""
        with pytest.raises(ValidationError):
            JoinRelation(id='j', source_table='a', target_table='b', source_column='x', target_column='y', join_type='CROSS')


class TestImmutability:
    """Test models are frozen."""

    def test_table_is_frozen(self):
        """Test assignment on a frozen model fails"""
        table = TableNode(id='users', name='users')
        with pytest.raises(ValidationError):
            table.name = 'accounts'


class TestHelpers:
    """Test convenience accessors."""

    def test_qualified_name(self):
        """Test default namespaces are omitted"""
        assert TableNode(id='a', name='a').qualified_name == 'a'
        assert TableNode(id='a', name='a', schema='c').qualified_name == 'c.a'
        assert TableNode(id='a', name='a', schema='c', catalog='s').qualified_name == 's.c.a'

    def test_top_level_filters_inlined_elements(self):
        """Test top_level drops elements with an origin"""
        model = QueryModel(
            tables=[
                TableNode(id='orders', name='orders', origin='cte:recent'),
                TableNode(id='recent', name='recent', kind='cte'),
            ],
            selected_columns=[
                SelectColumn(id='c1', table='orders', column='id', origin='cte:recent'),
                SelectColumn(id='c2', table='recent', column='id'),
            ],
            aggregations=[AggregationBlock(id='a1', table='orders', column='amount', function='SUM', origin='cte:recent')],
        )
        top = model.top_level()
        assert top.table_ids() == ['recent']
        assert [c.id for c in top.selected_columns] == ['c2']
        assert top.aggregations == []
        assert len(model.tables) == 2

    def test_get_table(self):
        """Test lookup by id"""
        model = QueryModel(tables=[TableNode(id='u', name='users')])
        assert model.get_table('u').name == 'users'
        assert model.get_table('missing') is None
