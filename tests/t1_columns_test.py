import unittest
from datetime import datetime, timezone, timedelta

from mongogrid import ColumnConfig, ColumnRegistry
from mongogrid.exc import *
from mongogrid.values import ValueCoercer


class ColumnsTest(unittest.TestCase):
    """ Test ColumnConfig, ColumnRegistry """

    longMessage = True
    maxDiff = None

    def test_column_config(self):
        conditions = {'id': '_id', 'name': 'name'}
        config = ColumnConfig(
            conditions=conditions,
            sortations={'name': 'name'},
            searchable=['name'],
        )

        # Test: copied, not referenced
        conditions['age'] = 'age'
        self.assertNotIn('age', config.conditions)

        # Test: read-only
        with self.assertRaises(TypeError):
            config.conditions['age'] = 'age'
        with self.assertRaises(TypeError):
            config.sort_callbacks['name'] = lambda builder: []

        # Test: defaults
        self.assertEqual(dict(config.condition_callbacks), {})
        self.assertEqual(dict(config.sort_callbacks), {})
        self.assertEqual(ColumnConfig().searchable, ())

        # Test: repr
        self.assertIn("'id', 'name'", repr(config))

    def test_column_registry(self):
        callback = lambda builder, values, field, expr, operator: None
        registry = ColumnRegistry(ColumnConfig(
            conditions={'id': '_id', 'name': 'name', 'custom': 'custom_field'},
            sortations={'name': 'name_sort'},
            searchable=['name', 'custom'],
            condition_callbacks={'custom': callback},
        ), 'UserGrid')

        # === Test: resolve_condition()
        self.assertEqual(registry.resolve_condition('id'), '_id')
        self.assertEqual(registry.resolve_condition('custom'), 'custom_field')

        with self.assertRaises(MissingConditionColumnError) as e:
            registry.resolve_condition('password')
        self.assertEqual(e.exception.column_name, 'password')
        self.assertEqual(e.exception.resource, 'UserGrid')
        self.assertEqual(e.exception.where, 'filtering')
        self.assertIn('password', str(e.exception))
        self.assertIn('UserGrid', str(e.exception))

        # Unhashable column names are just invalid
        with self.assertRaises(MissingConditionColumnError):
            registry.resolve_condition(['id'])

        # === Test: resolve_sortation()
        self.assertEqual(registry.resolve_sortation('name'), 'name_sort')

        # Condition columns are not sort columns
        with self.assertRaises(MissingSortationColumnError) as e:
            registry.resolve_sortation('id')
        self.assertEqual(e.exception.where, 'sorting')
        self.assertIn('"id"', str(e.exception))

        # === Test: require_searchable()
        self.assertEqual(registry.require_searchable(), [('name', 'name'), ('custom', 'custom_field')])

        # === Test: callbacks
        self.assertIs(registry.condition_callback('custom'), callback)
        self.assertIsNone(registry.condition_callback('name'))
        self.assertIsNone(registry.sort_callback('name'))

    def test_require_searchable(self):
        # No searchable columns
        registry = ColumnRegistry(ColumnConfig(conditions={'a': 'a'}), 'Grid')
        with self.assertRaises(MissingSearchColumnError) as e:
            registry.require_searchable()
        self.assertIsNone(e.exception.column_name)
        self.assertIn('Grid', str(e.exception))
        self.assertIn('searchable', str(e.exception))

        # Searchable column that can't be filtered by
        registry = ColumnRegistry(ColumnConfig(conditions={'a': 'a'}, searchable=['a', 'b']), 'Grid')
        with self.assertRaises(MissingSearchColumnError) as e:
            registry.require_searchable()
        self.assertEqual(e.exception.column_name, 'b')
        self.assertIn('"b"', str(e.exception))

    def test_exceptions(self):
        # Status codes
        self.assertEqual(InvalidQueryError('x').status_code, 400)
        self.assertEqual(MissingAdvancedFilterRequiredFieldError().status_code, 400)
        self.assertEqual(MissingConditionColumnError('Grid', 'a').status_code, 400)
        self.assertEqual(MissingSearchIndexError('Grid').status_code, 500)

        # Hierarchy
        self.assertIsInstance(MissingAdvancedFilterRequiredFieldError(), InvalidQueryError)
        self.assertIsInstance(MissingSortationColumnError('Grid', 'a'), InvalidColumnError)
        self.assertIsInstance(MissingSearchColumnError('Grid'), GridException)

        # Messages
        self.assertEqual(str(InvalidQueryError('oops')), 'Grid request error: oops')
        self.assertEqual(str(MissingAdvancedFilterRequiredFieldError()),
                         "Grid request error: Advanced filter must have 'column', 'operator' and 'value' field!")
        self.assertIn('create_index', str(MissingSearchIndexError('Grid')))


class ValueCoercerTest(unittest.TestCase):
    """ Test ValueCoercer """

    def test_normalize(self):
        c = ValueCoercer()

        # Scalars are wrapped
        self.assertEqual(c.normalize(1), [1])
        self.assertEqual(c.normalize('a'), ['a'])
        self.assertEqual(c.normalize(None), [None])
        self.assertEqual(c.normalize(''), [''])

        # Lists are preserved
        self.assertEqual(c.normalize([3, 1, 2]), [3, 1, 2])
        self.assertEqual(c.normalize((3, 1)), [3, 1])
        self.assertEqual(c.normalize([]), [])

        # Objects are not values: they would become operators
        with self.assertRaises(InvalidQueryError):
            c.normalize({'$gt': 7})
        with self.assertRaises(InvalidQueryError):
            c.normalize([1, {'$ne': None}])
        with self.assertRaises(InvalidQueryError):
            c.coerce({})

        # Nested lists are literal array values
        self.assertEqual(c.normalize([[1, 2]]), [[1, 2]])

    def test_dates(self):
        c = ValueCoercer()
        expected = datetime(2020, 1, 31, 12, 0, 0, tzinfo=timezone.utc)

        # Naive: UTC
        self.assertEqual(c.normalize('2020-01-31 12:00:00'), [expected])
        self.assertEqual(c.normalize('2020-01-31T12:00:00'), [expected])
        # Zulu
        self.assertEqual(c.normalize('2020-01-31T12:00:00Z'), [expected])
        # Offset: converted to UTC
        value = c.coerce('2020-01-31T14:00:00+02:00')
        self.assertEqual(value, expected)
        self.assertEqual(value.utcoffset(), timedelta(0))

        # Every element of a list
        self.assertEqual(c.normalize(['2020-01-31 12:00:00', 'a', 1]), [expected, 'a', 1])

        # Not dates
        self.assertEqual(c.normalize('2020-01-31'), ['2020-01-31'])
        self.assertEqual(c.normalize('12:00:00'), ['12:00:00'])

        # Looks like a date, but does not parse: unchanged
        self.assertEqual(c.normalize('2020-13-45 12:00:00'), ['2020-13-45 12:00:00'])
        self.assertEqual(c.normalize('since 2020-01-31 12:00:00'), ['since 2020-01-31 12:00:00'])
