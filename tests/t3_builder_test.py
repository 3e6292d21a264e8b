import unittest
from copy import copy
from unittest import mock

from mongogrid import Expr, PipelineBuilder, QueryBuilder
from mongogrid.util import contains_key, contains_stage


class BuilderTest(unittest.TestCase):
    """ Test Expr, PipelineBuilder, QueryBuilder """

    longMessage = True
    maxDiff = None

    def test_expr(self):
        # Equality
        self.assertEqual(Expr().field('a').equals(1).get_query(), {'a': 1})
        self.assertEqual(Expr().field('a').equals(None).get_query(), {'a': None})

        # Operators on the same field are merged
        self.assertEqual(Expr().field('a').gte(1).field('a').lte(5).get_query(),
                         {'a': {'$gte': 1, '$lte': 5}})
        self.assertEqual(Expr().field('a').gt(1).lt(5).get_query(),
                         {'a': {'$gt': 1, '$lt': 5}})

        # An operator replaces a literal value
        self.assertEqual(Expr().field('a').equals(1).not_equal(2).get_query(),
                         {'a': {'$ne': 2}})

        # Other operators
        self.assertEqual(Expr().field('a').in_((1, 2)).get_query(), {'a': {'$in': [1, 2]}})
        self.assertEqual(Expr().field('a').not_in([1, 2]).get_query(), {'a': {'$nin': [1, 2]}})
        self.assertEqual(Expr().field('a').exists().get_query(), {'a': {'$exists': True}})
        self.assertEqual(Expr().field('a').exists(False).get_query(), {'a': {'$exists': False}})
        self.assertEqual(Expr().field('a').regex('^x').get_query(), {'a': {'$regex': '^x'}})
        self.assertEqual(Expr().field('a').regex('^x', 'i').get_query(), {'a': {'$regex': '^x', '$options': 'i'}})
        self.assertEqual(Expr().text('john').get_query(), {'$text': {'$search': 'john'}})

        # Logical
        self.assertEqual(
            Expr().add_or(Expr().field('a').equals(1), Expr().field('b').equals(2)).get_query(),
            {'$or': [{'a': 1}, {'b': 2}]})
        self.assertEqual(
            Expr().add_and(Expr().field('a').equals(1)).add_and(Expr().field('b').equals(2)).get_query(),
            {'$and': [{'a': 1}, {'b': 2}]})

        # Merge
        self.assertEqual(Expr({'a': 1}).merge({'b': 2}).get_query(), {'a': 1, 'b': 2})

        # Empty
        self.assertTrue(Expr().is_empty())
        self.assertFalse(Expr({'a': 1}).is_empty())

        # get_query() makes a copy
        e = Expr().field('a').in_([1])
        e.get_query()['a']['$in'].append(2)
        self.assertEqual(e.get_query(), {'a': {'$in': [1]}})

        # No field
        with self.assertRaises(RuntimeError):
            Expr().equals(1)
        with self.assertRaises(RuntimeError):
            Expr().gte(1)

    def test_pipeline_builder(self):
        b = PipelineBuilder()
        self.assertIsInstance(b.expr(), Expr)
        self.assertEqual(len(b), 0)

        # Empty add_and() adds nothing
        b.add_and()
        self.assertEqual(b.get_pipeline(), [])

        (b
         .lookup('users', 'author_id', '_id', 'author')
         .add_and(b.expr().field('a').equals(1), b.expr().field('b').gt(2))
         .add_fields(c='$a')
         .group(_id='$b', n={'$sum': 1})
         .project(n=1)
         .sort({'n': -1, '_id': 1})
         .unset('c', 'd')
         .skip(10)
         .limit(5)
         .count('count'))

        self.assertEqual(b.get_pipeline(), [
            {'$lookup': {'from': 'users', 'localField': 'author_id', 'foreignField': '_id', 'as': 'author'}},
            {'$match': {'$and': [{'a': 1}, {'b': {'$gt': 2}}]}},
            {'$addFields': {'c': '$a'}},
            {'$group': {'_id': '$b', 'n': {'$sum': 1}}},
            {'$project': {'n': 1}},
            {'$sort': {'n': -1, '_id': 1}},
            {'$unset': ['c', 'd']},
            {'$skip': 10},
            {'$limit': 5},
            {'$count': 'count'},
        ])
        self.assertEqual(len(b), 10)

        # Sort keeps the order of keys
        self.assertEqual(list(b.get_pipeline()[5]['$sort']), ['n', '_id'])

        # Initial stages
        b = PipelineBuilder([{'$match': {'a': 1}}])
        b.add_stage({'$sample': {'size': 3}})
        self.assertEqual(b.get_pipeline(), [{'$match': {'a': 1}}, {'$sample': {'size': 3}}])

        # get_pipeline() makes a copy
        b.get_pipeline()[0]['$match']['a'] = 2
        self.assertEqual(b.get_pipeline()[0], {'$match': {'a': 1}})

    def test_query_builder(self):
        # Empty
        b = QueryBuilder()
        self.assertEqual(b.find_kwargs(), dict(filter={}, projection=None, skip=0, limit=0))

        # Everything
        b = QueryBuilder({'tenant': 1})
        (b
         .add_and(b.expr().field('a').equals(1))
         .add_and(b.expr().field('b').gt(2))
         .sort({'a': 1})
         .sort({'b': -1})
         .unset('c')
         .skip(10)
         .limit(5))
        self.assertEqual(b.get_query(), {'tenant': 1, '$and': [{'a': 1}, {'b': {'$gt': 2}}]})
        self.assertEqual(b.get_sort(), [('a', 1), ('b', -1)])
        self.assertEqual(b.get_projection(), {'c': 0})
        self.assertEqual(b.find_kwargs(), dict(
            filter={'tenant': 1, '$and': [{'a': 1}, {'b': {'$gt': 2}}]},
            projection={'c': 0},
            skip=10,
            limit=5,
            sort=[('a', 1), ('b', -1)],
        ))

        # Projection
        b = QueryBuilder(projection={'password': 0})
        b.unset('c')
        self.assertEqual(b.get_projection(), {'password': 0, 'c': 0})
        b.project(None)
        self.assertIsNone(b.get_projection())

        # Inclusion projection: unset fields are dropped from it
        b = QueryBuilder(projection={'a': 1, 'b': 1, '_id': 1})
        b.unset('b', 'c')
        self.assertEqual(b.get_projection(), {'a': 1, '_id': 1})
        b.unset('_id')
        self.assertEqual(b.get_projection(), {'a': 1, '_id': 0})

        # `_id` alone doesn't make it an inclusion
        b = QueryBuilder(projection={'_id': 1})
        b.unset('c')
        self.assertEqual(b.get_projection(), {'_id': 1, 'c': 0})

        # copy()
        b = QueryBuilder().sort({'a': 1}).skip(1)
        b2 = copy(b)
        b2.add_and(b2.expr().field('a').equals(1)).sort({'b': 1}).limit(2)
        self.assertEqual(b.find_kwargs(), dict(filter={}, projection=None, skip=1, limit=0, sort=[('a', 1)]))
        self.assertEqual(b2.find_kwargs(), dict(filter={'$and': [{'a': 1}]}, projection=None, skip=1, limit=2,
                                                sort=[('a', 1), ('b', 1)]))

    def test_query_builder_execute(self):
        collection = mock.MagicMock()
        collection.find.return_value = iter([{'a': 1}])
        collection.count_documents.return_value = 42

        b = QueryBuilder({'a': 1}).skip(5).limit(5)
        self.assertEqual(b.execute(collection), [{'a': 1}])
        collection.find.assert_called_once_with(filter={'a': 1}, projection=None, skip=5, limit=5)

        # count() ignores paging
        self.assertEqual(b.count(collection), 42)
        collection.count_documents.assert_called_once_with({'a': 1})

    def test_contains_key(self):
        self.assertFalse(contains_key([], '$group'))
        self.assertFalse(contains_key(None, '$group'))
        self.assertFalse(contains_key('$group', '$group'))
        self.assertTrue(contains_key({'$group': {}}, '$group'))
        self.assertTrue(contains_key([{'$facet': {'a': [{'$match': {}}, {'$group': {'_id': 1}}]}}], '$group'))
        self.assertTrue(contains_key([[{'$group': None}]], '$group'))
        self.assertFalse(contains_key([{'$project': {'a': '$group'}}], '$group'))

        self.assertTrue(contains_stage([{'$match': {}}, {'$group': {'_id': None}}], '$group'))
        self.assertTrue(contains_stage(iter([{'$group': {'_id': None}}]), '$group'))
        self.assertFalse(contains_stage([{'$match': {}}], '$group'))
