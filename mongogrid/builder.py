"""
Builders accumulate MongoDB query artifacts.

* `Expr` is a filter document under construction: the thing that conditions are written into.
* `PipelineBuilder` is a list of aggregation stages under construction: used by `GridAggregationQuery`
* `QueryBuilder` is the state of a `find()` call under construction: used by `GridQuery`

Both builders share a small interface that the handlers rely on:

* `expr()` makes a new `Expr`
* `add_and(*exprs)` ANDs conditions into the query (`QueryBuilder`), or into a `$match` stage (`PipelineBuilder`)
* `sort(spec)`, `skip(n)`, `limit(n)`, `unset(*fields)`

This way, filtering and sorting are implemented once, and work with both targets.
"""

from collections import OrderedDict
from copy import deepcopy
from typing import Iterable, List, Mapping, Optional, Tuple


class Expr:
    """ A filter document under construction

        Example:

            Expr().field('age').gte(18).field('age').lte(25)
            #-> {'age': {'$gte': 18, '$lte': 25}}

            Expr().add_or(Expr().field('a').equals(1), Expr().field('b').equals(2))
            #-> {'$or': [{'a': 1}, {'b': 2}]}
    """

    __slots__ = ('_query', '_field')

    def __init__(self, query: Mapping = None):
        self._query = deepcopy(dict(query or {}))
        self._field = None

    def field(self, name: str) -> 'Expr':
        """ Pick the field that the following operators apply to """
        self._field = name
        return self

    def _current_field(self) -> str:
        if self._field is None:
            raise RuntimeError('No field selected: call Expr.field() first')
        return self._field

    def _operator(self, operator: str, value) -> 'Expr':
        field = self._current_field()
        # An operator document can hold several operators: {$gte: 1, $lte: 2}
        # A literal value (an equality check) gets replaced
        current = self._query.get(field)
        if not _is_operator_document(current):
            current = self._query[field] = {}
        current[operator] = value
        return self

    def equals(self, value) -> 'Expr':
        """ field = value """
        self._query[self._current_field()] = value
        return self

    def not_equal(self, value) -> 'Expr':
        return self._operator('$ne', value)

    def in_(self, values: Iterable) -> 'Expr':
        return self._operator('$in', list(values))

    def not_in(self, values: Iterable) -> 'Expr':
        return self._operator('$nin', list(values))

    def gt(self, value) -> 'Expr':
        return self._operator('$gt', value)

    def gte(self, value) -> 'Expr':
        return self._operator('$gte', value)

    def lt(self, value) -> 'Expr':
        return self._operator('$lt', value)

    def lte(self, value) -> 'Expr':
        return self._operator('$lte', value)

    def exists(self, flag: bool = True) -> 'Expr':
        return self._operator('$exists', bool(flag))

    def regex(self, pattern: str, options: str = '') -> 'Expr':
        """ field matches a regular expression """
        self._operator('$regex', pattern)
        if options:
            self._operator('$options', options)
        return self

    def add_or(self, *exprs: 'Expr') -> 'Expr':
        """ Add expressions that are OR-ed together """
        self._query.setdefault('$or', []).extend(e.get_query() for e in exprs)
        return self

    def add_and(self, *exprs: 'Expr') -> 'Expr':
        """ Add expressions that are AND-ed together """
        self._query.setdefault('$and', []).extend(e.get_query() for e in exprs)
        return self

    def text(self, search: str) -> 'Expr':
        """ Full-text search. Requires a TEXT index on the collection """
        self._query['$text'] = {'$search': search}
        return self

    def merge(self, query: Mapping) -> 'Expr':
        """ Merge a raw filter document into this expression """
        self._query.update(deepcopy(dict(query)))
        return self

    def is_empty(self) -> bool:
        return not self._query

    def get_query(self) -> dict:
        """ Get the filter document """
        return deepcopy(self._query)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self._query)


def _is_operator_document(value):
    return isinstance(value, dict) and bool(value) and all(k.startswith('$') for k in value)


def _is_inclusion(projection):
    """ Is it an inclusion projection: {field: 1}? `_id` doesn't count """
    return any(value not in (0, False)
               for field, value in projection.items()
               if field != '_id')


class PipelineBuilder:
    """ An aggregation pipeline under construction

        Stages are appended in the order the methods are called.
    """

    def __init__(self, stages: Iterable[Mapping] = ()):
        self._stages = [dict(s) for s in stages]

    def expr(self) -> Expr:
        """ Make a new expression for a $match stage """
        return Expr()

    def add_stage(self, stage: Mapping) -> 'PipelineBuilder':
        """ Add a raw stage, e.g. {'$lookup': {...}} """
        self._stages.append(dict(stage))
        return self

    def match(self, expr: Expr) -> 'PipelineBuilder':
        return self.add_stage({'$match': expr.get_query()})

    def add_and(self, *exprs: Expr) -> 'PipelineBuilder':
        """ Add a $match stage with all the expressions AND-ed together """
        if not exprs:
            return self
        return self.match(Expr().add_and(*exprs))

    def add_fields(self, **fields) -> 'PipelineBuilder':
        """ Add computed fields: {'$addFields': {name: expression}} """
        return self.add_stage({'$addFields': fields})

    def lookup(self, from_: str, local_field: str, foreign_field: str, as_: str) -> 'PipelineBuilder':
        return self.add_stage({'$lookup': {
            'from': from_,
            'localField': local_field,
            'foreignField': foreign_field,
            'as': as_,
        }})

    def group(self, **spec) -> 'PipelineBuilder':
        return self.add_stage({'$group': spec})

    def project(self, **spec) -> 'PipelineBuilder':
        return self.add_stage({'$project': spec})

    def sort(self, spec: Mapping[str, int]) -> 'PipelineBuilder':
        """ Sort by {field: +1|-1}, in the order of the keys """
        return self.add_stage({'$sort': OrderedDict(spec)})

    def unset(self, *fields: str) -> 'PipelineBuilder':
        return self.add_stage({'$unset': list(fields)})

    def skip(self, n: int) -> 'PipelineBuilder':
        return self.add_stage({'$skip': n})

    def limit(self, n: int) -> 'PipelineBuilder':
        return self.add_stage({'$limit': n})

    def count(self, field: str) -> 'PipelineBuilder':
        """ Count the documents into a single {field: n} row """
        return self.add_stage({'$count': field})

    def get_pipeline(self) -> List[dict]:
        return deepcopy(self._stages)

    def __len__(self):
        return len(self._stages)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self._stages)


class QueryBuilder:
    """ A `find()` query under construction

        Keeps the filter document, the sort, the projection, and the skip/limit.
    """

    def __init__(self, query: Mapping = None, projection: Mapping = None):
        self._expr = Expr(query)
        self._sort = OrderedDict()
        self._projection = dict(projection) if projection is not None else None
        self._skip = 0
        self._limit = 0

    def __copy__(self):
        cls = self.__class__
        result = cls.__new__(cls)
        result._expr = Expr(self._expr.get_query())
        result._sort = OrderedDict(self._sort)
        result._projection = dict(self._projection) if self._projection is not None else None
        result._skip = self._skip
        result._limit = self._limit
        return result

    def expr(self) -> Expr:
        return Expr()

    def add_and(self, *exprs: Expr) -> 'QueryBuilder':
        """ AND the expressions into the query """
        if exprs:
            self._expr.add_and(*exprs)
        return self

    def sort(self, spec: Mapping[str, int]) -> 'QueryBuilder':
        self._sort.update(spec)
        return self

    def project(self, projection: Optional[Mapping]) -> 'QueryBuilder':
        self._projection = dict(projection) if projection is not None else None
        return self

    def unset(self, *fields: str) -> 'QueryBuilder':
        """ Exclude fields from the results

            With an inclusion projection, the fields are dropped from it instead:
            a projection can't mix inclusion and exclusion (except for `_id`).
        """
        if self._projection is None:
            self._projection = {}

        if not _is_inclusion(self._projection):
            self._projection.update(dict.fromkeys(fields, 0))
            return self

        for field in fields:
            if field == '_id':
                self._projection[field] = 0
            else:
                self._projection.pop(field, None)
        return self

    def skip(self, n: int) -> 'QueryBuilder':
        self._skip = n
        return self

    def limit(self, n: int) -> 'QueryBuilder':
        self._limit = n
        return self

    def get_query(self) -> dict:
        """ Get the filter document """
        return self._expr.get_query()

    def get_sort(self) -> List[Tuple[str, int]]:
        return list(self._sort.items())

    def get_projection(self) -> Optional[dict]:
        return dict(self._projection) if self._projection is not None else None

    def find_kwargs(self) -> dict:
        """ Get kwargs for `Collection.find()` """
        kwargs = dict(filter=self.get_query(),
                      projection=self.get_projection(),
                      skip=self._skip,
                      limit=self._limit)
        if self._sort:
            kwargs['sort'] = self.get_sort()
        return kwargs

    def execute(self, collection):
        """ Run the query against a pymongo collection

        :type collection: pymongo.collection.Collection
        :rtype: list[dict]
        """
        return list(collection.find(**self.find_kwargs()))

    def count(self, collection) -> int:
        """ Count the documents matching the filter (skip and limit are ignored) """
        return collection.count_documents(self.get_query())

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.find_kwargs())
