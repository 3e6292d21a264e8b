"""
### Sort Operation
Sorting corresponds to the `$sort` stage of an aggregation, or the `sort` of `find()`.

The sort operation lets the API user specify the sorting of the results:

```javascript
{
    sorter: [
        // sort by age, descending;
        // then sort by first name, alphabetically
        { column: 'age', direction: 'DESC' },
        { column: 'first_name', direction: 'ASC' },
    ]
}
```

#### Syntax

A list of objects with two fields:

* `column`: the name of a column that the resource has configured for sorting
* `direction`: `ASC` or `DESC` (case-insensitive)

List order is sort precedence. When a column is given twice, it keeps its first position,
and the last direction.

Documents that sort equally are ordered by `_id`: pages never overlap.

#### Sort callbacks

A column may have a sort callback: `callback(builder) -> list of field names`.
It runs before sorting, and may add computed fields to the pipeline (`$addFields`).
The names it returns are removed from the results after sorting (`$unset`),
so that computed fields never leak out.
"""

from collections import OrderedDict

from .base import GridHandlerBase
from ..columns import ColumnRegistry
from ..exc import InvalidQueryError

# Sortation object keys
COLUMN = 'column'
DIRECTION = 'direction'

#: Direction name => MongoDB sort direction
DIRECTIONS = {
    'ASC': +1,
    'DESC': -1,
}


class GridSort(GridHandlerBase):
    """ Grid sorting

        * None: no sorting
        * [ {column: 'a', direction: 'ASC'}, {column: 'b', direction: 'DESC'} ]
    """

    request_section_name = 'sorter'

    #: Documents that sort equally are ordered by this field, ascending
    tie_breaker_field = '_id'

    def __init__(self, columns: ColumnRegistry):
        super(GridSort, self).__init__(columns)

        # On input
        #: OrderedDict() of a sort spec: {field: +1|-1}
        self.sort_spec = None
        #: OrderedDict() of the requested order: {column: 'ASC'|'DESC'}
        self.order = None
        #: Sort callbacks of the columns involved
        self.callbacks = None

    def input(self, order_by=None):
        super(GridSort, self).input(order_by)

        # Empty
        if not order_by:
            order_by = []

        if not isinstance(order_by, (list, tuple)):
            raise InvalidQueryError('{name} must be a list of sortations; {type} provided.'
                                    .format(name=self.request_section_name, type=type(order_by)))

        self.sort_spec = OrderedDict()
        self.order = OrderedDict()
        self.callbacks = []
        for sortation in order_by:
            column, direction = self._parse_sortation(sortation)
            field = self.columns.resolve_sortation(column)

            callback = self.columns.sort_callback(column)
            if callback is not None and callback not in self.callbacks:
                self.callbacks.append(callback)

            self.sort_spec[field] = DIRECTIONS[direction]
            self.order[column] = direction
        return self

    def _parse_sortation(self, sortation):
        """ Validate a single sortation object

        :return: (column, direction)
        :raises InvalidQueryError
        """
        if not isinstance(sortation, dict) or COLUMN not in sortation or DIRECTION not in sortation:
            raise InvalidQueryError("Sortation must have '{}' and '{}' field!".format(COLUMN, DIRECTION))

        direction = sortation[DIRECTION]
        if not isinstance(direction, str) or direction.upper() not in DIRECTIONS:
            raise InvalidQueryError('{} direction can be either ASC or DESC; {!r} provided.'
                                    .format(self.request_section_name, direction))

        return sortation[COLUMN], direction.upper()

    def is_input_empty(self):
        return not self.sort_spec

    def alter_builder(self, builder):
        if not self.sort_spec:
            return builder  # short-circuit

        # Callbacks prepare computed fields
        unsets = []
        for callback in self.callbacks:
            unsets.extend(callback(builder) or ())

        # Sorting is not stable: ties need a unique key
        sort_spec = OrderedDict(self.sort_spec)
        sort_spec.setdefault(self.tie_breaker_field, +1)
        builder.sort(sort_spec)

        # Computed fields never get into the results
        if unsets:
            builder.unset(*unsets)
        return builder

    def get_final_input_value(self):
        return [{COLUMN: column, DIRECTION: direction}
                for column, direction in self.order.items()]
