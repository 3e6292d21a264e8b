"""
### Search Operation
Free-text search through the columns that a resource has declared searchable.

```javascript
{ search: 'john' }
```

Every searchable column contributes one OR-ed condition: the column contains the term, case-insensitive,
unless the column has a custom condition callback, which is then used instead (with `operator=None`).

With the `use_text_search` setting, the term also goes into a `$text` search.
This requires a TEXT index on the collection.
"""

from .base import GridHandlerBase
from .filter import ConditionCompiler, ConditionExpression, Operator
from ..columns import ColumnRegistry
from ..exc import InvalidQueryError


class GridSearch(GridHandlerBase):
    """ Search through searchable columns """

    request_section_name = 'search'

    _CONDITION_COMPILER_CLS = ConditionCompiler

    def __init__(self, columns: ColumnRegistry, use_text_search=False):
        """ Init search

        :param columns: The column registry of the resource
        :param use_text_search: Also use a `$text` query. Requires a TEXT index.
        """
        super(GridSearch, self).__init__(columns)

        # Config
        self.use_text_search = use_text_search
        self.compiler = self._CONDITION_COMPILER_CLS()

        # On input
        self.search = None
        #: list of ConditionExpression, one for every searchable column
        self.expressions = None

    def input(self, search=None):
        super(GridSearch, self).input(search)

        if search is not None and not isinstance(search, str):
            raise InvalidQueryError('Search must be either a string, or null')

        self.search = search or None
        self.expressions = self._parse_search(self.search) if self.search else []
        return self

    def _parse_search(self, search):
        """ Build a condition for every searchable column

        :raises MissingSearchColumnError
        """
        expressions = []
        for column, field in self.columns.require_searchable():
            callback = self.columns.condition_callback(column)
            expressions.append(ConditionExpression(
                column, field,
                None if callback else Operator.LIKE,
                [search],
                callback=callback,
                compiler=self.compiler,
            ))
        return expressions

    def compile_expressions(self, builder):
        """ Compile the search into a list of expressions to be AND-ed with the filter

        :rtype: list[mongogrid.builder.Expr]
        """
        if not self.search:
            return []

        ret = [
            builder.expr().add_or(*[e.compile_expression(builder) for e in self.expressions])
        ]
        if self.use_text_search:
            ret.insert(0, builder.expr().text(self.search))
        return ret

    # See: GridConditions.alter_builder
    alter_builder = NotImplemented
