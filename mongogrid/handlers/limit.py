"""
### Paging Operation
Paging corresponds to the `$skip` and `$limit` stages of an aggregation, or `skip()`/`limit()` of `find()`.

```javascript
{
    page: 3,          // 1-based
    itemsPerPage: 20, // we're skipping 40 items
}
```

Values: positive integers, or `null` for the defaults.
"""

from .base import GridHandlerBase
from ..columns import ColumnRegistry
from ..exc import InvalidQueryError


class GridPagination(GridHandlerBase):
    """ Grid paging

        Handles two keys:
        * 'page': None, or a positive int: the page number, 1-based
        * 'itemsPerPage': None, or a positive int: the page size
    """

    request_section_name = 'paging'

    def __init__(self, columns: ColumnRegistry, max_items_per_page=None, default_items_per_page=10):
        """ Init paging

        :param columns: The column registry of the resource
        :param max_items_per_page: The maximum page size.
            The user can never go any higher than that.
        :param default_items_per_page: The page size to use when the request has none
        """
        super(GridPagination, self).__init__(columns)

        # Config
        self.max_items_per_page = max_items_per_page
        self.default_items_per_page = default_items_per_page
        assert self.max_items_per_page is None or self.max_items_per_page > 0
        assert self.default_items_per_page > 0

        # On input
        self.page = None
        self.items_per_page = None

    def input(self, page=None, items_per_page=None):
        super(GridPagination, self).input((page, items_per_page))

        # Defaults
        if page is None:
            page = 1
        if items_per_page is None:
            items_per_page = self.default_items_per_page

        # Validate. NOTE: bool is an int, but makes no sense here
        if not isinstance(page, int) or isinstance(page, bool) or page < 1:
            raise InvalidQueryError('Page must be a positive integer, or null')
        if not isinstance(items_per_page, int) or isinstance(items_per_page, bool) or items_per_page < 1:
            raise InvalidQueryError('Items per page must be a positive integer, or null')

        # Max limit
        if self.max_items_per_page:
            items_per_page = min(self.max_items_per_page, items_per_page)

        # Done
        self.page = page
        self.items_per_page = items_per_page
        return self

    def is_input_empty(self):
        return self.input_value == (None, None)

    @property
    def skip(self):
        """ The number of items to skip """
        return (self.page - 1) * self.items_per_page

    @property
    def limit(self):
        return self.items_per_page

    def alter_builder(self, builder):
        return builder.skip(self.skip).limit(self.limit)

    def get_final_input_value(self):
        return self.page, self.items_per_page
