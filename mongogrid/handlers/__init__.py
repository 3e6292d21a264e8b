"""
A grid is a list of documents that the API user can filter, search, sort, and page through.
The grid request is an object that describes what the user wants to see:

```javascript
$.get('/api/user?grid=' + JSON.stringify({
    filter: [
        [ { column: 'age', operator: 'GTE', value: 18 } ],
    ],
    search: 'john',
    sorter: [ { column: 'age', direction: 'DESC' } ],
    page: 2,
    itemsPerPage: 20,
}))
```

Grid Request Syntax
-------------------

* `filter`: [Filter Operation](#filter-operation): AND-groups of OR-ed conditions
* `search`: [Search Operation](#search-operation): free-text search through searchable columns
* `sorter`: [Sort Operation](#sort-operation): the order of the results
* `page`, `itemsPerPage`: [Paging Operation](#paging-operation)

The API user only ever sees *logical* column names. Every resource maps them onto document fields,
and only the columns that the resource has configured can be used: see `ColumnConfig`.

The response carries the total number of matching documents: see [Count Operation](#count-operation).
"""

from .base import GridHandlerBase
from .filter import GridConditions, ConditionCompiler, ConditionExpression, Operator, NO_VALUE_OPERATORS
from .search import GridSearch
from .sort import GridSort
from .limit import GridPagination
from .count import GridCount, FAST_COUNT, AGGREGATE_COUNT, decide_count_strategy
