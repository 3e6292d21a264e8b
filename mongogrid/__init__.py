"""
MongoGrid compiles data grid requests into [MongoDB](https://www.mongodb.com/) queries.

The main use case is the interaction with the UI:
every time the UI shows a table that the user can *filter*, *search*, *sort*, and *page through*,
you won't have to write a single line of repetitive code!

The API user sends a grid request, which controls the way the result set is generated:

```javascript
$.get('/api/user?grid=' + JSON.stringify({
    filter: [ [ { column: 'age', operator: 'GTE', value: 18 } ] ],  // filter: age >= 18
    search: 'john',  // search through searchable columns
    sorter: [ { column: 'age', direction: 'DESC' } ],  // sort by `age` DESC
    page: 1,
    itemsPerPage: 10,  // 10 items per page
}))
```

Every resource declares which columns can be used, and how they map onto document fields.
The API user can't touch anything else.
"""

# Exceptions that are used here and there
from .exc import *

# Every resource declares its columns
from .columns import ColumnConfig, ColumnRegistry

# The heart of MongoGrid are the handlers:
# that's where grid requests are converted to actual MongoDB queries!
from . import handlers
from .handlers import Operator

# Builders: the query artifacts that handlers write into
from .builder import Expr, PipelineBuilder, QueryBuilder

# GridQuery is the man that takes your grid request, and runs it with handlers
from .query import GridQueryBase, GridAggregationQuery, GridQuery
from .request import GridRequest
from .result import ResultData, ResultPage, grid_response, DATE_TIME, DATE_TIME_UTC

# Helpers
# Reusable query objects (so that you don't have to initialize them over and over again)
from .util import Reusable
# Settings object for grid queries
from .util import GridSettingsDict
