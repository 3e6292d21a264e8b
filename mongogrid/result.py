"""
Results of a grid query, shaped for the API user.

Documents from the store contain values that JSON can't carry: `ObjectId`s and dates.
`ResultData` converts them:

* An `ObjectId` field becomes `id`, a string
* A date is formatted with the resource's date format

`grid_response()` wraps the page of results into the response object:

```javascript
{
    filter: [...], search: 'john', sorter: [...],  // echoed back
    items: [...],
    paging: { page: 2, itemsPerPage: 10, total: 42,
              previousPage: 1, nextPage: 3, lastPage: 5 },
}
```
"""

import math
from datetime import datetime, timezone
from typing import List, NamedTuple

from bson import ObjectId

#: Date formats
DATE_TIME = '%Y-%m-%d %H:%M:%S'
DATE_TIME_UTC = '%Y-%m-%dT%H:%M:%SZ'

#: The field that an ObjectId is moved to
ID_FIELD = 'id'


class ResultData:
    """ Converts documents into plain data """

    def __init__(self, documents, date_format: str = DATE_TIME):
        """

        :param documents: Iterable of documents, e.g. a pymongo cursor
        :param date_format: strftime() format for dates
        """
        self.documents = documents
        self.date_format = date_format

    def to_list(self) -> List[dict]:
        """ Convert every document

            Documents are not modified: every one of them is copied.
        """
        return [self.convert_document(doc) for doc in self.documents]

    def convert_document(self, document) -> dict:
        ret = {}
        object_id = None
        for key, value in document.items():
            if isinstance(value, ObjectId):
                object_id = str(value)
            elif isinstance(value, datetime):
                ret[key] = self.format_date(value)
            else:
                ret[key] = value

        # The id goes last
        if object_id is not None:
            ret[ID_FIELD] = object_id
        return ret

    def format_date(self, value: datetime) -> str:
        # Aware dates are shown in UTC; naive dates from pymongo are UTC already
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime(self.date_format)


class ResultPage(NamedTuple):
    """ A page of results, and the total number of documents """
    items: list
    total: int


def grid_response(request, page: ResultPage) -> dict:
    """ Make a response object for the API user

    :param request: The request, with the final page and items_per_page values
    :type request: mongogrid.request.GridRequest
    :param page: The results
    """
    current_page = request.page or 1
    last_page = max(1, math.ceil(page.total / request.items_per_page))

    return {
        'filter': request.filter,
        'items': page.items,
        'paging': {
            'itemsPerPage': request.items_per_page,
            'lastPage': last_page,
            'nextPage': min(last_page, current_page + 1),
            'page': current_page,
            'previousPage': max(1, current_page - 1),
            'total': page.total,
        },
        'search': request.search,
        'sorter': request.order_by,
    }
