from copy import copy


class Reusable:
    """ A grid query that serves any number of requests

        A grid query object takes a single request: query(), get_data() and get_response()
        can only be used once, because the handlers keep the request they've received.
        This wrapper keeps the configured query pristine, and gives every request a fresh copy of it.

        Example:

            users_grid = Reusable(UserGrid(collection))

            users_grid.get_data(request)  # works every time
            users_grid.query(request).end()  # a copy that has received the request
            users_grid.resource_name  # configuration is read from the wrapped query

        Handlers take a single input() as well, so they can be wrapped too:

            paging = Reusable(GridPagination(columns, max_items_per_page=100))
            paging.input(page, items_per_page).skip
    """
    __slots__ = ('_wrapped',)

    #: Methods that receive a request. Each call gets a fresh copy of the wrapped object.
    REQUEST_METHODS = frozenset(('query', 'get_data', 'get_response', 'input'))

    def __init__(self, wrapped):
        self._wrapped = wrapped

    def fresh(self):
        """ Get a copy of the wrapped object that hasn't received any request yet """
        return copy(self._wrapped)

    def __getattr__(self, attr):
        if attr in self.REQUEST_METHODS:
            return getattr(self.fresh(), attr)
        return getattr(self._wrapped, attr)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self._wrapped)
