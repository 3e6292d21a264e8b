from typing import Mapping

from .exc import InvalidQueryError


class GridRequest:
    """ A grid request: what the API user wants to see

        All the values are structured data: parsing JSON is up to the caller.

        Example:

            GridRequest(
                filter=[[{'column': 'age', 'operator': 'GTE', 'value': 18}]],
                order_by=[{'column': 'age', 'direction': 'DESC'}],
                search='john',
                page=2,
                items_per_page=20,
            )
    """

    __slots__ = ('filter', 'additional_filter', 'order_by', 'search', 'page', 'items_per_page', 'native_query')

    #: camelCase request keys => attribute names
    KEYS = {
        'filter': 'filter',
        'additionalFilter': 'additional_filter',
        'sorter': 'order_by',
        'orderBy': 'order_by',
        'search': 'search',
        'page': 'page',
        'itemsPerPage': 'items_per_page',
        'nativeQuery': 'native_query',
    }

    def __init__(self,
                 filter: list = None,
                 additional_filter: list = None,
                 order_by: list = None,
                 search: str = None,
                 page: int = None,
                 items_per_page: int = None,
                 native_query: Mapping = None):
        """ Init a request

        :param filter: AND-groups of OR-ed conditions: [[{column, operator, value}, ...], ...]
        :param additional_filter: Another filter, AND-ed with the first one.
            Is meant to be set by the application, not by the API user (e.g. to restrict results to a tenant),
            and is never echoed back.
        :param order_by: List of sortations: [{column, direction}, ...]
        :param search: Free-text search term
        :param page: Page number, 1-based. Default: 1
        :param items_per_page: Page size. Default: the `default_items_per_page` setting
        :param native_query: A raw filter document. Only used by queries that allow it.
        """
        self.filter = filter or []
        self.additional_filter = additional_filter or []
        self.order_by = order_by or []
        self.search = search
        self.page = page
        self.items_per_page = items_per_page
        self.native_query = native_query

    @classmethod
    def from_dict(cls, data: Mapping) -> 'GridRequest':
        """ Create a request from a dict with camelCase keys

            Keys: filter, additionalFilter, sorter (or orderBy), search, page, itemsPerPage, nativeQuery

        :raises InvalidQueryError: not a dict, or unknown keys
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidQueryError('Grid request must be an object; {} provided.'.format(type(data)))

        invalid_keys = set(data.keys()) - set(cls.KEYS)
        if invalid_keys:
            raise InvalidQueryError('Unknown grid request keys: {}'.format(', '.join(sorted(map(str, invalid_keys)))))

        return cls(**{cls.KEYS[k]: v for k, v in data.items()})

    def copy_with(self, **changes) -> 'GridRequest':
        """ Copy the request, changing some values """
        kwargs = {name: getattr(self, name) for name in self.__slots__}
        kwargs.update(changes)
        return self.__class__(**kwargs)

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__name__,
            ', '.join('{}={!r}'.format(name, getattr(self, name))
                      for name in self.__slots__
                      if getattr(self, name)))
