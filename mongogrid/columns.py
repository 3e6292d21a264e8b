from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Tuple

from .exc import MissingConditionColumnError, MissingSortationColumnError, MissingSearchColumnError


class ColumnConfig:
    """ Column configuration of a single resource

    A resource exposes *logical* column names to the API user, and maps them onto
    *physical* document fields. This way, the storage may change without breaking the API.

    - `conditions`: {logical name: field} of columns that can be filtered by
    - `sortations`: {logical name: field} of columns that can be sorted by
    - `searchable`: logical names that the free-text search goes through.
        Every one of them must also be a condition column.
    - `condition_callbacks`: {logical name: callable} custom filtering logic for a column.
        Signature: `callback(builder, values, field, expr, operator)`.
        The callback writes its condition into `expr` (an `Expr`).
        When used for searching, `values` is `[search]` and `operator` is `None`.
    - `sort_callbacks`: {logical name: callable} custom sorting preparation for a column.
        Signature: `callback(builder) -> list of field names`.
        The callback may add computed fields to the builder; the names it returns are removed
        from the results after sorting.

    The configuration is read-only: it's shared by every request made to the resource.
    """

    __slots__ = ('conditions', 'sortations', 'searchable', 'condition_callbacks', 'sort_callbacks')

    def __init__(self,
                 conditions: Mapping[str, str] = None,
                 sortations: Mapping[str, str] = None,
                 searchable: Iterable[str] = (),
                 condition_callbacks: Mapping[str, Callable] = None,
                 sort_callbacks: Mapping[str, Callable] = None):
        # Copy everything, then freeze
        self.conditions = MappingProxyType(dict(conditions or {}))
        self.sortations = MappingProxyType(dict(sortations or {}))
        self.searchable = tuple(searchable or ())
        self.condition_callbacks = MappingProxyType(dict(condition_callbacks or {}))
        self.sort_callbacks = MappingProxyType(dict(sort_callbacks or {}))

    def __repr__(self):
        return '{}(conditions={!r}, sortations={!r}, searchable={!r})'.format(
            self.__class__.__name__,
            list(self.conditions), list(self.sortations), list(self.searchable))


class ColumnRegistry:
    """ Validates logical column names against a ColumnConfig and resolves them into fields

        Every failure reports the offending column and the resource name.
    """

    def __init__(self, config: ColumnConfig, resource_name: str):
        """ Init the registry

        :param config: Column configuration of the resource
        :param resource_name: Name of the resource, for error messages
        """
        self.config = config
        self.resource_name = resource_name

    def resolve_condition(self, column: str) -> str:
        """ Get the field for a filter column

        :raises MissingConditionColumnError
        """
        try:
            return self.config.conditions[column]
        except (KeyError, TypeError):  # TypeError: unhashable column name
            raise MissingConditionColumnError(self.resource_name, column)

    def resolve_sortation(self, column: str) -> str:
        """ Get the field for a sort column

        :raises MissingSortationColumnError
        """
        try:
            return self.config.sortations[column]
        except (KeyError, TypeError):
            raise MissingSortationColumnError(self.resource_name, column)

    def require_searchable(self) -> List[Tuple[str, str]]:
        """ Get the searchable columns, as a list of (column, field)

        :raises MissingSearchColumnError: no searchable columns, or one of them is not a condition column
        """
        if not self.config.searchable:
            raise MissingSearchColumnError(self.resource_name)

        ret = []
        for column in self.config.searchable:
            if column not in self.config.conditions:
                raise MissingSearchColumnError(self.resource_name, column)
            ret.append((column, self.config.conditions[column]))
        return ret

    def condition_callback(self, column: str) -> Optional[Callable]:
        """ Get the custom condition callback for a column, if any """
        return self.config.condition_callbacks.get(column)

    def sort_callback(self, column: str) -> Optional[Callable]:
        """ Get the custom sort callback for a column, if any """
        return self.config.sort_callbacks.get(column)

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.resource_name)
