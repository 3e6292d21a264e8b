import logging
from contextlib import contextmanager
from copy import copy
from typing import Mapping, Union

from pymongo.errors import OperationFailure

from . import handlers
from .builder import PipelineBuilder, QueryBuilder
from .columns import ColumnConfig, ColumnRegistry
from .exc import MissingSearchIndexError
from .request import GridRequest
from .result import DATE_TIME, DATE_TIME_UTC, ResultData, ResultPage, grid_response
from .util.inspect import pluck_kwargs_from

logger = logging.getLogger(__name__)

#: MongoDB error code: IndexNotFound
INDEX_NOT_FOUND = 27


class GridQueryBase:
    """ A grid over a MongoDB collection

        Subclass it for every resource, and configure it with class attributes:

            class UserGrid(GridAggregationQuery):
                columns = ColumnConfig(
                    conditions={'id': '_id', 'name': 'name', 'age': 'age'},
                    sortations={'name': 'name', 'age': 'age'},
                    searchable=['name'],
                )
                settings = GridSettingsDict(max_items_per_page=100)

            UserGrid(db.users).get_data(GridRequest(search='john'))

        Every request goes through three steps:

        1. `query(request)` gives the request to the handlers, which validate it.
            Nothing touches the store before validation is done.
        2. `end()` builds the query, `end_count()` builds the count query
        3. `fetch()` and `count()` run them.
           `get_data()` does it all, and converts the results.
    """

    #: Column configuration of the resource
    columns = None  # type: ColumnConfig

    #: Handler settings: see GridSettingsDict
    settings = None

    #: Name of the resource, for error messages. Default: the class name
    resource_name = None

    #: strftime() format for dates in the results
    date_format = DATE_TIME

    def __init__(self, collection, columns: ColumnConfig = None, settings: Mapping = None, resource_name: str = None):
        """ Init a grid query

        :param collection: The collection to query
        :type collection: pymongo.collection.Collection
        :param columns: Column configuration. Default: the `columns` class attribute
        :param settings: Settings for handlers.
            These are just plain kwargs names for every handler object's __init__ method.
            See: GridSettingsDict
        :param resource_name: Name of the resource, for error messages. Default: the class name
        :raises KeyError: Invalid settings provided
        """
        self.collection = collection
        self.columns = columns if columns is not None else self.columns
        if self.columns is None:
            raise AssertionError('{} has no column configuration'.format(self.__class__.__name__))

        self.resource_name = resource_name or self.resource_name or self.__class__.__name__
        self.column_registry = ColumnRegistry(self.columns, self.resource_name)

        # Get ready: request handlers
        self._settings = dict(settings if settings is not None else self.settings or {})
        self._init_handlers()

        # On query()
        self.request = None  # type: GridRequest | None

        # NOTE: keep in mind that this object is copy()ed in order to make it reusable.
        # Every property that keeps per-request state has to be reset in __copy__()

    def __copy__(self):
        """ GridQuery can be reused: wrap it with Reusable() which performs the automatic copy() """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)

        # Copy handlers
        for name in self.HANDLER_ATTR_NAMES:
            setattr(result, name, copy(getattr(result, name)))

        # Reset per-request state
        result.request = None
        return result

    def query(self, request: Union[GridRequest, Mapping]):
        """ Give the request to the handlers

        :param request: The request, or a dict with camelCase keys (see: GridRequest.from_dict())
        :raises InvalidQueryError: malformed request
        :raises InvalidColumnError: column not configured for the operation
        :rtype: GridQueryBase
        """
        if not isinstance(request, GridRequest):
            request = GridRequest.from_dict(request)
        self.request = request

        # Bind every handler with ourselves
        for handler_name, handler in self._handlers():
            handler.with_gridquery(self)

        # Input
        self.handler_filter.input(request.filter, request.additional_filter)
        self.handler_search.input(request.search)
        self.handler_sort.input(request.order_by)
        self.handler_pagination.input(request.page, request.items_per_page)
        self.handler_count.input(has_filter=bool(self.handler_filter.groups),
                                 has_search=not self.handler_search.is_input_empty())

        # Done
        return self

    def end(self):
        """ Build the query """
        raise NotImplementedError()

    def end_count(self):
        """ Build the count query """
        raise NotImplementedError()

    def fetch(self) -> list:
        """ Run the query, get the documents as they are """
        raise NotImplementedError()

    def count(self) -> int:
        """ Count the documents that match the request, on all pages """
        raise NotImplementedError()

    def get_data(self, request: Union[GridRequest, Mapping]) -> ResultPage:
        """ Get a page of results, and the total count

            The documents are converted with ResultData

        :raises InvalidQueryError: malformed request
        :raises InvalidColumnError: column not configured for the operation
        :raises MissingSearchIndexError: a text search without a TEXT index
        """
        self.query(request)
        items = ResultData(self.fetch(), self.date_format).to_list()
        total = self.count()
        return ResultPage(items, total)

    def get_response(self, request: Union[GridRequest, Mapping]) -> dict:
        """ Get a response object for the API user: see grid_response() """
        page = self.get_data(request)
        return grid_response(self.final_request(), page)

    def final_request(self) -> GridRequest:
        """ Get the request, with the values the handlers have actually used """
        page, items_per_page = self.handler_pagination.get_final_input_value()
        return self.request.copy_with(page=page,
                                      items_per_page=items_per_page,
                                      order_by=self.handler_sort.get_final_input_value())

    def _add_conditions(self, builder):
        """ AND the filter and the search into the builder """
        expressions = (self.handler_filter.compile_expressions(builder) +
                       self.handler_search.compile_expressions(builder))
        if expressions:
            builder.add_and(*expressions)
        return builder

    @contextmanager
    def _translate_store_errors(self):
        """ Turn store errors that have a meaning for the API user into GridExceptions """
        try:
            yield
        except OperationFailure as e:
            if e.code == INDEX_NOT_FOUND:
                logger.warning('Missing TEXT index for %s: %s', self.resource_name, e)
                raise MissingSearchIndexError(self.resource_name) from e
            raise

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, self.resource_name)

    # region Request handlers

    # Doing it this way enables you to override the way they are initialized, and use a custom query class with
    # custom handlers.

    _HANDLER_FILTER = handlers.GridConditions
    _HANDLER_SEARCH = handlers.GridSearch
    _HANDLER_SORT = handlers.GridSort
    _HANDLER_PAGINATION = handlers.GridPagination
    _HANDLER_COUNT = handlers.GridCount

    HANDLER_NAMES = ('filter',
                     'search',
                     'sort',
                     'pagination',
                     'count')
    HANDLER_ATTR_NAMES = frozenset('handler_' + name
                                   for name in HANDLER_NAMES)

    # for IDE completion
    handler_filter = None  # type: handlers.GridConditions
    handler_search = None  # type: handlers.GridSearch
    handler_sort = None  # type: handlers.GridSort
    handler_pagination = None  # type: handlers.GridPagination
    handler_count = None  # type: handlers.GridCount

    def _handlers(self):
        """ Get the list of all (handler_name, handler) """
        return [(name, getattr(self, 'handler_' + name))
                for name in self.HANDLER_NAMES]

    def _init_handlers(self):
        """ Initialize every request handler, and give it its settings

            :raises KeyError: Invalid settings provided
        """
        known_settings = set()
        for name in self.HANDLER_NAMES:
            handler_cls = getattr(self, '_HANDLER_' + name.upper())

            # Analyze its __init__(), pluck the arguments that it needs
            kwargs = pluck_kwargs_from(self._settings, for_func=handler_cls.__init__)
            known_settings.update(kwargs.keys())

            setattr(self, 'handler_' + name,
                    handler_cls(self.column_registry, **kwargs))

        # Check settings: anything unused must be a typo
        invalid_keys = set(self._settings.keys()) - known_settings
        if invalid_keys:
            raise KeyError('Invalid settings were provided for {!r}: {}'
                           .format(self, ', '.join(sorted(invalid_keys))))

    # endregion


class GridAggregationQuery(GridQueryBase):
    """ A grid that runs an aggregation pipeline

        The pipeline is: $match (filter & search), $sort, $unset, $skip, $limit.
        Override configure_pipeline() to add your own stages around them:

            def configure_pipeline(self, builder, add_conditions, add_sortations, add_pagination):
                builder.lookup('users', 'author_id', '_id', 'author')
                add_conditions()
                add_sortations()
                add_pagination()
    """

    date_format = DATE_TIME_UTC

    # The builder class to use
    # You can override it, if necessary
    _BUILDER_CLS = PipelineBuilder

    def configure_pipeline(self, builder: PipelineBuilder, add_conditions, add_sortations, add_pagination):
        """ Build the pipeline

        :param builder: The pipeline to build
        :param add_conditions: Callable: adds the $match stage for the filter & the search
        :param add_sortations: Callable: adds the $sort stage
        :param add_pagination: Callable: adds $skip and $limit
        """
        add_conditions()
        add_sortations()
        add_pagination()

    def configure_count_pipeline(self, builder: PipelineBuilder, add_conditions):
        """ Build the count pipeline

            The $count stage is added later, and only if the pipeline has to be run at all.
            NOTE: the fast count is used when nothing is filtered out, and there's no $group in either pipeline.
            If you add stages that filter documents out, disable the `fast_count` setting.

        :param builder: The pipeline to build
        :param add_conditions: Callable: adds the $match stage for the filter & the search
        """
        add_conditions()

    def end(self) -> PipelineBuilder:
        builder = self._BUILDER_CLS()
        self.configure_pipeline(
            builder,
            lambda: self._add_conditions(builder),
            lambda: self.handler_sort.alter_builder(builder),
            lambda: self.handler_pagination.alter_builder(builder),
        )
        return builder

    def end_count(self) -> PipelineBuilder:
        builder = self._BUILDER_CLS()
        self.configure_count_pipeline(
            builder,
            lambda: self._add_conditions(builder),
        )
        return builder

    def fetch(self) -> list:
        pipeline = self.end().get_pipeline()
        logger.debug('%s pipeline: %r', self.resource_name, pipeline)

        with self._translate_store_errors():
            return list(self.collection.aggregate(pipeline))

    def count(self) -> int:
        with self._translate_store_errors():
            return self.handler_count.count_pipeline(self.collection, self.end_count(),
                                                     data_pipeline=self.end().get_pipeline())


class GridQuery(GridQueryBase):
    """ A grid that runs a find() query

        Override prepare_query() to set up a projection, or some base filter:

            def prepare_query(self, builder):
                builder.project({'password': 0})
    """

    #: Allow the API user to give a raw filter document: GridRequest.native_query
    #: When False, the native query is ignored
    allow_native = False

    # The builder class to use
    # You can override it, if necessary
    _BUILDER_CLS = QueryBuilder

    def prepare_query(self, builder: QueryBuilder):
        """ Prepare the base query: projection, base filter, etc """

    def configure_count_query(self):
        """ Get a separate query for counting

            The filter & the search are added to it.
            Default: None, which means that the count query is a copy of the query, without paging.

        :rtype: QueryBuilder | None
        """
        return None

    def _init_builder(self) -> QueryBuilder:
        native_query = self.request.native_query
        if self.allow_native and native_query:
            logger.debug('%s native query: %r', self.resource_name, native_query)
            return self._BUILDER_CLS(native_query)
        return self._BUILDER_CLS()

    def _end_without_paging(self) -> QueryBuilder:
        builder = self._init_builder()
        self.prepare_query(builder)
        self._add_conditions(builder)
        self.handler_sort.alter_builder(builder)
        return builder

    def end(self) -> QueryBuilder:
        builder = self._end_without_paging()
        self.handler_pagination.alter_builder(builder)
        return builder

    def end_count(self) -> QueryBuilder:
        builder = self.configure_count_query()
        if builder is not None:
            return self._add_conditions(builder)
        return self._end_without_paging()

    def fetch(self) -> list:
        builder = self.end()
        logger.debug('%s query: %r', self.resource_name, builder)

        with self._translate_store_errors():
            return builder.execute(self.collection)

    def count(self) -> int:
        with self._translate_store_errors():
            return self.handler_count.count_query(self.collection, self.end_count())
