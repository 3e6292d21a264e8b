"""
### Count Operation
Every grid response carries the total number of documents that match the request,
not just the number of documents on the current page.

The total is computed with a separate query, and there are two ways to do it:

* `FAST_COUNT`: ask the collection for its estimated document count, which is read from metadata.
  Only correct when nothing is filtered out: no filter, no search, and no `$group` anywhere in the pipeline.
* `AGGREGATE_COUNT`: run the count pipeline with a `{$count: 'count'}` stage at the end.

The items and the total are two separate round-trips: there's no transactional guarantee between them.
"""

import logging

from .base import GridHandlerBase
from ..columns import ColumnRegistry
from ..util.pipeline import contains_stage

logger = logging.getLogger(__name__)


#: Count strategies
FAST_COUNT = 'FAST_COUNT'
AGGREGATE_COUNT = 'AGGREGATE_COUNT'


class GridCount(GridHandlerBase):
    """ Grid total count

        Receives two flags: whether the request filters, and whether it searches.
    """

    request_section_name = 'count'

    #: Name of the field that the $count stage writes into
    count_field = 'count'

    def __init__(self, columns: ColumnRegistry, fast_count=True):
        """ Init a count

        :param columns: The column registry of the resource
        :param fast_count: Allow the estimated document count when nothing is filtered out.
            Set to False to always count with a pipeline.
        """
        super(GridCount, self).__init__(columns)

        # Config
        self.fast_count = fast_count

        # On input
        self.has_filter = None
        self.has_search = None

    def input(self, has_filter=False, has_search=False):
        super(GridCount, self).input((has_filter, has_search))
        self.has_filter = bool(has_filter)
        self.has_search = bool(has_search)
        return self

    def decide(self, pipeline):
        """ Pick a count strategy for a pipeline

        :param pipeline: The count pipeline (and the data pipeline), as a list of stages
        :return: FAST_COUNT | AGGREGATE_COUNT
        """
        return decide_count_strategy(pipeline, self.has_filter, self.has_search,
                                     fast_count=self.fast_count)

    def count_pipeline(self, collection, builder, data_pipeline=()) -> int:
        """ Count the documents with an aggregation

        :param collection: The collection to count in
        :type collection: pymongo.collection.Collection
        :param builder: The count pipeline. It's used up.
        :type builder: mongogrid.builder.PipelineBuilder
        :param data_pipeline: The pipeline that fetches the items, as a list of stages.
            A $group in it rules out the fast count, even when the count pipeline has none.
        """
        strategy = self.decide(list(data_pipeline) + builder.get_pipeline())
        logger.debug('Count strategy: %s', strategy)

        if strategy == FAST_COUNT:
            return collection.estimated_document_count()

        pipeline = builder.count(self.count_field).get_pipeline()
        logger.debug('Count pipeline: %r', pipeline)
        rows = list(collection.aggregate(pipeline))
        return rows[0][self.count_field] if rows else 0

    def count_query(self, collection, builder) -> int:
        """ Count the documents matching a find() query

        :type collection: pymongo.collection.Collection
        :type builder: mongogrid.builder.QueryBuilder
        """
        return builder.count(collection)

    # Not Implemented for this handler: counting happens in a separate query
    alter_builder = NotImplemented


def decide_count_strategy(pipeline, has_filter: bool, has_search: bool, fast_count=True) -> str:
    """ Pick a count strategy

        The estimated count is only correct when no document is filtered out, or grouped.

    :param pipeline: List of stages
    :param has_filter: Is there a filter (the primary one, or the additional one)?
    :param has_search: Is there a search term?
    :param fast_count: Is the estimated count allowed at all?
    :return: FAST_COUNT | AGGREGATE_COUNT
    """
    if fast_count and not has_filter and not has_search and not contains_stage(pipeline, '$group'):
        return FAST_COUNT
    return AGGREGATE_COUNT
