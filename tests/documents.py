from datetime import datetime, timedelta

import mongomock

from mongogrid import ColumnConfig, GridAggregationQuery, GridQuery


# The first document's date; every next document is one day later
TODAY = datetime(2020, 1, 1, 12, 0, 0)


def make_documents(n=10):
    """ Make test documents: 'bool', 'date', 'float', 'int', 'string'. There's no 'string2'! """
    return [
        {
            'bool': i % 2 == 0,
            'date': TODAY + timedelta(days=i),
            'float': i * 1.1,
            'int': i,
            'string': 'String {}'.format(i),
        }
        for i in range(n)
    ]


def get_collection(n=10):
    """ Get an in-memory collection with test documents """
    client = mongomock.MongoClient()
    collection = client.db.documents
    collection.insert_many(make_documents(n))
    return collection


def custom_string_condition(builder, values, field, expr, operator):
    expr.field(field).equals(values[0])


def custom_string_sortation(builder):
    builder.add_fields(customString='$string')
    return ['customString']


CONDITIONS = {
    'bool': 'bool',
    'custom_string': 'string',
    'date': 'date',
    'float': 'float',
    'id': '_id',
    'int': 'int',
    'string': 'string',
    'string2': 'string2',
}

SORTATIONS = {
    'bool': 'bool',
    'custom_string': 'string',
    'date': 'date',
    'float': 'float',
    'id': '_id',
    'int': 'int',
    'string': 'string',
}


class AggregationDocumentGrid(GridAggregationQuery):
    """ Aggregation grid, with callbacks """
    columns = ColumnConfig(
        conditions=CONDITIONS,
        sortations=SORTATIONS,
        searchable=['string', 'custom_string'],
        condition_callbacks={'custom_string': custom_string_condition},
        sort_callbacks={'custom_string': custom_string_sortation},
    )


class DocumentGrid(GridQuery):
    """ find() grid """
    columns = ColumnConfig(
        conditions=CONDITIONS,
        sortations=SORTATIONS,
        searchable=['string', 'custom_string'],
        condition_callbacks={'custom_string': custom_string_condition},
    )


class NativeDocumentGrid(DocumentGrid):
    """ find() grid that accepts native queries """
    allow_native = True


class UnsearchableDocumentGrid(GridAggregationQuery):
    """ Grid without searchable columns """
    columns = ColumnConfig(
        conditions={'int': 'int'},
        sortations={'int': 'int'},
    )
