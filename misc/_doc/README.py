import json
from exdoc import doc, getmembers

# Methods
doccls = lambda cls, *allowed_keys: {
    'cls': doc(cls),
    'attrs': {name: doc(m, cls)
              for name, m in getmembers(cls, None,
                                        lambda key, value: key in allowed_keys or not key.startswith('_'))}
}

# Data
import mongogrid
from mongogrid.handlers import filter, search, sort, limit, count
from mongogrid import builder, result, GridSettingsDict
from mongogrid import GridAggregationQuery, GridQuery, GridRequest, ColumnConfig, Reusable

data = dict(
    mongogrid=doc(mongogrid),
    handlers=doc(mongogrid.handlers),
    operations={
        m.__name__.rsplit('.', 1)[1]: doc(m)
        for m in (filter, search, sort, limit, count)},
    builder=doc(builder),
    result=doc(result),

    ColumnConfig=doccls(ColumnConfig),
    GridRequest=doccls(GridRequest),
    GridAggregationQuery=doccls(GridAggregationQuery),
    GridQuery=doccls(GridQuery),
    GridSettingsDict_init=doc(GridSettingsDict.__init__, GridSettingsDict),
    Reusable=doccls(Reusable),
)

# Patches

class MyJsonEncoder(json.JSONEncoder):
    def default(self, o):
        # Classes
        if isinstance(o, type):
            return o.__name__
        return super(MyJsonEncoder, self).default(o)

# Document
print(json.dumps(data, indent=2, cls=MyJsonEncoder))
