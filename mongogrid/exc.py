class GridException(Exception):
    """ Base for every error raised by mongogrid

        `status_code` is a hint for the serving layer: how to report the error to the API user
    """
    status_code = 500


class InvalidQueryError(GridException):
    """ Invalid input provided by the User """
    status_code = 400

    def __init__(self, err: str):
        super(InvalidQueryError, self).__init__('Grid request error: {err}'.format(err=err))


class MissingAdvancedFilterRequiredFieldError(InvalidQueryError):
    """ A filter condition lacks one of its required fields """

    def __init__(self, column='column', operator='operator', value='value'):
        super(MissingAdvancedFilterRequiredFieldError, self).__init__(
            "Advanced filter must have '{}', '{}' and '{}' field!".format(column, operator, value)
        )


class InvalidColumnError(GridException):
    """ Request mentioned a column that the resource does not support """
    status_code = 400

    #: What went wrong
    _message = 'Column "{column_name}" cannot be used for {where} on "{resource}"'

    def __init__(self, resource: str, column_name: str, where: str):
        self.resource = resource
        self.column_name = column_name
        self.where = where

        super(InvalidColumnError, self).__init__(
            self._message.format(
                column_name=column_name,
                resource=resource,
                where=where)
        )


class MissingConditionColumnError(InvalidColumnError):
    """ Filter (or search) mentioned a column that is not in the conditions map """
    _message = ('Column "{column_name}" cannot be used for {where}! '
                'Have you forgotten to add it to "{resource}" conditions?')

    def __init__(self, resource: str, column_name: str, where: str = 'filtering'):
        super(MissingConditionColumnError, self).__init__(resource, column_name, where)


class MissingSortationColumnError(InvalidColumnError):
    """ Sorter mentioned a column that is not in the sortations map """
    _message = ('Column "{column_name}" cannot be used for {where}! '
                'Have you forgotten to add it to "{resource}" sortations?')

    def __init__(self, resource: str, column_name: str, where: str = 'sorting'):
        super(MissingSortationColumnError, self).__init__(resource, column_name, where)


class MissingSearchColumnError(InvalidColumnError):
    """ Search was requested, but searchable columns are missing or misconfigured

        `column_name` is None when the resource has no searchable columns at all
    """

    def __init__(self, resource: str, column_name: str = None, where: str = 'searching'):
        if column_name is None:
            self._message = ('Column cannot be used for {where}! '
                             'Have you forgotten to add it to "{resource}" searchable columns?')
        else:
            self._message = ('Column "{column_name}" cannot be used for {where}! '
                             'Have you forgotten to add it to "{resource}" conditions?')
        super(MissingSearchColumnError, self).__init__(resource, column_name, where)


class MissingSearchIndexError(GridException):
    """ The store refused a text search because there is no TEXT index

        This is a configuration error, not the API user's fault
    """

    def __init__(self, resource: str):
        self.resource = resource
        super(MissingSearchIndexError, self).__init__(
            'Column cannot be used for searching! '
            'Missing TEXT index on "{}" searchable columns! '
            'Create one with `collection.create_index([(field, pymongo.TEXT), ...])`'
            .format(resource)
        )
