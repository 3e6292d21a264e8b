from ..columns import ColumnRegistry


class GridHandlerBase:
    """ An implementation of a handler for GridQuery

        Every subclass will handle a single section of the grid request
    """

    #: Name of the grid request section that this object is capable of handling
    request_section_name = None

    def __init__(self, columns: ColumnRegistry):
        """ Initialize the request section handler with the resource's columns.

        This method does *not* receive any input data just yet, with the purpose of having an
        object that can be configured once, and then reused for every request.

        :param columns: The column registry of the resource

        NOTE: Any arguments that have default values will be treated as handler settings!!
        """
        #: The column registry to validate and resolve column names with
        self.columns = columns

        # Has the input() method been called already?
        self.input_received = False

        #: The raw input value
        self.input_value = None

        #: GridQuery bound to this object. It may remain uninitialized.
        self.gridquery = None

    def with_gridquery(self, gridquery):
        """ Bind this object with a GridQuery

            :type gridquery: mongogrid.query.GridQueryBase
            """
        self.gridquery = gridquery
        return self

    def __copy__(self):
        """ Handlers are reused: i.e. their state before input() is called.

        Reusable handlers are implemented using the Reusable() wrapper which performs the
        automatic copying on input() call
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update(self.__dict__)
        return result

    def input(self, value):
        """ Get a section of the grid request.

        The purpose of this method is to receive the input, validate it, and store as a public
        property so that external tools may export its value.
        All validation happens here, so that a bad request fails before anything touches the store.

        :param value: the value of the request section it's handling
        :rtype: GridHandlerBase
        :raises InvalidColumnError
        :raises InvalidQueryError
        """
        self.input_value = value  # no copying. Try not to modify it.

        # Set the flag
        self.input_received = True

        # Make sure that input() can only be used once
        self.input = self.__raise_input_not_reusable

        return self

    def is_input_empty(self):
        """ Test whether the input value was empty """
        return not self.input_value

    def __raise_input_not_reusable(self, *args, **kwargs):
        raise RuntimeError("You can't use the {}.input() method twice. "
                           "Wrap the query into Reusable(), or copy() it!"
                           .format(self.__class__.__name__))

    def alter_builder(self, builder):
        """ Apply the request section this handler is handling to the builder

        :param builder: The builder to apply the section to
        :type builder: mongogrid.builder.PipelineBuilder | mongogrid.builder.QueryBuilder
        :return: the builder
        """
        raise NotImplementedError()

    def get_final_input_value(self):
        """ Get the final input of the handler, to be echoed back to the API user """
        return self.input_value
