class GridSettingsDict(dict):
    """ Grid query settings container.

        Is mostly used for nice autocompletion and documentation purposes :)

        The keyword settings in this object are just plain kwargs names
        for every handler object's __init__ method,
        which are fed to subclasses of GridHandlerBase by GridQueryBase.
        Unknown keys are reported with a KeyError when the query is initialized.
    """

    def __init__(self,
                 # --- paging
                 max_items_per_page: int = None,
                 default_items_per_page: int = 10,
                 # --- search
                 use_text_search: bool = False,
                 # --- count
                 fast_count: bool = True,
                 ):
        """ Settings for a grid query

        Example:
            ```python
            from mongogrid import GridAggregationQuery, GridSettingsDict

            class UserGrid(GridAggregationQuery):
                columns = ColumnConfig(...)
                settings = GridSettingsDict(
                    max_items_per_page=100,
                    fast_count=False,
                )
            ```

        Args:
            max_items_per_page (int | None): (for: paging)
                The maximum page size. Larger pages are silently cut down to it.
            default_items_per_page (int): (for: paging)
                The page size to use when the request has none.
            use_text_search (bool): (for: search)
                Also put the search term into a `$text` query.
                The collection must have a TEXT index, otherwise `MissingSearchIndexError` is raised.
            fast_count (bool): (for: count)
                Use the estimated document count when nothing is filtered out.
                Disable it for views, or for collections where the estimate can't be trusted.
        """
        super(GridSettingsDict, self).__init__()
        self.update({k: v
                     for k, v in locals().items()
                     if k not in {'__class__', 'self'}})

    def and_more(self, **settings):
        """ Copy the object and add more settings to it """
        return self.__class__(**{**self, **settings})
