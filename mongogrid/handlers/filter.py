"""
### Filter Operation
Filtering corresponds to the `$match` stage of an aggregation, or the filter document of `find()`.

A filter is a list of AND-groups, where every AND-group is a list of OR-ed conditions:

```javascript
{
    filter: [
        // age >= 18 AND (sex = "female" OR sex = "other")
        [ { column: 'age', operator: 'GTE', value: 18 } ],
        [ { column: 'sex', operator: 'EQ', value: 'female' },
          { column: 'sex', operator: 'EQ', value: 'other' } ],
    ]
}
```

Every condition is an object with three fields:

* `column`: the name of a column that the resource has configured for filtering
* `operator`: one of the operators below
* `value`: a value, or a list of values. Optional for `EMPTY`, `NEMPTY`, `EXIST`, `NEXIST`.

Values are always handled as a list; a scalar becomes a list of one.
Strings that look like a date-time (`2020-01-31 12:00:00`) are converted to dates.

#### Operators

* `EQ`, `IN`: one value: `field = value`; more values: `field IN (values)`
* `NEQ`, `NIN`: one value: `field != value`; more values: `field NOT IN (values)`
* `GT`, `GTE`, `LT`, `LTE`: compare with the first value
* `LIKE`: contains the first value, case-insensitive
* `STARTS`, `ENDS`: starts / ends with the first value, case-insensitive
* `EMPTY`: `field IS NULL OR field = value` (value defaults to `''`)
* `NEMPTY`: `field IS NOT NULL AND field != value` (value defaults to `''`)
* `BETWEEN`: `values[0] <= field <= values[1]`; with one value, works like `EQ`
* `NBETWEEN`: `field <= values[0] OR field >= values[1]`; with one value, works like `NEQ`
* `EXIST`, `NEXIST`: the field exists / does not exist

An unknown operator works like `EQ` with the first value.
"""

import re
from enum import Enum

from .base import GridHandlerBase
from ..builder import Expr
from ..columns import ColumnRegistry
from ..exc import InvalidQueryError, MissingAdvancedFilterRequiredFieldError
from ..values import ValueCoercer


class Operator(str, Enum):
    """ Filter operators """
    EQ = 'EQ'
    NEQ = 'NEQ'
    IN = 'IN'
    NIN = 'NIN'
    GT = 'GT'
    LT = 'LT'
    GTE = 'GTE'
    LTE = 'LTE'
    LIKE = 'LIKE'
    STARTS = 'STARTS'
    ENDS = 'ENDS'
    NEMPTY = 'NEMPTY'
    EMPTY = 'EMPTY'
    BETWEEN = 'BETWEEN'
    NBETWEEN = 'NBETWEEN'
    EXIST = 'EXIST'
    NEXIST = 'NEXIST'


#: Operators that work without a value
NO_VALUE_OPERATORS = frozenset((Operator.EMPTY, Operator.NEMPTY, Operator.EXIST, Operator.NEXIST))

# Condition object keys
COLUMN = 'column'
OPERATOR = 'operator'
VALUE = 'value'


def _first(values):
    return values[0] if values else None


def _eq(expr, field, values):
    """ EQ, IN: equality, or IN() when there are more values """
    if len(values) > 1:
        return expr.field(field).in_(values)
    return expr.field(field).equals(_first(values))


def _neq(expr, field, values):
    """ NEQ, NIN: inequality, or NOT IN() when there are more values """
    if len(values) > 1:
        return expr.field(field).not_in(values)
    return expr.field(field).not_equal(_first(values))


def _like(template):
    def like(expr, field, values):
        value = _first(values)
        # No value: matches anything
        text = '' if value is None else str(value)
        return expr.field(field).regex(template.format(re.escape(text)), 'i')
    return like


class ConditionCompiler:
    """ Turns a single (field, operator, values) condition into a filter expression

        The operator table is a dict: you can subclass and extend it, or replace it.
    """

    # operator => lambda expr, field, values
    # `values` is always a list (see: ValueCoercer)
    _operators = {
        Operator.EQ: _eq,
        Operator.IN: _eq,
        Operator.NEQ: _neq,
        Operator.NIN: _neq,
        # Comparison only cares about the first value
        Operator.GTE: lambda expr, field, values: expr.field(field).gte(_first(values)),
        Operator.GT: lambda expr, field, values: expr.field(field).gt(_first(values)),
        Operator.LTE: lambda expr, field, values: expr.field(field).lte(_first(values)),
        Operator.LT: lambda expr, field, values: expr.field(field).lt(_first(values)),
        # NOTE: EMPTY and NEMPTY compare with the literal value, which is '' when no value is given
        Operator.NEMPTY: lambda expr, field, values: expr.add_and(
            Expr().field(field).not_equal(None),
            Expr().field(field).not_equal(_first(values)),
        ),
        Operator.EMPTY: lambda expr, field, values: expr.add_or(
            Expr().field(field).equals(None),
            Expr().field(field).equals(_first(values)),
        ),
        Operator.LIKE: _like('{}'),
        Operator.STARTS: _like('^{}'),
        Operator.ENDS: _like('{}$'),
        # BETWEEN and NBETWEEN fall back to EQ / NEQ when there are not enough values
        Operator.BETWEEN: lambda expr, field, values:
            expr.field(field).gte(values[0]).field(field).lte(values[1])
            if len(values) >= 2 else
            expr.field(field).equals(_first(values)),
        Operator.NBETWEEN: lambda expr, field, values:
            expr.add_or(
                Expr().field(field).lte(values[0]),
                Expr().field(field).gte(values[1]),
            )
            if len(values) >= 2 else
            expr.field(field).not_equal(_first(values)),
        Operator.EXIST: lambda expr, field, values: expr.field(field).exists(True),
        Operator.NEXIST: lambda expr, field, values: expr.field(field).exists(False),
    }

    @staticmethod
    def _default_operator(expr, field, values):
        return expr.field(field).equals(_first(values))

    def lookup_operator(self, operator):
        """ Get the lambda that implements an operator. Unknown operators work like EQ with the first value """
        try:
            return self._operators.get(Operator(operator), self._default_operator)
        except ValueError:  # unknown operator
            return self._default_operator

    def compile(self, expr: Expr, field: str, operator, values: list) -> Expr:
        """ Write a condition into `expr`

        :param expr: The expression to write into
        :param field: Physical field name
        :param operator: Operator
        :param values: Normalized values
        :return: expr
        """
        self.lookup_operator(operator)(expr, field, values)
        return expr


class ConditionExpression:
    """ A single condition from the filter: (column, operator, values)

        Parsing and compilation are two separate steps:
        the request is validated on input, but conditions are compiled against a builder later.
    """

    __slots__ = ('column', 'field', 'operator', 'values', 'callback', 'compiler')

    def __init__(self, column, field, operator, values, callback=None, compiler=None):
        """ Init a condition

        :param column: Logical column name
        :param field: Physical field name
        :param operator: Operator (None for search conditions)
        :param values: Normalized list of values
        :param callback: Custom condition callback for the column, if any
        :param compiler: The ConditionCompiler to use when there's no callback
        :type compiler: ConditionCompiler
        """
        self.column = column
        self.field = field
        self.operator = operator
        self.values = values
        self.callback = callback
        self.compiler = compiler

    def __repr__(self):
        return '{} {} {!r}'.format(self.column, self.operator, self.values)

    def compile_expression(self, builder) -> Expr:
        """ Compile the condition into an expression

            A custom callback, when configured, takes over the generic compiler.
        """
        expr = builder.expr()
        if self.callback is not None:
            self.callback(builder, self.values, self.field, expr, self.operator)
        else:
            self.compiler.compile(expr, self.field, self.operator, self.values)
        return expr


class GridConditions(GridHandlerBase):
    """ Grid filter: AND-groups of OR-ed conditions

        Receives two filters: the one from the API user, and the additional one,
        which the application injects (e.g. to restrict the results to the current tenant).
        They are AND-ed together.
    """

    request_section_name = 'filter'

    # These classes implement compilation
    # You can override them, if necessary
    _CONDITION_COMPILER_CLS = ConditionCompiler
    _VALUE_COERCER_CLS = ValueCoercer

    def __init__(self, columns: ColumnRegistry):
        super(GridConditions, self).__init__(columns)

        self.compiler = self._CONDITION_COMPILER_CLS()
        self.coercer = self._VALUE_COERCER_CLS()

        # On input
        #: list of AND-groups, each a list of ConditionExpression
        self.groups = None
        #: The additional filter, as given
        self.additional_value = None

    def input(self, filter=None, additional_filter=None):
        super(GridConditions, self).input(filter)
        self.additional_value = additional_filter

        self.groups = self._parse_filter(filter) + self._parse_filter(additional_filter)
        return self

    def is_input_empty(self):
        return not self.input_value and not self.additional_value

    def _parse_filter(self, filter):
        """ Parse a filter into a list of AND-groups

            Empty AND-groups are dropped.

        :type filter: list[list[dict]] | None
        :rtype: list[list[ConditionExpression]]
        """
        if not filter:
            return []

        if not isinstance(filter, (list, tuple)):
            raise InvalidQueryError('Filter must be a list of condition lists')

        groups = []
        for and_condition in filter:
            if not isinstance(and_condition, (list, tuple)):
                raise InvalidQueryError('Filter must be a list of condition lists')

            group = [self._parse_condition(or_condition) for or_condition in and_condition]
            if group:
                groups.append(group)
        return groups

    def _parse_condition(self, condition):
        """ Parse a single condition object

        :raises MissingAdvancedFilterRequiredFieldError
        :raises MissingConditionColumnError
        """
        if not isinstance(condition, dict):
            raise MissingAdvancedFilterRequiredFieldError(COLUMN, OPERATOR, VALUE)

        # Required fields
        if COLUMN not in condition or OPERATOR not in condition:
            raise MissingAdvancedFilterRequiredFieldError(COLUMN, OPERATOR, VALUE)

        has_value = VALUE in condition
        operator = condition[OPERATOR]
        if not has_value and not (isinstance(operator, str) and operator in NO_VALUE_OPERATORS):
            raise MissingAdvancedFilterRequiredFieldError(COLUMN, OPERATOR, VALUE)

        column = condition[COLUMN]
        field = self.columns.resolve_condition(column)
        value = condition[VALUE] if has_value else self.coercer.DEFAULT_EMPTY_VALUE

        return ConditionExpression(
            column, field,
            operator,
            self.coercer.normalize(value),
            callback=self.columns.condition_callback(column),
            compiler=self.compiler,
        )

    def compile_expressions(self, builder):
        """ Compile every AND-group into an expression of OR-ed conditions

        :param builder: The builder that expressions & callbacks work with
        :rtype: list[Expr]
        """
        return [
            builder.expr().add_or(*[c.compile_expression(builder) for c in group])
            for group in self.groups
        ]

    # Conditions and search are put together into one match: see GridQueryBase._add_conditions()
    alter_builder = NotImplemented
