import re
from collections.abc import Mapping
from datetime import datetime, timezone

from .exc import InvalidQueryError


def _is_array(value):
    return isinstance(value, (list, tuple))


class ValueCoercer:
    """ Normalizes condition values before they're compiled

        * A scalar is wrapped into a list: every operator works with a list of values
        * A date-time string becomes a `datetime` in UTC, so that comparisons work on dates, not strings

        Subclass it, and give it to the query as `_VALUE_COERCER_CLS`, to recognize other value types.
    """

    #: The value that a condition gets when it has none (EMPTY, NEMPTY, EXIST, NEXIST operators)
    DEFAULT_EMPTY_VALUE = ''

    #: Date-time strings: YYYY-MM-DD<sep>HH:MM:SS, anywhere in the string
    DATETIME_RX = re.compile(r'\d{4}-\d{2}-\d{2}.\d{2}:\d{2}:\d{2}')

    def normalize(self, value) -> list:
        """ Normalize a condition value into a list

        :param value: A scalar, or a list of scalars
        :return: list of values; order and length of a list input are preserved
        :raises InvalidQueryError: an object was given where a scalar is expected
        """
        values = list(value) if _is_array(value) else [value]
        return [self.coerce(v) for v in values]

    def coerce(self, value):
        """ Coerce a single value """
        # An object would be written into the filter as an operator document
        if isinstance(value, Mapping):
            raise InvalidQueryError('Condition value must be a scalar, or a list of scalars; {!r} provided'
                                    .format(value))
        if isinstance(value, str) and self.DATETIME_RX.search(value):
            return self.parse_datetime(value)
        return value

    @staticmethod
    def parse_datetime(value: str):
        """ Parse a date-time string into an aware datetime in UTC

            Naive values are taken as UTC.
            If the string can't be parsed after all, it's returned unchanged.
        """
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return value

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
