from datetime import date, datetime
from dateutil import parser as date_parser

from railqual.utils.error_handler import InvalidDateError

_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def today():
    """Current UTC calendar date"""
    return datetime.utcnow().date()


def parse_date(value, field):
    """Parse caller-supplied date text into a date.

    Empty values return None. Anything that does not parse, or leaves out
    the year, month or day, raises InvalidDateError naming the field.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(field)

    # Missing parts are filled from the default, so two different defaults
    # disagree unless year, month and day were all supplied
    try:
        parsed = date_parser.parse(value.strip(), default=_DEFAULT_A).date()
        check = date_parser.parse(value.strip(), default=_DEFAULT_B).date()
    except (ValueError, OverflowError):
        raise InvalidDateError(field)

    if parsed != check:
        raise InvalidDateError(field)
    return parsed


def parse_bool(value):
    """Interpret query-string booleans"""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def format_date(value):
    return value.isoformat() if value else None


def current_actor_id():
    """Acting user for the current request; authentication happens upstream."""
    from flask import request

    actor_id = request.headers.get('X-Actor-Id', '').strip()
    return actor_id or None


def pagination_args(max_limit=500):
    """limit/offset from the query string"""
    from flask import request

    limit = request.args.get('limit', type=int)
    offset = request.args.get('offset', default=0, type=int)
    if limit is not None:
        limit = max(1, min(limit, max_limit))
    return limit, max(0, offset or 0)
