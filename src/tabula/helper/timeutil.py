import iso8601
from datetime import date, datetime, UTC
from tabula import config


def timestamp():
    return datetime.now(UTC)


def datetime_to_str(value, fmstr=config.EXCHANGE_DATE_FORMAT):
    try:
        return datetime.strftime(value, fmstr)
    except ValueError:
        return None


def parse_iso_datestring(dstr):
    if dstr is None:
        return None

    if isinstance(dstr, datetime):
        return dstr

    try:
        return iso8601.parse_date(dstr).replace(tzinfo=None)
    except (ValueError, iso8601.iso8601.ParseError):
        raise ValueError("Invalid iso datetime string: %s [Code 3E1A97]" % dstr)


def parse_iso_date(value, fmstr=config.EXCHANGE_DAY_FORMAT):
    ''' Normalize a calendar date value. Accepts `date`, `datetime`
        (time component dropped) or a string, either `yyyy-MM-dd` or
        a full ISO-8601 timestamp.
    '''
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        raise ValueError("Invalid date: %r [Code 3E1A98]" % (value,))

    try:
        return datetime.strptime(value, fmstr).date()
    except ValueError:
        return parse_iso_datestring(value).date()
