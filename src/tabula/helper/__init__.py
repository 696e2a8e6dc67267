from .timeutil import timestamp, parse_iso_datestring, parse_iso_date
from .genutil import camel_to_lower, select_value


__all__ = (
    "camel_to_lower",
    "parse_iso_date",
    "parse_iso_datestring",
    "select_value",
    "timestamp",
)
