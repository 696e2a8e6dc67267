import re

RX_CAMEL_CASE = re.compile(r'(?<!^)(?=[A-Z])')


def camel_to_lower(name, sep='_'):
    return RX_CAMEL_CASE.sub(sep, name).lower()


def select_value(*values, default=None):
    ''' Return the first value that is not None '''
    for value in values:
        if value is not None:
            return value

    return default
