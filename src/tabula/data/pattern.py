''' LIKE pattern escaping.

    User supplied search values may contain the LIKE wildcards themselves
    (`%` any sequence, `_` any single character). Before such a value is
    embedded in a LIKE clause each wildcard, and the escape character itself,
    is prefixed with the escape character so it only matches literally.

        >>> escape('one%')
        'one|%'
        >>> contains('two_')
        '%two|_%'

    The clause must then be evaluated with the same escape character, e.g.
    `column.like(pattern, escape=LIKE_ESCAPE_CHAR)`.
'''
import re
from functools import lru_cache

from tabula.data._meta import config

LIKE_ESCAPE_CHAR = config.LIKE_ESCAPE_CHAR
WILDCARD_ANY = '%'
WILDCARD_ONE = '_'
WILDCARDS = (WILDCARD_ANY, WILDCARD_ONE)

if LIKE_ESCAPE_CHAR in WILDCARDS or len(LIKE_ESCAPE_CHAR) != 1:
    raise ValueError(f'Invalid LIKE escape character: {LIKE_ESCAPE_CHAR!r}')


def escape(raw: str, escape_char: str = LIKE_ESCAPE_CHAR) -> str:
    if not raw:
        return ''

    specials = (escape_char, *WILDCARDS)
    return ''.join(
        escape_char + ch if ch in specials else ch
        for ch in raw
    )


def contains(raw: str, escape_char: str = LIKE_ESCAPE_CHAR) -> str:
    return f'{WILDCARD_ANY}{escape(raw, escape_char)}{WILDCARD_ANY}'


@lru_cache(maxsize=256)
def like_to_regex(pattern: str, escape_char: str = LIKE_ESCAPE_CHAR):
    ''' Compile a LIKE pattern into an anchored, case-sensitive regex.
        A trailing lone escape character matches itself. '''
    parts = []
    chars = iter(pattern)
    for ch in chars:
        if ch == escape_char:
            parts.append(re.escape(next(chars, escape_char)))
        elif ch == WILDCARD_ANY:
            parts.append('.*')
        elif ch == WILDCARD_ONE:
            parts.append('.')
        else:
            parts.append(re.escape(ch))

    return re.compile(''.join(parts), re.DOTALL)


def like_match(value, pattern: str, escape_char: str = LIKE_ESCAPE_CHAR) -> bool:
    if value is None:
        return False

    return like_to_regex(pattern, escape_char).fullmatch(str(value)) is not None
