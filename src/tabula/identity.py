''' Ambient identity of the current caller.

    The authenticated user id is kept in a context variable so that it
    follows the running task, e.g.

    >>> with authenticated_user('kermit'):
    ...     await form_service.submit(...)
'''
from contextlib import contextmanager
from contextvars import ContextVar

_AUTHENTICATED_USER_ID = ContextVar('authenticated_user_id', default=None)


def get_authenticated_user_id():
    return _AUTHENTICATED_USER_ID.get()


def set_authenticated_user_id(user_id):
    return _AUTHENTICATED_USER_ID.set(user_id)


@contextmanager
def authenticated_user(user_id):
    token = _AUTHENTICATED_USER_ID.set(user_id)
    try:
        yield user_id
    finally:
        _AUTHENTICATED_USER_ID.reset(token)
