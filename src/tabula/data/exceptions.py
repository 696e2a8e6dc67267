from tabula.error import (  # noqa
    BadRequestError,
    ConflictError,
    InternalServerError,
    NotFoundError,
    UnprocessableError,
)


class ItemNotFoundError(NotFoundError):
    pass


class IncorrectResultSizeError(UnprocessableError):
    label = "Incorrect Result Size"

    def __init__(self, errcode, message, expected=1, actual=None):
        super().__init__(errcode, message, {"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual


class DataSchemaError(InternalServerError):
    pass


class DuplicateEntryError(ConflictError):
    pass


class IntegrityConstraintError(BadRequestError):
    pass


class InvalidQueryValueError(BadRequestError):
    pass


class QuerySyntaxError(InternalServerError):
    pass


class DatabaseConnectionError(InternalServerError):
    label = "Service Unavailable"
    status_code = 503


class DatabaseAPIError(InternalServerError):
    pass


class UnexpectedDatabaseError(InternalServerError):
    pass


class DatabaseConfigurationError(InternalServerError):
    pass


class DatabaseTransactionError(InternalServerError):
    pass
