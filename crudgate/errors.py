from __future__ import annotations


class CrudgateError(Exception):
    """Base exception for crudgate errors."""


class GatewayError(CrudgateError):
    """
    A request rejected before any statement is built.

    Carries the nack code and HTTP status the dispatcher answers with.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 400,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.request_id = request_id


class ActionError(CrudgateError):
    """The action cannot be turned into a statement (missing id, empty field set, ...)."""


class DbExecuteError(CrudgateError):
    """Any failure while executing a statement against storage."""


class LogForwardError(CrudgateError):
    """The log collector did not accept an entry."""
