"""Domain exceptions shared by services and mapped to HTTP responses in main."""


class TablesideError(Exception):
    """Base class for errors raised by the ordering services."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendUnavailable(TablesideError):
    """A read or write against the data store failed."""

    status_code = 503


class NotificationFailure(TablesideError):
    """The messaging channel rejected or could not receive a message."""

    status_code = 502


class ValidationFailure(TablesideError):
    """Input or a stored record did not pass validation."""

    status_code = 422


class RecordNotFound(TablesideError):
    """The requested pending order, bill or menu item does not exist."""

    status_code = 404
