"""
Exceptions raised by the order-status services.

Expected upstream conditions (no orders, 401, 404, timeouts) never raise;
they come back as OrderLookupResult. These exceptions cover the rest.
"""

from models import OrderErrorKind


class PIAResponseError(Exception):
    """PIA answered with a body that is not the documented JSON object."""


class PIAAuthError(Exception):
    """Token refresh against the PIA auth endpoint failed."""


class OrderLookupError(Exception):
    """An order lookup failed; carries the error kind for the HTTP layer."""

    def __init__(self, kind: OrderErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value


class BotSpaceError(Exception):
    """A BotSpace API call failed."""

    def __init__(self, method: str, error_type: str, message: str, status=None, data=None):
        super().__init__(f"{method}: {error_type} - {message}")
        self.method = method
        self.error_type = error_type
        self.message = message
        self.status = status
        self.data = data
