class BotError(Exception):
    """Base exception for the swap parser bot."""


class UnknownAction(BotError):
    """Raised when a menu payload does not resolve to a registered action."""


class InvalidInputFormat(BotError):
    """Raised when user text does not match the shape an action expects."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class ExternalQueryFailure(BotError):
    """Raised by the query gateway when a lookup cannot be completed.

    `detail` is always JSON serializable so it can be shown to the user.
    """

    def __init__(self, message, detail=None):
        super().__init__(message)
        self.detail = {"error": message, **(detail or {})}
