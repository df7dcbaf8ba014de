"""Exception types raised by the storage layer."""


class QQCardsError(Exception):
    """Base class for qq_cards errors."""


class StorageUnavailable(QQCardsError):
    """A datastore could not be opened."""

    def __init__(self, path, reason: str = ""):
        self.path = str(path)
        self.reason = reason
        message = f"cannot open datastore at {self.path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
