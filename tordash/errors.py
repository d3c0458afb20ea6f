class TordashError(Exception):
    """Base class for errors raised by tordash."""


class RpcError(TordashError):
    """The daemon could not be reached or rejected a call."""

    def __init__(self, method: str, cause: BaseException | None = None):
        self.method = method
        self.cause = cause
        detail = str(cause) or type(cause).__name__ if cause is not None else "unknown failure"
        super().__init__(f"{method}: {detail}")


class ValidationError(TordashError):
    """A required wizard field was left empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required")


class EmptySelection(TordashError):
    """An action needed a selected torrent but nothing is selected."""
