"""Error taxonomy shared by the registry, state machine and facade."""


class CoordinatorError(Exception):
    """Base class. ``kind`` is the stable machine-readable error name."""

    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class InvalidInput(CoordinatorError):
    """Malformed or missing required fields. Never retried automatically."""

    kind = "invalid_input"


class NotFound(CoordinatorError):
    kind = "not_found"

    def __init__(self, trade_id: str):
        super().__init__(f"Trade {trade_id} not found")
        self.trade_id = trade_id


class InvalidState(CoordinatorError):
    """Operation not legal for the trade's current status."""

    kind = "invalid_state"

    def __init__(self, current_status, message: str | None = None):
        status = getattr(current_status, "value", current_status)
        super().__init__(message or f"Trade is {status}")
        self.current_status = status

    def to_dict(self) -> dict:
        return {**super().to_dict(), "status": self.current_status}


class Conflict(CoordinatorError):
    """Lost a compare-and-transition race. Safe to retry after re-reading."""

    kind = "conflict"


class DuplicateId(CoordinatorError):
    kind = "duplicate_id"

    def __init__(self, trade_id: str):
        super().__init__(f"Trade {trade_id} already exists")
        self.trade_id = trade_id
