"""Journal error taxonomy.

Every error carries the HTTP status it maps to; ``tradelog.main`` renders them
with a single exception handler.
"""


class JournalError(Exception):
    status_code: int = 500
    error: str = "journal_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(JournalError, ValueError):
    """Bad or missing input, raised before anything is persisted."""

    status_code = 400
    error = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class NotFoundError(JournalError):
    status_code = 404
    error = "not_found"

    def __init__(self, trade_id: str):
        super().__init__(f"Trade {trade_id} not found")
        self.trade_id = trade_id


class TradeStateError(JournalError):
    """Operation not allowed in the trade's current status."""

    status_code = 409
    error = "invalid_state"


class TransportError(JournalError):
    """Store or third-party call failed."""

    status_code = 502
    error = "transport_error"

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        if status_code is not None:
            self.status_code = status_code
