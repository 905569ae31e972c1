"""
Service error taxonomy.

Every error a client can observe maps to exactly one HTTP status code.
Store and directory I/O failures are not wrapped here; they propagate.
"""


class QueueServiceError(Exception):
    """Base class for errors reported back to the caller."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.error
        super().__init__(self.detail)


class InvalidRequestError(QueueServiceError):
    """Malformed body, missing field, empty message or mismatched receipt."""

    status_code = 400
    error = "Bad Request"


class QueueNotFoundError(QueueServiceError):
    """Unknown queue, or a queue that has been deleted."""

    status_code = 404
    error = "Not Found"

    def __init__(self, queue_id: str | None = None, detail: str | None = None):
        self.queue_id = queue_id
        if detail is None and queue_id is not None:
            detail = f"Queue {queue_id} not found"
        super().__init__(detail)
