"""
Error taxonomy for the Q&A API

Every failure the API reports is one of these. The terminal handlers in
main.py turn them into {"error": {"message": ...}} bodies.
"""


class QAError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(QAError):
    """Missing question or answer, unmatched route, unknown vote direction."""

    status_code = 404

    def __init__(self, message: str = "Not Found"):
        super().__init__(message)


class ValidationError(QAError):
    """A required field is absent or malformed."""

    status_code = 400


class PersistenceError(QAError):
    """The document store failed to load or write."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Database error during {operation}"
        if original_error:
            message += f": {original_error}"
        super().__init__(message)
        self.operation = operation
        self.original_error = original_error
