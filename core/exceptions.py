"""
Custom exception hierarchy for the ads row source and caller input.

Exception Hierarchy:
    RowSourceError (base)
    ├── RowSourceConnectionError  - Network/timeout issues (recoverable)
    ├── RowSourceAPIError         - Backend returned error response
    └── RowSourceDataError        - Invalid response structure

    ValidationError               - Input validation failed

The aggregation core itself never raises: these errors belong to the
data-loading boundary and to callers passing filter parameters.
"""


class RowSourceError(Exception):
    """Base exception for all row source errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class RowSourceConnectionError(RowSourceError):
    """
    Network-related errors (timeout, connection refused, etc.).

    These are typically recoverable with retry.
    """

    def __init__(self, message: str, details: str = None, retry_after: int = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class RowSourceAPIError(RowSourceError):
    """
    Backend returned an error response.

    The ads backend answers failed selects with 500 and rejected inserts
    with 400, both carrying {"error": "..."}.
    """

    def __init__(
        self,
        message: str,
        details: str = None,
        status_code: int = None,
        error_code: str = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.error_code = error_code


class RowSourceDataError(RowSourceError):
    """
    Backend response has unexpected structure.

    Raised when the payload is not {"data": [...]} or a row is not an object.
    """

    def __init__(self, message: str, details: str = None, expected: str = None, got: str = None):
        super().__init__(message, details)
        self.expected = expected
        self.got = got


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating window specs, fetch limits and insert payloads
    before they reach the row source.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
