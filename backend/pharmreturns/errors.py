"""
Error taxonomy for the credit estimation service.

Per-item problems (malformed NDC, bad quantity, unknown product) are reported
as values inside the batch result. Only request-level problems are raised.
"""


class CreditServiceError(Exception):
    """Base class for errors that abort a whole request."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyBatchError(CreditServiceError):
    """The request carried no items, or `items` was not a list."""

    status_code = 400

    def __init__(self, message: str = "Items array is required"):
        super().__init__(message)


class EstimationError(CreditServiceError):
    """An unexpected fault while estimating; the batch is abandoned."""

    status_code = 500

    def __init__(self, message: str = "Credit estimation failed"):
        super().__init__(message)
