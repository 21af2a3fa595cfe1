"""Exceptions for projects app."""


class GatewayError(Exception):
    """Base class for failures surfaced by the gateway."""


class StoreError(GatewayError):
    """Raised when a remote store call fails or answers unexpectedly."""

    def __init__(
        self,
        operation: str,
        status_code: int | None = None,
        detail: str = '',
    ) -> None:
        """Initialize StoreError.

        Args:
            operation: Store operation that failed (e.g. 'list files').
            status_code: HTTP status returned by the store, if any.
            detail: Extra description of the failure.
        """
        self.operation = operation
        self.status_code = status_code
        self.detail = detail

        message = f'Failed to {operation}'
        if status_code is not None:
            message = f'{message} (status {status_code})'
        if detail:
            message = f'{message}: {detail}'
        super().__init__(message)


class InvalidTokenError(GatewayError):
    """Raised when a TokenID cannot be verified by the user store."""


class RecordNotFoundError(GatewayError):
    """Raised when a record does not belong to the requested project."""
