"""Domain exceptions for the mailbox sync service.

Defines domain-level exceptions that represent business rule violations
and provider failures. These exceptions are independent of infrastructure
concerns. Presentation layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class MailSyncException(Exception):
    """Base exception for all mailbox sync errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(MailSyncException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(MailSyncException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'sync_job', 'email_account').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SyncJobAlreadyRunningException(MailSyncException):
    """Raised when a sync is requested while the user already has an active job."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            "A sync job is already running",
            "SYNC_JOB_ALREADY_RUNNING",
            {"user_id": user_id},
        )


class InvalidJobTransitionException(MailSyncException):
    """Raised when a sync job would leave a terminal state or skip a step."""

    def __init__(self, job_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Sync job {job_id} cannot move from {from_status} to {to_status}",
            "INVALID_JOB_TRANSITION",
            {"job_id": job_id, "from_status": from_status, "to_status": to_status},
        )


class UnsupportedProviderException(MailSyncException):
    """Raised when an account's provider has no client implementation."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Unsupported provider: {provider}",
            "UNSUPPORTED_PROVIDER",
            {"provider": provider},
        )


class ProviderException(MailSyncException):
    """Base for failures talking to a mailbox provider.

    Caught per account by the sync engine; never fails a whole job.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        account_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if account_id:
            details["account_id"] = account_id
        if status_code is not None:
            details["status_code"] = status_code
        self.account_id = account_id
        self.status_code = status_code
        super().__init__(message, error_code, details)


class ProviderAuthenticationException(ProviderException):
    """Raised when the provider still rejects the token after one refresh and retry."""

    def __init__(
        self,
        message: str = "Token expired - need to re-authenticate",
        account_id: str | None = None,
    ) -> None:
        super().__init__(message, "AUTHENTICATION_ERROR", account_id, 401)


class TokenRefreshException(ProviderException):
    """Raised when an access token cannot be refreshed (no refresh token or endpoint rejected)."""

    def __init__(self, message: str, account_id: str | None = None) -> None:
        super().__init__(message, "TOKEN_REFRESH_FAILED", account_id)


class ProviderRequestException(ProviderException):
    """Raised on a non-auth provider failure (HTTP error, malformed response)."""

    def __init__(
        self,
        message: str,
        account_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, "PROVIDER_ERROR", account_id, status_code)


class SqlNotConfiguredException(MailSyncException):
    """Raised when the SQL database is not configured (DATABASE_URL missing)."""

    def __init__(self) -> None:
        super().__init__(
            "SQL database is not configured. Set DATABASE_URL.",
            error_code="SERVICE_UNAVAILABLE",
        )
