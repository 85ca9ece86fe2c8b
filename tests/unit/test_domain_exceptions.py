"""Tests for domain exceptions (error_code, message, details)."""

from app.domain.exceptions import (
    MailSyncException,
    ProviderAuthenticationException,
    ProviderException,
    ProviderRequestException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    SyncJobAlreadyRunningException,
    TokenRefreshException,
    UnsupportedProviderException,
    ValidationException,
)


def test_base_exception_default_error_code() -> None:
    """MailSyncException uses class name as error_code when not provided."""
    exc = MailSyncException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "MailSyncException"
    assert exc.details == {}


def test_to_dict() -> None:
    exc = MailSyncException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    exc = ValidationException("Invalid format", field="job_type")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "job_type"}
    assert ValidationException("Invalid").details == {}


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("sync_job", "job-1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "sync_job not found: job-1"
    assert exc.details == {"resource_type": "sync_job", "resource_id": "job-1"}


def test_sync_job_already_running() -> None:
    exc = SyncJobAlreadyRunningException("user-1")
    assert exc.error_code == "SYNC_JOB_ALREADY_RUNNING"
    assert exc.message == "A sync job is already running"
    assert exc.details == {"user_id": "user-1"}


def test_unsupported_provider() -> None:
    exc = UnsupportedProviderException("IMAP")
    assert exc.error_code == "UNSUPPORTED_PROVIDER"
    assert exc.details == {"provider": "IMAP"}


def test_provider_authentication_exception_defaults() -> None:
    exc = ProviderAuthenticationException(account_id="acc-1")
    assert isinstance(exc, ProviderException)
    assert exc.message == "Token expired - need to re-authenticate"
    assert exc.error_code == "AUTHENTICATION_ERROR"
    assert exc.status_code == 401
    assert exc.details == {"account_id": "acc-1", "status_code": 401}


def test_token_refresh_exception() -> None:
    exc = TokenRefreshException("No refresh token", "acc-1")
    assert exc.error_code == "TOKEN_REFRESH_FAILED"
    assert exc.account_id == "acc-1"
    assert exc.details == {"account_id": "acc-1"}


def test_provider_request_exception_omits_missing_details() -> None:
    exc = ProviderRequestException("Graph API error")
    assert exc.error_code == "PROVIDER_ERROR"
    assert exc.details == {}
    exc = ProviderRequestException("Graph API error 500", status_code=500)
    assert exc.details == {"status_code": 500}


def test_sql_not_configured() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SERVICE_UNAVAILABLE"
    assert "DATABASE_URL" in exc.message
