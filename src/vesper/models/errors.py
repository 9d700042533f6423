"""Error hierarchy and error response models."""

from enum import StrEnum

from pydantic import BaseModel, Field


class VesperError(Exception):
    """Base error for all Vesper errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ValidationError(VesperError):
    """Phase readiness violated or invalid use of the pipeline."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class ConfigurationError(VesperError):
    """Something required is not configured (missing credential, unhealthy dependency)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="configuration", details=details)


class CatalogError(VesperError):
    """Unknown provider, model or action."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="registry", details=details)


class ProviderErrorKind(StrEnum):
    """Normalized classification of provider failures."""

    INVALID_KEY = "invalid_key"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_NOT_FOUND = "model_not_found"
    PERMISSION_DENIED = "permission_denied"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


TRANSIENT_KINDS = frozenset(
    {ProviderErrorKind.RATE_LIMITED, ProviderErrorKind.NETWORK_ERROR, ProviderErrorKind.TIMEOUT}
)


class ProviderError(VesperError):
    """A provider call failed; ``kind`` says how."""

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN,
        provider: str = "",
        status_code: int | None = None,
        details: dict | None = None,
    ):
        details = dict(details or {})
        details["kind"] = kind.value
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, component="provider", details=details)
        self.kind = kind
        self.provider = provider
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in TRANSIENT_KINDS


class RenderError(VesperError):
    """Terminal failure of a render job."""

    def __init__(self, message: str, job_id: str = "", details: dict | None = None):
        details = dict(details or {})
        if job_id:
            details["job_id"] = job_id
        super().__init__(message, component="render", details=details)
        self.job_id = job_id


class RenderTimeout(RenderError):
    """The render job did not reach a terminal status within its bounds."""


class RenderExplicitFailure(RenderError):
    """The render service reported the job as errored or failed."""


class InconsistentState(RenderError):
    """The render service reported success without a deliverable."""


class OperationCancelled(VesperError):
    """An in-flight operation was cancelled by its caller."""

    def __init__(self, message: str = "Operation cancelled", details: dict | None = None):
        super().__init__(message, component="cancellation", details=details)


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: VesperError, guidance: str | None = None, retry: bool | None = None
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance if guidance is not None else guidance_for(exc),
            retry_possible=retry if retry is not None else is_retryable(exc),
        )


def guidance_for(exc: VesperError) -> str:
    """Remediation hint separating missing configuration, failing configuration and transient errors."""
    if isinstance(exc, ConfigurationError):
        return "Configure the missing credential or dependency, then try again."
    if isinstance(exc, ProviderError):
        if exc.retryable:
            return "Temporary provider problem. Wait a moment and retry."
        if exc.kind in (ProviderErrorKind.INVALID_KEY, ProviderErrorKind.PERMISSION_DENIED):
            return "The configured credential was rejected. Check or replace the API key."
        if exc.kind == ProviderErrorKind.QUOTA_EXCEEDED:
            return "The provider account is out of quota. Check billing or pick another model."
        if exc.kind == ProviderErrorKind.MODEL_NOT_FOUND:
            return "The selected model is not available. Pick another model for this action."
        return "The provider returned an unexpected error. Try again or pick another model."
    if isinstance(exc, ValidationError):
        return "Complete the current phase before moving on."
    if isinstance(exc, RenderError):
        return "The render did not finish. Submit a new render or assemble the video manually."
    return "Please try again or contact support."


def is_retryable(exc: VesperError) -> bool:
    """Only transient provider failures are worth retrying as-is."""
    return isinstance(exc, ProviderError) and exc.retryable
