"""Render job data models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class RenderStatus(StrEnum):
    """Lifecycle of an external render job."""

    SUBMITTED = "submitted"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"
    FAILED = "failed"
    TIMEOUT = "timeout"


TERMINAL_STATUSES = frozenset(
    {RenderStatus.DONE, RenderStatus.ERROR, RenderStatus.FAILED, RenderStatus.TIMEOUT}
)


class RenderJob(BaseModel):
    """One externally submitted render job tracked to a terminal status."""

    job_id: str = Field(..., min_length=1, description="External correlation id")
    status: RenderStatus = Field(default=RenderStatus.SUBMITTED)
    attempts: int = Field(default=0, ge=0)
    submitted_at: float = Field(..., description="Clock reading at submission, in seconds")
    submitted_at_utc: datetime = Field(default_factory=lambda: datetime.now(UTC))
    max_attempts: int = Field(default=60, gt=0)
    poll_interval: float = Field(default=5.0, ge=0)
    result_url: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def validate_result(self) -> "RenderJob":
        if self.status == RenderStatus.DONE and not self.result_url:
            raise ValueError("A done render job must carry a result url")
        return self

    @property
    def max_wait_seconds(self) -> float:
        return self.max_attempts * self.poll_interval

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == RenderStatus.DONE and bool(self.result_url)

    def transition(
        self, status: RenderStatus, result_url: str | None = None, error: str | None = None
    ) -> None:
        """Move to ``status``; terminal jobs never transition again."""
        if self.is_terminal:
            raise ValueError(f"Render job {self.job_id} is already terminal ({self.status})")
        if status == RenderStatus.SUBMITTED:
            raise ValueError("A render job cannot return to submitted")
        if status == RenderStatus.DONE and not result_url:
            raise ValueError("A done render job must carry a result url")
        self.status = status
        if result_url is not None:
            self.result_url = result_url
        if error is not None:
            self.error = error


class RenderPoll(BaseModel):
    """A single status observation returned by the render service."""

    status: str = Field(..., min_length=1)
    result_url: str | None = None
