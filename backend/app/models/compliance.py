"""Compliance-check data models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

URL_SENTINEL = "URL: "


# =============================================================================
# Pipeline Models
# =============================================================================


class CheckRequest(BaseModel):
    """A single document check: raw text or a ``URL: <url>`` sentinel."""

    content: str = Field("", description="Document text or URL sentinel")
    requester_id: Optional[str] = Field(None, description="Opaque caller identifier")

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()

    @property
    def has_valid_url(self) -> bool:
        """Whether the text after the sentinel parses as a host-bearing URL."""
        target = self.url
        if not target or any(ch.isspace() for ch in target):
            return False
        parsed = urlparse(target if "://" in target else f"https://{target}")
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @property
    def is_url(self) -> bool:
        return self.content.startswith(URL_SENTINEL)

    @property
    def url(self) -> str:
        """The URL following the sentinel (empty when this is raw text)."""
        if not self.is_url:
            return ""
        return self.content[len(URL_SENTINEL):].strip()


class SectionLabel(str, Enum):
    """Legal category of an extracted webpage excerpt."""

    OFFER = "offer"
    PRIVACY = "privacy"
    RETURNS = "returns"
    RAW_FALLBACK = "raw_fallback"

    @property
    def heading(self) -> Optional[str]:
        return _SECTION_HEADINGS.get(self)


_SECTION_HEADINGS = {
    SectionLabel.OFFER: "ОФЕРТА",
    SectionLabel.PRIVACY: "ПОЛИТИКА КОНФИДЕНЦИАЛЬНОСТИ",
    SectionLabel.RETURNS: "УСЛОВИЯ ВОЗВРАТА",
}


class ExtractedSection(BaseModel):
    """Labelled excerpt of cleaned page text."""

    label: SectionLabel
    text: str


class ModelRequest(BaseModel):
    """Payload handed to a model backend."""

    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_content: str


class JobStatus(str, Enum):
    """Run status as reported by the assistants API."""

    QUEUED = "queued"
    RUNNING = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {
        JobStatus.COMPLETED,
        JobStatus.FAILED,
        JobStatus.CANCELLED,
        JobStatus.EXPIRED,
        JobStatus.INCOMPLETE,
    }
)


class ModelJob(BaseModel):
    """A submitted asynchronous run, tracked until it reaches a terminal status."""

    id: str
    thread_id: str
    status: JobStatus = JobStatus.QUEUED
    result_text: Optional[str] = None
    error_message: Optional[str] = None


class ModelReport(BaseModel):
    """Report text produced by a model backend."""

    text: str
    job_id: Optional[str] = None


class CheckErrorType(str, Enum):
    VALIDATION = "validation_error"
    MODEL = "model_error"
    INTERNAL = "internal_error"


class CheckResult(BaseModel):
    """Outcome of one pipeline run. Exactly one of report/error is populated."""

    success: bool
    report_text: Optional[str] = None
    error_message: Optional[str] = None
    job_id: Optional[str] = None
    error_type: Optional[CheckErrorType] = None

    @classmethod
    def ok(cls, report: ModelReport) -> "CheckResult":
        return cls(success=True, report_text=report.text, job_id=report.job_id)

    @classmethod
    def failure(
        cls, message: str, error_type: CheckErrorType, job_id: Optional[str] = None
    ) -> "CheckResult":
        return cls(
            success=False, error_message=message, error_type=error_type, job_id=job_id
        )


# =============================================================================
# API Request/Response Models
# =============================================================================


class CheckDocumentRequest(BaseModel):
    """Body of ``POST /api/check-document``."""

    text: Optional[str] = Field(None, description="Document text or 'URL: <url>'")
    user_id: Optional[str] = Field(None, alias="userId", description="Caller id")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, v: object) -> Optional[str]:
        return None if v is None else str(v)


class CheckDocumentResponse(BaseModel):
    """Body returned by ``POST /api/check-document``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    result: Optional[str] = None
    thread_id: Optional[str] = Field(None, serialization_alias="threadId")
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: CheckResult) -> "CheckDocumentResponse":
        return cls(
            success=result.success,
            result=result.report_text,
            thread_id=result.job_id,
            error=result.error_message,
        )


class AssistantInfo(BaseModel):
    id: str
    name: Optional[str] = None
    model: Optional[str] = None


class AssistantStatusResponse(BaseModel):
    success: bool
    assistant: Optional[AssistantInfo] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime


class PaymentWebhookAck(BaseModel):
    success: bool = True
