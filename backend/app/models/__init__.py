from app.models.compliance import (
    AssistantInfo,
    AssistantStatusResponse,
    CheckDocumentRequest,
    CheckDocumentResponse,
    CheckErrorType,
    CheckRequest,
    CheckResult,
    ExtractedSection,
    HealthResponse,
    JobStatus,
    ModelJob,
    ModelReport,
    ModelRequest,
    PaymentWebhookAck,
    SectionLabel,
)

__all__ = [
    # Pipeline models
    "CheckErrorType",
    "CheckRequest",
    "CheckResult",
    "ExtractedSection",
    "JobStatus",
    "ModelJob",
    "ModelReport",
    "ModelRequest",
    "SectionLabel",
    # API models
    "AssistantInfo",
    "AssistantStatusResponse",
    "CheckDocumentRequest",
    "CheckDocumentResponse",
    "HealthResponse",
    "PaymentWebhookAck",
]
