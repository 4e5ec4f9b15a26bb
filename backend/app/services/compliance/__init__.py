"""Compliance-check package: website extraction and model audit pipeline.

Re-exports the public API so consumers can use::

    from app.services.compliance import CheckPipeline, get_check_pipeline
"""

from app.services.compliance.errors import (
    FetchError,
    ModelError,
    ModelErrorKind,
    RedirectLoop,
    TooManyRedirects,
    ValidationError,
)
from app.services.compliance.pipeline import (
    CheckPipeline,
    get_check_pipeline,
    reset_check_pipeline,
)

__all__ = [
    "CheckPipeline",
    "get_check_pipeline",
    "reset_check_pipeline",
    "FetchError",
    "ModelError",
    "ModelErrorKind",
    "RedirectLoop",
    "TooManyRedirects",
    "ValidationError",
]
