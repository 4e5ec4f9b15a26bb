"""Compliance-check orchestration.

Coordinates extraction → normalization → model call without containing any
extraction or transport logic itself. Every outcome is folded into a
``CheckResult``; nothing escapes ``run``.
"""

import asyncio
import logging
import time
from typing import Optional

from app.config import Settings, get_settings
from app.models.compliance import CheckErrorType, CheckRequest, CheckResult
from app.services.compliance.constants import MIN_CONTENT_LENGTH, MIN_EXTRACTED_LENGTH
from app.services.compliance.content_extractor import ContentExtractor, format_sections
from app.services.compliance.errors import FetchError, ModelError, ValidationError
from app.services.compliance.model_gateway import ModelGateway, build_model_gateway
from app.services.compliance.prompts import SYSTEM_PROMPT, build_user_content
from app.services.compliance.text_normalizer import normalize

logger = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE = "Текст документа обязателен"
INVALID_URL_MESSAGE = "Некорректный URL. Проверьте адрес сайта."
UNREACHABLE_MESSAGE = (
    "Не удалось загрузить содержимое сайта или оно слишком короткое. Проверьте URL."
)
TOO_SHORT_MESSAGE = (
    f"Текст документа слишком короткий (минимум {MIN_CONTENT_LENGTH} символов)"
)

# Singleton state
_pipeline: Optional["CheckPipeline"] = None
_lock = asyncio.Lock()


class CheckPipeline:
    """Runs one document check per call. Stateless between calls."""

    def __init__(
        self,
        gateway: ModelGateway,
        extractor: Optional[ContentExtractor] = None,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        min_content_length: int = MIN_CONTENT_LENGTH,
        min_extracted_length: int = MIN_EXTRACTED_LENGTH,
    ) -> None:
        self.gateway = gateway
        self.extractor = extractor or ContentExtractor()
        self.system_prompt = system_prompt
        self.min_content_length = min_content_length
        self.min_extracted_length = min_extracted_length

    async def run(self, request: CheckRequest) -> CheckResult:
        """Main entry point: check one document and shape the result."""
        start_time = time.time()
        try:
            document = await self._prepare_document(request)
            report = await self.gateway.invoke(
                self.system_prompt, build_user_content(document)
            )
        except ValidationError as e:
            logger.info(f"Rejected request from {request.requester_id}: {e}")
            return CheckResult.failure(str(e), CheckErrorType.VALIDATION)
        except ModelError as e:
            logger.error(f"Model call failed for {request.requester_id}: {e!r}")
            return CheckResult.failure(str(e), CheckErrorType.MODEL, job_id=e.job_id)
        except Exception as e:
            logger.exception(f"Unexpected error while checking document: {e}")
            return CheckResult.failure(
                f"Internal error: {e!s}", CheckErrorType.INTERNAL
            )

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Check for {request.requester_id} completed in {elapsed_ms} ms "
            f"({len(report.text)} chars)"
        )
        return CheckResult.ok(report)

    async def _prepare_document(self, request: CheckRequest) -> str:
        """Resolve *request* into normalized document text.

        Raises:
            ValidationError: Empty input, bad or unreachable URL, or text
                below the minimum length.
        """
        if request.is_empty:
            raise ValidationError(EMPTY_CONTENT_MESSAGE)

        text = request.content
        if request.is_url:
            text = await self._extract_from_url(request)

        document = normalize(text)
        if len(document) < self.min_content_length:
            raise ValidationError(TOO_SHORT_MESSAGE)
        return document

    async def _extract_from_url(self, request: CheckRequest) -> str:
        if not request.has_valid_url:
            raise ValidationError(INVALID_URL_MESSAGE)

        url = request.url
        logger.info(f"Fetching website content: {url}")
        try:
            sections = await self.extractor.extract(url)
        except FetchError as e:
            logger.warning(f"Website extraction failed: {e}")
            raise ValidationError(UNREACHABLE_MESSAGE) from e

        text = format_sections(sections)
        # Headings alone must not satisfy the length floor
        body_length = sum(len(s.text) for s in sections)
        if body_length < self.min_extracted_length:
            logger.warning(f"Extracted only {body_length} chars from {url}")
            raise ValidationError(UNREACHABLE_MESSAGE)
        return text


# =====================================================================
# Singleton factory (thread-safe via asyncio.Lock)
# =====================================================================


def build_check_pipeline(settings: Settings) -> CheckPipeline:
    """Wire a pipeline from *settings*."""
    return CheckPipeline(
        gateway=build_model_gateway(settings),
        extractor=ContentExtractor(
            timeout=settings.fetch_timeout,
            max_redirects=settings.max_redirects,
        ),
    )


async def get_check_pipeline() -> CheckPipeline:
    """Get or create the singleton ``CheckPipeline``."""
    global _pipeline
    if _pipeline is not None:
        return _pipeline

    async with _lock:
        # Double-checked locking
        if _pipeline is not None:
            return _pipeline
        _pipeline = build_check_pipeline(get_settings())

    return _pipeline


def reset_check_pipeline() -> None:
    """Reset pipeline for testing."""
    global _pipeline
    _pipeline = None
