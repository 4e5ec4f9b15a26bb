"""Model backends for the compliance audit.

Implements the Template Method pattern: ``ModelGateway.invoke`` bounds the
user content and builds the request, while each backend only implements the
transport.

Two protocols are supported:

* ``ChatCompletionGateway``: a single OpenAI-compatible chat-completion POST
  (Groq).
* ``AssistantGateway``: the OpenAI Assistants API. It creates a thread,
  appends the user message, starts a run and polls it until it reaches a
  terminal status.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import httpx
import openai
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from app.config import Settings
from app.models.compliance import AssistantInfo, JobStatus, ModelJob, ModelReport, ModelRequest
from app.services.compliance.constants import (
    MODEL_CONTENT_LIMIT,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
)
from app.services.compliance.errors import ModelError, ModelErrorKind
from app.services.compliance.text_normalizer import truncate_for_model

logger = logging.getLogger(__name__)

_JOB_FAILURE_STATUSES = frozenset(
    {JobStatus.FAILED, JobStatus.CANCELLED, JobStatus.EXPIRED, JobStatus.INCOMPLETE}
)


class ModelGateway(ABC):
    """Template base for all model backends.

    Subclasses must implement ``_call()`` which sends a ready
    ``ModelRequest`` and returns the report or raises ``ModelError``.
    """

    backend_name: str = "model"

    def __init__(self, *, content_limit: int = MODEL_CONTENT_LIMIT) -> None:
        self.content_limit = content_limit

    async def invoke(self, system_prompt: str, user_content: str) -> ModelReport:
        """Send the audit request and return the model's report.

        Raises:
            ModelError: On backend, protocol or timeout failures.
        """
        request = ModelRequest(
            system_prompt=system_prompt,
            user_content=truncate_for_model(user_content, self.content_limit),
        )
        if len(request.user_content) != len(user_content):
            logger.info(
                f"User content truncated from {len(user_content)} to "
                f"{self.content_limit} chars for {self.backend_name}"
            )
        return await self._call(request)

    @abstractmethod
    async def _call(self, request: ModelRequest) -> ModelReport:
        """Transmit *request* to the backend."""


# =====================================================================
# Synchronous protocol (chat completions)
# =====================================================================


class ChatCompletionGateway(ModelGateway):
    """One-shot chat completion against an OpenAI-compatible endpoint."""

    backend_name = "Groq API"

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        url: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        top_p: float = 0.9,
        timeout: float = 120.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        content_limit: int = MODEL_CONTENT_LIMIT,
    ) -> None:
        super().__init__(content_limit=content_limit)
        self.api_key = api_key
        self.model = model
        self.url = url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.top_p = top_p
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=timeout)
        )

    def build_payload(self, request: ModelRequest) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_content},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }

    async def _call(self, request: ModelRequest) -> ModelReport:
        try:
            async with self._client_factory() as client:
                resp = await client.post(
                    self.url,
                    json=self.build_payload(request),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            raise ModelError(
                ModelErrorKind.BACKEND_ERROR,
                f"{self.backend_name}: {type(e).__name__}: {e}",
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ModelError(
                ModelErrorKind.MALFORMED_RESPONSE,
                f"{self.backend_name}: response is not JSON (HTTP {resp.status_code})",
            ) from e

        return ModelReport(text=self._parse_content(data, resp.status_code))

    def _parse_content(self, data: Any, status_code: int) -> str:
        if not isinstance(data, dict):
            raise ModelError(
                ModelErrorKind.MALFORMED_RESPONSE,
                f"{self.backend_name}: unexpected response shape",
            )

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ModelError(
                ModelErrorKind.BACKEND_ERROR,
                f"{self.backend_name}: {message or 'unknown error'}",
            )

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str):
            if status_code >= 400:
                raise ModelError(
                    ModelErrorKind.BACKEND_ERROR,
                    f"{self.backend_name}: HTTP {status_code}",
                )
            raise ModelError(
                ModelErrorKind.MALFORMED_RESPONSE,
                f"{self.backend_name}: no message content in response",
            )
        return content


# =====================================================================
# Asynchronous protocol (assistants: thread + run + poll)
# =====================================================================


class AssistantGateway(ModelGateway):
    """Runs a pre-configured OpenAI assistant and polls until the run ends.

    The assistant carries its own instructions, so the system prompt is
    sent as run-level ``additional_instructions``.
    """

    backend_name = "OpenAI Assistant"

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        assistant_id: str,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_max_attempts: int = POLL_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        content_limit: int = MODEL_CONTENT_LIMIT,
    ) -> None:
        super().__init__(content_limit=content_limit)
        self.client = client
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self._sleep = sleep

    async def _call(self, request: ModelRequest) -> ModelReport:
        try:
            job = await self.submit(request)
            job = await self.wait_for_completion(job)
            text = await self.fetch_reply(job)
        except openai.APIError as e:
            raise ModelError(
                ModelErrorKind.BACKEND_ERROR, f"{self.backend_name}: {e}"
            ) from e
        return ModelReport(text=text, job_id=job.thread_id)

    async def submit(self, request: ModelRequest) -> ModelJob:
        """Create thread, append the user message and start a run."""
        thread = await self.client.beta.threads.create()
        await self.client.beta.threads.messages.create(
            thread_id=thread.id,
            role="user",
            content=request.user_content,
        )
        run = await self.client.beta.threads.runs.create(
            thread_id=thread.id,
            assistant_id=self.assistant_id,
            additional_instructions=request.system_prompt,
        )
        job = ModelJob(id=run.id, thread_id=thread.id, status=self._status_of(run))
        logger.info(f"Started run {job.id} on thread {job.thread_id}")
        return job

    async def wait_for_completion(self, job: ModelJob) -> ModelJob:
        """Poll *job* until it is terminal.

        Every poll is preceded by one ``poll_interval`` sleep, so the attempt
        ceiling bounds the wait at ``poll_interval * poll_max_attempts``.

        Raises:
            ModelError: ``JOB_FAILED`` on a failed/cancelled/expired run,
                ``TIMEOUT`` when the attempt ceiling is reached first.
        """
        if not job.status.is_terminal:
            retrying = AsyncRetrying(
                stop=stop_after_attempt(self.poll_max_attempts),
                wait=wait_fixed(self.poll_interval),
                retry=retry_if_result(lambda polled: not polled.status.is_terminal),
                sleep=self._sleep,
            )
            try:
                await self._sleep(self.poll_interval)
                job = await retrying(self._poll, job)
            except RetryError as e:
                raise ModelError(
                    ModelErrorKind.TIMEOUT,
                    f"{self.backend_name}: run {job.id} not finished after "
                    f"{self.poll_max_attempts} polls",
                    job_id=job.thread_id,
                ) from e

        if job.status in _JOB_FAILURE_STATUSES:
            detail = f"{self.backend_name}: run finished with status {job.status.value}"
            if job.error_message:
                detail = f"{detail} ({job.error_message})"
            raise ModelError(ModelErrorKind.JOB_FAILED, detail, job_id=job.thread_id)
        return job

    async def _poll(self, job: ModelJob) -> ModelJob:
        run = await self.client.beta.threads.runs.retrieve(
            run_id=job.id, thread_id=job.thread_id
        )
        status = self._status_of(run)
        logger.debug(f"Run {job.id}: {status.value}")
        last_error = getattr(run, "last_error", None)
        return job.model_copy(
            update={
                "status": status,
                "error_message": getattr(last_error, "message", None),
            }
        )

    async def fetch_reply(self, job: ModelJob) -> str:
        """Return the text of the newest assistant message on the job's thread."""
        page = await self.client.beta.threads.messages.list(
            thread_id=job.thread_id, order="desc"
        )
        for message in page.data:
            if message.role != "assistant":
                continue
            for part in message.content:
                if getattr(part, "type", None) == "text":
                    return part.text.value
        raise ModelError(
            ModelErrorKind.MALFORMED_RESPONSE,
            f"{self.backend_name}: no assistant reply on thread {job.thread_id}",
            job_id=job.thread_id,
        )

    async def retrieve_assistant(self) -> AssistantInfo:
        assistant = await self.client.beta.assistants.retrieve(self.assistant_id)
        return AssistantInfo(id=assistant.id, name=assistant.name, model=assistant.model)

    def _status_of(self, run: Any) -> JobStatus:
        try:
            return JobStatus(run.status)
        except ValueError:
            raise ModelError(
                ModelErrorKind.MALFORMED_RESPONSE,
                f"{self.backend_name}: unknown run status {run.status!r}",
            ) from None


# =====================================================================
# Factory
# =====================================================================


def build_model_gateway(settings: Settings) -> ModelGateway:
    """Construct the backend selected by ``settings.model_backend``."""
    if settings.model_backend == "chat":
        if not settings.groq_api_key:
            raise ValueError("GROQ_API_KEY is required for the chat backend")
        return ChatCompletionGateway(
            settings.groq_api_key,
            model=settings.groq_model,
            url=settings.groq_api_url,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            top_p=settings.top_p,
            timeout=settings.model_request_timeout,
        )

    if not settings.openai_api_key or not settings.assistant_id:
        raise ValueError("OPENAI_API_KEY and ASSISTANT_ID are required for the assistant backend")
    return AssistantGateway(
        openai.AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.model_request_timeout,
        ),
        settings.assistant_id,
        poll_interval=settings.poll_interval_seconds,
        poll_max_attempts=settings.poll_max_attempts,
    )
