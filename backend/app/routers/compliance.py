"""Document compliance-check API router."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.models.compliance import (
    AssistantStatusResponse,
    CheckDocumentRequest,
    CheckDocumentResponse,
    CheckErrorType,
    CheckRequest,
)
from app.services.compliance import CheckPipeline, get_check_pipeline
from app.services.compliance.model_gateway import AssistantGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["compliance"])

_STATUS_BY_ERROR = {
    CheckErrorType.VALIDATION: 400,
    CheckErrorType.MODEL: 500,
    CheckErrorType.INTERNAL: 500,
}


async def get_pipeline() -> CheckPipeline:
    """Resolve the shared pipeline, reporting missing configuration as 503."""
    try:
        return await get_check_pipeline()
    except ValueError as e:
        logger.error(f"Compliance pipeline is not configured: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/check-document", response_model=CheckDocumentResponse)
async def check_document(
    body: CheckDocumentRequest,
    pipeline: CheckPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Check a document for compliance with Russian consumer and data law.

    ``text`` is either the document itself or ``"URL: <address>"``, in which
    case the offer, privacy and returns sections are pulled from the site.

    Returns the audit report on success; 400 for unusable input and 500 for
    model backend failures, both with an ``error`` message.
    """
    logger.info(f"Checking document for user: {body.user_id}")

    result = await pipeline.run(
        CheckRequest(content=body.text or "", requester_id=body.user_id)
    )
    response = CheckDocumentResponse.from_result(result)
    status_code = 200 if result.success else _STATUS_BY_ERROR[result.error_type]
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(by_alias=True, exclude_none=True),
    )


@router.get("/assistant/status", response_model=AssistantStatusResponse)
async def assistant_status(
    pipeline: CheckPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """
    Report the configured OpenAI assistant (id, name, model).

    Only meaningful with the assistant backend; the chat backend has no
    assistant to describe.
    """
    gateway = pipeline.gateway
    if not isinstance(gateway, AssistantGateway):
        return JSONResponse(
            status_code=400,
            content=AssistantStatusResponse(
                success=False,
                error=f"Assistant status is unavailable for {gateway.backend_name}",
            ).model_dump(exclude_none=True),
        )

    try:
        info = await gateway.retrieve_assistant()
    except Exception as e:
        logger.error(f"Assistant lookup failed: {e}")
        return JSONResponse(
            status_code=500,
            content=AssistantStatusResponse(success=False, error=str(e)).model_dump(
                exclude_none=True
            ),
        )

    return JSONResponse(
        content=AssistantStatusResponse(success=True, assistant=info).model_dump(
            exclude_none=True
        )
    )
