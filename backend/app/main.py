"""AI Lawyer Backend - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.models.compliance import HealthResponse
from app.routers import compliance, payments

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup diagnostics."""
    logger.info("Starting AI Lawyer Backend...")

    settings = get_settings()
    missing = settings.missing_credentials()
    for name in missing:
        logger.error(
            f"{name} is not set - the {settings.model_backend} backend cannot serve checks"
        )
    if not missing:
        if settings.model_backend == "assistant":
            logger.info(f"Model backend: OpenAI assistant {settings.assistant_id}")
        else:
            logger.info(f"Model backend: Groq chat ({settings.groq_model})")

    logger.info("AI Lawyer Backend started")

    yield

    logger.info("AI Lawyer Backend shutdown complete")


app = FastAPI(
    title="AI Lawyer Backend",
    description="Compliance check of offers, privacy policies and return terms against Russian law",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(compliance.router)
app.include_router(payments.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert anything that escapes a route into the failure response shape."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
