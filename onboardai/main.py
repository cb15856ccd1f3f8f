"""
FastAPI entrypoint for the OnboardAI API.

Pipeline routes are sync endpoints: FastAPI runs them in its threadpool, so
a long render does not block other requests.
"""

import shutil
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from onboardai.api.routes_onboarding import router as onboarding_router
from onboardai.core.config import settings
from onboardai.core.exceptions import InvalidRequestError, OnboardAIError
from onboardai.core.logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"LLM provider: {settings.llm_provider}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Working directories under: {settings.work_root}")
    logger.info("=" * 60)
    yield
    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="OnboardAI - turns a GitHub repository into a narrated onboarding video",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(onboarding_router)


@app.exception_handler(OnboardAIError)
async def onboardai_error_handler(request: Request, exc: OnboardAIError) -> JSONResponse:
    """Render pipeline errors as {"ok": false, "error", "reason", "retryable", ...}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.reason}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client errors."""
    error = InvalidRequestError("Invalid request body", details={"issues": exc.errors()})
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "ingest": "/ingest",
            "script": "/script",
            "plan_video": "/video/plan",
            "render_video": "/video/render",
            "llm_models": "/llm/models",
            "llm_test": "/llm/test",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check; also reports whether the encoder binaries are on PATH."""
    return {
        "status": "healthy",
        "llmProvider": settings.llm_provider,
        "ffmpeg": shutil.which(settings.ffmpeg_binary) is not None,
        "ffprobe": shutil.which(settings.ffprobe_binary) is not None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "onboardai.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
