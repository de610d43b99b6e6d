"""
FastAPI Application - Professor AI

Main entry point for the REST API.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import os
import time
import logging
from typing import AsyncGenerator

from sqlalchemy import text

from .analytics import analytics
from .dependencies import close_services
from .schemas import ErrorResponse, HealthResponse
from ..agent import LLMSettings
from ..rag import get_rag_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Version
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan events.

    Runs on startup and shutdown.
    """
    logger.info("=" * 60)
    logger.info(f"Professor AI API v{VERSION}")
    logger.info("=" * 60)

    rag_config = get_rag_config()
    logger.info(
        f"Embeddings: {rag_config.embedding_model} at {rag_config.embedding_api_url} "
        f"(dimension {rag_config.embedding_dimension})"
    )

    llm_settings = LLMSettings()
    if llm_settings.is_configured:
        logger.info(f"LLM configured: {llm_settings.llm_provider}/{llm_settings.llm_model}")
    else:
        logger.warning("LLM API key not configured, tutor will answer with fallback text")

    logger.info(f"API started on port {os.getenv('PORT', '8000')}")

    yield

    logger.info("Shutting down API...")
    await close_services()


app = FastAPI(
    title="Professor AI API",
    description="""
    Tutoring backend with retrieval-augmented answers.

    ## Features
    - Personal and public knowledge-base documents
    - Semantic search with cosine similarity over embeddings
    - Tutor chat grounded in cited documents
    - Syllabus-to-documents generation
    """,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests"""
    start_time = time.time()

    logger.info(f"→ {request.method} {request.url.path}")

    response = await call_next(request)

    duration = (time.time() - start_time) * 1000
    logger.info(f"← {response.status_code} ({duration:.0f}ms)")

    return response


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    errors = exc.errors()
    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            detail=f"Validation error: {errors[0]['msg']}",
            error_code="VALIDATION_ERROR"
        ).model_dump(mode='json')
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions (including InvalidArgument)"""
    logger.error(f"ValueError: {exc}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            detail=str(exc),
            error_code="VALUE_ERROR"
        ).model_dump(mode='json')
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            detail="Internal server error. Please try again later.",
            error_code="INTERNAL_ERROR"
        ).model_dump(mode='json')
    )


@app.get("/", tags=["Root"])
async def root():
    """API information"""
    return {
        "name": "Professor AI API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "chat": "/api/v1/tutoring/chat",
        "search": "/api/v1/documents/search"
    }


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns service status and configuration of its collaborators.
    """
    database_status = "disconnected"
    try:
        from ..db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database_status = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")

    rag_config = get_rag_config()
    embeddings_status = "configured" if rag_config.embedding_api_url else "not_configured"

    llm_status = "configured" if LLMSettings().is_configured else "not_configured"

    # The API keeps serving with fallback embeddings and answers, so it
    # reports healthy even when a collaborator is down
    return HealthResponse(
        status="healthy",
        database=database_status,
        embeddings=embeddings_status,
        llm=llm_status,
        version=VERSION
    )


@app.get("/api/v1/analytics", tags=["Analytics"])
async def get_analytics():
    """
    Get retrieval analytics.

    Returns volume, latency, degraded-embedding and error statistics.
    """
    return analytics.get_stats()


from .routers import documents, tutoring  # noqa: E402

app.include_router(documents.router, prefix="/api/v1", tags=["Documents"])
app.include_router(tutoring.router, prefix="/api/v1", tags=["Tutoring"])


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "professor_ai.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info"
    )
