from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from archie.api.router import api_router
from archie.core.config import settings
from archie.core.logging_config import configure_logging
from archie.core.tracing import configure_tracing
from archie.domain.exceptions import (
    ConfigurationError,
    ThreadConflictError,
    ThreadNotFoundError,
    ThreadNotSuspendedError,
    WorkflowInputError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan event handler: logging and tracing setup."""
    configure_logging(level=settings.LOG_LEVEL)
    logger.info("Archie API starting up...")
    configure_tracing(settings)

    yield  # Application runs

    logger.info("Archie API shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)


# Domain exception → HTTP response mapping
@app.exception_handler(ThreadNotFoundError)
async def thread_not_found_handler(request: Request, exc: ThreadNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ThreadNotSuspendedError)
async def thread_not_suspended_handler(request: Request, exc: ThreadNotSuspendedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ThreadConflictError)
async def thread_conflict_handler(request: Request, exc: ThreadConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(WorkflowInputError)
async def workflow_input_handler(request: Request, exc: WorkflowInputError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Archie Architecture Assistant API",
        "version": settings.VERSION,
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
