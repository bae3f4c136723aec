from datetime import datetime, timezone

from fastapi import APIRouter

from archie.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Full health check endpoint.

    Reports the version and the configured LLM provider and checkpoint
    backend without touching either.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "checks": {
            "llm_provider": settings.LLM_PROVIDER,
            "checkpoints": settings.CHECKPOINT_DATABASE_URL.split(":", 1)[0],
        },
    }


@router.get("/healthz")
async def healthz():
    """Simple liveness check."""
    return {"status": "healthy"}
