import platform

from fastapi import APIRouter

from musicbox.api.schemas import HealthResponse
from musicbox.core.config import settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check with version information."""
    return HealthResponse(
        status="ok",
        version=settings.VERSION,
        python=platform.python_version(),
    )
