"""Health check and metrics endpoints."""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from api.routes.producers import get_db_path
from core import __version__
from core.observability.metrics import get_metrics


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(db_path: Path = Depends(get_db_path)) -> HealthResponse:
    """Health check endpoint."""
    catalogue = "up" if Path(db_path).exists() else "missing"
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
        version=__version__,
        services={
            "api": "up",
            "catalogue": catalogue,
        }
    )


@router.get("/ready")
async def readiness_check() -> Dict[str, str]:
    """Readiness probe for Kubernetes."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check(response: Response) -> Dict[str, str]:
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}


@router.get("/metrics")
async def metrics_summary() -> Dict[str, Any]:
    """Resolution counts and timings since process start."""
    return get_metrics().get_summary()
