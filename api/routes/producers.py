"""Producer name endpoints.

Handles fuzzy resolution of distiller/bottler names and name-prefix
suggestions for form autocompletion.
"""

import sqlite3
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from core.config import get_settings
from core.observability.logging import get_logger, with_correlation
from producer_resolver.db import suggest_producer_names
from producer_resolver.models import ProducerKind, ProducerResolution
from producer_resolver.normalize import sanitize_search
from producer_resolver.resolver import ProducerResolver
from producer_resolver.service import get_resolver


router = APIRouter()
logger = get_logger(__name__)

VALID_KINDS = [k.value for k in ProducerKind]


def get_db_path() -> Path:
    """Catalogue path dependency (overridden in tests)."""
    return get_settings().producer_db_path


def get_producer_resolver(db_path: Path = Depends(get_db_path)) -> ProducerResolver:
    """Resolver dependency backed by the SQLite catalogue."""
    return get_resolver(db_path)


class ResolveRequest(BaseModel):
    """Request to resolve a producer name."""
    kind: Optional[str] = Field(None, description="distiller or bottler")
    value: Optional[str] = Field(None, description="Raw producer name")


class ResolveResponse(BaseModel):
    """Producer resolution response."""
    success: bool = True
    resolution: ProducerResolution


class SuggestResponse(BaseModel):
    """Name suggestions for autocompletion."""
    items: List[str] = Field(default_factory=list)


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_producer(
    request: ResolveRequest,
    resolver: ProducerResolver = Depends(get_producer_resolver),
) -> ResolveResponse:
    """Resolve a free-text distiller/bottler name to a catalogue name."""
    kind = (request.kind or "").strip()
    value = (request.value or "").strip()

    if not kind or not value:
        raise HTTPException(status_code=400, detail="Missing parameters")
    if kind not in VALID_KINDS:
        logger.warning(f"Rejected resolve request for unknown kind '{kind}'")
        raise HTTPException(
            status_code=400,
            detail=f"Invalid kind. Valid kinds: {VALID_KINDS}"
        )

    with with_correlation(producer_kind=kind):
        try:
            resolution = await resolver.resolve_producer_name(kind, value)
        except Exception:
            logger.exception("Producer resolution failed")
            raise HTTPException(status_code=500, detail="Server error")

        logger.info(
            f"Resolved '{value}' with {resolution.confidence.value} confidence",
            extra_fields={"resolved_name": resolution.resolved_name},
        )

    return ResolveResponse(success=True, resolution=resolution)


@router.get("/suggest", response_model=SuggestResponse)
async def suggest_producers(
    kind: str = "",
    q: str = "",
    limit: int = Query(8, description="Max names (clamped to 1..10)"),
    db_path: Path = Depends(get_db_path),
) -> SuggestResponse:
    """Suggest active producer names starting with the query."""
    kind = kind.strip()
    query = sanitize_search(q, 80)

    if kind not in VALID_KINDS or len(query) < 2:
        return SuggestResponse(items=[])

    try:
        items = suggest_producer_names(kind, query, limit=limit, db_path=db_path)
    except sqlite3.Error as e:
        logger.error(f"Producer suggestion failed: {e}", extra_fields={"producer_kind": kind})
        return SuggestResponse(items=[])

    return SuggestResponse(items=items)
