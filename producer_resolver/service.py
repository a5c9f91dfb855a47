"""Catalogue-backed resolution entry points.

    from producer_resolver.service import resolve_distiller_name

    resolution = await resolve_distiller_name("glenfidich")
"""

from pathlib import Path
from typing import Optional

from core.config import get_settings
from producer_resolver.db import SQLiteCandidateSource
from producer_resolver.models import ProducerResolution
from producer_resolver.resolver import ProducerResolver


def get_resolver(db_path: Optional[Path] = None) -> ProducerResolver:
    """Build a resolver over the SQLite catalogue (configured path by default)."""
    return ProducerResolver(SQLiteCandidateSource(db_path or get_settings().producer_db_path))


async def resolve_distiller_name(
    raw_value: Optional[str],
    db_path: Optional[Path] = None,
) -> ProducerResolution:
    """Resolve a raw name against active, non-merged distillers."""
    return await get_resolver(db_path).resolve_distiller_name(raw_value)


async def resolve_bottler_name(
    raw_value: Optional[str],
    db_path: Optional[Path] = None,
) -> ProducerResolution:
    """Resolve a raw name against active, non-merged bottlers."""
    return await get_resolver(db_path).resolve_bottler_name(raw_value)
