"""Producer Catalogue Database Operations.

This module handles all database operations for the producer catalogue:
- Schema initialization
- Create / merge / deactivate of distiller and bottler records
- Candidate name queries (active, non-merged records only)
- Sample data seeding

The resolver never reads the tables directly; it goes through
SQLiteCandidateSource, which re-queries on every call so that merges and
deactivations take effect immediately.
"""

import asyncio
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.config import get_settings
from core.observability.logging import get_logger
from producer_resolver.errors import ProducerError, ProducerNotFoundError
from producer_resolver.models import Producer, ProducerKind
from producer_resolver.normalize import normalize_producer_name, slugify_producer_name


logger = get_logger(__name__)

# Default database path (overridable with PRODUCER_DB_PATH)
DEFAULT_DB_PATH = get_settings().producer_db_path

TABLES = {
    ProducerKind.DISTILLER: "distillers",
    ProducerKind.BOTTLER: "bottlers",
}

MAX_SUGGEST_LIMIT = 10

KindLike = Union[ProducerKind, str]


def _table(kind: KindLike) -> str:
    return TABLES[ProducerKind(kind)]


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_producer_db(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Initialize producer catalogue tables.

    Creates one table per producer kind (distillers, bottlers) with the
    same layout. merged_into_id points at the surviving record of a merge.

    Args:
        db_path: Path to SQLite database file
    """
    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()

        for table in TABLES.values():
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    merged_into_id TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{table}_active
                ON {table}(is_active, merged_into_id)
            """)

        conn.commit()
        logger.info("Producer catalogue tables initialized", extra_fields={"db_path": str(db_path)})

    finally:
        conn.close()


# =============================================================================
# CRUD Operations
# =============================================================================

def _unique_slug(cursor: sqlite3.Cursor, table: str, name: str) -> str:
    base = slugify_producer_name(name)
    slug = base
    suffix = 2
    while cursor.execute(f"SELECT 1 FROM {table} WHERE slug = ?", (slug,)).fetchone():
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def add_producer(
    kind: KindLike,
    name: str,
    db_path: Path = DEFAULT_DB_PATH,
    producer_id: Optional[str] = None,
) -> Producer:
    """Add a new active producer to the catalogue.

    The name is stored in normalized form and gets a unique slug.

    Args:
        kind: distiller or bottler
        name: Producer name (raw; normalized before insert)
        db_path: Path to database
        producer_id: Optional explicit ID (a UUID is generated otherwise)

    Returns:
        The created Producer

    Raises:
        ProducerError: If the name is empty after normalization
    """
    kind = ProducerKind(kind)
    normalized = normalize_producer_name(name)
    if not normalized:
        raise ProducerError("Producer name is empty", kind=kind.value)

    table = _table(kind)
    now = datetime.utcnow().isoformat()
    producer_id = producer_id or str(uuid.uuid4())

    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        slug = _unique_slug(cursor, table, normalized)
        cursor.execute(f"""
            INSERT INTO {table} (id, name, slug, is_active, merged_into_id, created_at)
            VALUES (?, ?, ?, 1, NULL, ?)
        """, (producer_id, normalized, slug, now))
        conn.commit()
    finally:
        conn.close()

    logger.info(
        f"Added {kind.value}: {normalized}",
        extra_fields={"producer_id": producer_id, "slug": slug},
    )
    return Producer(
        id=producer_id,
        kind=kind,
        name=normalized,
        slug=slug,
        is_active=True,
        merged_into_id=None,
        created_at=datetime.fromisoformat(now),
    )


def get_producer(
    kind: KindLike,
    producer_id: str,
    db_path: Path = DEFAULT_DB_PATH,
) -> Optional[Producer]:
    """Look up a producer by ID.

    Returns:
        Producer if found, None otherwise
    """
    kind = ProducerKind(kind)
    conn = _connect(db_path)
    try:
        row = conn.execute(
            f"SELECT * FROM {_table(kind)} WHERE id = ?", (producer_id,)
        ).fetchone()
        return _row_to_producer(row, kind) if row else None
    finally:
        conn.close()


def list_active_producer_names(
    kind: KindLike,
    db_path: Path = DEFAULT_DB_PATH,
) -> List[str]:
    """Get the names of all active, non-merged producers of a kind.

    No ordering or uniqueness guarantee; the resolver cleans the list.
    """
    conn = _connect(db_path)
    try:
        rows = conn.execute(f"""
            SELECT name FROM {_table(kind)}
            WHERE is_active = 1 AND merged_into_id IS NULL
        """).fetchall()
        return [row["name"] or "" for row in rows]
    finally:
        conn.close()


def suggest_producer_names(
    kind: KindLike,
    query: str,
    limit: int = 8,
    db_path: Path = DEFAULT_DB_PATH,
) -> List[str]:
    """Prefix search over active, non-merged producer names.

    Shortest names come first, then alphabetical (case-insensitive).

    Args:
        kind: distiller or bottler
        query: Name prefix (already sanitized by the caller)
        limit: Max names to return (clamped to 1..10)
        db_path: Path to database

    Returns:
        Unique trimmed names
    """
    limit = min(MAX_SUGGEST_LIMIT, max(1, limit))
    escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    conn = _connect(db_path)
    try:
        rows = conn.execute(f"""
            SELECT name FROM {_table(kind)}
            WHERE lower(name) LIKE ? ESCAPE '\\'
              AND is_active = 1 AND merged_into_id IS NULL
            ORDER BY length(name) ASC, lower(name) ASC
            LIMIT ?
        """, (f"{escaped}%", limit)).fetchall()
    finally:
        conn.close()

    items: List[str] = []
    for row in rows:
        name = (row["name"] or "").strip()
        if name and name not in items:
            items.append(name)
    return items


def deactivate_producer(
    kind: KindLike,
    producer_id: str,
    db_path: Path = DEFAULT_DB_PATH,
) -> bool:
    """Deactivate a producer so it is no longer offered as a candidate.

    Returns:
        True if a record was deactivated, False if not found
    """
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE {_table(kind)} SET is_active = 0 WHERE id = ?", (producer_id,)
        )
        conn.commit()
        deactivated = cursor.rowcount > 0
    finally:
        conn.close()

    if deactivated:
        logger.info(f"Deactivated {ProducerKind(kind).value} {producer_id}")
    return deactivated


def merge_producers(
    kind: KindLike,
    source_id: str,
    target_id: str,
    db_path: Path = DEFAULT_DB_PATH,
) -> Producer:
    """Merge a duplicate producer into the surviving one.

    The source record is deactivated and points at the target through
    merged_into_id. Both records must currently be candidates.

    Args:
        kind: distiller or bottler
        source_id: Duplicate record to retire
        target_id: Record that survives
        db_path: Path to database

    Returns:
        The updated source Producer

    Raises:
        ProducerError: Same IDs, or either record already merged/inactive
        ProducerNotFoundError: Either record does not exist
    """
    kind = ProducerKind(kind)
    if not source_id or not target_id:
        raise ProducerError("Missing source/target", kind=kind.value)
    if source_id == target_id:
        raise ProducerError(
            "Source and target must be different", kind=kind.value, producer_id=source_id
        )

    table = _table(kind)
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        rows = {}
        for label, producer_id in (("Source", source_id), ("Target", target_id)):
            row = cursor.execute(
                f"SELECT * FROM {table} WHERE id = ?", (producer_id,)
            ).fetchone()
            if row is None:
                raise ProducerNotFoundError(
                    f"{label} {kind.value} not found", kind=kind.value, producer_id=producer_id
                )
            if not row["is_active"] or row["merged_into_id"]:
                raise ProducerError(
                    f"{label} {kind.value} already merged/inactive",
                    kind=kind.value,
                    producer_id=producer_id,
                )
            rows[label] = row

        cursor.execute(
            f"UPDATE {table} SET is_active = 0, merged_into_id = ? WHERE id = ?",
            (target_id, source_id),
        )
        conn.commit()
    finally:
        conn.close()

    logger.info(
        f"Merged {kind.value} '{rows['Source']['name']}' into '{rows['Target']['name']}'",
        extra_fields={"source_id": source_id, "target_id": target_id},
    )
    source = _row_to_producer(rows["Source"], kind)
    source.is_active = False
    source.merged_into_id = target_id
    return source


def _row_to_producer(row: sqlite3.Row, kind: ProducerKind) -> Producer:
    """Convert a database row to Producer."""
    return Producer(
        id=row["id"],
        kind=kind,
        name=row["name"],
        slug=row["slug"],
        is_active=bool(row["is_active"]),
        merged_into_id=row["merged_into_id"],
        created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


# =============================================================================
# Candidate Source
# =============================================================================

class SQLiteCandidateSource:
    """Candidate source backed by the producer catalogue.

    Queries are run in a worker thread so the event loop is not blocked.
    Nothing is cached: every call sees the current catalogue.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = db_path

    async def list_active_names(self, kind: ProducerKind) -> List[str]:
        return await asyncio.to_thread(list_active_producer_names, kind, self.db_path)


# =============================================================================
# Sample Data Seeding
# =============================================================================

SAMPLE_PRODUCERS = {
    ProducerKind.DISTILLER: [
        "Glenfiddich",
        "The Glenlivet Distillery",
        "Glenmorangie",
        "Ben Nevis Distillery",
        "Bruichladdich",
        "Ardbeg",
        "Lagavulin",
        "Laphroaig",
        "Springbank",
        "Talisker",
        "Highland Park",
        "Caol Ila",
        "Château du Breuil",
        "Nikka Yoichi",
    ],
    ProducerKind.BOTTLER: [
        "Gordon and MacPhail",
        "Signatory Vintage",
        "Cadenhead",
        "Douglas Laing & Co",
        "Berry Bros & Rudd",
        "Compass Box",
        "Adelphi",
        "The Whisky Agency",
    ],
}


def seed_sample_producers(db_path: Path = DEFAULT_DB_PATH) -> Dict[str, int]:
    """Seed the database with a sample Scotch-heavy catalogue.

    Names that already exist (case-insensitive, after normalization) are
    skipped, so seeding twice is harmless.

    Args:
        db_path: Path to database

    Returns:
        Dict with count of created producers per table
    """
    # Initialize tables first
    init_producer_db(db_path)

    created = {table: 0 for table in TABLES.values()}
    for kind, names in SAMPLE_PRODUCERS.items():
        existing = {n.lower() for n in list_active_producer_names(kind, db_path)}
        for name in names:
            normalized = normalize_producer_name(name)
            if normalized.lower() in existing:
                continue
            add_producer(kind, name, db_path=db_path)
            existing.add(normalized.lower())
            created[_table(kind)] += 1

    logger.info(f"Seeded {sum(created.values())} producers", extra_fields=created)
    return created


def clear_producers(db_path: Path = DEFAULT_DB_PATH) -> None:
    """Delete every producer record, keeping the tables.

    Args:
        db_path: Path to database
    """
    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()
        for table in TABLES.values():
            try:
                cursor.execute(f"DELETE FROM {table}")
            except sqlite3.OperationalError:
                # Table doesn't exist yet
                pass
        conn.commit()
    finally:
        conn.close()
