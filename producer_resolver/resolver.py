"""Producer Resolver Algorithm.

This module implements the producer name resolution algorithm that:
1. Normalizes the raw name (user input or OCR output)
2. Compares it to every active, non-merged catalogue name
3. Ranks candidates by edit distance, containment and length
4. Classifies the best candidate into a confidence tier

The classifier is conservative: short names need an exact or one-edit match,
so brands that legitimately differ by a character are not merged.
"""

import sqlite3
import time
from typing import List, Optional, Protocol, Sequence, Tuple, Union

from core.observability.logging import get_logger
from core.observability.metrics import get_metrics
from producer_resolver.distance import evaluate_match
from producer_resolver.errors import ProducerError
from producer_resolver.models import (
    Confidence,
    MatchingConfig,
    ProducerKind,
    ProducerResolution,
    RankedCandidate,
    DEFAULT_MATCHING_CONFIG,
)
from producer_resolver.normalize import canonicalize, normalize_producer_name


logger = get_logger(__name__)


class CandidateSource(Protocol):
    """Protocol for candidate name retrieval.

    The catalogue (see SQLiteCandidateSource) implements this to provide
    the names of active, non-merged producers. Names may contain blanks
    and duplicates; ordering is irrelevant.
    """

    async def list_active_names(self, kind: ProducerKind) -> Sequence[str]:
        ...


def classify_confidence(
    input_name: str,
    candidate: str,
    distance: int,
    contains: bool,
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> Confidence:
    """Map a comparison result to a confidence tier.

    Rules, first match wins (min_len is the shorter canonical length):
    1. distance 0                          → HIGH
    2. distance 1 and min_len >= 5         → HIGH
    3. containment and min_len >= 6        → MEDIUM
    4. distance 2 and min_len >= 8         → MEDIUM
    5. otherwise                           → LOW
    """
    min_len = min(len(canonicalize(input_name)), len(canonicalize(candidate)))

    if distance == 0:
        return Confidence.HIGH
    if distance == 1 and min_len >= config.near_match_min_length:
        return Confidence.HIGH
    if contains and min_len >= config.contains_min_length:
        return Confidence.MEDIUM
    if distance == 2 and min_len >= config.two_edit_min_length:
        return Confidence.MEDIUM
    return Confidence.LOW


def unique_candidates(names: Sequence[Optional[str]]) -> List[str]:
    """Trim names, drop blanks and duplicates."""
    seen = set()
    result = []
    for name in names:
        clean = str(name or "").strip()
        if clean and clean not in seen:
            seen.add(clean)
            result.append(clean)
    return result


def rank_candidates(normalized: str, names: Sequence[str]) -> List[RankedCandidate]:
    """Score and sort candidate names against a normalized input.

    Sort order: distance ascending, containing matches first, then shorter
    names. The name itself breaks any remaining tie so ranking does not
    depend on the order the catalogue returned rows in.
    """
    ranked = []
    for name in names:
        distance, contains = evaluate_match(normalized, name)
        ranked.append(RankedCandidate(name=name, distance=distance, contains=contains))

    ranked.sort(key=lambda c: (c.distance, not c.contains, len(c.name), c.name))
    return ranked


def _empty_resolution(input_value: str, normalized: str) -> ProducerResolution:
    return ProducerResolution(
        input=input_value,
        normalized=normalized,
        resolved_name=None,
        confidence=Confidence.LOW,
        suggestions=[],
    )


def resolve_with_ranking(
    candidates: Sequence[Optional[str]],
    raw_value: Optional[str],
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> Tuple[ProducerResolution, List[RankedCandidate]]:
    """Resolve a raw name and also return the full candidate ranking.

    Args:
        candidates: Canonical names to match against
        raw_value: Raw producer name
        config: Matching configuration

    Returns:
        Tuple of (resolution, ranked candidates)
    """
    input_value = str(raw_value or "").strip()
    normalized = normalize_producer_name(input_value)

    if not normalized:
        return _empty_resolution(input_value, normalized), []

    names = unique_candidates(candidates)
    if not names:
        return _empty_resolution(input_value, normalized), []

    ranked = rank_candidates(normalized, names)
    best = ranked[0]
    confidence = classify_confidence(
        normalized, best.name, best.distance, best.contains, config=config
    )

    max_distance = max(
        config.suggestion_distance_floor,
        len(canonicalize(normalized)) // config.suggestion_length_divisor,
    )
    suggestions = [
        c.name for c in ranked
        if c.distance <= max_distance or c.contains
    ][:config.max_suggestions]

    resolution = ProducerResolution(
        input=input_value,
        normalized=normalized,
        resolved_name=None if confidence == Confidence.LOW else best.name,
        confidence=confidence,
        suggestions=suggestions,
    )
    return resolution, ranked


def resolve_against(
    candidates: Sequence[Optional[str]],
    raw_value: Optional[str],
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> ProducerResolution:
    """Resolve a raw producer name against a list of canonical names.

    Examples:
        >>> resolve_against(["Glenfiddich", "Glenlivet"], "Glenfidich").resolved_name
        'Glenfiddich'
        >>> resolve_against(["Ben Nevis"], "Ben").confidence.value
        'low'
    """
    resolution, _ = resolve_with_ranking(candidates, raw_value, config=config)
    return resolution


class ProducerResolver:
    """Resolves free-text distiller/bottler names to catalogue names.

    Resolution strategy:
    1. Fetch the active, non-merged names for the producer kind
    2. Run resolve_against on them
    3. Record the outcome in logs and metrics

    A failing candidate source is treated as an empty catalogue: the
    caller gets a low-confidence resolution instead of an error.

    Example:
        resolver = ProducerResolver(SQLiteCandidateSource(db_path))
        resolution = await resolver.resolve_distiller_name("Glenfidich")

        if resolution.confidence != Confidence.LOW:
            form["distiller"] = resolution.resolved_name
        else:
            show(resolution.suggestions)
    """

    def __init__(
        self,
        source: CandidateSource,
        config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    ):
        """Initialize the resolver.

        Args:
            source: Provider of candidate names
            config: Matching configuration
        """
        self.source = source
        self.config = config

    async def _load_candidates(self, kind: ProducerKind) -> List[str]:
        try:
            return list(await self.source.list_active_names(kind))
        except (sqlite3.Error, OSError, ProducerError) as e:
            logger.error(
                f"Candidate source failed for {kind.value}: {e}",
                extra_fields={"producer_kind": kind.value},
            )
            get_metrics().record_source_failure(kind.value)
            return []

    async def resolve_with_ranking(
        self,
        kind: Union[ProducerKind, str],
        raw_value: Optional[str],
    ) -> Tuple[ProducerResolution, List[RankedCandidate]]:
        """Resolve a name and return the candidate ranking too (diagnostics)."""
        kind = ProducerKind(kind)
        start_time = time.time()

        candidates = await self._load_candidates(kind)
        resolution, ranked = resolve_with_ranking(candidates, raw_value, config=self.config)

        duration_ms = (time.time() - start_time) * 1000
        get_metrics().record_resolution(kind.value, resolution.confidence.value, duration_ms)
        logger.debug(
            f"Resolved {kind.value} '{resolution.input}' → {resolution.resolved_name}",
            extra_fields={
                "producer_kind": kind.value,
                "normalized": resolution.normalized,
                "confidence": resolution.confidence.value,
                "candidates": len(ranked),
                "duration_ms": round(duration_ms, 2),
            },
        )
        return resolution, ranked

    async def resolve_producer_name(
        self,
        kind: Union[ProducerKind, str],
        raw_value: Optional[str],
    ) -> ProducerResolution:
        """Resolve a raw name against the catalogue of the given kind."""
        resolution, _ = await self.resolve_with_ranking(kind, raw_value)
        return resolution

    async def resolve_distiller_name(self, raw_value: Optional[str]) -> ProducerResolution:
        return await self.resolve_producer_name(ProducerKind.DISTILLER, raw_value)

    async def resolve_bottler_name(self, raw_value: Optional[str]) -> ProducerResolution:
        return await self.resolve_producer_name(ProducerKind.BOTTLER, raw_value)


def explain_resolution(
    resolution: ProducerResolution,
    ranked: Optional[List[RankedCandidate]] = None,
    limit: int = 5,
) -> str:
    """Generate a human-readable explanation of the resolution.

    Args:
        resolution: The resolution to explain
        ranked: Optional candidate ranking from resolve_with_ranking
        limit: Max ranked candidates to list

    Returns:
        Formatted explanation string
    """
    lines = ["=" * 60, "Producer Resolution Explanation", "=" * 60]

    lines.append(f"Input: '{resolution.input}'")
    lines.append(f"Normalized: '{resolution.normalized}'")
    lines.append(f"Canonical: '{canonicalize(resolution.normalized)}'")
    lines.append("")

    if resolution.resolved_name is not None:
        lines.append(f"✓ RESOLVED to: {resolution.resolved_name}")
    else:
        lines.append("⚠ NOT RESOLVED")
    lines.append(f"  Confidence: {resolution.confidence.value}")

    if resolution.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        for i, name in enumerate(resolution.suggestions):
            lines.append(f"  {i+1}. {name}")

    if ranked:
        lines.append("")
        lines.append("Ranking:")
        for c in ranked[:limit]:
            marker = " (contains)" if c.contains else ""
            lines.append(f"  {c.name}: distance {c.distance}{marker}")

    lines.append("=" * 60)

    return "\n".join(lines)
