"""Producer Resolver - Fuzzy matching of distiller and bottler names.

This package resolves free-text producer names (user input, OCR output)
against the catalogue of active, non-merged distillers and bottlers:
- Normalization of raw names (suffixes, articles, casing)
- Canonical comparison keys (lowercase ASCII alphanumerics)
- Levenshtein distance and containment ranking
- Conservative high / medium / low confidence tiers

Key Features:
- Pure, stateless resolution once candidates are loaded
- Short names need exact or near-exact matches
- Up to 3 ranked suggestions when no confident match exists
- SQLite catalogue with merge/deactivate support

Usage:
    from producer_resolver import ProducerResolver, SQLiteCandidateSource

    resolver = ProducerResolver(SQLiteCandidateSource(db_path))
    resolution = await resolver.resolve_distiller_name("Glenfidich")

    if resolution.resolved_name:
        distiller = resolution.resolved_name
    else:
        # Offer resolution.suggestions to the user
        for name in resolution.suggestions:
            print(name)
"""

from producer_resolver.models import (
    Confidence,
    MatchingConfig,
    Producer,
    ProducerKind,
    ProducerResolution,
    RankedCandidate,
)
from producer_resolver.errors import ProducerError, ProducerNotFoundError
from producer_resolver.normalize import (
    canonicalize,
    normalize_producer_name,
    sanitize_search,
    slugify_producer_name,
)
from producer_resolver.distance import contains, evaluate_match, levenshtein
from producer_resolver.resolver import (
    CandidateSource,
    ProducerResolver,
    classify_confidence,
    explain_resolution,
    rank_candidates,
    resolve_against,
    resolve_with_ranking,
)
from producer_resolver.db import (
    SQLiteCandidateSource,
    init_producer_db,
    add_producer,
    get_producer,
    list_active_producer_names,
    suggest_producer_names,
    deactivate_producer,
    merge_producers,
    seed_sample_producers,
    clear_producers,
)

__all__ = [
    # Models
    "Confidence",
    "MatchingConfig",
    "Producer",
    "ProducerKind",
    "ProducerResolution",
    "RankedCandidate",
    # Errors
    "ProducerError",
    "ProducerNotFoundError",
    # Normalization
    "canonicalize",
    "normalize_producer_name",
    "sanitize_search",
    "slugify_producer_name",
    # Distance
    "contains",
    "evaluate_match",
    "levenshtein",
    # Resolver
    "CandidateSource",
    "ProducerResolver",
    "classify_confidence",
    "explain_resolution",
    "rank_candidates",
    "resolve_against",
    "resolve_with_ranking",
    # Database
    "SQLiteCandidateSource",
    "init_producer_db",
    "add_producer",
    "get_producer",
    "list_active_producer_names",
    "suggest_producer_names",
    "deactivate_producer",
    "merge_producers",
    "seed_sample_producers",
    "clear_producers",
]
