"""Producer Resolver Data Models.

This module defines the Pydantic models for producer resolution:
- ProducerKind: Which catalogue a name is resolved against
- Confidence: Discrete trust tier of a fuzzy match
- RankedCandidate: One scored candidate name
- ProducerResolution: The result of producer resolution
- Producer: A distiller/bottler catalogue record
- MatchingConfig: Fixed thresholds of the confidence classifier
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ProducerKind(str, Enum):
    """Kind of producer a name refers to."""
    DISTILLER = "distiller"
    BOTTLER = "bottler"


class Confidence(str, Enum):
    """How trustworthy a fuzzy match is.

    HIGH: safe to auto-apply
    MEDIUM: likely match, auto-applied but worth a glance
    LOW: only suggestions are offered
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RankedCandidate(BaseModel):
    """A candidate name with its comparison result against the input."""
    name: str = Field(..., description="Canonical producer name")
    distance: int = Field(..., ge=0, description="Levenshtein distance on canonical forms")
    contains: bool = Field(default=False, description="One canonical form contains the other")


class ProducerResolution(BaseModel):
    """Result of producer resolution.

    Attributes:
        input: The raw value, trimmed
        normalized: normalize_producer_name(input)
        resolved_name: Best candidate, or None when confidence is low
        confidence: Confidence tier of the best candidate
        suggestions: Up to max_suggestions candidate names, best first
    """
    input: str = Field(..., description="Raw input value (trimmed)")
    normalized: str = Field(..., description="Normalized input used for matching")
    resolved_name: Optional[str] = Field(
        default=None,
        alias="resolvedName",
        description="Matched canonical name (None if confidence is low)",
    )
    confidence: Confidence = Field(default=Confidence.LOW)
    suggestions: List[str] = Field(
        default_factory=list,
        description="Best candidate names first (MatchingConfig.max_suggestions at most)",
    )

    class Config:
        populate_by_name = True

    @property
    def is_resolved(self) -> bool:
        return self.resolved_name is not None


class Producer(BaseModel):
    """A distiller or bottler record of the catalogue.

    Only active records that have not been merged into another record
    are offered as candidate names.
    """
    id: str = Field(..., description="Producer UUID")
    kind: ProducerKind
    name: str = Field(..., description="Canonical display name")
    slug: str = Field(..., description="URL slug")
    is_active: bool = Field(default=True)
    merged_into_id: Optional[str] = Field(default=None, description="Target of a merge")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_candidate(self) -> bool:
        return self.is_active and self.merged_into_id is None


# =============================================================================
# Matching Configuration
# =============================================================================

class MatchingConfig(BaseModel):
    """Thresholds for the confidence classifier and suggestion filter.

    These are fixed heuristics; the defaults are the production values.
    """
    # Confidence tiers
    near_match_min_length: int = Field(
        default=5,
        description="Min canonical length for distance 1 to count as high",
    )
    contains_min_length: int = Field(
        default=6,
        description="Min canonical length for containment to count as medium",
    )
    two_edit_min_length: int = Field(
        default=8,
        description="Min canonical length for distance 2 to count as medium",
    )

    # Suggestions
    max_suggestions: int = Field(default=3, description="Max suggestions to return")
    suggestion_distance_floor: int = Field(
        default=3,
        description="Suggestions always allowed up to this distance",
    )
    suggestion_length_divisor: int = Field(
        default=3,
        description="Longer inputs allow distance up to len(canonical) // divisor",
    )


# Default matching config
DEFAULT_MATCHING_CONFIG = MatchingConfig()
