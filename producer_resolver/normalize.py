"""Producer Name Normalization Utilities.

This module provides the string cleaning used by the producer resolver:

- normalize_producer_name: display-quality name (title-cased, corporate
  suffixes and leading article removed)
- canonicalize: comparison-only key (lowercase ASCII alphanumerics)
- slugify_producer_name: URL slug for catalogue records
- sanitize_search: light cleanup for free-text search queries

Examples:
    "The Glen Distillery Co"  → "Glen"
    "Smith AND Sons Ltd"      → "Smith & Sons"
    "BENRIACH distillery"     → "Benriach"
    "Château Laballe"         → canonical "chateau laballe"
"""

import re
import unicodedata
from typing import List


# Trailing legal/corporate tokens removed from the end of a name
TRAILING_SUFFIXES = {
    "dist", "distillery", "distillerie",
    "co", "company",
    "ltd", "limited",
    "inc", "corp", "corporation",
    "llc", "plc",
    "sa", "sas", "sarl",
    "gmbh", "ag", "bv",
}

# Connectors left dangling once a suffix is removed ("Smith & Co" → "Smith &")
TRAILING_CONNECTORS = {"&", "and"}

LEADING_ARTICLE = "the"

MAX_SLUG_LENGTH = 160

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_AND_RE = re.compile(r"\band\b", re.IGNORECASE | re.ASCII)
_PUNCTUATION_RE = re.compile(r"[.,;:()\[\]{}|/\\]+")
_AMPERSAND_RE = re.compile(r"\s*&\s*")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_DIACRITIC_RE = re.compile("[\u0300-\u036f]")


def _strip_diacritics(text: str) -> str:
    # Only the Combining Diacritical Marks block; other marks fall through
    # to the non-alphanumeric collapse
    decomposed = unicodedata.normalize("NFKD", text)
    return _DIACRITIC_RE.sub("", decomposed)


def _clean_raw(name: str) -> str:
    """Strip markup and punctuation, unify connectors and whitespace."""
    text = _TAG_RE.sub(" ", name)
    text = _CONTROL_RE.sub(" ", text)
    text = _AND_RE.sub("&", text)
    text = _PUNCTUATION_RE.sub(" ", text)
    text = _AMPERSAND_RE.sub(" & ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _drop_trailing(tokens: List[str], vocabulary: set) -> None:
    # Never empties the list: a lone "Ltd" stays "Ltd"
    while len(tokens) > 1 and tokens[-1].lower() in vocabulary:
        tokens.pop()


def _title_case_token(token: str) -> str:
    if len(token) <= 4 and token == token.upper():
        return token
    return token[:1].upper() + token[1:].lower()


def normalize_producer_name(name: str) -> str:
    """Normalize a distiller/bottler name for display and storage.

    The normalization process:
    1. Strip HTML tags and control characters
    2. Replace the word "and" with "&", punctuation with spaces
    3. Collapse whitespace
    4. Remove trailing corporate suffixes, then dangling connectors
    5. Remove a leading "The"
    6. Title-case each token, keeping short all-caps acronyms

    Args:
        name: Raw producer name (user input, OCR output, ...)

    Returns:
        Normalized name, or "" if nothing is left after cleaning

    Examples:
        >>> normalize_producer_name("The Glen Distillery Co")
        'Glen'
        >>> normalize_producer_name("Smith AND Sons Ltd")
        'Smith & Sons'
        >>> normalize_producer_name("ABC spirits")
        'ABC Spirits'
    """
    if not name:
        return ""

    raw = _clean_raw(str(name))
    if not raw:
        return ""

    tokens = raw.split(" ")
    _drop_trailing(tokens, TRAILING_SUFFIXES)
    _drop_trailing(tokens, TRAILING_CONNECTORS)

    if len(tokens) > 1 and tokens[0].lower() == LEADING_ARTICLE:
        tokens.pop(0)

    normalized = " ".join(_title_case_token(t) for t in tokens).strip()
    return normalized or raw


def canonicalize(name: str) -> str:
    """Build the comparison key for a name.

    Lowercases, strips diacritics and collapses every run of characters
    outside ``[a-z0-9]`` to a single space. Never used for display.

    Examples:
        >>> canonicalize("Château  Laballe!")
        'chateau laballe'
        >>> canonicalize("  ")
        ''
    """
    if not name:
        return ""
    text = _strip_diacritics(str(name).lower())
    return _NON_ALNUM_RE.sub(" ", text).strip()


def slugify_producer_name(name: str) -> str:
    """Build a URL slug for a producer record.

    Examples:
        >>> slugify_producer_name("Bruichladdich Distillery")
        'bruichladdich-distillery'
        >>> slugify_producer_name("???")
        'producer'
    """
    text = _strip_diacritics(str(name or "")).lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    text = re.sub(r"-{2,}", "-", text)
    return text[:MAX_SLUG_LENGTH] or "producer"


def sanitize_search(value: str, max_length: int = 80) -> str:
    """Clean a free-text search query.

    Removes tags and control characters, collapses whitespace and
    truncates to ``max_length``.
    """
    text = _TAG_RE.sub("", str(value or ""))
    text = _CONTROL_RE.sub("", text).strip()
    text = _WHITESPACE_RE.sub(" ", text)
    return text[:max_length]
