"""Edit-distance and containment checks between producer names.

All comparisons run on canonicalized strings (see ``normalize.canonicalize``).
"""

from typing import Tuple

from producer_resolver.normalize import canonicalize


def levenshtein(a: str, b: str) -> int:
    """Levenshtein distance (insert, delete, substitute each cost 1).

    Uses two rolling rows of the classic DP table, so memory is
    O(min(len(a), len(b))).

    Examples:
        >>> levenshtein("glenfidich", "glenfiddich")
        1
        >>> levenshtein("", "ardbeg")
        6
    """
    if a == b:
        return 0
    # Keep the shorter string as the row dimension
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
        previous = current
    return previous[-1]


def contains(a: str, b: str) -> bool:
    """True if both strings are non-empty and one is a substring of the other."""
    return bool(a) and bool(b) and (a in b or b in a)


def evaluate_match(input_name: str, candidate: str) -> Tuple[int, bool]:
    """Compare two names on their canonical form.

    Returns:
        Tuple of (edit distance, containment flag)
    """
    a = canonicalize(input_name)
    b = canonicalize(candidate)
    return levenshtein(a, b), contains(a, b)
