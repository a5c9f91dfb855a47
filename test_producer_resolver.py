"""
Producer Resolver Tests

Validates the resolution core:
1. Name normalization (suffixes, connectors, articles, casing)
2. Canonical comparison keys
3. Levenshtein distance and containment
4. Confidence classification thresholds
5. Ranking, suggestions and resolution invariants
6. ProducerResolver over an async candidate source
"""

import asyncio
import re
import sqlite3

import pytest

from producer_resolver import (
    Confidence,
    MatchingConfig,
    ProducerKind,
    ProducerResolver,
    canonicalize,
    classify_confidence,
    contains,
    evaluate_match,
    explain_resolution,
    levenshtein,
    normalize_producer_name,
    rank_candidates,
    resolve_against,
    resolve_with_ranking,
    sanitize_search,
    slugify_producer_name,
)


class TestNormalizeProducerName:
    """Test display-name normalization."""

    @pytest.mark.parametrize("raw,expected", [
        ("The Glen Distillery Co", "Glen"),
        ("Smith AND Sons Ltd", "Smith & Sons"),
        ("Highland and Islands", "Highland & Islands"),
        ("BENRIACH DISTILLERY", "Benriach"),
        ("ABC spirits", "ABC Spirits"),
        ("Gordon and MacPhail", "Gordon & Macphail"),
        ("Springbank & Co", "Springbank"),
        ("Smith & Co Ltd", "Smith"),
        ("Bowmore (Islay)", "Bowmore Islay"),
        ("Compass Box Whisky Co.", "Compass Box Whisky"),
        ("<b>Ardbeg</b> distillery", "Ardbeg"),
        ("Talisker\x00\tLtd", "Talisker"),
        ("  kilchoman   gmbh  ", "Kilchoman"),
    ])
    def test_normalization_examples(self, raw, expected):
        assert normalize_producer_name(raw) == expected

    def test_empty_and_whitespace(self):
        assert normalize_producer_name("") == ""
        assert normalize_producer_name("  ") == ""
        assert normalize_producer_name(None) == ""
        assert normalize_producer_name("<br/>") == ""

    def test_never_empties_token_list(self):
        """A lone suffix, connector or article survives."""
        assert normalize_producer_name("Ltd") == "Ltd"
        assert normalize_producer_name("The") == "The"
        assert normalize_producer_name("and") == "&"

    def test_leading_article_only_removed_with_more_tokens(self):
        assert normalize_producer_name("The Macallan") == "Macallan"
        assert normalize_producer_name("the whisky agency") == "Whisky Agency"

    def test_and_inside_word_untouched(self):
        assert normalize_producer_name("Sandend Brandy") == "Sandend Brandy"


class TestCanonicalize:
    """Test comparison keys."""

    def test_strips_diacritics_and_punctuation(self):
        assert canonicalize("Château du Breuil") == "chateau du breuil"
        assert canonicalize("Glen-Moray!!") == "glen moray"
        assert canonicalize("Ñandú 1885") == "nandu 1885"

    def test_only_diacritical_block_is_stripped(self):
        assert canonicalize("Cafe\u0301") == "cafe"
        # U+0483 is a combining mark outside U+0300-U+036F
        assert canonicalize("a\u0483b") == "a b"

    def test_empty(self):
        assert canonicalize("") == ""
        assert canonicalize("  ") == ""
        assert canonicalize("???") == ""

    @pytest.mark.parametrize("value", [
        "  The  Glen\tDistillery\n",
        "Gordon & MacPhail (Elgin)",
        "Ōkami – 日本 Whisky",
        "\x00\x1f control",
        "Zürich_Brennerei__42",
    ])
    def test_only_lowercase_alphanumerics_and_single_spaces(self, value):
        result = canonicalize(value)
        assert re.fullmatch(r"([a-z0-9]+( [a-z0-9]+)*)?", result)


class TestDistance:
    """Test Levenshtein distance and containment."""

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("abc", "", 3),
        ("flaw", "lawn", 2),
        ("glenfidich", "glenfiddich", 1),
        ("ardbeg", "ardbeg", 0),
    ])
    def test_known_distances(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetry_and_identity(self):
        words = ["laphroaig", "lagavulin", "caol ila", "", "ardbeg"]
        for a in words:
            assert levenshtein(a, a) == 0
            for b in words:
                assert levenshtein(a, b) == levenshtein(b, a)

    def test_triangle_inequality(self):
        words = ["glenlivet", "glenlossie", "glen moray", "longmorn", "oban"]
        for a in words:
            for b in words:
                for c in words:
                    assert levenshtein(a, c) <= levenshtein(a, b) + levenshtein(b, c)

    def test_contains(self):
        assert contains("ben", "ben nevis")
        assert contains("ben nevis", "ben")
        assert not contains("", "ben")
        assert not contains("ben", "")
        assert not contains("oban", "obar")

    def test_evaluate_match_uses_canonical_forms(self):
        assert evaluate_match("Château Laballe", "chateau-laballe") == (0, True)
        distance, found = evaluate_match("Ben", "Ben Nevis")
        assert distance == 6
        assert found is True


class TestClassifyConfidence:
    """Test confidence tiers."""

    def test_exact_is_high_even_when_short(self):
        assert classify_confidence("Oban", "Oban", 0, True) == Confidence.HIGH

    def test_one_edit(self):
        assert classify_confidence("Ardbex", "Ardbeg", 1, False) == Confidence.HIGH
        assert classify_confidence("Obar", "Oban", 1, False) == Confidence.LOW

    def test_containment(self):
        assert classify_confidence("Ben Nevis", "Ben Nevis Spirits", 8, True) == Confidence.MEDIUM
        assert classify_confidence("Ben", "Ben Nevis", 6, True) == Confidence.LOW

    def test_two_edits(self):
        assert classify_confidence("Lagavolan", "Lagavulin", 2, False) == Confidence.MEDIUM
        assert classify_confidence("Ardbox", "Ardbeg", 2, False) == Confidence.LOW

    def test_three_edits_is_low(self):
        assert classify_confidence("Glenlivxyz", "Glenlivet", 3, False) == Confidence.LOW


class TestRanking:
    """Test candidate ordering."""

    def test_containment_breaks_distance_ties(self):
        ranked = rank_candidates("Arran", ["Arrau", "Arrans"])
        assert [c.name for c in ranked] == ["Arrans", "Arrau"]
        assert ranked[0].contains is True

    def test_shorter_name_breaks_remaining_ties(self):
        ranked = rank_candidates("Kilchoman", ["Kilchomun", "Kilchomn"])
        assert [c.name for c in ranked] == ["Kilchomn", "Kilchomun"]
        assert all(c.distance == 1 for c in ranked)


class TestResolveAgainst:
    """Test resolution invariants."""

    CANDIDATES = ["Glenfiddich", "Glenlivet", "Glenmorangie"]

    def test_one_missing_letter_is_high(self):
        resolution = resolve_against(self.CANDIDATES, "Glenfidich")
        assert resolution.confidence == Confidence.HIGH
        assert resolution.resolved_name == "Glenfiddich"
        assert resolution.suggestions[0] == "Glenfiddich"
        assert resolution.is_resolved

    def test_short_partial_name_is_low(self):
        resolution = resolve_against(["Ben Nevis"], "Ben")
        assert resolution.confidence == Confidence.LOW
        assert resolution.resolved_name is None
        assert resolution.suggestions == ["Ben Nevis"]

    def test_empty_input(self):
        resolution = resolve_against(self.CANDIDATES, "")
        assert resolution.input == ""
        assert resolution.normalized == ""
        assert resolution.confidence == Confidence.LOW
        assert resolution.resolved_name is None
        assert resolution.suggestions == []

    def test_empty_candidates(self):
        for candidates in ([], ["", "  ", None]):
            resolution = resolve_against(candidates, "Lagavulin")
            assert resolution.normalized == "Lagavulin"
            assert resolution.confidence == Confidence.LOW
            assert resolution.resolved_name is None
            assert resolution.suggestions == []

    def test_identical_after_normalization_is_high(self):
        resolution = resolve_against(["Lagavulin", "Laphroaig"], "  The Lagavulin Distillery ")
        assert resolution.input == "The Lagavulin Distillery"
        assert resolution.normalized == "Lagavulin"
        assert resolution.confidence == Confidence.HIGH
        assert resolution.resolved_name == "Lagavulin"

    def test_duplicates_and_blanks_collapse(self):
        resolution = resolve_against(["Ardbeg", " Ardbeg ", "", None, "Ardbeg"], "ardbeg")
        assert resolution.resolved_name == "Ardbeg"
        assert resolution.suggestions == ["Ardbeg"]

    def test_containment_gives_medium(self):
        resolution = resolve_against(["Ben Nevis Spirits", "Bunnahabhain Distillers"], "Ben Nevis")
        assert resolution.confidence == Confidence.MEDIUM
        assert resolution.resolved_name == "Ben Nevis Spirits"

    def test_suggestions_capped_at_three(self):
        candidates = ["Glen Moray", "Glen Grant", "Glen Keith", "Glen Scotia", "Glen Garioch"]
        resolution = resolve_against(candidates, "Glen")
        assert resolution.confidence == Confidence.LOW
        assert resolution.resolved_name is None
        assert resolution.suggestions == ["Glen Grant", "Glen Keith", "Glen Moray"]

    def test_suggestion_cutoff_grows_with_input_length(self):
        # "glenmorangie signet" has 19 characters, so the cutoff is 19 // 3 = 6
        candidates = [
            "Glenmorangie Sxxxxx",
            "Glenmorangie Sxxxxxx",
            "Glenmorangie Sxxxxxxx",
        ]
        resolution, ranked = resolve_with_ranking(candidates, "Glenmorangie Signet")

        assert [c.distance for c in ranked] == [5, 6, 7]
        assert resolution.confidence == Confidence.LOW
        assert not resolution.is_resolved
        assert resolution.suggestions == ["Glenmorangie Sxxxxx", "Glenmorangie Sxxxxxx"]

    def test_max_suggestions_configurable(self):
        candidates = ["Glen Moray", "Glen Grant", "Glen Keith", "Glen Scotia", "Glen Garioch"]
        config = MatchingConfig(max_suggestions=5)

        resolution = resolve_against(candidates, "Glen", config=config)

        assert resolution.suggestions == [
            "Glen Grant", "Glen Keith", "Glen Moray", "Glen Scotia", "Glen Garioch",
        ]

    def test_distant_candidates_not_suggested(self):
        resolution = resolve_against(["Talisker", "Glenfarclas"], "Talisker")
        assert resolution.suggestions == ["Talisker"]

    def test_suggestions_drawn_from_candidates(self):
        candidates = ["Caol Ila", "Caol Ila ", "Coal Isle", "Kilchoman", "Bunnahabhain"]
        for raw in ["caol ila", "Coal", "Bunahabain", "xyz", "Kil"]:
            resolution = resolve_against(candidates, raw)
            assert len(resolution.suggestions) <= 3
            assert len(set(resolution.suggestions)) == len(resolution.suggestions)
            assert set(resolution.suggestions) <= {c.strip() for c in candidates}
            if resolution.confidence == Confidence.LOW:
                assert resolution.resolved_name is None
            else:
                assert resolution.resolved_name == resolution.suggestions[0]

    def test_ranking_returned_for_diagnostics(self):
        resolution, ranked = resolve_with_ranking(self.CANDIDATES, "Glenlivit")
        assert resolution.resolved_name == "Glenlivet"
        assert [c.name for c in ranked][0] == "Glenlivet"
        assert len(ranked) == 3

        text = explain_resolution(resolution, ranked)
        assert "RESOLVED to: Glenlivet" in text
        assert "glenlivit" in text

    def test_json_uses_camel_case_alias(self):
        resolution = resolve_against(self.CANDIDATES, "Glenfidich")
        data = resolution.model_dump(by_alias=True, mode="json")
        assert data == {
            "input": "Glenfidich",
            "normalized": "Glenfidich",
            "resolvedName": "Glenfiddich",
            "confidence": "high",
            "suggestions": ["Glenfiddich"],
        }


class TestTextHelpers:
    """Test slug and search helpers."""

    def test_slugify(self):
        assert slugify_producer_name("Château du Breuil") == "chateau-du-breuil"
        assert slugify_producer_name("  Gordon & MacPhail  ") == "gordon-macphail"
        assert slugify_producer_name("???") == "producer"
        assert len(slugify_producer_name("a" * 400)) == 160

    def test_sanitize_search(self):
        assert sanitize_search("  <i>Glen</i>   Mo\x07ray ") == "Glen Moray"
        assert sanitize_search("x" * 200, 80) == "x" * 80


class StaticSource:
    """In-memory candidate source."""

    def __init__(self, names):
        self.names = names
        self.calls = []

    async def list_active_names(self, kind):
        self.calls.append(kind)
        return self.names.get(kind, [])


class FailingSource:
    async def list_active_names(self, kind):
        raise sqlite3.OperationalError("no such table: distillers")


class TestProducerResolver:
    """Test kind variants over a candidate source."""

    def test_distiller_and_bottler_use_their_own_lists(self):
        source = StaticSource({
            ProducerKind.DISTILLER: ["Glenfiddich", "Springbank"],
            ProducerKind.BOTTLER: ["Cadenhead", "Signatory Vintage"],
        })
        resolver = ProducerResolver(source)

        distiller = asyncio.run(resolver.resolve_distiller_name("Springbank Distillery Ltd"))
        bottler = asyncio.run(resolver.resolve_bottler_name("Cadenheads"))

        assert distiller.resolved_name == "Springbank"
        assert bottler.resolved_name == "Cadenhead"
        assert source.calls == [ProducerKind.DISTILLER, ProducerKind.BOTTLER]

    def test_generic_entry_point_accepts_string_kind(self):
        source = StaticSource({ProducerKind.BOTTLER: ["Adelphi"]})
        resolver = ProducerResolver(source)

        resolution = asyncio.run(resolver.resolve_producer_name("bottler", "adelphi"))

        assert resolution.confidence == Confidence.HIGH
        assert resolution.resolved_name == "Adelphi"

    def test_failing_source_treated_as_empty(self):
        from core.observability.metrics import get_metrics

        before = get_metrics().get_summary()["resolutions"]["source_failures"]
        resolver = ProducerResolver(FailingSource())

        resolution = asyncio.run(resolver.resolve_distiller_name("Glenfiddich"))

        assert resolution.normalized == "Glenfiddich"
        assert resolution.confidence == Confidence.LOW
        assert resolution.resolved_name is None
        assert resolution.suggestions == []
        assert get_metrics().get_summary()["resolutions"]["source_failures"] == before + 1

    def test_invalid_kind_rejected(self):
        resolver = ProducerResolver(StaticSource({}))
        with pytest.raises(ValueError):
            asyncio.run(resolver.resolve_producer_name("blender", "Compass Box"))
