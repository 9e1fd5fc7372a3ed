"""
Tests for the catalog filter/sort pipeline.
"""

import sys
from itertools import permutations
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from conftest import make_diagnostic


def _recommend(catalog, scores: dict):
    from labwise.models import Recommendation, Urgency

    return [
        Recommendation(
            test=catalog.require(test_id),
            relevance_score=score,
            reasoning="",
            urgency=Urgency.ROUTINE,
            cost_effectiveness=0,
        )
        for test_id, score in scores.items()
    ]


def _ids(tests):
    return [t.id for t in tests]


class TestFilterParams:
    """Parameter defaults and fail-open coercion."""

    def test_defaults(self):
        from labwise.models import FilterParams, SortKey

        params = FilterParams()

        assert params.search_text == ""
        assert params.category == "all"
        assert params.type == "all"
        assert params.sort_key == SortKey.RELEVANCE
        assert params.cost_min == 0
        assert params.cost_max == 10000
        assert params.only_recommended is True

    def test_unknown_values_fail_open(self):
        from labwise.models import FilterParams, SortKey

        params = FilterParams(category="x-ray", type="urgent", sort_key="price", search_text=None)

        assert params.category == "all"
        assert params.type == "all"
        assert params.sort_key == SortKey.RELEVANCE
        assert params.search_text == ""

    def test_known_values_normalized(self):
        from labwise.models import FilterParams, SortKey, TestCategory

        params = FilterParams(category=TestCategory.CARDIAC, type=" Emergency ", sort_key="COST")

        assert params.category == "cardiac"
        assert params.type == "emergency"
        assert params.sort_key == SortKey.COST


class TestFilters:
    """Search, category, type and cost stages."""

    def test_inverted_cost_range_is_empty(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(cost_min=1000, cost_max=0, only_recommended=False)

        assert filter_and_sort(small_catalog, None, params) == []

    def test_only_recommended_without_recommendations(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        assert filter_and_sort(small_catalog, [], FilterParams()) == []
        assert filter_and_sort(small_catalog, None, None) == []

    def test_cost_range_inclusive(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(cost_min=300, cost_max=1200, only_recommended=False, sort_key="cost")

        assert _ids(filter_and_sort(small_catalog, None, params)) == ["cbc", "ecg", "tft"]

    def test_search_fields(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        def search(text):
            params = FilterParams(search_text=text, only_recommended=False, sort_key="cost")
            return _ids(filter_and_sort(small_catalog, None, params))

        assert search("THYROID") == ["tft"]
        assert search("blood count") == ["cbc"]
        assert search("white blood") == ["cbc"]
        assert search("") == ["fbs", "cbc", "ecg", "tft", "mri"]
        assert search("zzz") == []

    def test_category_and_type(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        blood = FilterParams(category="blood", only_recommended=False, sort_key="cost")
        specialized = FilterParams(type="specialized", only_recommended=False, sort_key="cost")

        assert _ids(filter_and_sort(small_catalog, None, blood)) == ["fbs", "cbc"]
        assert _ids(filter_and_sort(small_catalog, None, specialized)) == ["ecg", "tft", "mri"]

    def test_unknown_category_keeps_everything(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(category="dental", only_recommended=False)

        assert len(filter_and_sort(small_catalog, None, params)) == len(small_catalog)

    def test_filter_order_independent(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.engines.filtering import attribute_predicates
        from labwise.models import FilterParams

        params = FilterParams(category="blood", type="routine", cost_min=50, cost_max=500,
                              only_recommended=False)
        expected = {t.id for t in filter_and_sort(small_catalog, None, params)}

        for order in permutations(attribute_predicates(params)):
            tests = list(small_catalog)
            for predicate in order:
                tests = [t for t in tests if predicate(t)]
            assert {t.id for t in tests} == expected

    def test_recommended_subset(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        recs = _recommend(small_catalog, {"mri": 40, "cbc": 20})
        params = FilterParams(category="blood")

        assert _ids(filter_and_sort(small_catalog, recs, params)) == ["cbc"]


class TestSorting:
    """Sort keys and stability."""

    def test_cost_ascending(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(sort_key="cost", only_recommended=False)

        assert _ids(filter_and_sort(small_catalog, None, params)) == ["fbs", "cbc", "ecg", "tft", "mri"]

    def test_priority_descending_stable(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(sort_key="priority", only_recommended=False)

        # high: cbc, ecg, fbs; medium: tft; low: mri
        assert _ids(filter_and_sort(small_catalog, None, params)) == ["cbc", "ecg", "fbs", "tft", "mri"]

    def test_accuracy_descending(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        params = FilterParams(sort_key="accuracy", only_recommended=False)

        assert _ids(filter_and_sort(small_catalog, None, params)) == ["fbs", "mri", "tft", "cbc", "ecg"]

    def test_relevance_uses_scores(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        recs = _recommend(small_catalog, {"tft": 20, "mri": 40, "cbc": 20})

        assert _ids(filter_and_sort(small_catalog, recs, FilterParams())) == ["mri", "cbc", "tft"]

    def test_relevance_over_full_catalog_is_accuracy(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        recs = _recommend(small_catalog, {"ecg": 99})
        params = FilterParams(only_recommended=False)

        assert _ids(filter_and_sort(small_catalog, recs, params)) == ["fbs", "mri", "tft", "cbc", "ecg"]

    def test_ties_keep_catalog_order(self):
        from labwise.engines import DiagnosticCatalog, filter_and_sort
        from labwise.models import FilterParams

        catalog = DiagnosticCatalog([make_diagnostic(c, cost=100, accuracy=90) for c in "dcab"])

        for key in ("cost", "priority", "accuracy", "relevance"):
            params = FilterParams(sort_key=key, only_recommended=False)
            assert _ids(filter_and_sort(catalog, None, params)) == ["d", "c", "a", "b"]

    def test_recommended_ties_keep_catalog_order(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        # Recommendation order differs from catalog order
        recs = _recommend(small_catalog, {"fbs": 20, "tft": 20, "cbc": 20})

        assert _ids(filter_and_sort(small_catalog, recs, FilterParams(sort_key="cost"))) == [
            "fbs", "cbc", "tft",
        ]
        assert _ids(filter_and_sort(small_catalog, recs, FilterParams())) == ["cbc", "tft", "fbs"]

    def test_pure(self, small_catalog):
        from labwise.engines import filter_and_sort
        from labwise.models import FilterParams

        recs = _recommend(small_catalog, {"mri": 40, "cbc": 20})
        params = FilterParams(sort_key="cost")

        first = filter_and_sort(small_catalog, recs, params)

        assert filter_and_sort(small_catalog, recs, params) == first
        assert [r.test.id for r in recs] == ["mri", "cbc"]


class TestMatchesSearch:
    @pytest.mark.parametrize("text,expected", [
        ("", True),
        ("electro", True),
        ("ELECTRO", True),
        ("ultrasound", False),
    ])
    def test_matches(self, small_catalog, text, expected):
        from labwise.engines import matches_search

        assert matches_search(small_catalog.require("ecg"), text) is expected
