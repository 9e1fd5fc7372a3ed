"""
Catalog filter/sort pipeline.

A pure function of (source tests, recommendations, parameters). Stages run
in a fixed order: source selection, text search, category, type, cost
range, sort. Every sort is stable and starts from catalog order, so equal
keys always come out in catalog order.
"""

from __future__ import annotations

from typing import Callable, Iterable

from labwise.models import (
    ALL,
    PRIORITY_RANK,
    DiagnosticTest,
    FilterParams,
    Recommendation,
    SortKey,
)

TestPredicate = Callable[[DiagnosticTest], bool]


def matches_search(test: DiagnosticTest, search_text: str) -> bool:
    """Case-insensitive substring search over name, localized name and description."""
    if not search_text:
        return True
    needle = search_text.lower()
    return (
        needle in test.name.lower()
        or needle in test.localized_name.lower()
        or needle in test.description.lower()
    )


def category_predicate(category: str) -> TestPredicate:
    if category == ALL:
        return lambda test: True
    return lambda test: test.category.value == category


def type_predicate(test_type: str) -> TestPredicate:
    if test_type == ALL:
        return lambda test: True
    return lambda test: test.type.value == test_type


def cost_predicate(cost_min: float, cost_max: float) -> TestPredicate:
    # An inverted range simply matches nothing
    return lambda test: cost_min <= test.cost <= cost_max


def attribute_predicates(params: FilterParams) -> list[TestPredicate]:
    """The category, type and cost filters, in pipeline order."""
    return [
        category_predicate(params.category),
        type_predicate(params.type),
        cost_predicate(params.cost_min, params.cost_max),
    ]


def _select_source(
    source: list[DiagnosticTest],
    recommendations: list[Recommendation] | None,
    only_recommended: bool,
) -> list[DiagnosticTest]:
    if not only_recommended:
        return list(source)

    recommended = [rec.test for rec in recommendations or []]
    # Put recommended tests in catalog order so ties resolve the same way as
    # for the full catalog; anything missing from the source goes last.
    position = {test.id: index for index, test in enumerate(source)}
    return sorted(recommended, key=lambda test: position.get(test.id, len(position)))


def _sort(
    tests: list[DiagnosticTest],
    params: FilterParams,
    recommendations: list[Recommendation] | None,
) -> list[DiagnosticTest]:
    key = params.sort_key

    if key == SortKey.COST:
        return sorted(tests, key=lambda t: t.cost)
    if key == SortKey.PRIORITY:
        return sorted(tests, key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
    if key == SortKey.ACCURACY:
        return sorted(tests, key=lambda t: t.accuracy, reverse=True)

    # Relevance only exists for the recommended view
    if params.only_recommended:
        scores = {rec.test.id: rec.relevance_score for rec in recommendations or []}
        return sorted(tests, key=lambda t: scores.get(t.id, 0), reverse=True)
    return sorted(tests, key=lambda t: t.accuracy, reverse=True)


def filter_and_sort(
    source: Iterable[DiagnosticTest],
    recommendations: list[Recommendation] | None,
    params: FilterParams | None = None,
) -> list[DiagnosticTest]:
    """
    Apply search, filters and sort to the catalog or the recommended subset.

    Args:
        source: The full catalog, in catalog order
        recommendations: The current pass's recommendations, if any
        params: Filter and sort parameters; defaults apply when omitted

    Returns:
        The filtered tests in presentation order. Malformed input (an
        inverted cost range, unknown enum values) never raises; it narrows
        to nothing or widens to everything.
    """
    params = params or FilterParams()
    source = list(source)

    tests = _select_source(source, recommendations, params.only_recommended)
    tests = [t for t in tests if matches_search(t, params.search_text)]
    for predicate in attribute_predicates(params):
        tests = [t for t in tests if predicate(t)]

    return _sort(tests, params, recommendations)
