"""
Selection state for test ordering.

Tracks which tests a caller has committed to an order. The set only grows:
there is no deselect, and selecting a test twice changes nothing.
"""

from __future__ import annotations

import threading
from typing import Iterable, Iterator

from labwise.models import DiagnosticTest, OrderSummary
from labwise.utils import get_logger

logger = get_logger(__name__)


class SelectionState:
    """
    Grow-only set of selected test ids, remembering selection order.

    Independent of any filtering or sorting: a test stays selected even when
    the current view no longer shows it.
    """

    def __init__(self, test_ids: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._selected: dict[str, None] = {}
        for test_id in test_ids:
            self._selected.setdefault(test_id, None)

    def select(self, test_id: str) -> bool:
        """
        Select a test.

        Returns True if the test was newly selected and False if it was
        already selected.
        """
        with self._lock:
            if test_id in self._selected:
                return False
            self._selected[test_id] = None
        logger.debug("Selected test %s", test_id)
        return True

    def is_selected(self, test_id: str) -> bool:
        with self._lock:
            return test_id in self._selected

    @property
    def selected_ids(self) -> list[str]:
        """Selected ids in the order they were first selected."""
        with self._lock:
            return list(self._selected)

    def __contains__(self, test_id: object) -> bool:
        return isinstance(test_id, str) and self.is_selected(test_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self.selected_ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._selected)

    def summary(self, tests: Iterable[DiagnosticTest]) -> OrderSummary:
        """
        Summarize the selection for ordering.

        ``tests`` is any collection that can resolve ids, normally the
        catalog. Selected ids it does not contain are left out.
        """
        by_id = {t.id: t for t in tests}
        selected = [by_id[i] for i in self.selected_ids if i in by_id]

        preparation: list[str] = []
        sample_types: list[str] = []
        for test in selected:
            for step in test.preparation_steps:
                if step not in preparation:
                    preparation.append(step)
            if test.sample_type and test.sample_type not in sample_types:
                sample_types.append(test.sample_type)

        return OrderSummary(
            tests=selected,
            total_cost=sum(t.cost for t in selected),
            fasting_required=any(t.fasting for t in selected),
            preparation_steps=preparation,
            sample_types=sample_types,
        )
