"""
Diagnostic advisor facade.

Ties the catalog, the recommendation session, the filter pipeline and the
selection state together behind the operations a presentation layer needs.
One advisor per user session; nothing here is a module-level singleton.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future

from labwise.config import Settings
from labwise.engines.catalog import DiagnosticCatalog, load_catalog, load_scoring_rules
from labwise.engines.filtering import filter_and_sort
from labwise.engines.recommender import RecommendationEngine, RecommendationSession
from labwise.engines.selection import SelectionState
from labwise.models import (
    DiagnosticTest,
    FilterParams,
    OrderSummary,
    PatientProfile,
    Recommendation,
    RecommendationSet,
    ScoringRules,
)


class DiagnosticAdvisor:
    """
    Recommendation, browsing and selection for one caller.

    Example:
        advisor = DiagnosticAdvisor()
        recs = advisor.compute_recommendations(patient, diagnosis="suspected infection")
        tests = advisor.view_tests(FilterParams(sort_key="cost"))
        advisor.select_test(tests[0].id)
    """

    def __init__(
        self,
        catalog: DiagnosticCatalog | None = None,
        rules: ScoringRules | None = None,
        limit: int | None = None,
        selection: SelectionState | None = None,
    ):
        self.engine = RecommendationEngine(catalog=catalog, rules=rules, limit=limit)
        self.session = RecommendationSession(self.engine)
        self.selection = selection if selection is not None else SelectionState()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DiagnosticAdvisor:
        """Build an advisor from the knowledge base named in the settings."""
        settings = settings or Settings.from_env()
        return cls(
            catalog=load_catalog(settings.catalog_path),
            rules=load_scoring_rules(settings.scoring_path),
            limit=settings.recommendation_limit,
        )

    @property
    def catalog(self) -> DiagnosticCatalog:
        return self.engine.catalog

    def load_catalog(self) -> DiagnosticCatalog:
        return self.engine.catalog

    def get_test(self, test_id: str) -> DiagnosticTest:
        """Raises UnknownTestError for ids outside the catalog."""
        return self.catalog.require(test_id)

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def recommend(
        self,
        patient: PatientProfile,
        symptoms: list[str] | None = None,
        diagnosis: str = "",
    ) -> RecommendationSet:
        """Run a pass, replacing the current result."""
        return self.session.request(patient, diagnosis, symptoms)

    def recommend_async(
        self,
        executor: Executor,
        patient: PatientProfile,
        symptoms: list[str] | None = None,
        diagnosis: str = "",
    ) -> Future:
        """Run a pass in the background; only the latest request is ever published."""
        return self.session.request_async(executor, patient, diagnosis, symptoms)

    def compute_recommendations(
        self,
        patient: PatientProfile,
        symptoms: list[str] | None = None,
        diagnosis: str = "",
    ) -> list[Recommendation]:
        return self.recommend(patient, symptoms, diagnosis).recommendations

    @property
    def current(self) -> RecommendationSet | None:
        return self.session.current

    @property
    def current_recommendations(self) -> list[Recommendation]:
        current = self.session.current
        return current.recommendations if current is not None else []

    # -------------------------------------------------------------------------
    # Browsing
    # -------------------------------------------------------------------------

    def view_tests(
        self,
        params: FilterParams | None = None,
        recommendations: list[Recommendation] | None = None,
    ) -> list[DiagnosticTest]:
        """
        Filter and sort the catalog or the recommended subset.

        Uses the current pass's recommendations unless others are given.
        """
        if recommendations is None:
            recommendations = self.current_recommendations
        return filter_and_sort(self.catalog, recommendations, params)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_test(self, test_id: str) -> bool:
        """
        Select a catalog test for ordering.

        Idempotent; returns whether the test was newly selected. Raises
        UnknownTestError for ids outside the catalog.
        """
        self.catalog.require(test_id)
        return self.selection.select(test_id)

    def is_test_selected(self, test_id: str) -> bool:
        return self.selection.is_selected(test_id)

    def order_summary(self) -> OrderSummary:
        return self.selection.summary(self.catalog)
