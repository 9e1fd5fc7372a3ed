"""
Recommendation engine.

Runs a scoring pass over the whole catalog, ranks the surviving tests and
packages them as a RecommendationSet. RecommendationSession wraps the engine
for callers that run passes in the background and must only ever surface
the most recently requested result.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future

from labwise.engines.catalog import DiagnosticCatalog, load_catalog, load_scoring_rules
from labwise.engines.scoring import RelevanceScorer, classify_urgency, cost_effectiveness
from labwise.models import (
    PatientProfile,
    Recommendation,
    RecommendationSet,
    ScoringRules,
)
from labwise.utils import get_logger

logger = get_logger(__name__)


def rank_recommendations(
    recommendations: list[Recommendation],
    limit: int,
) -> list[Recommendation]:
    """
    Order by relevance, highest first, and keep the top ``limit``.

    sorted() is stable, so equal scores keep the order they were scored in,
    which is catalog order.
    """
    ranked = sorted(recommendations, key=lambda r: r.relevance_score, reverse=True)
    return ranked[:limit]


class RecommendationEngine:
    """
    Scores, ranks and truncates the catalog for one patient presentation.

    The engine holds no per-patient state; every call to ``recommend``
    produces a fresh RecommendationSet.
    """

    def __init__(
        self,
        catalog: DiagnosticCatalog | None = None,
        rules: ScoringRules | None = None,
        limit: int | None = None,
    ):
        self.catalog = catalog if catalog is not None else load_catalog()
        self.rules = rules if rules is not None else load_scoring_rules()
        self.limit = limit or self.rules.recommendation_limit
        self.scorer = RelevanceScorer(self.rules)

    def recommend(
        self,
        patient: PatientProfile,
        diagnosis: str = "",
        symptoms: list[str] | None = None,
        request_id: int = 0,
    ) -> RecommendationSet:
        """
        Run one recommendation pass.

        Args:
            patient: The patient profile
            diagnosis: Free-text stated diagnosis
            symptoms: Symptoms to score against; defaults to ``patient.symptoms``
            request_id: Sequence number stamped on the result

        Returns:
            A RecommendationSet with at most ``limit`` entries, sorted by
            relevance. Empty when there is nothing to score against or the
            profile is invalid.
        """
        diagnosis = diagnosis or ""
        if symptoms is not None:
            patient = patient.model_copy(update={"symptoms": list(symptoms)})

        urgency = classify_urgency(patient.symptoms, self.rules)
        result = RecommendationSet(
            request_id=request_id,
            diagnosis=diagnosis,
            symptoms=list(patient.symptoms),
            urgency=urgency,
        )

        if patient.age < 0:
            logger.warning("Pass %d: negative age %d, no recommendations", request_id, patient.age)
            return result

        has_symptoms = any(s.strip() for s in patient.symptoms)
        if not has_symptoms and not diagnosis.strip():
            logger.debug("Pass %d: no symptoms or diagnosis given", request_id)
            return result

        scored = []
        for test in self.catalog:
            score = self.scorer.score(test, patient, diagnosis, urgency=urgency)
            if score is None:
                continue
            scored.append(Recommendation(
                test=test,
                relevance_score=score.relevance_score,
                reasoning=score.reasoning,
                urgency=score.urgency,
                cost_effectiveness=cost_effectiveness(test, score.relevance_score),
            ))

        result.recommendations = rank_recommendations(scored, self.limit)

        logger.debug(
            "Pass %d: %d of %d tests matched, %d kept, urgency=%s",
            request_id, len(scored), len(self.catalog), result.count, urgency.value,
        )
        return result


class RecommendationSession:
    """
    Sequences recommendation passes for one caller.

    Every request is stamped with an increasing id when it is made. A
    finished pass is published only if its id is still the latest one
    issued, so a slow, superseded pass can never overwrite a newer result,
    whatever order the passes finish in.
    """

    def __init__(self, engine: RecommendationEngine):
        self.engine = engine
        self._lock = threading.Lock()
        self._latest_request_id = 0
        self._current: RecommendationSet | None = None

    @property
    def current(self) -> RecommendationSet | None:
        """The most recently requested pass, once it has finished."""
        with self._lock:
            return self._current

    @property
    def latest_request_id(self) -> int:
        with self._lock:
            return self._latest_request_id

    def next_request_id(self) -> int:
        with self._lock:
            self._latest_request_id += 1
            return self._latest_request_id

    def publish(self, result: RecommendationSet) -> bool:
        """
        Make a finished pass visible.

        Returns False, leaving the current result untouched, when a newer
        request has been issued since this pass was requested.
        """
        with self._lock:
            if result.request_id != self._latest_request_id:
                logger.debug(
                    "Discarding superseded pass %d (latest is %d)",
                    result.request_id, self._latest_request_id,
                )
                return False
            self._current = result
            return True

    def request(
        self,
        patient: PatientProfile,
        diagnosis: str = "",
        symptoms: list[str] | None = None,
    ) -> RecommendationSet:
        """Run a pass synchronously and publish it."""
        request_id = self.next_request_id()
        result = self.engine.recommend(patient, diagnosis, symptoms, request_id=request_id)
        self.publish(result)
        return result

    def request_async(
        self,
        executor: Executor,
        patient: PatientProfile,
        diagnosis: str = "",
        symptoms: list[str] | None = None,
    ) -> Future:
        """
        Run a pass on ``executor``.

        The request id is taken now, not when the pass starts running. The
        returned future resolves to the pass result whether or not it was
        published; compare with ``current`` or check ``is_current``.
        """
        request_id = self.next_request_id()

        def run() -> RecommendationSet:
            result = self.engine.recommend(patient, diagnosis, symptoms, request_id=request_id)
            self.publish(result)
            return result

        return executor.submit(run)

    def is_current(self, result: RecommendationSet) -> bool:
        with self._lock:
            return self._current is result
