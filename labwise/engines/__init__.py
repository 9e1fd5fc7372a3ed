"""
Diagnostic-test recommendation engines.
"""

from .catalog import DiagnosticCatalog, load_catalog, load_scoring_rules, clear_caches
from .scoring import (
    RelevanceScorer,
    ScoreResult,
    classify_urgency,
    cost_effectiveness,
    match_diagnosis,
    match_symptoms,
)
from .recommender import RecommendationEngine, RecommendationSession, rank_recommendations
from .filtering import filter_and_sort, matches_search
from .selection import SelectionState
from .advisor import DiagnosticAdvisor

__all__ = [
    "DiagnosticCatalog",
    "load_catalog",
    "load_scoring_rules",
    "clear_caches",
    "RelevanceScorer",
    "ScoreResult",
    "classify_urgency",
    "cost_effectiveness",
    "match_diagnosis",
    "match_symptoms",
    "RecommendationEngine",
    "RecommendationSession",
    "rank_recommendations",
    "filter_and_sort",
    "matches_search",
    "SelectionState",
    "DiagnosticAdvisor",
]
