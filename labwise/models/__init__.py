"""
Data models for Labwise.
"""

from .diagnostics import (
    ALL,
    AVAILABILITY_LABELS,
    PRIORITY_RANK,
    URGENCY_LABELS,
    Availability,
    DemographicRule,
    DiagnosticTest,
    FilterParams,
    Gender,
    OrderSummary,
    PatientProfile,
    Priority,
    Recommendation,
    RecommendationSet,
    ScoringRules,
    SortKey,
    TestCategory,
    TestType,
    Urgency,
    UrgencyClass,
    UrgencyTier,
    VitalSigns,
)

__all__ = [
    "ALL",
    "AVAILABILITY_LABELS",
    "PRIORITY_RANK",
    "URGENCY_LABELS",
    "Availability",
    "DemographicRule",
    "DiagnosticTest",
    "FilterParams",
    "Gender",
    "OrderSummary",
    "PatientProfile",
    "Priority",
    "Recommendation",
    "RecommendationSet",
    "ScoringRules",
    "SortKey",
    "TestCategory",
    "TestType",
    "Urgency",
    "UrgencyClass",
    "UrgencyTier",
    "VitalSigns",
]
