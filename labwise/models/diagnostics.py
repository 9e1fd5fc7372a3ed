"""
Core data models for the diagnostic-test advisor.

These Pydantic models define the catalog entries, the per-request patient
profile, the derived recommendations and the filter parameters. Scoring,
filtering, selection and export all work with these models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class TestCategory(str, Enum):
    BLOOD = "blood"
    URINE = "urine"
    IMAGING = "imaging"
    CARDIAC = "cardiac"
    NEUROLOGICAL = "neurological"
    ENDOCRINE = "endocrine"
    OTHER = "other"


class TestType(str, Enum):
    ROUTINE = "routine"
    SPECIALIZED = "specialized"
    EMERGENCY = "emergency"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Availability(str, Enum):
    AVAILABLE = "available"
    LIMITED = "limited"
    UNAVAILABLE = "unavailable"


class UrgencyClass(str, Enum):
    """Intrinsic urgency of a test, independent of any patient."""
    STAT = "stat"
    URGENT = "urgent"
    ROUTINE = "routine"


class Urgency(str, Enum):
    """Patient-level urgency, computed once per scoring pass."""
    IMMEDIATE = "immediate"
    WITHIN_24H = "within_24h"
    WITHIN_WEEK = "within_week"
    ROUTINE = "routine"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    COST = "cost"
    PRIORITY = "priority"
    ACCURACY = "accuracy"


ALL = "all"

PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

URGENCY_LABELS: dict[Urgency, str] = {
    Urgency.IMMEDIATE: "Immediate",
    Urgency.WITHIN_24H: "Within 24 hours",
    Urgency.WITHIN_WEEK: "Within a week",
    Urgency.ROUTINE: "Routine",
}

AVAILABILITY_LABELS: dict[Availability, str] = {
    Availability.AVAILABLE: "Available",
    Availability.LIMITED: "Limited",
    Availability.UNAVAILABLE: "Unavailable",
}


# =============================================================================
# CATALOG
# =============================================================================


class DiagnosticTest(BaseModel):
    """
    A diagnostic test as defined in the catalog.

    Entries are frozen; the catalog is read-only for the lifetime of the process.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    localized_name: str = ""
    category: TestCategory
    type: TestType
    priority: Priority
    cost: float = Field(gt=0, description="Price in local currency")
    duration: str = Field(default="", description="How long the test takes")
    report_time: str = Field(default="", description="When results are available")
    description: str = ""
    clinical_significance: str = ""
    preparation_steps: tuple[str, ...] = ()
    indications: tuple[str, ...] = Field(
        default=(),
        description="Conditions or symptoms the test is relevant for",
    )
    contraindications: tuple[str, ...] = ()
    normal_range: str | None = None
    accuracy: float = Field(ge=0, le=100, description="Accuracy percentage")
    availability: Availability = Availability.AVAILABLE
    lab_requirements: tuple[str, ...] = ()
    sample_type: str = ""
    fasting: bool = False
    urgency_class: UrgencyClass = UrgencyClass.ROUTINE

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


# =============================================================================
# PATIENT
# =============================================================================


class VitalSigns(BaseModel):
    """Optional vital signs captured with the presentation."""
    blood_pressure: str | None = Field(default=None, description="e.g. '120/80'")
    heart_rate: int | None = None
    temperature: float | None = None
    respiratory_rate: int | None = None


class PatientProfile(BaseModel):
    """
    Per-request patient input.

    Only age, gender and symptoms feed the scoring. Age is not range-checked
    here: a negative age degrades to an empty recommendation list instead of
    a validation failure.
    """
    age: int
    gender: Gender = Gender.OTHER
    symptoms: list[str] = Field(default_factory=list)
    medical_history: list[str] = Field(default_factory=list)
    current_medications: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
    vital_signs: VitalSigns | None = None

    @field_validator("gender", mode="before")
    @classmethod
    def _coerce_gender(cls, value: Any) -> Any:
        if value is None:
            return Gender.OTHER
        if isinstance(value, str):
            value = value.strip().lower()
            return value if value in {g.value for g in Gender} else Gender.OTHER
        return value


# =============================================================================
# SCORING RULES (for scoring.yaml)
# =============================================================================


class UrgencyTier(BaseModel):
    """Symptoms that place a patient in an urgency tier."""
    urgency: Urgency
    symptoms: list[str] = Field(default_factory=list)


class DemographicRule(BaseModel):
    """
    Additive score bonus for a demographic group and a kind of test.

    Every condition that is set must hold; unset conditions are ignored.
    """
    reason: str
    bonus: float = Field(ge=0)
    age_above: int | None = Field(default=None, description="Strict lower age bound")
    gender: Gender | None = None
    category: TestCategory | None = None
    name_contains: str | None = Field(default=None, description="Case-insensitive name fragment")

    def applies(self, test: DiagnosticTest, patient: PatientProfile) -> bool:
        if self.age_above is not None and not patient.age > self.age_above:
            return False
        if self.gender is not None and patient.gender != self.gender:
            return False
        if self.category is not None and test.category != self.category:
            return False
        if self.name_contains is not None and self.name_contains.lower() not in test.name.lower():
            return False
        return True


def _default_urgency_tiers() -> list[UrgencyTier]:
    return [
        UrgencyTier(
            urgency=Urgency.IMMEDIATE,
            symptoms=["chest pain", "shortness of breath", "loss of consciousness"],
        ),
        UrgencyTier(urgency=Urgency.WITHIN_24H, symptoms=["fever", "severe pain"]),
        UrgencyTier(urgency=Urgency.WITHIN_WEEK, symptoms=["weakness", "fatigue"]),
    ]


def _default_demographic_rules() -> list[DemographicRule]:
    return [
        DemographicRule(
            reason="age-related cardiac risk",
            bonus=15,
            age_above=40,
            category=TestCategory.CARDIAC,
        ),
        DemographicRule(
            reason="female thyroid-risk demographic",
            bonus=10,
            age_above=35,
            gender=Gender.FEMALE,
            name_contains="thyroid",
        ),
    ]


class ScoringRules(BaseModel):
    """
    Weights and rule tables used by the relevance scorer.

    Urgency tiers are evaluated in list order; the first tier with a matching
    symptom wins.
    """
    symptom_weight: float = Field(default=20, ge=0)
    diagnosis_weight: float = Field(default=30, ge=0)
    recommendation_limit: int = Field(default=8, ge=1)
    default_reasoning: str = "Recommended as part of a routine health screening."
    urgency_tiers: list[UrgencyTier] = Field(default_factory=_default_urgency_tiers)
    demographic_rules: list[DemographicRule] = Field(default_factory=_default_demographic_rules)


# =============================================================================
# RECOMMENDATIONS
# =============================================================================


class Recommendation(BaseModel):
    """A scored test, as produced by one recommendation pass."""
    test: DiagnosticTest
    relevance_score: float = Field(ge=0)
    reasoning: str
    urgency: Urgency
    cost_effectiveness: float = Field(ge=0, description="Ranking aid; not a probability")


class RecommendationSet(BaseModel):
    """
    The complete result of one recommendation pass.

    A newer pass replaces an older one wholesale; nothing is updated in place.
    """
    request_id: int = 0
    diagnosis: str = ""
    symptoms: list[str] = Field(default_factory=list)
    urgency: Urgency = Urgency.ROUTINE
    recommendations: list[Recommendation] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.recommendations)

    @property
    def tests(self) -> list[DiagnosticTest]:
        return [r.test for r in self.recommendations]

    def recommendation_for(self, test_id: str) -> Recommendation | None:
        """Get the recommendation for a test, if the test was recommended."""
        for rec in self.recommendations:
            if rec.test.id == test_id:
                return rec
        return None


# =============================================================================
# FILTERING
# =============================================================================


def _enum_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return value.strip().lower()
    return value


class FilterParams(BaseModel):
    """
    Parameters for the catalog filter/sort pipeline.

    Unknown category, type or sort values fail open: they are treated as
    "all" and the default sort respectively.
    """
    search_text: str = ""
    category: str = ALL
    type: str = ALL
    sort_key: SortKey = SortKey.RELEVANCE
    cost_min: float = 0
    cost_max: float = 10000
    only_recommended: bool = True

    @field_validator("search_text", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> str:
        value = _enum_value(value)
        if value in {c.value for c in TestCategory}:
            return value
        return ALL

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        value = _enum_value(value)
        if value in {t.value for t in TestType}:
            return value
        return ALL

    @field_validator("sort_key", mode="before")
    @classmethod
    def _coerce_sort_key(cls, value: Any) -> Any:
        value = _enum_value(value)
        if value in {s.value for s in SortKey}:
            return value
        return SortKey.RELEVANCE


# =============================================================================
# ORDERING
# =============================================================================


class OrderSummary(BaseModel):
    """What the order-submission flow needs to know about the selection."""
    tests: list[DiagnosticTest] = Field(default_factory=list)
    total_cost: float = 0
    fasting_required: bool = False
    preparation_steps: list[str] = Field(default_factory=list)
    sample_types: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.tests)
