"""
Relevance scoring.

Scores a single diagnostic test against a patient presentation. Matching is
plain case-insensitive substring matching in both directions, so either the
symptom or the indication may be the more specific phrase ("fever" matches
"high fever" and vice versa). There is no tokenization or fuzzy matching.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from labwise.models import (
    DiagnosticTest,
    PatientProfile,
    ScoringRules,
    Urgency,
)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one test for one patient."""
    relevance_score: float
    reasoning: str
    urgency: Urgency
    symptom_matches: list[str] = field(default_factory=list)
    diagnosis_match: bool = False
    adjustments: list[str] = field(default_factory=list)


def _normalize(text: str) -> str:
    return text.strip().lower()


def match_symptoms(indications: tuple[str, ...] | list[str], symptoms: list[str]) -> list[str]:
    """Indications that contain, or are contained in, at least one symptom."""
    # Blank symptoms would be a substring of every indication
    lowered = [s.lower() for s in symptoms if s.strip()]
    matches = []
    for indication in indications:
        ind = indication.lower()
        if not ind:
            continue
        if any(s in ind or ind in s for s in lowered):
            matches.append(indication)
    return matches


def match_diagnosis(indications: tuple[str, ...] | list[str], diagnosis: str) -> bool:
    """True if any indication appears inside the diagnosis text."""
    text = diagnosis.lower()
    if not text:
        return False
    return any(ind and ind.lower() in text for ind in indications)


def classify_urgency(symptoms: list[str], rules: ScoringRules) -> Urgency:
    """
    Patient-level urgency from the presenting symptoms.

    Tiers are checked in rule order and the first tier holding one of the
    symptoms wins. Membership is exact after case and whitespace
    normalization, unlike indication matching.
    """
    present = {_normalize(s) for s in symptoms}
    for tier in rules.urgency_tiers:
        if any(_normalize(s) in present for s in tier.symptoms):
            return tier.urgency
    return Urgency.ROUTINE


def cost_effectiveness(test: DiagnosticTest, relevance_score: float) -> float:
    """
    Accuracy-weighted relevance per unit of cost.

    A ranking aid only; it is not a probability and has no clinical meaning
    on its own. Catalog validation guarantees cost > 0.
    """
    return (test.accuracy * relevance_score) / test.cost


class RelevanceScorer:
    """
    Scores catalog tests against a patient presentation.

    Stateless apart from the rules it was built with; safe to share.
    """

    def __init__(self, rules: ScoringRules | None = None):
        self.rules = rules or ScoringRules()

    def score(
        self,
        test: DiagnosticTest,
        patient: PatientProfile,
        diagnosis: str = "",
        urgency: Urgency | None = None,
    ) -> ScoreResult | None:
        """
        Score one test.

        Returns None when the test is excluded, i.e. no indication matches a
        symptom and none appears in the diagnosis. Pass ``urgency`` to reuse a
        classification already computed for this patient.
        """
        symptom_matches = match_symptoms(test.indications, patient.symptoms)
        diagnosis_match = match_diagnosis(test.indications, diagnosis or "")

        if not symptom_matches and not diagnosis_match:
            return None

        score = self.rules.symptom_weight * len(symptom_matches)
        if diagnosis_match:
            score += self.rules.diagnosis_weight

        adjustments = []
        for rule in self.rules.demographic_rules:
            if rule.applies(test, patient):
                score += rule.bonus
                adjustments.append(rule.reason)

        if urgency is None:
            urgency = classify_urgency(patient.symptoms, self.rules)

        return ScoreResult(
            relevance_score=score,
            reasoning=self._build_reasoning(symptom_matches, diagnosis_match, adjustments),
            urgency=urgency,
            symptom_matches=symptom_matches,
            diagnosis_match=diagnosis_match,
            adjustments=adjustments,
        )

    def _build_reasoning(
        self,
        symptom_matches: list[str],
        diagnosis_match: bool,
        adjustments: list[str],
    ) -> str:
        parts = []
        if symptom_matches:
            parts.append(f"Matches presenting symptoms: {', '.join(symptom_matches)}.")
        if diagnosis_match:
            parts.append("Indicated for the stated diagnosis.")
        for reason in adjustments:
            parts.append(f"{reason[:1].upper()}{reason[1:]}.")

        if not parts:
            return self.rules.default_reasoning
        return " ".join(parts)
