"""
Free-text patient intake.

Turns a natural-language presentation such as
"52 year old man with chest pain and shortness of breath, suspected angina"
into the age, gender, symptoms and diagnosis the advisor scores against.
Uses the LLM when one is configured and falls back to vocabulary matching
otherwise.
"""

from __future__ import annotations

import re
from typing import Iterable

from pydantic import BaseModel, Field

from labwise.models import DiagnosticTest, Gender, PatientProfile, ScoringRules
from labwise.utils import IntakeError, get_logger

logger = get_logger(__name__)

_DIAGNOSIS_PATTERN = re.compile(
    r"\b(suspected|possible|probable|known|diagnosed with|diagnosis of|diagnosis:|rule out)\s+([^.;,\n]+)"
)
_AGE_PATTERN = re.compile(r"(\d{1,3})\s*(?:-\s*)?(?:years?|yrs?|yo|y/o)\b")
_AGE_MONTHS_PATTERN = re.compile(r"(\d{1,2})\s*(?:-\s*)?(?:months?|mo)\b")
_FEMALE_PATTERN = re.compile(r"\b(woman|female|girl|lady|mother|she|her)\b")
_MALE_PATTERN = re.compile(r"\b(man|male|boy|gentleman|father|he|his)\b")


class PresentationIntake(BaseModel):
    """Structured fields extracted from a free-text presentation."""
    age: int | None = Field(default=None, description="Age in whole years, if stated")
    gender: Gender | None = Field(default=None, description="male, female or other, if stated")
    symptoms: list[str] = Field(
        default_factory=list,
        description="Presenting symptoms, short lowercase phrases",
    )
    diagnosis: str = Field(default="", description="Stated or suspected diagnosis, verbatim")

    def to_patient(self, default_age: int = 0) -> PatientProfile:
        return PatientProfile(
            age=self.age if self.age is not None else default_age,
            gender=self.gender or Gender.OTHER,
            symptoms=list(self.symptoms),
        )


def build_vocabulary(
    tests: Iterable[DiagnosticTest],
    rules: ScoringRules | None = None,
) -> list[str]:
    """Every indication and urgency symptom, lowercased, longest first."""
    phrases: set[str] = set()
    for test in tests:
        phrases.update(ind.lower() for ind in test.indications if ind.strip())
    for tier in (rules or ScoringRules()).urgency_tiers:
        phrases.update(s.lower() for s in tier.symptoms if s.strip())
    return sorted(phrases, key=lambda p: (-len(p), p))


def _parse_presentation_regex(description: str, vocabulary: list[str]) -> PresentationIntake:
    """Fallback parser: regexes for age, gender and diagnosis, vocabulary for symptoms."""
    text = description.lower()
    result = PresentationIntake()

    age_match = _AGE_PATTERN.search(text)
    if age_match:
        result.age = int(age_match.group(1))
    elif _AGE_MONTHS_PATTERN.search(text):
        result.age = 0

    if _FEMALE_PATTERN.search(text):
        result.gender = Gender.FEMALE
    elif _MALE_PATTERN.search(text):
        result.gender = Gender.MALE

    # Symptoms are only looked for outside the diagnosis clause
    diagnosis_match = _DIAGNOSIS_PATTERN.search(text)
    if diagnosis_match:
        result.diagnosis = diagnosis_match.group(0).strip()
        text = text[:diagnosis_match.start()] + " " + text[diagnosis_match.end():]

    found: list[str] = []
    for phrase in vocabulary:
        if any(phrase in longer for longer in found):
            continue
        if re.search(rf"\b{re.escape(phrase)}\b", text):
            found.append(phrase)

    # Report symptoms in the order they were mentioned
    result.symptoms = sorted(found, key=text.find)
    return result


def parse_presentation(
    description: str,
    vocabulary: list[str] | None = None,
    use_llm: bool = True,
    llm=None,
) -> PresentationIntake:
    """
    Parse a natural-language presentation.

    Args:
        description: Free text describing the patient
        vocabulary: Known symptom phrases; the LLM is asked to prefer them and
            the fallback parser only recognizes them
        use_llm: Try the LLM first
        llm: LLM client to use instead of the shared one

    Raises:
        IntakeError: the description is empty
    """
    if not description or not description.strip():
        raise IntakeError("Presentation description is empty")

    vocabulary = vocabulary or []

    if use_llm:
        try:
            if llm is None:
                from labwise.llm import get_client
                llm = get_client()
            return _parse_presentation_llm(llm, description, vocabulary)
        except Exception as e:
            # No API key, network failure or no tool call in the response
            logger.warning("LLM intake unavailable (%s), using vocabulary parser", e)

    return _parse_presentation_regex(description, vocabulary)


def _parse_presentation_llm(llm, description: str, vocabulary: list[str]) -> PresentationIntake:
    known = ", ".join(vocabulary) if vocabulary else "(none)"

    prompt = f'''Extract the patient parameters from this presentation.

Presentation: "{description}"

Rules:
- age: integer years, or null if not stated (infants are 0)
- gender: "male", "female", "other", or null if not stated
- symptoms: short lowercase phrases; use these known phrases where they fit: {known}
- diagnosis: the stated or suspected diagnosis exactly as written (e.g. "suspected infection"), or ""

Do not infer symptoms that are not described.'''

    result = llm.generate_structured(
        prompt=prompt,
        schema=PresentationIntake,
        system="You extract structured clinical intake data. Use the provided tool to output your response.",
    )
    result.symptoms = [s.strip().lower() for s in result.symptoms if s.strip()]
    return result
