"""
Tests for free-text patient intake.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest


@pytest.fixture
def vocabulary():
    from labwise.engines import load_catalog, load_scoring_rules
    from labwise.intake import build_vocabulary

    return build_vocabulary(load_catalog(), load_scoring_rules())


class FakeLLM:
    """Stands in for LLMClient.generate_structured."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate_structured(self, prompt, schema, system=None, **kwargs):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class TestVocabulary:
    def test_longest_first(self, vocabulary):
        lengths = [len(p) for p in vocabulary]

        assert lengths == sorted(lengths, reverse=True)

    def test_contents(self, vocabulary):
        assert "fever" in vocabulary
        assert "chest pain" in vocabulary
        assert "severe pain" in vocabulary
        assert len(set(vocabulary)) == len(vocabulary)


class TestFallbackParser:
    """Parsing without the LLM."""

    def test_full_presentation(self, vocabulary):
        from labwise.intake import parse_presentation
        from labwise.models import Gender

        parsed = parse_presentation(
            "45 year old woman with fatigue and weight change, suspected hypothyroidism",
            vocabulary=vocabulary,
            use_llm=False,
        )

        assert parsed.age == 45
        assert parsed.gender == Gender.FEMALE
        assert parsed.symptoms == ["fatigue", "weight change"]
        assert parsed.diagnosis == "suspected hypothyroidism"

    def test_mention_order(self, vocabulary):
        from labwise.intake import parse_presentation
        from labwise.models import Gender

        parsed = parse_presentation(
            "52 yo male with shortness of breath and chest pain",
            vocabulary=vocabulary,
            use_llm=False,
        )

        assert parsed.age == 52
        assert parsed.gender == Gender.MALE
        assert parsed.symptoms == ["shortness of breath", "chest pain"]
        assert parsed.diagnosis == ""

    def test_infant(self, vocabulary):
        from labwise.intake import parse_presentation
        from labwise.models import Gender

        parsed = parse_presentation("8 month old girl with fever", vocabulary=vocabulary, use_llm=False)

        assert parsed.age == 0
        assert parsed.gender == Gender.FEMALE
        assert parsed.symptoms == ["fever"]

    def test_sub_phrases_skipped(self):
        from labwise.intake import parse_presentation

        parsed = parse_presentation(
            "Patient with high fever", vocabulary=["high fever", "fever"], use_llm=False
        )

        assert parsed.symptoms == ["high fever"]
        assert parsed.age is None
        assert parsed.gender is None

    def test_word_boundaries(self):
        from labwise.intake import parse_presentation

        parsed = parse_presentation("Patient with feverish feeling", vocabulary=["fever"], use_llm=False)

        assert parsed.symptoms == []

    @pytest.mark.parametrize("description", ["", "   "])
    def test_empty(self, description):
        from labwise.intake import parse_presentation
        from labwise.utils import IntakeError

        with pytest.raises(IntakeError):
            parse_presentation(description, use_llm=False)

    def test_to_patient(self):
        from labwise.intake import PresentationIntake
        from labwise.models import Gender

        patient = PresentationIntake(symptoms=["fever"]).to_patient(default_age=18)

        assert patient.age == 18
        assert patient.gender == Gender.OTHER
        assert patient.symptoms == ["fever"]


class TestLLMIntake:
    """Parsing through the LLM, with fallback."""

    def test_uses_llm(self, vocabulary):
        from labwise.intake import PresentationIntake, parse_presentation

        llm = FakeLLM(response=PresentationIntake(age=60, gender="male", symptoms=[" Chest Pain ", ""]))

        parsed = parse_presentation("sixty year old man, chest pain", vocabulary=vocabulary, llm=llm)

        assert parsed.age == 60
        assert parsed.symptoms == ["chest pain"]
        assert "chest pain" in llm.prompts[0]

    def test_falls_back_on_error(self, vocabulary):
        from labwise.intake import parse_presentation

        llm = FakeLLM(error=RuntimeError("no tool call"))

        parsed = parse_presentation("30 year old man with fever", vocabulary=vocabulary, llm=llm)

        assert len(llm.prompts) == 1
        assert parsed.age == 30
        assert parsed.symptoms == ["fever"]

    def test_falls_back_without_api_key(self, monkeypatch, vocabulary):
        from labwise.intake import parse_presentation
        from labwise.llm import set_client

        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        set_client(None)

        parsed = parse_presentation("30 year old man with fever", vocabulary=vocabulary)

        assert parsed.symptoms == ["fever"]


class TestLLMClient:
    """Structured output and the response cache."""

    def _client(self, tmp_path, payload):
        from types import SimpleNamespace

        from labwise.llm import LLMClient

        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            block = SimpleNamespace(type="tool_use", name=kwargs["tool_choice"]["name"], input=payload)
            return SimpleNamespace(content=[block])

        client = LLMClient(api_key="sk-test", cache_dir=tmp_path)
        client.client = SimpleNamespace(messages=SimpleNamespace(create=create))
        return client, calls

    def test_structured_output_cached(self, tmp_path):
        from labwise.intake import PresentationIntake

        client, calls = self._client(tmp_path, {"age": 40, "symptoms": ["fever"], "diagnosis": ""})

        first = client.generate_structured("prompt", PresentationIntake)
        second = client.generate_structured("prompt", PresentationIntake)

        assert first.age == 40
        assert second == first
        assert len(calls) == 1
        assert calls[0]["tool_choice"] == {"type": "tool", "name": "record_presentationintake"}

    def test_clear_cache(self, tmp_path):
        from labwise.intake import PresentationIntake

        client, calls = self._client(tmp_path, {"age": 40})
        client.generate_structured("prompt", PresentationIntake)

        assert client.clear_cache() == 1
        client.generate_structured("prompt", PresentationIntake)
        assert len(calls) == 2

    def test_requires_api_key(self, monkeypatch):
        from labwise.llm import LLMClient
        from labwise.utils import LLMError

        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        with pytest.raises(LLMError):
            LLMClient()

    def test_no_tool_call(self, tmp_path):
        from types import SimpleNamespace

        from labwise.intake import PresentationIntake
        from labwise.utils import LLMError

        client, _ = self._client(tmp_path, {})
        client.client = SimpleNamespace(messages=SimpleNamespace(
            create=lambda **kwargs: SimpleNamespace(content=[], stop_reason="max_tokens")
        ))

        with pytest.raises(LLMError) as exc_info:
            client.generate_structured("prompt", PresentationIntake)

        assert exc_info.value.details["stop_reason"] == "max_tokens"
