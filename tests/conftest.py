"""
Shared fixtures for the Labwise test suite.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest


def make_diagnostic(test_id: str, **overrides):
    """Build a catalog entry with sensible defaults for everything not given."""
    from labwise.models import DiagnosticTest

    fields = {
        "id": test_id,
        "name": f"Test {test_id}",
        "category": "blood",
        "type": "routine",
        "priority": "medium",
        "cost": 100,
        "accuracy": 90,
        "indications": [],
    }
    fields.update(overrides)
    return DiagnosticTest(**fields)


@pytest.fixture
def small_catalog():
    """Five tests covering every scoring branch."""
    from labwise.engines import DiagnosticCatalog

    return DiagnosticCatalog([
        make_diagnostic(
            "cbc",
            name="Complete Blood Count",
            localized_name="Blood count",
            description="Counts red and white blood cells",
            indications=["fever", "infection"],
            cost=300,
            accuracy=95,
            priority="high",
            preparation_steps=["No special preparation"],
            sample_type="Venous blood",
        ),
        make_diagnostic(
            "ecg",
            name="Electrocardiogram",
            category="cardiac",
            type="specialized",
            indications=["chest pain"],
            cost=400,
            accuracy=92,
            priority="high",
            sample_type="None",
        ),
        make_diagnostic(
            "tft",
            name="Thyroid Function Test",
            category="endocrine",
            type="specialized",
            indications=["fatigue", "weight change"],
            cost=1200,
            accuracy=96,
            preparation_steps=["No special preparation"],
            sample_type="Venous blood",
        ),
        make_diagnostic(
            "fbs",
            name="Fasting Blood Sugar",
            indications=["diabetes"],
            cost=100,
            accuracy=98,
            priority="high",
            fasting=True,
            preparation_steps=["Fast for 8-10 hours"],
            sample_type="Venous blood",
        ),
        make_diagnostic(
            "mri",
            name="MRI Brain",
            category="neurological",
            type="specialized",
            indications=["headache", "seizure"],
            cost=8000,
            accuracy=97,
            priority="low",
            availability="limited",
            sample_type="None",
        ),
    ])


@pytest.fixture
def rules():
    from labwise.models import ScoringRules

    return ScoringRules()


@pytest.fixture
def adult_male():
    from labwise.models import PatientProfile

    return PatientProfile(age=30, gender="male")


@pytest.fixture
def advisor(small_catalog, rules):
    from labwise.engines import DiagnosticAdvisor

    return DiagnosticAdvisor(catalog=small_catalog, rules=rules)


@pytest.fixture(autouse=True)
def fresh_caches():
    """Loaded catalogs never leak between tests."""
    from labwise.engines import clear_caches

    clear_caches()
    yield
    clear_caches()
