"""
Test catalog loading.

The catalog and the scoring rules live as YAML in the knowledge base. Both
are validated into Pydantic models once and cached per file path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import yaml
from pydantic import ValidationError

from knowledge.diagnostics import CATALOG_FILE, SCORING_FILE
from labwise.models import DiagnosticTest, ScoringRules
from labwise.utils import CatalogError, UnknownTestError, get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = CATALOG_FILE
DEFAULT_SCORING_PATH = SCORING_FILE


class DiagnosticCatalog:
    """
    Immutable, ordered collection of diagnostic tests.

    Iteration order is the catalog order, which every stable sort in the
    advisor falls back to for ties.
    """

    def __init__(self, tests: list[DiagnosticTest] | tuple[DiagnosticTest, ...]):
        self._tests = tuple(tests)
        self._by_id: dict[str, DiagnosticTest] = {}

        for test in self._tests:
            if test.id in self._by_id:
                raise CatalogError(
                    f"Duplicate test id in catalog: {test.id}",
                    details={"test_id": test.id},
                )
            self._by_id[test.id] = test

    def __iter__(self) -> Iterator[DiagnosticTest]:
        return iter(self._tests)

    def __len__(self) -> int:
        return len(self._tests)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._by_id

    @property
    def tests(self) -> list[DiagnosticTest]:
        return list(self._tests)

    @property
    def ids(self) -> list[str]:
        return [t.id for t in self._tests]

    def get(self, test_id: str) -> DiagnosticTest | None:
        return self._by_id.get(test_id)

    def require(self, test_id: str) -> DiagnosticTest:
        """Get a test by id, raising UnknownTestError if it is not in the catalog."""
        test = self._by_id.get(test_id)
        if test is None:
            raise UnknownTestError(test_id)
        return test

    @classmethod
    def from_dicts(cls, entries: list[dict]) -> DiagnosticCatalog:
        """Build a catalog from raw dicts, validating every entry."""
        tests = []
        for index, entry in enumerate(entries):
            try:
                tests.append(DiagnosticTest.model_validate(entry))
            except ValidationError as e:
                raise CatalogError(
                    f"Invalid catalog entry at position {index}: {e.error_count()} error(s)",
                    details={"position": index, "errors": e.errors(include_url=False, include_context=False)},
                ) from e
        return cls(tests)


# Loaded files, keyed by resolved path
_catalog_cache: dict[Path, DiagnosticCatalog] = {}
_rules_cache: dict[Path, ScoringRules] = {}


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f"Could not parse {path.name}: {e}", source=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CatalogError(f"Expected a mapping at the top of {path.name}", source=str(path))
    return data


def load_catalog(path: Path | None = None, use_cache: bool = True) -> DiagnosticCatalog:
    """
    Load the diagnostic test catalog from YAML.

    Args:
        path: Catalog file; defaults to the bundled knowledge base
        use_cache: Reuse and remember the catalog loaded for the same path;
            an uncached load leaves the shared instance alone

    Raises:
        CatalogError: the file is missing, unparsable or violates an invariant
    """
    path = (path or DEFAULT_CATALOG_PATH).resolve()

    if use_cache and path in _catalog_cache:
        return _catalog_cache[path]

    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}", source=str(path))

    data = _read_yaml(path)
    entries = data.get("tests") or []
    if not isinstance(entries, list):
        raise CatalogError("'tests' must be a list", source=str(path))

    try:
        catalog = DiagnosticCatalog.from_dicts(entries)
    except CatalogError as e:
        e.details["source"] = str(path)
        raise

    logger.info("Loaded %d diagnostic tests from %s", len(catalog), path.name)
    if use_cache:
        _catalog_cache[path] = catalog
    return catalog


def load_scoring_rules(path: Path | None = None, use_cache: bool = True) -> ScoringRules:
    """
    Load the scoring rules from YAML.

    A missing rules file is not an error: the model defaults reproduce the
    standard weights, urgency tiers and demographic bonuses.
    """
    path = (path or DEFAULT_SCORING_PATH).resolve()

    if use_cache and path in _rules_cache:
        return _rules_cache[path]

    if path.exists():
        data = _read_yaml(path)
        try:
            rules = ScoringRules.model_validate(data)
        except ValidationError as e:
            raise CatalogError(
                f"Invalid scoring rules: {e.error_count()} error(s)",
                source=str(path),
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
    else:
        logger.warning("Scoring rules not found at %s, using defaults", path)
        rules = ScoringRules()

    if use_cache:
        _rules_cache[path] = rules
    return rules


def clear_caches() -> None:
    """Forget every loaded catalog and rule set."""
    _catalog_cache.clear()
    _rules_cache.clear()
