"""
Diagnostic test catalog and scoring rules (YAML).
"""

from pathlib import Path

DIAGNOSTICS_DIR = Path(__file__).parent
CATALOG_FILE = DIAGNOSTICS_DIR / "catalog.yaml"
SCORING_FILE = DIAGNOSTICS_DIR / "scoring.yaml"

__all__ = ["DIAGNOSTICS_DIR", "CATALOG_FILE", "SCORING_FILE"]
