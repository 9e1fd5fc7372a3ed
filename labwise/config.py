"""
Runtime settings for Labwise.

Settings come from environment variables; every value has a default so the
advisor works out of the box with the bundled knowledge base.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from knowledge.diagnostics import DIAGNOSTICS_DIR
from labwise.utils.logging import parse_module_levels

DEFAULT_KNOWLEDGE_DIR = DIAGNOSTICS_DIR.parent


class Settings(BaseModel):
    """Environment-driven configuration."""
    knowledge_dir: Path = Field(
        default=DEFAULT_KNOWLEDGE_DIR,
        description="Directory holding diagnostics/catalog.yaml and diagnostics/scoring.yaml",
    )
    log_level: str = "INFO"
    log_file: str | None = None
    log_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-logger level overrides from LABWISE_LOG_LEVELS (name=LEVEL,...)",
    )
    recommendation_limit: int | None = Field(
        default=None,
        ge=1,
        description="Overrides the cap from scoring.yaml when set",
    )
    anthropic_api_key: str | None = None

    @property
    def catalog_path(self) -> Path:
        return self.knowledge_dir / "diagnostics" / "catalog.yaml"

    @property
    def scoring_path(self) -> Path:
        return self.knowledge_dir / "diagnostics" / "scoring.yaml"

    @property
    def llm_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from LABWISE_* environment variables."""
        params: dict = {}

        knowledge_dir = os.environ.get("LABWISE_KNOWLEDGE_DIR")
        if knowledge_dir:
            params["knowledge_dir"] = Path(knowledge_dir)

        log_level = os.environ.get("LABWISE_LOG_LEVEL")
        if log_level:
            params["log_level"] = log_level

        log_file = os.environ.get("LABWISE_LOG_FILE")
        if log_file:
            params["log_file"] = log_file

        log_levels = os.environ.get("LABWISE_LOG_LEVELS")
        if log_levels:
            params["log_levels"] = parse_module_levels(log_levels)

        limit = os.environ.get("LABWISE_RECOMMENDATION_LIMIT")
        if limit:
            params["recommendation_limit"] = int(limit)

        params["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        return cls(**params)
