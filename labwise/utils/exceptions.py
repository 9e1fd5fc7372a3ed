"""
Exception hierarchy for Labwise.

Every error carries a machine-readable code and a details dict so the web
server can return it unchanged.
"""

from __future__ import annotations

from typing import Any


class LabwiseError(Exception):
    """Base exception for all Labwise errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class CatalogError(LabwiseError):
    """The test catalog or scoring rules could not be loaded."""

    def __init__(
        self,
        message: str,
        source: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code="CATALOG_ERROR",
            details={"source": source, **(details or {})},
        )
        self.source = source


class UnknownTestError(LabwiseError):
    """A test id is not part of the loaded catalog."""

    def __init__(self, test_id: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Unknown test: {test_id}",
            code="UNKNOWN_TEST",
            details={"test_id": test_id, **(details or {})},
        )
        self.test_id = test_id


class IntakeError(LabwiseError):
    """A free-text presentation could not be turned into a patient profile."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INTAKE_ERROR",
            details=details,
        )


class LLMError(LabwiseError):
    """The language model is not configured or returned no usable output."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="LLM_ERROR",
            details=details,
        )
