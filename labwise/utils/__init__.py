"""
Utilities - logging and exception handling.
"""

from .logging import get_logger, parse_module_levels, setup_logging
from .exceptions import (
    LabwiseError,
    CatalogError,
    UnknownTestError,
    IntakeError,
    LLMError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "parse_module_levels",
    "LabwiseError",
    "CatalogError",
    "UnknownTestError",
    "IntakeError",
    "LLMError",
]
