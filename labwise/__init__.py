"""
Labwise - diagnostic test advisor.

Scores a catalog of diagnostic tests against a patient presentation, ranks
the relevant ones and lets callers browse, filter and select tests to order.
"""

__version__ = "0.1.0"
