"""
Labwise knowledge base.

Contains static clinical data:
- Diagnostic test catalog
- Relevance scoring rules (weights, urgency tiers, demographic bonuses)
"""
