"""
JSON exporter for Labwise.

Exports recommendation passes and order summaries as clean JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from labwise.models import OrderSummary, RecommendationSet


def _write(json_str: str, output_path: Path | None) -> None:
    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json_str, encoding="utf-8")


def export_json(
    result: RecommendationSet,
    order: OrderSummary | None = None,
    output_path: Path | None = None,
    indent: int = 2,
    include_nulls: bool = False,
) -> str:
    """
    Export a recommendation pass (and optionally the order) to JSON.

    Args:
        result: The recommendation pass to export
        order: Optional order summary to include under "order"
        output_path: Optional path to write the JSON file
        indent: JSON indentation level
        include_nulls: Whether to include null values in output

    Returns:
        JSON string
    """
    data = result.model_dump(mode="json", exclude_none=not include_nulls)
    if order is not None:
        data["order"] = order.model_dump(mode="json", exclude_none=not include_nulls)

    json_str = json.dumps(data, indent=indent, ensure_ascii=False)
    _write(json_str, output_path)
    return json_str


def export_json_summary(result: RecommendationSet) -> dict[str, Any]:
    """
    Compact summary of a pass, one row per recommended test.
    """
    return {
        "request_id": result.request_id,
        "urgency": result.urgency.value,
        "diagnosis": result.diagnosis,
        "symptoms": list(result.symptoms),
        "count": result.count,
        "recommendations": [
            {
                "id": rec.test.id,
                "name": rec.test.name,
                "category": rec.test.category.value,
                "relevance_score": rec.relevance_score,
                "cost_effectiveness": round(rec.cost_effectiveness, 3),
                "cost": rec.test.cost,
            }
            for rec in result.recommendations
        ],
        "generated_at": result.generated_at.isoformat(),
    }
