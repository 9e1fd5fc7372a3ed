"""
Markdown exporter for Labwise.

Renders a recommendation pass and the current order as a readable report.
"""

from __future__ import annotations

from pathlib import Path

from labwise.models import (
    AVAILABILITY_LABELS,
    URGENCY_LABELS,
    OrderSummary,
    PatientProfile,
    RecommendationSet,
)


def _format_cost(cost: float) -> str:
    return f"{cost:,.0f}" if float(cost).is_integer() else f"{cost:,.2f}"


def export_markdown(
    result: RecommendationSet,
    patient: PatientProfile | None = None,
    order: OrderSummary | None = None,
    output_path: Path | None = None,
) -> str:
    """
    Export a recommendation pass to Markdown.

    Args:
        result: The recommendation pass
        patient: Optional patient profile for the header
        order: Optional order summary appended as its own section
        output_path: Optional path to write the Markdown file

    Returns:
        Markdown string
    """
    lines = []

    lines.append("# Diagnostic Test Recommendations")
    lines.append("")
    lines.append(f"**Generated:** {result.generated_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append(f"**Urgency:** {URGENCY_LABELS[result.urgency]}")
    lines.append("")

    lines.append("## Presentation")
    lines.append("")
    if patient:
        lines.append(f"- **Age:** {patient.age}")
        lines.append(f"- **Gender:** {patient.gender.value.title()}")
    lines.append(f"- **Symptoms:** {', '.join(result.symptoms) if result.symptoms else 'None reported'}")
    lines.append(f"- **Diagnosis:** {result.diagnosis or 'Not stated'}")
    lines.append("")

    lines.append("## Recommended Tests")
    lines.append("")
    if not result.recommendations:
        lines.append("*No test suggestions are available for this presentation.*")
        lines.append("")
    else:
        lines.append("| # | Test | Category | Relevance | Cost | Availability |")
        lines.append("|---|------|----------|-----------|------|--------------|")
        for i, rec in enumerate(result.recommendations, 1):
            t = rec.test
            lines.append(
                f"| {i} | {t.name} | {t.category.value} | {rec.relevance_score:g} | "
                f"{_format_cost(t.cost)} | {AVAILABILITY_LABELS[t.availability]} |"
            )
        lines.append("")

        for rec in result.recommendations:
            lines.append(f"### {rec.test.name}")
            lines.append("")
            if rec.test.localized_name:
                lines.append(f"*{rec.test.localized_name}*")
                lines.append("")
            lines.append(rec.reasoning)
            lines.append("")
            lines.append(f"- **Report time:** {rec.test.report_time or 'n/a'}")
            lines.append(f"- **Fasting:** {'Required' if rec.test.fasting else 'Not required'}")
            if rec.test.contraindications:
                lines.append(f"- **Contraindications:** {', '.join(rec.test.contraindications)}")
            lines.append("")

    if order is not None:
        lines.extend(_order_section(order))

    markdown = "\n".join(lines)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(markdown, encoding="utf-8")

    return markdown


def _order_section(order: OrderSummary) -> list[str]:
    lines = ["## Order", ""]

    if not order.tests:
        lines.append("*No tests selected.*")
        lines.append("")
        return lines

    for t in order.tests:
        lines.append(f"- {t.name} ({_format_cost(t.cost)})")
    lines.append("")
    lines.append(f"**Total cost:** {_format_cost(order.total_cost)}")
    lines.append(f"**Fasting required:** {'Yes' if order.fasting_required else 'No'}")
    lines.append("")

    if order.preparation_steps:
        lines.append("### Preparation")
        lines.append("")
        for step in order.preparation_steps:
            lines.append(f"- {step}")
        lines.append("")

    return lines
