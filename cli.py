#!/usr/bin/env python3
"""
Labwise CLI

Command-line interface for browsing the diagnostic test catalog and getting
test recommendations for a patient presentation.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

console = Console()


def setup_paths():
    """Add the project root to sys.path for imports."""
    root = Path(__file__).parent
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


setup_paths()


URGENCY_STYLES = {
    "immediate": "bold red",
    "within_24h": "dark_orange",
    "within_week": "yellow",
    "routine": "green",
}

AVAILABILITY_STYLES = {
    "available": "green",
    "limited": "yellow",
    "unavailable": "red",
}


def _split_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _load_advisor():
    from labwise.config import Settings
    from labwise.engines import DiagnosticAdvisor
    from labwise.utils import CatalogError

    settings = Settings.from_env()
    try:
        return settings, DiagnosticAdvisor.from_settings(settings)
    except CatalogError as e:
        console.print(f"[red]Could not load the knowledge base: {e.message}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="labwise")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """
    Labwise - Diagnostic Test Advisor

    Recommend, compare and select diagnostic tests for a patient's
    symptoms and stated diagnosis.
    """
    from labwise.config import Settings
    from labwise.utils import setup_logging

    settings = Settings.from_env()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file, settings.log_levels)


@cli.command()
@click.option("--age", type=int, help="Patient age in years")
@click.option("--gender", type=click.Choice(["male", "female", "other"]), help="Patient gender")
@click.option("--symptoms", "-s", type=str, help="Comma-separated list of symptoms")
@click.option("--diagnosis", type=str, help="Stated or suspected diagnosis")
@click.option("--describe", "-d", type=str, help="Natural language description of the patient")
@click.option("--no-llm", is_flag=True, help="Parse --describe without the LLM")
@click.option("--select", "select_ids", type=str, multiple=True, help="Test id to add to the order (repeatable)")
@click.option("--format", "fmt", type=click.Choice(["table", "json", "markdown"]), default="table",
              help="Output format")
@click.option("--output", "-o", type=click.Path(), help="Write JSON or Markdown output to a file")
def recommend(
    age: Optional[int],
    gender: Optional[str],
    symptoms: Optional[str],
    diagnosis: Optional[str],
    describe: Optional[str],
    no_llm: bool,
    select_ids: tuple,
    fmt: str,
    output: Optional[str],
):
    """
    Recommend diagnostic tests for a patient.

    Examples:

        labwise recommend --age 30 --gender male --symptoms fever

        labwise recommend --age 50 -s "chest pain" --select 5 --select 9

        labwise recommend -d "45 year old woman with fatigue, suspected hypothyroidism" --no-llm
    """
    from labwise.exporters import export_json, export_markdown
    from labwise.intake import build_vocabulary, parse_presentation
    from labwise.models import PatientProfile
    from labwise.utils import LabwiseError

    settings, advisor = _load_advisor()

    params = {"age": None, "gender": None, "symptoms": [], "diagnosis": ""}

    # If --describe is provided, parse it to extract parameters
    if describe:
        if fmt == "table":
            console.print(f"[dim]Parsing description: \"{describe}\"[/dim]")
        vocabulary = build_vocabulary(advisor.catalog, advisor.engine.rules)
        try:
            parsed = parse_presentation(
                describe,
                vocabulary=vocabulary,
                use_llm=not no_llm and settings.llm_enabled,
            )
        except LabwiseError as e:
            console.print(f"[red]{e.message}[/red]")
            sys.exit(1)

        params.update(
            age=parsed.age,
            gender=parsed.gender.value if parsed.gender else None,
            symptoms=parsed.symptoms,
            diagnosis=parsed.diagnosis,
        )
        if fmt == "table":
            console.print(
                f"[dim]  -> age: {parsed.age}, gender: {params['gender']}, "
                f"symptoms: {parsed.symptoms}, diagnosis: {parsed.diagnosis!r}[/dim]"
            )

    # Explicit options override parsed values
    if age is not None:
        params["age"] = age
    if gender:
        params["gender"] = gender
    if symptoms:
        params["symptoms"] = _split_list(symptoms)
    if diagnosis:
        params["diagnosis"] = diagnosis

    if params["age"] is None:
        console.print("[red]Patient age is required (use --age or --describe)[/red]")
        sys.exit(1)

    patient = PatientProfile(
        age=params["age"],
        gender=params["gender"],
        symptoms=params["symptoms"],
    )
    result = advisor.recommend(patient, diagnosis=params["diagnosis"])

    try:
        for test_id in select_ids:
            advisor.select_test(test_id)
    except LabwiseError as e:
        console.print(f"[red]{e.message}[/red]")
        sys.exit(1)

    order = advisor.order_summary() if select_ids else None

    if fmt == "json":
        json_str = export_json(result, order=order, output_path=Path(output) if output else None)
        if output:
            console.print(f"[green]✓ Exported to {output}[/green]")
        else:
            click.echo(json_str)
        return

    if fmt == "markdown":
        markdown = export_markdown(result, patient=patient, order=order,
                                   output_path=Path(output) if output else None)
        if output:
            console.print(f"[green]✓ Exported to {output}[/green]")
        else:
            click.echo(markdown)
        return

    _print_recommendations(result)
    if order is not None:
        _print_order(order)


def _print_recommendations(result) -> None:
    from labwise.models import URGENCY_LABELS

    style = URGENCY_STYLES[result.urgency.value]
    console.print()
    console.print(Panel(
        f"Urgency: [{style}]{URGENCY_LABELS[result.urgency]}[/{style}]\n"
        f"Symptoms: {', '.join(result.symptoms) or 'none'}\n"
        f"Diagnosis: {result.diagnosis or 'not stated'}",
        title="Presentation",
        border_style="blue",
    ))

    if not result.recommendations:
        console.print("[yellow]No test suggestions are available for this presentation.[/yellow]")
        return

    table = Table(title="Recommended Tests")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Category")
    table.add_column("Relevance", justify="right")
    table.add_column("Cost-eff.", justify="right")
    table.add_column("Cost", justify="right", style="green")
    table.add_column("Why")

    for i, rec in enumerate(result.recommendations, 1):
        table.add_row(
            str(i),
            rec.test.id,
            rec.test.name,
            rec.test.category.value,
            f"{rec.relevance_score:g}",
            f"{rec.cost_effectiveness:.2f}",
            f"{rec.test.cost:g}",
            rec.reasoning,
        )

    console.print(table)


def _print_order(order) -> None:
    tree = Tree(f"[bold]Order[/bold] ({order.count} tests, total {order.total_cost:g})")
    for test in order.tests:
        tree.add(f"{test.name} [dim]({test.sample_type})[/dim]")
    console.print(tree)

    if order.fasting_required:
        console.print("[yellow]Fasting is required for at least one selected test.[/yellow]")
    if order.preparation_steps:
        prep = Tree("[bold]Preparation[/bold]")
        for step in order.preparation_steps:
            prep.add(step)
        console.print(prep)


@cli.command()
@click.option("--search", type=str, default="", help="Search name, localized name and description")
@click.option("--category", type=str, default="all",
              help="blood, urine, imaging, cardiac, neurological, endocrine, other or all")
@click.option("--type", "test_type", type=str, default="all", help="routine, specialized, emergency or all")
@click.option("--sort", "sort_key", type=str, default="relevance", help="relevance, cost, priority or accuracy")
@click.option("--cost-min", type=float, default=0, help="Minimum cost (inclusive)")
@click.option("--cost-max", type=float, default=10000, help="Maximum cost (inclusive)")
def catalog(search: str, category: str, test_type: str, sort_key: str, cost_min: float, cost_max: float):
    """
    Browse the full test catalog.

    Example:

        labwise catalog --category blood --sort cost
    """
    from labwise.models import FilterParams

    _, advisor = _load_advisor()

    params = FilterParams(
        search_text=search,
        category=category,
        type=test_type,
        sort_key=sort_key,
        cost_min=cost_min,
        cost_max=cost_max,
        only_recommended=False,
    )
    tests = advisor.view_tests(params)

    if not tests:
        console.print("[yellow]No tests match these filters[/yellow]")
        return

    table = Table(title=f"Test Catalog ({len(tests)} tests)")
    table.add_column("ID", style="cyan")
    table.add_column("Test")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Accuracy", justify="right")
    table.add_column("Cost", justify="right", style="green")
    table.add_column("Availability")

    for t in tests:
        avail_style = AVAILABILITY_STYLES[t.availability.value]
        table.add_row(
            t.id,
            t.name,
            t.category.value,
            t.type.value,
            t.priority.value,
            f"{t.accuracy:g}%",
            f"{t.cost:g}",
            f"[{avail_style}]{t.availability.value}[/{avail_style}]",
        )

    console.print(table)


@cli.command()
@click.argument("test_id")
def show(test_id: str):
    """
    Show the details of one test.

    Example:

        labwise show 5
    """
    from labwise.utils import UnknownTestError

    _, advisor = _load_advisor()

    try:
        t = advisor.get_test(test_id)
    except UnknownTestError as e:
        console.print(f"[red]{e.message}[/red]")
        sys.exit(1)

    console.print()
    console.print(Panel(
        f"[bold]{t.name}[/bold]\n"
        f"{t.localized_name}\n\n"
        f"{t.description}\n\n"
        f"Category: {t.category.value}   Type: {t.type.value}   Priority: {t.priority.value}\n"
        f"Cost: {t.cost:g}   Accuracy: {t.accuracy:g}%\n"
        f"Duration: {t.duration}   Report: {t.report_time}\n"
        f"Sample: {t.sample_type}   Fasting: {'required' if t.fasting else 'not required'}\n"
        f"Urgency class: {t.urgency_class.value}   Availability: {t.availability.value}",
        title=f"Test {t.id}",
        border_style="blue",
    ))

    for title, items in (
        ("Preparation", t.preparation_steps),
        ("Indications", t.indications),
        ("Contraindications", t.contraindications),
        ("Lab requirements", t.lab_requirements),
    ):
        if items:
            tree = Tree(f"[bold]{title}[/bold]")
            for item in items:
                tree.add(item)
            console.print(tree)

    if t.normal_range:
        console.print(f"\n[bold]Normal range:[/bold] {t.normal_range}")
    if t.clinical_significance:
        console.print(f"[bold]Clinical significance:[/bold] {t.clinical_significance}")


@cli.command()
def info():
    """
    Show information about Labwise.
    """
    console.print(Panel(
        "[bold]Labwise[/bold]\n\n"
        "A diagnostic test advisor that:\n"
        "• Scores tests against symptoms, diagnosis and demographics\n"
        "• Ranks the most relevant tests with their reasoning\n"
        "• Filters and sorts the catalog by cost, priority and accuracy\n\n"
        "[dim]Relevance and cost-effectiveness are ranking aids,[/dim]\n"
        "[dim]not clinical probabilities.[/dim]",
        title="About",
        border_style="blue",
    ))

    console.print("\n[bold]Quick Start:[/bold]")
    console.print("  labwise recommend --age 30 --symptoms fever")
    console.print("  labwise catalog --category cardiac --sort cost")
    console.print("  labwise show 5")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
