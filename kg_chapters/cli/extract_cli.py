from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from kg_chapters.documents import sections_from_markdown
from kg_chapters.graph.builder import prerequisite_order
from kg_chapters.models.concept import ConceptGraph
from kg_chapters.models.library import ConceptLibrary, load_library
from kg_chapters.models.section import Section
from kg_chapters.nlp.concept_extraction import ConceptExtractor, ExtractionMode

app = typer.Typer(
    help="Extract concept graphs from chapter text files."
)

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_text(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


def _load_sections(text: str, sections_file: Optional[Path]) -> List[Section]:
    """
    Sections from a JSON file (list of {"heading": ...} objects) or, when
    no file is given, from Markdown headings in the text.
    """
    if sections_file is None:
        return sections_from_markdown(text)

    try:
        raw = json.loads(sections_file.read_text(encoding="utf-8"))
        return [Section(**item) for item in raw]
    except (OSError, ValueError, TypeError) as exc:
        raise typer.BadParameter(f"Could not read sections from {sections_file}: {exc}")


def _load_library(library_file: Optional[Path]) -> Optional[ConceptLibrary]:
    if library_file is None:
        return None
    try:
        return load_library(library_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _run_extraction(
    file: Path,
    library_file: Optional[Path],
    domain: Optional[str],
    sections_file: Optional[Path],
    mode: ExtractionMode,
) -> ConceptGraph:
    text = _read_text(file)
    sections = _load_sections(text, sections_file)
    extractor = ConceptExtractor(
        library=_load_library(library_file),
        domain=domain,
        mode=mode,
    )
    return extractor.extract(text, sections)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("extract")
def extract(
    file: Path = typer.Argument(..., help="Plain-text or Markdown chapter file."),
    library_file: Optional[Path] = typer.Option(
        None, "--library", "-l", help="JSON concept library (enables library-guided mode)."
    ),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain of the library."),
    sections_file: Optional[Path] = typer.Option(
        None, "--sections", help="JSON list of sections; defaults to Markdown headings."
    ),
    mode: ExtractionMode = typer.Option(ExtractionMode.AUTO, "--mode", help="Extraction mode."),
    as_json: bool = typer.Option(False, "--json", help="Print the full graph as JSON."),
    limit: int = typer.Option(25, "--limit", "-n", help="Max concepts to show in the table."),
) -> None:
    """
    Extract concepts, mentions and relationships from FILE.
    """
    graph = _run_extraction(file, library_file, domain, sections_file, mode)

    if as_json:
        typer.echo(graph.model_dump_json(indent=2))
        return

    if not graph.concepts:
        console.print("[yellow]No concepts found.[/yellow]")
        return

    table = Table(title=f"Concepts in {file.name}")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Tier")
    table.add_column("Mentions", justify="right")
    table.add_column("First @", justify="right")
    table.add_column("Definition")

    for concept in sorted(graph.concepts, key=lambda c: -c.mention_count)[:limit]:
        table.add_row(
            concept.id,
            concept.name,
            concept.importance.value,
            str(concept.mention_count),
            str(concept.first_mention_position),
            concept.definition[:60],
        )

    console.print(table)
    console.print(
        f"{len(graph.concepts)} concepts, {len(graph.relationships)} relationships"
    )


@app.command("prereqs")
def prereqs(
    file: Path = typer.Argument(..., help="Plain-text or Markdown chapter file."),
    library_file: Optional[Path] = typer.Option(None, "--library", "-l"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d"),
    sections_file: Optional[Path] = typer.Option(None, "--sections"),
    mode: ExtractionMode = typer.Option(ExtractionMode.AUTO, "--mode"),
) -> None:
    """
    Print a learning order for the concepts of FILE.
    """
    graph = _run_extraction(file, library_file, domain, sections_file, mode)
    by_id = graph.by_id()

    if not graph.concepts:
        console.print("[yellow]No concepts found.[/yellow]")
        return

    for i, concept_id in enumerate(prerequisite_order(graph), start=1):
        concept = by_id[concept_id]
        needs = ", ".join(by_id[p].name for p in concept.prerequisites if p in by_id)
        suffix = f"  [dim](after: {needs})[/dim]" if needs else ""
        console.print(f"{i:>3}. {concept.name}{suffix}")
