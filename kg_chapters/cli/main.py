# kg_chapters/cli/main.py

from __future__ import annotations

import typer
from kg_chapters.cli import extract_cli

app = typer.Typer(help="CLI tools for chapter concept graphs.")

app.add_typer(extract_cli.app, name="concepts")

if __name__ == "__main__":
    app()
