# tests/test_cli.py

import json

from typer.testing import CliRunner

from kg_chapters.cli.main import app as cli_app

runner = CliRunner()


def write_chapter(tmp_path, text):
    path = tmp_path / "chapter.md"
    path.write_text(text, encoding="utf-8")
    return path


def test_extract_json(tmp_path, chapter_text):
    path = write_chapter(tmp_path, chapter_text)

    result = runner.invoke(cli_app, ["concepts", "extract", str(path), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    names = [c["name"].lower() for c in payload["concepts"]]
    assert "osmosis" in names
    assert sorted(payload["sequence"]) == sorted(c["id"] for c in payload["concepts"])


def test_extract_table(tmp_path, chapter_text):
    path = write_chapter(tmp_path, chapter_text)

    result = runner.invoke(cli_app, ["concepts", "extract", str(path)])

    assert result.exit_code == 0, result.output
    assert "concepts," in result.output


def test_extract_with_library(tmp_path, chapter_text):
    path = write_chapter(tmp_path, chapter_text)
    library = tmp_path / "biology.json"
    library.write_text(json.dumps([{"name": "Osmosis", "description": "Water crossing a membrane"}]))

    result = runner.invoke(cli_app, ["concepts", "extract", str(path), "--library", str(library), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [c["id"] for c in payload["concepts"]] == ["biology-osmosis"]
    assert payload["concepts"][0]["definition"] == "Water crossing a membrane"


def test_prereqs(tmp_path, chapter_text):
    path = write_chapter(tmp_path, chapter_text)

    result = runner.invoke(cli_app, ["concepts", "prereqs", str(path)])

    assert result.exit_code == 0, result.output
    assert "1." in result.output
    assert "Osmosis" in result.output


def test_missing_file(tmp_path):
    result = runner.invoke(cli_app, ["concepts", "extract", str(tmp_path / "nope.md")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_invalid_library_is_a_usage_error(tmp_path, chapter_text):
    path = write_chapter(tmp_path, chapter_text)
    library = tmp_path / "broken.json"
    library.write_text("{not json")

    result = runner.invoke(cli_app, ["concepts", "extract", str(path), "--library", str(library)])

    assert result.exit_code == 2
