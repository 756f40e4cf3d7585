from __future__ import annotations

import json
from pathlib import Path

import pytest

from docassist.ingestion.ingest_file import main

from conftest import make_pdf


def test_writes_one_json_line_per_page(tmp_path: Path) -> None:
    source = tmp_path / "memo.pdf"
    source.write_bytes(make_pdf(["First sheet", None, "Third sheet"]))
    output = tmp_path / "out" / "memo.jsonl"

    assert main([str(source), "--output", str(output)]) == 0

    rows = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert [row["page_number"] for row in rows] == [1, 3]
    assert rows[0]["word_count"] == 2
    assert "regions" in rows[0]


def test_writes_to_stdout(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("línea única", encoding="utf-8")

    assert main([str(source)]) == 0

    row = json.loads(capsys.readouterr().out.strip())
    assert row == {
        "page_number": 1,
        "content": "línea única",
        "width": None,
        "height": None,
        "regions": [],
        "word_count": 2,
    }


def test_failure_returns_non_zero(tmp_path: Path) -> None:
    source = tmp_path / "deck.pptx"
    source.write_bytes(b"PK\x03\x04")

    assert main([str(source)]) == 1
    assert main([str(tmp_path / "missing.pdf")]) == 1
