from __future__ import annotations

import json
from pathlib import Path

from extract import extract
from symbols.utils import dump_jsonl, load_jsonl, write_jsonl

FIXTURE = Path(__file__).parent / "fixtures" / "sample_ruby_file.rb"


def _read_jsonl(path: Path) -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line:
            out.append(json.loads(line))
    return out


def test_write_jsonl_one_sorted_record_per_symbol(tmp_path: Path) -> None:
    symbols = extract(FIXTURE.read_text(encoding="utf-8"), "ruby")
    out_path = tmp_path / "symbols.jsonl"

    write_jsonl(out_path, symbols)

    records = _read_jsonl(out_path)
    assert len(records) == len(symbols)
    assert all(list(record) == sorted(record) for record in records)
    assert records[0]["anchor"] == "mymodule"
    assert records[1]["path"] == ["MyModule", "PI"]
    assert records[1]["value"] == "3.142"
    assert out_path.read_bytes() == dump_jsonl(symbols)


def test_load_jsonl_restores_symbols(tmp_path: Path) -> None:
    symbols = extract(FIXTURE.read_text(encoding="utf-8"), "ruby")
    out_path = tmp_path / "symbols.jsonl"
    write_jsonl(out_path, symbols)

    assert load_jsonl(out_path) == symbols


def test_dump_jsonl_is_byte_identical_across_runs() -> None:
    source = FIXTURE.read_text(encoding="utf-8")

    assert dump_jsonl(extract(source, "ruby")) == dump_jsonl(extract(source, "ruby"))


def test_dump_jsonl_empty() -> None:
    assert dump_jsonl([]) == b""
