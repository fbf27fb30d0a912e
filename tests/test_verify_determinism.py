from __future__ import annotations

from pathlib import Path

import pytest

from extract import UnsupportedLanguageError, extract
from extract.config import ExtractConfig
from symbols.models.symbols import Symbol
from verify.verify import DeterminismResult, verify_determinism

FIXTURE = Path(__file__).parent / "fixtures" / "sample_ruby_file.rb"


def test_verify_determinism_fixture_ok() -> None:
    result = verify_determinism(FIXTURE.read_text(encoding="utf-8"), "ruby")

    assert result == DeterminismResult(ok=True)


def test_verify_determinism_with_config() -> None:
    config = ExtractConfig(anchor_separator=".", include_private=False)

    result = verify_determinism("module A\n  private\n  def x; end\nend\n", "ruby", config)

    assert result.ok is True


def test_verify_determinism_unsupported_language() -> None:
    with pytest.raises(UnsupportedLanguageError):
        verify_determinism("fn main() {}", "rust")


def test_verify_determinism_reports_sorted_differences(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    source = "module M\n  A = 1\n  B = 2\nend\n"
    baseline = extract(source, "ruby")

    def _changed() -> list[Symbol]:
        module, a, b = extract(source, "ruby")
        return [
            module,
            a.model_copy(update={"value": "changed"}),
            b.model_copy(update={"anchor": "m/b-constant"}),
        ]

    runs = iter([baseline, _changed()])

    def _fake_extract(*_args: object, **_kwargs: object) -> list[Symbol]:
        return next(runs)

    monkeypatch.setattr("verify.verify.extract", _fake_extract)

    result = verify_determinism(source, "ruby")

    assert result == DeterminismResult(
        ok=False,
        mismatches=("m/a",),
        missing=("m/b",),
        extra=("m/b-constant",),
    )


def test_verify_determinism_reports_reordering(monkeypatch: pytest.MonkeyPatch) -> None:
    source = "A = 1\nB = 2\n"
    baseline = extract(source, "ruby")
    runs = iter([baseline, list(reversed(baseline))])

    monkeypatch.setattr("verify.verify.extract", lambda *_a, **_k: next(runs))

    result = verify_determinism(source, "ruby")

    assert result.ok is False
    assert result.mismatches == ("a", "b")
