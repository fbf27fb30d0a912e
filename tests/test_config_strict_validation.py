from __future__ import annotations

from pathlib import Path

import pytest

from extract.config import ConfigError, ExtractConfig, load_config


def _write_config(repo_root: Path, toml_content: str) -> None:
    (repo_root / "anchormap.toml").write_text(toml_content, encoding="utf-8")


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config == ExtractConfig()
    assert config.anchor_separator == "/"
    assert config.attribute_doc_policy == "broadcast"
    assert config.pragma_patterns == []
    assert config.include_private is True
    assert config.log_level == "INFO"


def test_valid_config_accepted(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
anchor_separator = "::"
attribute_doc_policy = "first"
pragma_patterns = ['^#\\s*@!macro', ':nodoc:']
include_private = false
log_level = "debug"
""".strip(),
    )

    config = load_config(tmp_path)

    assert config.anchor_separator == "::"
    assert config.attribute_doc_policy == "first"
    assert config.pragma_patterns == [r"^#\s*@!macro", ":nodoc:"]
    assert config.include_private is False
    assert config.log_level == "DEBUG"


def test_invalid_toml_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "anchor_separator = ")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(tmp_path)


def test_unknown_top_level_key_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "bogus_key = true")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "toml_content",
    [
        'anchor_separator = ""',
        'anchor_separator = "x"',
        'anchor_separator = "-1-"',
        'attribute_doc_policy = "all"',
        "pragma_patterns = ['(unclosed']",
        'log_level = "verbose"',
        'include_private = "sometimes"',
    ],
)
def test_invalid_values_rejected(tmp_path: Path, toml_content: str) -> None:
    _write_config(tmp_path, toml_content)

    with pytest.raises(ConfigError, match="Invalid config"):
        load_config(tmp_path)
