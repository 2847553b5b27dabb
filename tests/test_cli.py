"""Tests for the CLI module."""

import json
import sys
from unittest.mock import patch

import pytest

from inlayhints import cli

SOURCE = """fn main() {
    let total = compute(first, second);
}
"""

FACTS = {"pats": {"total": "i64"}, "functions": {"compute": ["lhs: i64", "rhs: i64"]}}


def _run_cli(argv: list[str]) -> int:
    with patch.object(sys, "argv", ["inlayhints", *argv]):
        return cli.main()


@pytest.fixture
def sample_file(tmp_path):
    """Create a sample Rust file."""
    path = tmp_path / "main.rs"
    path.write_text(SOURCE, encoding="utf-8")
    return path


@pytest.fixture
def facts_file(tmp_path):
    path = tmp_path / "facts.json"
    path.write_text(json.dumps(FACTS), encoding="utf-8")
    return path


class TestHintsCommand:
    """Tests for the hints command."""

    def test_text_output(self, sample_file, facts_file, capsys):
        assert _run_cli(["hints", str(sample_file), "--facts", str(facts_file)]) == 0
        out = capsys.readouterr().out
        assert out.splitlines() == [
            f"{sample_file}:2:9 [type] i64",
            f"{sample_file}:2:25 [parameter] lhs",
            f"{sample_file}:2:32 [parameter] rhs",
        ]

    def test_json_output(self, sample_file, facts_file, capsys):
        assert cli.main(["hints", str(sample_file), "--facts", str(facts_file), "--json"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["file"] == str(sample_file)
        assert [(h["kind"], h["label"]) for h in output["hints"]] == [
            ("type", "i64"),
            ("parameter", "lhs"),
            ("parameter", "rhs"),
        ]
        first = output["hints"][0]
        assert SOURCE.encode()[first["start"] : first["end"]] == b"total"

    @pytest.mark.parametrize(
        "flag,kinds",
        [
            ("--no-type-hints", ["parameter", "parameter"]),
            ("--no-parameter-hints", ["type"]),
            ("--no-chaining-hints", ["type", "parameter", "parameter"]),
        ],
    )
    def test_disable_flags(self, sample_file, facts_file, capsys, flag, kinds):
        cli.main(["hints", str(sample_file), "--facts", str(facts_file), "--json", flag])
        output = json.loads(capsys.readouterr().out)
        assert [h["kind"] for h in output["hints"]] == kinds

    def test_max_length(self, sample_file, facts_file, capsys):
        cli.main(["hints", str(sample_file), "--facts", str(facts_file), "--json", "--max-length", "2"])
        output = json.loads(capsys.readouterr().out)
        assert [h["label"] for h in output["hints"]] == ["i…", "l…", "r…"]

    def test_negative_max_length_is_rejected(self, sample_file):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["hints", str(sample_file), "--max-length", "-1"])
        assert exc_info.value.code == 2

    def test_config_file_and_environment(self, sample_file, facts_file, tmp_path, monkeypatch, capsys):
        config = tmp_path / "hints.json"
        config.write_text(json.dumps({"parameter_hints": False}))
        monkeypatch.setenv("INLAYHINTS_MAX_LENGTH", "2")
        cli.main(
            ["hints", str(sample_file), "--facts", str(facts_file), "--json", "--config", str(config)]
        )
        output = json.loads(capsys.readouterr().out)
        assert [h["label"] for h in output["hints"]] == ["i…"]

    def test_command_line_wins_over_config(self, sample_file, facts_file, monkeypatch, capsys):
        monkeypatch.setenv("INLAYHINTS_MAX_LENGTH", "2")
        cli.main(
            ["hints", str(sample_file), "--facts", str(facts_file), "--json", "--max-length", "10"]
        )
        output = json.loads(capsys.readouterr().out)
        assert output["hints"][0]["label"] == "i64"

    def test_without_facts_there_are_no_hints(self, sample_file, capsys):
        assert cli.main(["hints", str(sample_file)]) == 0
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path, capsys):
        assert cli.main(["hints", str(tmp_path / "absent.rs")]) == 1
        assert "cannot read" in capsys.readouterr().err

    @pytest.mark.parametrize("content", ["{broken", json.dumps({"bogus": {}})])
    def test_bad_facts_file(self, sample_file, tmp_path, capsys, content):
        facts = tmp_path / "bad.json"
        facts.write_text(content)
        assert cli.main(["hints", str(sample_file), "--facts", str(facts)]) == 1
        assert "cannot load facts" in capsys.readouterr().err

    def test_missing_facts_file(self, sample_file, tmp_path, capsys):
        assert cli.main(["hints", str(sample_file), "--facts", str(tmp_path / "none.json")]) == 1
        assert "cannot load facts" in capsys.readouterr().err


class TestTreeCommand:
    """Tests for the tree command."""

    def test_tree(self, sample_file, capsys):
        assert _run_cli(["tree", str(sample_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("SOURCE_FILE@")
        assert "LET_STMT@" in out
        assert "WHITESPACE@" not in out

    def test_tree_with_trivia(self, sample_file, capsys):
        cli.main(["tree", str(sample_file), "--trivia"])
        assert "WHITESPACE@" in capsys.readouterr().out

    def test_tree_missing_file(self, tmp_path):
        assert cli.main(["tree", str(tmp_path / "absent.rs")]) == 1


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage:" in capsys.readouterr().out
