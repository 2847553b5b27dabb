"""Tests for the hint traversal driver."""

import logging

import pytest

from inlayhints.base import Hint, HintKind
from inlayhints.config import HintConfig
from inlayhints.hints import inlay_hints, inlay_hints_for_source
from inlayhints.languages.rust import parse_rust
from inlayhints.semantics import SemanticError, SemanticModel
from inlayhints.snapshot import SemanticSnapshot
from inlayhints.syntax import SyntaxKind

from tests.helpers import range_of

MIXED_SOURCE = """
fn main() {
    let total = compute(first, second);
    let items = source()
        .collect();
}"""

MIXED_FACTS = {
    "pats": {"total": "Summary<Vec<i64>>", "items": "Vec<Item>"},
    "exprs": {"source()": "Source<Item>"},
    "functions": {"compute": ["lhs: i64", "rhs: i64"]},
}


@pytest.fixture
def mixed_snapshot():
    return SemanticSnapshot.from_dict(MIXED_FACTS)


class TestDriver:
    def test_hints_in_preorder(self, mixed_snapshot):
        hints = inlay_hints_for_source(MIXED_SOURCE, mixed_snapshot)
        assert hints == [
            Hint(range_of(MIXED_SOURCE, "total"), HintKind.TYPE, "Summary<Vec<i64>>"),
            Hint(range_of(MIXED_SOURCE, "first"), HintKind.PARAMETER, "lhs"),
            Hint(range_of(MIXED_SOURCE, "second"), HintKind.PARAMETER, "rhs"),
            Hint(range_of(MIXED_SOURCE, "items"), HintKind.TYPE, "Vec<Item>"),
            Hint(range_of(MIXED_SOURCE, "source()"), HintKind.CHAINING, "Source<Item>"),
        ]

    def test_default_config_when_none(self, mixed_snapshot):
        root = parse_rust(MIXED_SOURCE)
        assert inlay_hints(root, mixed_snapshot) == inlay_hints(root, mixed_snapshot, HintConfig())

    def test_idempotent(self, mixed_snapshot):
        root = parse_rust(MIXED_SOURCE)
        first = inlay_hints(root, mixed_snapshot)
        second = inlay_hints(root, mixed_snapshot)
        assert first == second

    def test_each_kind_independent_of_the_others(self, mixed_snapshot):
        root = parse_rust(MIXED_SOURCE)
        everything = inlay_hints(root, mixed_snapshot)
        by_kind = []
        for kind in HintKind:
            config = HintConfig(
                type_hints=kind is HintKind.TYPE,
                parameter_hints=kind is HintKind.PARAMETER,
                chaining_hints=kind is HintKind.CHAINING,
            )
            only = inlay_hints(root, mixed_snapshot, config)
            assert all(hint.kind is kind for hint in only)
            by_kind.extend(only)
        assert sorted(by_kind, key=lambda h: (h.range, h.label)) == sorted(
            everything, key=lambda h: (h.range, h.label)
        )

    def test_all_disabled(self, mixed_snapshot):
        config = HintConfig(type_hints=False, parameter_hints=False, chaining_hints=False)
        assert inlay_hints_for_source(MIXED_SOURCE, mixed_snapshot, config) == []

    def test_empty_source(self, mixed_snapshot):
        assert inlay_hints_for_source("", mixed_snapshot) == []

    def test_source_with_syntax_errors(self, mixed_snapshot):
        hints = inlay_hints_for_source("fn main() { let total = ; let", mixed_snapshot)
        assert all(isinstance(hint, Hint) for hint in hints)

    @pytest.mark.parametrize("max_length", [0, 1, 4, 8, 12, 30])
    def test_labels_never_exceed_max_length(self, mixed_snapshot, max_length):
        hints = inlay_hints_for_source(
            MIXED_SOURCE, mixed_snapshot, HintConfig(max_length=max_length)
        )
        assert hints
        assert all(len(hint.label) <= max_length for hint in hints)


class _FailingModel:
    """Delegates to a snapshot but fails every pattern type query for *name*."""

    def __init__(self, snapshot, name):
        self._snapshot = snapshot
        self._name = name

    def __getattr__(self, attr):
        return getattr(self._snapshot, attr)

    def type_of_pat(self, pat):
        if pat.text == self._name:
            raise SemanticError(f"cannot infer {self._name}")
        return self._snapshot.type_of_pat(pat)


class TestSemanticFailures:
    def test_failure_skips_only_the_affected_candidate(self, mixed_snapshot, caplog):
        model = _FailingModel(mixed_snapshot, "total")
        with caplog.at_level(logging.DEBUG, logger="inlayhints.hints"):
            hints = inlay_hints_for_source(MIXED_SOURCE, model)

        assert [hint.label for hint in hints] == ["lhs", "rhs", "Vec<Item>", "Source<Item>"]
        assert "cannot infer total" in caplog.text

    def test_malformed_fact_is_isolated(self):
        snapshot = SemanticSnapshot.from_dict(
            {"pats": {"total": "Summary<", "items": "Vec<Item>"}}
        )
        hints = inlay_hints_for_source(MIXED_SOURCE, snapshot, HintConfig(parameter_hints=False))
        assert [hint.label for hint in hints] == ["Vec<Item>"]


class TestHint:
    def test_to_dict(self):
        hint = Hint(range_of(MIXED_SOURCE, "total"), HintKind.TYPE, "i32")
        assert hint.to_dict() == {
            "start": hint.range.start,
            "end": hint.range.end,
            "kind": "type",
            "label": "i32",
        }

    def test_snapshot_is_a_semantic_model(self, mixed_snapshot):
        assert isinstance(mixed_snapshot, SemanticModel)

    def test_hint_ranges_point_at_source_nodes(self, mixed_snapshot):
        root = parse_rust(MIXED_SOURCE)
        data = MIXED_SOURCE.encode("utf-8")
        for hint in inlay_hints(root, mixed_snapshot):
            text = data[hint.range.start : hint.range.end].decode("utf-8")
            assert text.strip() == text
            assert any(
                node.range == hint.range and node.kind is not SyntaxKind.SOURCE_FILE
                for node in root.descendants()
            )
