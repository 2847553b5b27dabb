"""Fact-table semantic model.

``SemanticSnapshot`` answers :class:`~inlayhints.semantics.SemanticModel`
queries from a JSON document exported by an external engine (or written by
hand in tests). Expression and pattern facts are keyed by source text, by the
n-th occurrence of a text (``"test#2"``) or by exact byte range
(``"148..173"``), most specific first.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

from .semantics import (
    Adt,
    AdtKind,
    Callable,
    CallableKind,
    Param,
    SemanticError,
    Trait,
    Ty,
    TyKind,
)
from .syntax import SyntaxKind, SyntaxNode, TextRange
from .type_display import parse_type, render_type

logger = logging.getLogger(__name__)

_RECEIVER_RE = re.compile(r"^(&\s*(mut\s+)?)?(mut\s+)?self$")
_RANGE_KEY_RE = re.compile(r"^\d+\.\.\d+$")
_OCCURRENCE_KEY_RE = re.compile(r"^(?P<text>.+)#(?P<n>\d+)$")

_SECTIONS = frozenset({"exprs", "pats", "functions", "methods", "adts", "traits", "impls"})


def _normalize_text(text: str) -> str:
    """Collapse whitespace runs so keys match regardless of layout."""
    return " ".join(text.split())


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{what}' must be an object, got {type(value).__name__}")
    return value


def _strip_generic_args(path: str) -> str:
    """Drop turbofish segments from a path: ``Vec::<u8>::new`` -> ``Vec::new``."""
    kept: list[str] = []
    depth = 0
    pos = 0
    while pos < len(path):
        if depth == 0 and path.startswith("::<", pos):
            depth = 1
            pos += 3
            continue
        if depth:
            if path.startswith("->", pos):
                pos += 2
                continue
            if path[pos] == "<":
                depth += 1
            elif path[pos] == ">":
                depth -= 1
        else:
            kept.append(path[pos])
        pos += 1
    return "".join(kept)


class _FactTable:
    """Type facts for one node category, split by key style."""

    def __init__(self, facts: Mapping[str, Any], what: str, same_category) -> None:
        self.same_category = same_category
        self.by_range: dict[TextRange, str] = {}
        self.by_occurrence: dict[tuple[str, int], str] = {}
        self.by_text: dict[str, str] = {}
        # (root, id(node) -> occurrence number) for the most recently queried tree.
        self._occurrences: tuple[SyntaxNode, dict[int, int]] | None = None
        for key, type_text in facts.items():
            if not isinstance(type_text, str):
                raise ValueError(f"{what} fact {key!r} must map to a type string")
            if _RANGE_KEY_RE.match(key):
                self.by_range[TextRange.parse(key)] = type_text
                continue
            match = _OCCURRENCE_KEY_RE.match(key)
            if match:
                occurrence = (_normalize_text(match.group("text")), int(match.group("n")))
                self.by_occurrence[occurrence] = type_text
                continue
            self.by_text[_normalize_text(key)] = type_text

    def occurrence(self, node: SyntaxNode) -> int:
        """1-based rank of *node* among same-category nodes with its text, 0 if absent.

        Ranks for a whole tree are computed in one pre-order pass and kept until
        a node from another tree is queried.
        """
        root = node.root
        cached = self._occurrences
        if cached is None or cached[0] is not root:
            wanted = {fact_text for fact_text, _ in self.by_occurrence}
            counts: dict[str, int] = {}
            ranks: dict[int, int] = {}
            for candidate in root.descendants():
                if not self.same_category(candidate):
                    continue
                candidate_text = _normalize_text(candidate.text)
                if candidate_text in wanted:
                    counts[candidate_text] = counts.get(candidate_text, 0) + 1
                    ranks[id(candidate)] = counts[candidate_text]
            cached = self._occurrences = (root, ranks)
        return cached[1].get(id(node), 0)


def _param_from_fact(fact: Any) -> Param:
    """Parse one parameter fact such as ``"count: usize"`` or ``"&self"``."""
    if fact is None:
        return Param(None)
    if not isinstance(fact, str):
        raise ValueError(f"Parameter must be a string or null, got {fact!r}")
    fact = fact.strip()
    if _RECEIVER_RE.match(fact):
        return Param(_normalize_text(fact), receiver=True)
    name, sep, type_text = fact.partition(":")
    name = name.strip()
    if name.startswith("mut "):
        name = name[len("mut ") :].strip()
    if name == "_" or not name.isidentifier():
        # Destructuring patterns may contain ':' themselves; their type is not needed.
        return Param(None)
    return Param(name, parse_type(type_text) if sep else None)


def _callable_from_fact(key: str, fact: Any, *, bound: bool) -> Callable:
    """Build a callable from a parameter list or a ``{"kind", "name", "params"}`` object."""
    if isinstance(fact, list):
        fact = {"params": fact}
    fact = _require_mapping(fact, key)
    try:
        kind = CallableKind(fact.get("kind", CallableKind.FUNCTION.value))
    except ValueError as exc:
        raise ValueError(f"Unknown callable kind for {key!r}: {fact.get('kind')!r}") from exc
    name = fact.get("name")
    if name is None and kind is CallableKind.FUNCTION:
        name = key.rsplit("::", 1)[-1]
    params = fact.get("params", [])
    if not isinstance(params, list):
        raise ValueError(f"'params' of {key!r} must be a list")
    return Callable(
        kind=kind,
        name=name,
        params=tuple(_param_from_fact(p) for p in params),
        bound=bound,
    )


def _adt_from_fact(name: str, fact: Any) -> Adt:
    fact = _require_mapping(fact, name)
    try:
        kind = AdtKind(fact.get("kind", AdtKind.STRUCT.value))
    except ValueError as exc:
        raise ValueError(f"Unknown ADT kind for {name!r}: {fact.get('kind')!r}") from exc
    return Adt(
        name=name,
        kind=kind,
        crate=str(fact.get("crate", "main")),
        fields=tuple(fact.get("fields", ())),
        variants=tuple(fact.get("variants", ())),
        generics=tuple(fact.get("generics", ())),
    )


def _trait_from_fact(path: str, fact: Any) -> Trait:
    fact = _require_mapping(fact, path)
    module, sep, name = path.rpartition("::")
    if not sep:
        raise ValueError(f"Trait path must be qualified, got {path!r}")
    return Trait(
        name=name,
        crate=str(fact.get("crate", module.split("::", 1)[0])),
        module=str(fact.get("module", module)),
        public=bool(fact.get("public", True)),
        assoc_types=tuple(fact.get("assoc_types", ())),
    )


def _substitute(ty: Ty, mapping: Mapping[str, Ty]) -> Ty:
    """Replace generic parameter names in *ty* by the types in *mapping*."""
    if ty.kind is TyKind.NAMED and not ty.args and ty.name in mapping:
        return mapping[ty.name]
    if not ty.args and ty.ret is None:
        return ty
    ret = _substitute(ty.ret, mapping) if ty.ret is not None else None
    return replace(ty, args=tuple(_substitute(a, mapping) for a in ty.args), ret=ret)


class SemanticSnapshot:
    """Immutable :class:`~inlayhints.semantics.SemanticModel` over a fact table.

    Answers never change after construction; the only internal state is the
    occurrence ranking of the last tree queried, rebuilt when the tree changes.
    """

    def __init__(
        self,
        *,
        exprs: Mapping[str, str] | None = None,
        pats: Mapping[str, str] | None = None,
        functions: Mapping[str, Any] | None = None,
        methods: Mapping[str, Any] | None = None,
        adts: Mapping[str, Any] | None = None,
        traits: Mapping[str, Any] | None = None,
        impls: Mapping[str, Mapping[str, Mapping[str, str]]] | None = None,
    ) -> None:
        self._exprs = _FactTable(
            _require_mapping(exprs, "exprs"), "expression", lambda n: n.kind.is_expr
        )
        self._pats = _FactTable(_require_mapping(pats, "pats"), "pattern", lambda n: n.kind.is_pat)
        self._functions = {
            _normalize_text(key): _callable_from_fact(key, fact, bound=False)
            for key, fact in _require_mapping(functions, "functions").items()
        }
        self._methods = {
            key: _callable_from_fact(key, fact, bound=True)
            for key, fact in _require_mapping(methods, "methods").items()
        }
        self._adts = {
            name: _adt_from_fact(name, fact) for name, fact in _require_mapping(adts, "adts").items()
        }
        self._traits = {
            path: _trait_from_fact(path, fact)
            for path, fact in _require_mapping(traits, "traits").items()
        }
        self._impls: dict[str, dict[str, dict[str, Ty]]] = {}
        for adt_name, by_trait in _require_mapping(impls, "impls").items():
            self._impls[adt_name] = {
                trait_path: {
                    assoc: parse_type(text)
                    for assoc, text in _require_mapping(assoc_types, trait_path).items()
                }
                for trait_path, assoc_types in _require_mapping(by_trait, adt_name).items()
            }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> SemanticSnapshot:
        payload = _require_mapping(payload, "snapshot")
        unknown = set(payload) - _SECTIONS
        if unknown:
            raise ValueError(f"Unknown snapshot sections: {', '.join(sorted(unknown))}")
        return cls(**{section: payload.get(section) for section in _SECTIONS})

    @classmethod
    def load(cls, path: str | Path) -> SemanticSnapshot:
        """Load a snapshot from a JSON file."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        snapshot = cls.from_dict(payload)
        logger.debug("Loaded semantic snapshot from %s", path)
        return snapshot

    # -- SemanticModel --------------------------------------------------------

    def type_of_expr(self, expr: SyntaxNode) -> Ty | None:
        return self._lookup(self._exprs, expr)

    def type_of_pat(self, pat: SyntaxNode) -> Ty | None:
        return self._lookup(self._pats, pat)

    def resolve_callable(self, call: SyntaxNode) -> Callable | None:
        if call.kind is SyntaxKind.METHOD_CALL_EXPR:
            name_ref = call.name_ref
            if name_ref is None:
                return None
            return self._methods.get(name_ref.text)

        callee = call.callee
        if callee is None:
            return None
        key = _strip_generic_args(_normalize_text(callee.text))
        found = self._functions.get(key)
        if found is None and "::" in key:
            found = self._functions.get(key.rsplit("::", 1)[-1])
        if found is not None:
            return found

        callee_ty = self.type_of_expr(callee)
        if callee_ty is not None and callee_ty.kind is TyKind.CLOSURE:
            return Callable(
                kind=CallableKind.CLOSURE,
                params=tuple(Param(None, param_ty) for param_ty in callee_ty.args),
            )
        return None

    def as_adt(self, ty: Ty) -> Adt | None:
        if ty.kind is not TyKind.NAMED:
            return None
        return self._adts.get(ty.name) or self._adts.get(ty.name.rsplit("::", 1)[-1])

    def find_trait(self, path: str) -> Trait | None:
        return self._traits.get(path)

    def impls_trait(self, ty: Ty, trait: Trait) -> bool:
        head = self._impl_head(ty)
        return head.kind is TyKind.NAMED and trait.path in self._impls.get(head.name, {})

    def normalize_assoc_type(self, ty: Ty, trait: Trait, name: str) -> Ty | None:
        head = self._impl_head(ty)
        assoc = self._impls.get(head.name, {}).get(trait.path, {}).get(name)
        if assoc is None:
            return None
        adt = self.as_adt(head)
        if adt is None or not adt.generics:
            return assoc
        return _substitute(assoc, dict(zip(adt.generics, head.args)))

    def display_truncated(self, ty: Ty, max_length: int | None) -> str:
        return render_type(ty, max_length)

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _impl_head(ty: Ty) -> Ty:
        # `&mut I` is an iterator whenever `I` is.
        while ty.kind is TyKind.REF and ty.mutable:
            ty = ty.args[0]
        return ty

    def _lookup(self, table: _FactTable, node: SyntaxNode) -> Ty | None:
        type_text = table.by_range.get(node.range)
        text = _normalize_text(node.text)
        if type_text is None and table.by_occurrence:
            type_text = table.by_occurrence.get((text, table.occurrence(node)))
        if type_text is None:
            type_text = table.by_text.get(text)
        if type_text is None:
            return None
        try:
            return parse_type(type_text)
        except ValueError as exc:
            raise SemanticError(f"Malformed type fact for {text!r}: {exc}") from exc
