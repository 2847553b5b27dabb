"""Inlay hint computation for one file.

Walks the syntax tree once in pre-order and hands each node to the detectors
that apply to its shape. Hints come out in visit order: a chained call's
outer receiver is hinted before the receivers nested inside it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .base import Hint
from .config import HintConfig
from .detectors import bind_pat_hint, chaining_hint, param_name_hints
from .languages.rust import parse_rust
from .semantics import SemanticError, SemanticModel
from .syntax import SyntaxKind, SyntaxNode

logger = logging.getLogger(__name__)

Detector = Callable[[SemanticModel, HintConfig, SyntaxNode], "Hint | list[Hint] | None"]

_CALL_KINDS = frozenset({SyntaxKind.CALL_EXPR, SyntaxKind.METHOD_CALL_EXPR})


def _collect(
    acc: list[Hint],
    detector: Detector,
    sema: SemanticModel,
    config: HintConfig,
    node: SyntaxNode,
) -> None:
    try:
        found = detector(sema, config, node)
    except SemanticError as exc:
        logger.debug("Skipping %s for %r: %s", detector.__name__, node, exc)
        return
    if found is None:
        return
    if isinstance(found, Hint):
        acc.append(found)
    else:
        acc.extend(found)


def inlay_hints(
    root: SyntaxNode,
    sema: SemanticModel,
    config: HintConfig | None = None,
) -> list[Hint]:
    """Compute all hints for the tree under *root*."""
    if config is None:
        config = HintConfig()

    hints: list[Hint] = []
    for node in root.descendants():
        kind = node.kind
        if kind.is_expr:
            _collect(hints, chaining_hint, sema, config, node)
        if kind in _CALL_KINDS:
            _collect(hints, param_name_hints, sema, config, node)
        elif kind is SyntaxKind.IDENT_PAT:
            _collect(hints, bind_pat_hint, sema, config, node)

    logger.debug("Computed %d inlay hint(s)", len(hints))
    return hints


def inlay_hints_for_source(
    source: str,
    sema: SemanticModel,
    config: HintConfig | None = None,
) -> list[Hint]:
    """Parse Rust *source* and compute its hints."""
    return inlay_hints(parse_rust(source), sema, config)
