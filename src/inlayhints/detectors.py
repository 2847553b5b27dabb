"""Per-kind hint detectors.

Each detector looks at one node shape and returns the hints it warrants;
"nothing to show" is ``None`` or an empty list, never an exception.
"""

from __future__ import annotations

from .base import Hint, HintKind
from .config import HintConfig
from .heuristics import should_not_display_type_hint, should_show_param_name_hint
from .labels import clamp_label, hint_label
from .semantics import AdtKind, SemanticModel
from .syntax import SyntaxKind, SyntaxNode, SyntaxToken


def _skipped_in_chain(token: SyntaxToken) -> bool:
    if token.kind is SyntaxKind.COMMENT:
        return True
    return token.kind is SyntaxKind.WHITESPACE and "\n" not in token.text


def is_chaining_point(expr: SyntaxNode) -> bool:
    """True when the next method call / field access starts on a new line.

    Looks at the tokens following *expr* in its parent, ignoring comments and
    same-line whitespace: a chain continues iff they start ``<newline> .``.
    """
    tokens = (
        el
        for el in expr.next_siblings_with_tokens()
        if isinstance(el, SyntaxToken) and not _skipped_in_chain(el)
    )
    first = next(tokens, None)
    second = next(tokens, None)
    if first is None or second is None:
        return False
    return first.kind is SyntaxKind.WHITESPACE and second.kind is SyntaxKind.DOT


def chaining_hint(sema: SemanticModel, config: HintConfig, expr: SyntaxNode) -> Hint | None:
    """Type hint for *expr* when it ends a line inside a multi-line method chain."""
    if not config.chaining_hints:
        return None
    if expr.kind is SyntaxKind.RECORD_EXPR:
        return None
    if not is_chaining_point(expr):
        return None

    ty = sema.type_of_expr(expr)
    if ty is None or ty.is_unknown:
        return None
    if expr.kind is SyntaxKind.PATH_EXPR:
        adt = sema.as_adt(ty)
        if adt is not None and adt.kind is AdtKind.STRUCT and not adt.fields:
            return None

    return Hint(expr.range, HintKind.CHAINING, hint_label(sema, config, ty))


def param_name_hints(sema: SemanticModel, config: HintConfig, call: SyntaxNode) -> list[Hint]:
    """Parameter-name hints for the arguments of *call*, in argument order."""
    if not config.parameter_hints:
        return []
    arg_list = call.arg_list
    if arg_list is None:
        return []
    callable_ = sema.resolve_callable(call)
    if callable_ is None:
        return []

    named_args = [
        (param.name, arg)
        for param, arg in zip(callable_.call_params(), arg_list.args())
        if param.name is not None
    ]
    return [
        Hint(arg.range, HintKind.PARAMETER, clamp_label(param_name, config.max_length))
        for param_num, (param_name, arg) in enumerate(named_args)
        if should_show_param_name_hint(sema, config, callable_, param_name, param_num, arg)
    ]


def bind_pat_hint(sema: SemanticModel, config: HintConfig, pat: SyntaxNode) -> Hint | None:
    """Type hint for the binding *pat* unless its type is evident or unknown."""
    if not config.type_hints:
        return None
    ty = sema.type_of_pat(pat)
    if ty is None or should_not_display_type_hint(sema, pat, ty):
        return None
    return Hint(pat.range, HintKind.TYPE, hint_label(sema, config, ty))
