"""Suppression heuristics: when an otherwise valid hint is just noise.

All functions here are predicates over local syntax plus semantic queries;
none of them build hints.
"""

from __future__ import annotations

from .config import HintConfig
from .semantics import AdtKind, Callable, SemanticModel, Ty
from .syntax import SyntaxKind, SyntaxNode

# Parameters of test-fixture helpers (`fn check(ra_fixture: &str)`) take
# whole source files; their name would only clutter the fixture text.
FIXTURE_PARAM_PREFIX = "ra_fixture"


def to_lower_snake_case(name: str) -> str:
    """``CompletionKind`` -> ``completion_kind``."""
    out: list[str] = []
    for i, char in enumerate(name):
        if i > 0 and char.isascii() and char.isupper():
            out.append("_")
        out.append(char.lower())
    return "".join(out)


# -- parameter hints ----------------------------------------------------------


def argument_text(argument: SyntaxNode) -> str | None:
    """Text an argument is compared against parameter names with.

    Method calls are represented by the method name, references by their
    operand, everything else by its source text.
    """
    if argument.kind is SyntaxKind.METHOD_CALL_EXPR:
        name_ref = argument.name_ref
        return name_ref.text if name_ref is not None else None
    if argument.kind is SyntaxKind.REF_EXPR:
        referenced = argument.referenced
        return argument_text(referenced) if referenced is not None else None
    return argument.text


def is_enum_name_similar_to_param_name(
    sema: SemanticModel, argument: SyntaxNode, param_name: str
) -> bool:
    ty = sema.type_of_expr(argument)
    if ty is None:
        return False
    adt = sema.as_adt(ty)
    if adt is None or adt.kind is not AdtKind.ENUM:
        return False
    return to_lower_snake_case(adt.name) == param_name


def is_argument_similar_to_param_name(
    sema: SemanticModel, argument: SyntaxNode, param_name: str
) -> bool:
    if is_enum_name_similar_to_param_name(sema, argument, param_name):
        return True
    text = argument_text(argument)
    if text is None:
        return False
    text = text.lstrip("_")
    return text.startswith(param_name) or text.endswith(param_name)


def is_param_name_similar_to_fn_name(
    param_name: str, param_num: int, fn_name: str | None
) -> bool:
    # Only the first parameter: `fn frob(frob: bool)`, `fn set_value(value: i32)`.
    if param_num != 0 or fn_name is None:
        return False
    if fn_name == param_name:
        return True
    return (
        len(fn_name) > len(param_name)
        and fn_name.endswith(param_name)
        and fn_name[: len(fn_name) - len(param_name)].endswith("_")
    )


def is_obvious_param(param_name: str, obvious_names: frozenset[str]) -> bool:
    return len(param_name) == 1 or param_name in obvious_names


def should_show_param_name_hint(
    sema: SemanticModel,
    config: HintConfig,
    callable_: Callable,
    param_name: str,
    param_num: int,
    argument: SyntaxNode,
) -> bool:
    param_name = param_name.lstrip("_")
    fn_name = callable_.function_name

    if (
        not param_name
        or (fn_name is not None and param_name == fn_name.lstrip("_"))
        or is_argument_similar_to_param_name(sema, argument, param_name)
        or is_param_name_similar_to_fn_name(param_name, param_num, fn_name)
        or param_name.startswith(FIXTURE_PARAM_PREFIX)
    ):
        return False

    # Common one-argument functions: map(f), filter(predicate), eq(other), ...
    return not (callable_.n_params == 1 and is_obvious_param(param_name, config.obvious_param_names))


# -- type hints ---------------------------------------------------------------


def pat_is_enum_variant(sema: SemanticModel, bind_pat: SyntaxNode, pat_ty: Ty) -> bool:
    """True when the pattern spells one of its enum type's variant names."""
    adt = sema.as_adt(pat_ty)
    if adt is None or adt.kind is not AdtKind.ENUM:
        return False
    return bind_pat.text in adt.variants


def should_not_display_type_hint(sema: SemanticModel, bind_pat: SyntaxNode, pat_ty: Ty) -> bool:
    """Decide whether the type of *bind_pat* is already evident.

    The nearest enclosing ``let``, parameter, match arm, ``if``/``while`` or
    ``for`` decides; a binding with none of those around it gets a hint.
    """
    if pat_ty.is_unknown:
        return True

    adt = sema.as_adt(pat_ty)
    if (
        adt is not None
        and adt.kind is AdtKind.STRUCT
        and not adt.fields
        and adt.name == bind_pat.text
    ):
        return True

    for node in bind_pat.ancestors():
        kind = node.kind
        if kind in (SyntaxKind.LET_STMT, SyntaxKind.PARAM):
            return node.declared_type is not None
        if kind is SyntaxKind.MATCH_ARM:
            return pat_is_enum_variant(sema, bind_pat, pat_ty)
        if kind in (SyntaxKind.IF_EXPR, SyntaxKind.WHILE_EXPR):
            return node.condition_pattern is not None and pat_is_enum_variant(
                sema, bind_pat, pat_ty
            )
        if kind is SyntaxKind.FOR_EXPR:
            # Only worth a hint for `for x in expr` with a known, non-unit `expr`.
            iterable = node.iterable
            if node.in_token is None or iterable is None:
                return True
            iterable_ty = sema.type_of_expr(iterable)
            return iterable_ty is None or iterable_ty.is_unknown or iterable_ty.is_unit
    return False
