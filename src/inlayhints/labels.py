"""Hint label rendering."""

from __future__ import annotations

from .config import HintConfig
from .semantics import SemanticModel, Ty
from .type_display import TYPE_HINT_TRUNCATION

CORE_CRATE = "core"
ITERATOR_MODULE = "core::iter"
ITERATOR_TRAIT = "core::iter::Iterator"
ITERATOR_ITEM = "Item"

ITERATOR_LABEL_START = "impl Iterator<Item = "
ITERATOR_LABEL_END = ">"


def iterator_label(sema: SemanticModel, config: HintConfig, ty: Ty) -> str | None:
    """Shorten a ``core`` iterator adapter to ``impl Iterator<Item = T>``.

    Only applies when the type (behind any references) is an ADT from the
    ``core`` crate that implements the public ``core::iter::Iterator``.
    """
    adt = sema.as_adt(ty.strip_references())
    if adt is None or adt.crate != CORE_CRATE:
        return None

    trait = sema.find_trait(ITERATOR_TRAIT)
    if trait is None or trait.crate != adt.crate:
        return None
    if trait.module != ITERATOR_MODULE or not trait.public:
        return None
    if not sema.impls_trait(ty, trait) or ITERATOR_ITEM not in trait.assoc_types:
        return None

    item = sema.normalize_assoc_type(ty, trait, ITERATOR_ITEM)
    if item is None:
        return None

    budget = None
    if config.max_length is not None:
        budget = max(0, config.max_length - len(ITERATOR_LABEL_START) - len(ITERATOR_LABEL_END))
    item_text = sema.display_truncated(item, budget)
    return f"{ITERATOR_LABEL_START}{item_text}{ITERATOR_LABEL_END}"


def clamp_label(label: str, max_length: int | None) -> str:
    """Cut *label* to at most *max_length* characters, ending in ``…``."""
    if max_length is None or len(label) <= max_length:
        return label
    if max_length == 0:
        return ""
    return label[: max_length - 1] + TYPE_HINT_TRUNCATION


def hint_label(sema: SemanticModel, config: HintConfig, ty: Ty) -> str:
    label = iterator_label(sema, config, ty)
    if label is None:
        label = sema.display_truncated(ty, config.max_length)
    return clamp_label(label, config.max_length)
