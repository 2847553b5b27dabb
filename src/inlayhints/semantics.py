"""Semantic model interface and the value types it speaks.

The hint engine never infers types itself. It asks a :class:`SemanticModel`
(name resolution, type inference and trait queries live behind it) and only
reasons about the answers. Implementations must treat every query as a pure
read against an immutable snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from .syntax import SyntaxNode


class SemanticError(Exception):
    """A semantic query could not be answered for one node."""


class TyKind(Enum):
    UNKNOWN = "unknown"
    UNIT = "unit"
    NEVER = "never"
    NAMED = "named"  # ADTs, scalars, generic params, opaque `dyn`/`impl` types
    REF = "ref"
    TUPLE = "tuple"
    SLICE = "slice"
    ARRAY = "array"
    CLOSURE = "closure"


@dataclass(frozen=True)
class Ty:
    """Structural type value.

    ``args`` holds generic arguments (``NAMED``), the referent (``REF``,
    ``SLICE``, ``ARRAY``), tuple elements (``TUPLE``) or closure parameters
    (``CLOSURE``, whose return type is ``ret``). ``name`` doubles as the
    length text of an ``ARRAY``.
    """

    kind: TyKind
    name: str = ""
    args: tuple[Ty, ...] = ()
    mutable: bool = False
    ret: Ty | None = None

    @classmethod
    def named(cls, name: str, *args: Ty) -> Ty:
        return cls(TyKind.NAMED, name, tuple(args))

    @classmethod
    def ref(cls, inner: Ty, *, mutable: bool = False) -> Ty:
        return cls(TyKind.REF, args=(inner,), mutable=mutable)

    @property
    def is_unknown(self) -> bool:
        return self.kind is TyKind.UNKNOWN

    @property
    def is_unit(self) -> bool:
        return self.kind is TyKind.UNIT

    def remove_ref(self) -> Ty | None:
        """Referent of a reference type, ``None`` for anything else."""
        if self.kind is TyKind.REF:
            return self.args[0]
        return None

    def strip_references(self) -> Ty:
        ty = self
        while ty.kind is TyKind.REF:
            ty = ty.args[0]
        return ty


UNKNOWN = Ty(TyKind.UNKNOWN)
UNIT = Ty(TyKind.UNIT)


class AdtKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"


@dataclass(frozen=True)
class Adt:
    """Nominal struct/enum/union definition."""

    name: str
    kind: AdtKind = AdtKind.STRUCT
    crate: str = "main"
    fields: tuple[str, ...] = ()
    variants: tuple[str, ...] = ()
    generics: tuple[str, ...] = ()


@dataclass(frozen=True)
class Trait:
    name: str
    crate: str
    module: str
    public: bool = True
    assoc_types: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return f"{self.module}::{self.name}"


class CallableKind(Enum):
    FUNCTION = "function"
    TUPLE_STRUCT = "tuple_struct"
    TUPLE_VARIANT = "tuple_variant"
    CLOSURE = "closure"


@dataclass(frozen=True)
class Param:
    """Declared parameter.

    ``name`` is ``None`` when the parameter is not a plain identifier binding
    (``_``, destructuring, tuple fields). For a receiver it holds the receiver
    text, e.g. ``&self``.
    """

    name: str | None
    ty: Ty | None = None
    receiver: bool = False


@dataclass(frozen=True)
class Callable:
    """Callable description of a function, constructor or closure.

    ``bound`` marks method-call syntax, where the receiver is supplied by the
    expression left of the ``.`` and is not paired with an argument.
    """

    kind: CallableKind
    name: str | None = None
    params: tuple[Param, ...] = ()
    bound: bool = False

    def call_params(self) -> tuple[Param, ...]:
        """Parameters that correspond to the call's argument list."""
        if self.bound and self.params and self.params[0].receiver:
            return self.params[1:]
        return self.params

    @property
    def n_params(self) -> int:
        return len(self.call_params())

    @property
    def function_name(self) -> str | None:
        """Name used by the name-similarity heuristics (functions only)."""
        if self.kind is CallableKind.FUNCTION:
            return self.name
        return None


@runtime_checkable
class SemanticModel(Protocol):
    """Queries the hint engine issues against a semantic snapshot."""

    def type_of_expr(self, expr: SyntaxNode) -> Ty | None:
        """Static type of an expression, ``None`` when unresolved."""
        ...

    def type_of_pat(self, pat: SyntaxNode) -> Ty | None:
        """Static type of a binding pattern, ``None`` when unresolved."""
        ...

    def resolve_callable(self, call: SyntaxNode) -> Callable | None:
        """Callee of a ``CALL_EXPR`` / ``METHOD_CALL_EXPR``."""
        ...

    def as_adt(self, ty: Ty) -> Adt | None: ...

    def find_trait(self, path: str) -> Trait | None:
        """Look up a trait by its full path, e.g. ``core::iter::Iterator``."""
        ...

    def impls_trait(self, ty: Ty, trait: Trait) -> bool: ...

    def normalize_assoc_type(self, ty: Ty, trait: Trait, name: str) -> Ty | None:
        """Resolve ``<ty as trait>::name``."""
        ...

    def display_truncated(self, ty: Ty, max_length: int | None) -> str:
        """Render *ty*, shortening it towards *max_length* characters."""
        ...
