"""Parse Rust-like type text into :class:`Ty` values and render them back.

Rendering supports a length budget: when the full text does not fit,
generic argument lists (and tuple / closure parameter lists) are collapsed
to ``…``, starting from the deepest level, until it does.
"""

from __future__ import annotations

from .semantics import UNIT, UNKNOWN, Ty, TyKind

TYPE_HINT_TRUNCATION = "…"

_UNKNOWN_TEXT = "{unknown}"
_OPAQUE_PREFIXES = ("dyn ", "impl ", "*const ", "*mut ")
_CLOSERS = {"(": ")", "[": "]", "<": ">"}


class _TypeParser:
    """Recursive-descent parser over a single type expression."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def fail(self, message: str) -> ValueError:
        return ValueError(f"{message} at offset {self.pos} in type {self.text!r}")

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self, token: str) -> bool:
        self.skip_ws()
        return self.text.startswith(token, self.pos)

    def eat(self, token: str) -> bool:
        if self.peek(token):
            self.pos += len(token)
            return True
        return False

    def expect(self, token: str) -> None:
        if not self.eat(token):
            raise self.fail(f"Expected {token!r}")

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= len(self.text)

    def parse(self) -> Ty:
        ty = self.parse_type()
        if not self.at_end():
            raise self.fail("Unexpected trailing text")
        return ty

    def parse_type(self) -> Ty:
        self.skip_ws()
        if self.eat(_UNKNOWN_TEXT):
            return UNKNOWN
        if self.eat("!"):
            return Ty(TyKind.NEVER)
        if self.eat("&"):
            mutable = self.eat("mut ")
            return Ty.ref(self.parse_type(), mutable=mutable)
        if any(self.peek(prefix) for prefix in _OPAQUE_PREFIXES):
            return Ty.named(self.read_opaque())
        if self.eat("("):
            return self.parse_parenthesized()
        if self.eat("["):
            return self.parse_bracketed()
        if self.eat("||"):
            return self.parse_closure_tail(())
        if self.eat("|"):
            params = self.parse_list("|")
            return self.parse_closure_tail(params)
        return self.parse_path()

    def parse_list(self, closer: str) -> tuple[Ty, ...]:
        items: list[Ty] = []
        while not self.eat(closer):
            items.append(self.parse_type())
            if not self.eat(","):
                self.expect(closer)
                break
        return tuple(items)

    def parse_parenthesized(self) -> Ty:
        items: list[Ty] = []
        trailing_comma = False
        while not self.eat(")"):
            items.append(self.parse_type())
            trailing_comma = self.eat(",")
            if not trailing_comma:
                self.expect(")")
                break
        if not items:
            return UNIT
        if len(items) == 1 and not trailing_comma:
            inner = items[0]
            if inner.kind is TyKind.NAMED and inner.name.startswith(_OPAQUE_PREFIXES):
                return Ty.named(f"({inner.name})")
            return inner
        return Ty(TyKind.TUPLE, args=tuple(items))

    def parse_bracketed(self) -> Ty:
        element = self.parse_type()
        if self.eat(";"):
            start = self.pos
            while self.pos < len(self.text) and self.text[self.pos] != "]":
                self.pos += 1
            length = self.text[start : self.pos].strip()
            self.expect("]")
            return Ty(TyKind.ARRAY, name=length or "_", args=(element,))
        self.expect("]")
        return Ty(TyKind.SLICE, args=(element,))

    def parse_closure_tail(self, params: tuple[Ty, ...]) -> Ty:
        ret = self.parse_type() if self.eat("->") else UNIT
        return Ty(TyKind.CLOSURE, args=params, ret=ret)

    def read_ident(self) -> str:
        self.skip_ws()
        start = self.pos
        while self.pos < len(self.text) and (
            self.text[self.pos].isalnum() or self.text[self.pos] in "_'"
        ):
            self.pos += 1
        if start == self.pos:
            raise self.fail("Expected a type name")
        return self.text[start : self.pos]

    def parse_path(self) -> Ty:
        segments = [self.read_ident()]
        while self.eat("::"):
            segments.append(self.read_ident())
        args: tuple[Ty, ...] = ()
        if self.eat("<"):
            args = self.parse_list(">")
        return Ty(TyKind.NAMED, "::".join(segments), args)

    def read_opaque(self) -> str:
        """Consume a ``dyn``/``impl``/raw-pointer type up to the enclosing delimiter."""
        self.skip_ws()
        start = self.pos
        stack: list[str] = []
        while self.pos < len(self.text):
            char = self.text[self.pos]
            if self.text.startswith("->", self.pos):
                self.pos += 2
                continue
            if char in _CLOSERS:
                stack.append(_CLOSERS[char])
            elif stack and char == stack[-1]:
                stack.pop()
            elif not stack and char in ",)]>;|":
                break
            self.pos += 1
        return self.text[start : self.pos].strip()


def parse_type(text: str) -> Ty:
    """Parse *text* such as ``&mut Vec<(i32, char)>`` into a :class:`Ty`."""
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Type text cannot be empty")
    return _TypeParser(text).parse()


def _nesting(ty: Ty) -> int:
    """Number of collapsible list levels in *ty*."""
    if ty.kind is TyKind.REF:
        return _nesting(ty.args[0])
    parts = list(ty.args)
    if ty.kind is TyKind.CLOSURE and ty.ret is not None:
        parts.append(ty.ret)
    if not parts:
        return 0
    return 1 + max(_nesting(part) for part in parts)


def _render(ty: Ty, limit: int | None, depth: int) -> str:
    collapsed = limit is not None and depth >= limit

    def inner(items: tuple[Ty, ...]) -> str:
        if collapsed:
            return TYPE_HINT_TRUNCATION
        return ", ".join(_render(item, limit, depth + 1) for item in items)

    kind = ty.kind
    if kind is TyKind.UNKNOWN:
        return _UNKNOWN_TEXT
    if kind is TyKind.UNIT:
        return "()"
    if kind is TyKind.NEVER:
        return "!"
    if kind is TyKind.REF:
        prefix = "&mut " if ty.mutable else "&"
        return prefix + _render(ty.args[0], limit, depth)
    if kind is TyKind.NAMED:
        if not ty.args:
            return ty.name
        return f"{ty.name}<{inner(ty.args)}>"
    if kind is TyKind.TUPLE:
        if len(ty.args) == 1 and not collapsed:
            return f"({inner(ty.args)},)"
        return f"({inner(ty.args)})"
    if kind is TyKind.SLICE:
        return f"[{inner(ty.args)}]"
    if kind is TyKind.ARRAY:
        if collapsed:
            return f"[{TYPE_HINT_TRUNCATION}]"
        return f"[{inner(ty.args)}; {ty.name}]"
    if kind is TyKind.CLOSURE:
        params = inner(ty.args) if ty.args else ""
        ret = _render(ty.ret, limit, depth + 1) if ty.ret is not None else "()"
        return f"|{params}| -> {ret}"
    raise ValueError(f"Unsupported type kind: {kind}")


def render_type(ty: Ty, max_length: int | None = None) -> str:
    """Render *ty*, collapsing nested lists until it fits *max_length*.

    The result can still exceed *max_length* when even the fully collapsed
    form is too long (e.g. a long type name); callers that need a hard bound
    must clip.
    """
    text = _render(ty, None, 0)
    if max_length is None or len(text) <= max_length:
        return text
    for limit in range(_nesting(ty) - 1, -1, -1):
        text = _render(ty, limit, 0)
        if len(text) <= max_length:
            break
    return text
