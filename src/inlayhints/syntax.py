"""Syntax tree model consumed by the hint engine.

A lossless, rowan-style tree: every byte of the source belongs to exactly one
token, including whitespace and comments, so adjacency questions ("is the next
thing on a new line a ``.``?") can be answered by walking sibling tokens.
Nodes carry a closed :class:`SyntaxKind`, the byte range they cover and the
*role* they play in their parent (the tree-sitter field name, e.g. ``pattern``
or ``arguments``).
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True, order=True)
class TextRange:
    """Half-open ``[start, end)`` span of UTF-8 byte offsets."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid text range {self.start}..{self.end}")

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"

    def contains_range(self, other: TextRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    @classmethod
    def parse(cls, text: str) -> TextRange:
        """Parse the ``start..end`` form produced by ``str()``."""
        start, sep, end = text.partition("..")
        if not sep:
            raise ValueError(f"Expected 'start..end', got {text!r}")
        return cls(int(start), int(end))


class SyntaxKind(Enum):
    """Closed set of node and token shapes the hint engine distinguishes."""

    # Tokens
    WHITESPACE = "WHITESPACE"
    COMMENT = "COMMENT"
    DOT = "DOT"
    KEYWORD = "KEYWORD"
    PUNCT = "PUNCT"

    # Structure
    SOURCE_FILE = "SOURCE_FILE"
    FN = "FN"
    ITEM = "ITEM"
    PARAM_LIST = "PARAM_LIST"
    PARAM = "PARAM"
    SELF_PARAM = "SELF_PARAM"
    LET_STMT = "LET_STMT"
    EXPR_STMT = "EXPR_STMT"
    TYPE = "TYPE"
    NAME = "NAME"
    NAME_REF = "NAME_REF"
    ARG_LIST = "ARG_LIST"
    LET_CONDITION = "LET_CONDITION"
    LET_CHAIN = "LET_CHAIN"
    MATCH_ARM_LIST = "MATCH_ARM_LIST"
    MATCH_ARM = "MATCH_ARM"
    MATCH_PAT = "MATCH_PAT"

    # Expressions
    CALL_EXPR = "CALL_EXPR"
    METHOD_CALL_EXPR = "METHOD_CALL_EXPR"
    FIELD_EXPR = "FIELD_EXPR"
    PATH_EXPR = "PATH_EXPR"
    RECORD_EXPR = "RECORD_EXPR"
    REF_EXPR = "REF_EXPR"
    LITERAL = "LITERAL"
    BIN_EXPR = "BIN_EXPR"
    PREFIX_EXPR = "PREFIX_EXPR"
    CLOSURE_EXPR = "CLOSURE_EXPR"
    IF_EXPR = "IF_EXPR"
    WHILE_EXPR = "WHILE_EXPR"
    LOOP_EXPR = "LOOP_EXPR"
    FOR_EXPR = "FOR_EXPR"
    MATCH_EXPR = "MATCH_EXPR"
    BLOCK_EXPR = "BLOCK_EXPR"
    TUPLE_EXPR = "TUPLE_EXPR"
    ARRAY_EXPR = "ARRAY_EXPR"
    PAREN_EXPR = "PAREN_EXPR"
    MACRO_CALL = "MACRO_CALL"
    INDEX_EXPR = "INDEX_EXPR"
    TRY_EXPR = "TRY_EXPR"
    RETURN_EXPR = "RETURN_EXPR"
    BREAK_EXPR = "BREAK_EXPR"
    CONTINUE_EXPR = "CONTINUE_EXPR"
    RANGE_EXPR = "RANGE_EXPR"
    CAST_EXPR = "CAST_EXPR"
    AWAIT_EXPR = "AWAIT_EXPR"

    # Patterns
    IDENT_PAT = "IDENT_PAT"
    TUPLE_PAT = "TUPLE_PAT"
    TUPLE_STRUCT_PAT = "TUPLE_STRUCT_PAT"
    RECORD_PAT = "RECORD_PAT"
    RECORD_PAT_FIELD = "RECORD_PAT_FIELD"
    REF_PAT = "REF_PAT"
    WILDCARD_PAT = "WILDCARD_PAT"
    LITERAL_PAT = "LITERAL_PAT"
    PATH_PAT = "PATH_PAT"
    OR_PAT = "OR_PAT"
    SLICE_PAT = "SLICE_PAT"
    RANGE_PAT = "RANGE_PAT"
    REST_PAT = "REST_PAT"

    OTHER = "OTHER"
    ERROR = "ERROR"

    @property
    def is_token(self) -> bool:
        return self in TOKEN_KINDS

    @property
    def is_expr(self) -> bool:
        return self in EXPR_KINDS

    @property
    def is_pat(self) -> bool:
        return self in PAT_KINDS


TOKEN_KINDS = frozenset(
    {
        SyntaxKind.WHITESPACE,
        SyntaxKind.COMMENT,
        SyntaxKind.DOT,
        SyntaxKind.KEYWORD,
        SyntaxKind.PUNCT,
    }
)

EXPR_KINDS = frozenset(
    {
        SyntaxKind.CALL_EXPR,
        SyntaxKind.METHOD_CALL_EXPR,
        SyntaxKind.FIELD_EXPR,
        SyntaxKind.PATH_EXPR,
        SyntaxKind.RECORD_EXPR,
        SyntaxKind.REF_EXPR,
        SyntaxKind.LITERAL,
        SyntaxKind.BIN_EXPR,
        SyntaxKind.PREFIX_EXPR,
        SyntaxKind.CLOSURE_EXPR,
        SyntaxKind.IF_EXPR,
        SyntaxKind.WHILE_EXPR,
        SyntaxKind.LOOP_EXPR,
        SyntaxKind.FOR_EXPR,
        SyntaxKind.MATCH_EXPR,
        SyntaxKind.BLOCK_EXPR,
        SyntaxKind.TUPLE_EXPR,
        SyntaxKind.ARRAY_EXPR,
        SyntaxKind.PAREN_EXPR,
        SyntaxKind.MACRO_CALL,
        SyntaxKind.INDEX_EXPR,
        SyntaxKind.TRY_EXPR,
        SyntaxKind.RETURN_EXPR,
        SyntaxKind.BREAK_EXPR,
        SyntaxKind.CONTINUE_EXPR,
        SyntaxKind.RANGE_EXPR,
        SyntaxKind.CAST_EXPR,
        SyntaxKind.AWAIT_EXPR,
    }
)

PAT_KINDS = frozenset(
    {
        SyntaxKind.IDENT_PAT,
        SyntaxKind.TUPLE_PAT,
        SyntaxKind.TUPLE_STRUCT_PAT,
        SyntaxKind.RECORD_PAT,
        SyntaxKind.REF_PAT,
        SyntaxKind.WILDCARD_PAT,
        SyntaxKind.LITERAL_PAT,
        SyntaxKind.PATH_PAT,
        SyntaxKind.OR_PAT,
        SyntaxKind.SLICE_PAT,
        SyntaxKind.RANGE_PAT,
        SyntaxKind.REST_PAT,
    }
)


class SyntaxToken:
    """Leaf of the tree: punctuation, keyword, whitespace or comment."""

    __slots__ = ("kind", "range", "text", "parent", "index")

    def __init__(self, kind: SyntaxKind, range_: TextRange, text: str) -> None:
        self.kind = kind
        self.range = range_
        self.text = text
        self.parent: SyntaxNode | None = None
        self.index = -1

    def __repr__(self) -> str:
        return f"{self.kind.name}@{self.range} {self.text!r}"


class SyntaxNode:
    """Interior (or leaf) node of the syntax tree.

    Leaf nodes (literals, paths, names, types) keep no children; their text is
    sliced from the shared source buffer on demand.
    """

    __slots__ = ("kind", "range", "role", "raw_kind", "parent", "index", "_children", "_source")

    def __init__(
        self,
        kind: SyntaxKind,
        range_: TextRange,
        source: bytes,
        *,
        role: str | None = None,
        raw_kind: str | None = None,
        children: Iterable[SyntaxNode | SyntaxToken] = (),
    ) -> None:
        self.kind = kind
        self.range = range_
        self.role = role
        self.raw_kind = raw_kind
        self.parent: SyntaxNode | None = None
        self.index = -1
        self._source = source
        self._children: tuple[SyntaxNode | SyntaxToken, ...] = tuple(children)
        for i, child in enumerate(self._children):
            child.parent = self
            child.index = i

    def __repr__(self) -> str:
        return f"{self.kind.name}@{self.range}"

    @property
    def text(self) -> str:
        return self._source[self.range.start : self.range.end].decode("utf-8", errors="replace")

    # -- navigation -----------------------------------------------------------

    def children_with_tokens(self) -> tuple[SyntaxNode | SyntaxToken, ...]:
        return self._children

    def children(self) -> list[SyntaxNode]:
        return [c for c in self._children if isinstance(c, SyntaxNode)]

    def tokens(self) -> list[SyntaxToken]:
        return [c for c in self._children if isinstance(c, SyntaxToken)]

    def child(self, role: str) -> SyntaxNode | None:
        """First child node playing *role* in this node."""
        for c in self._children:
            if isinstance(c, SyntaxNode) and c.role == role:
                return c
        return None

    def token(self, text: str) -> SyntaxToken | None:
        """First direct child token spelled *text*."""
        for c in self._children:
            if isinstance(c, SyntaxToken) and c.text == text:
                return c
        return None

    def ancestors(self) -> Iterator[SyntaxNode]:
        """Yield this node, then its parent, up to the root."""
        node: SyntaxNode | None = self
        while node is not None:
            yield node
            node = node.parent

    def descendants(self) -> Iterator[SyntaxNode]:
        """Yield this node and every node below it in pre-order."""
        stack: list[SyntaxNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def next_siblings_with_tokens(self) -> Iterator[SyntaxNode | SyntaxToken]:
        """Yield the nodes and tokens that follow this node in its parent."""
        if self.parent is None:
            return
        yield from self.parent._children[self.index + 1 :]

    @property
    def root(self) -> SyntaxNode:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    # -- typed accessors ------------------------------------------------------

    @property
    def pattern(self) -> SyntaxNode | None:
        return self.child("pattern")

    @property
    def declared_type(self) -> SyntaxNode | None:
        """Explicit type annotation of a ``let`` statement or parameter."""
        return self.child("type")

    @property
    def callee(self) -> SyntaxNode | None:
        if self.kind is not SyntaxKind.CALL_EXPR:
            return None
        return self.child("function")

    @property
    def receiver(self) -> SyntaxNode | None:
        if self.kind not in (SyntaxKind.METHOD_CALL_EXPR, SyntaxKind.FIELD_EXPR):
            return None
        return self.child("receiver")

    @property
    def name_ref(self) -> SyntaxNode | None:
        """Method or field name of a method call / field access."""
        if self.kind not in (SyntaxKind.METHOD_CALL_EXPR, SyntaxKind.FIELD_EXPR):
            return None
        return self.child("name")

    @property
    def name(self) -> str | None:
        """Bound identifier of an ``IDENT_PAT`` (without ``mut`` / ``ref``)."""
        if self.kind is not SyntaxKind.IDENT_PAT:
            return None
        name = self.child("name")
        return name.text if name is not None else self.text

    @property
    def arg_list(self) -> SyntaxNode | None:
        if self.kind not in (SyntaxKind.CALL_EXPR, SyntaxKind.METHOD_CALL_EXPR):
            return None
        args = self.child("arguments")
        if args is None or args.kind is not SyntaxKind.ARG_LIST:
            return None
        return args

    def args(self) -> list[SyntaxNode]:
        """Argument expressions of an ``ARG_LIST``, in source order."""
        return [c for c in self.children() if c.kind.is_expr]

    @property
    def referenced(self) -> SyntaxNode | None:
        """Operand of a ``&expr`` / ``&mut expr`` reference expression."""
        if self.kind is not SyntaxKind.REF_EXPR:
            return None
        return self.child("value")

    @property
    def iterable(self) -> SyntaxNode | None:
        if self.kind is not SyntaxKind.FOR_EXPR:
            return None
        value = self.child("value")
        return value if value is not None and value.kind.is_expr else None

    @property
    def in_token(self) -> SyntaxToken | None:
        if self.kind is not SyntaxKind.FOR_EXPR:
            return None
        return self.token("in")

    @property
    def condition_pattern(self) -> SyntaxNode | None:
        """Pattern of an ``if let`` / ``while let`` condition, if any.

        Handles the older grammar shape (pattern directly on the expression)
        as well as ``let`` conditions and ``let`` chains.
        """
        if self.kind not in (SyntaxKind.IF_EXPR, SyntaxKind.WHILE_EXPR):
            return None
        direct = self.pattern
        if direct is not None:
            return direct
        condition = self.child("condition")
        if condition is None:
            return None
        if condition.kind is SyntaxKind.LET_CONDITION:
            return condition.pattern
        if condition.kind is SyntaxKind.LET_CHAIN:
            for node in condition.descendants():
                if node.kind is SyntaxKind.LET_CONDITION and node.pattern is not None:
                    return node.pattern
        return None


class LineIndex:
    """Maps byte offsets to 0-based ``(line, column)`` pairs.

    Columns count characters, not bytes.
    """

    def __init__(self, source: str) -> None:
        self._lines = [line.encode("utf-8") for line in source.split("\n")]
        self._starts: list[int] = []
        offset = 0
        for line in self._lines:
            self._starts.append(offset)
            offset += len(line) + 1

    def line_col(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._starts, offset) - 1
        prefix = self._lines[line][: offset - self._starts[line]]
        return line, len(prefix.decode("utf-8", errors="ignore"))
