"""Rust syntax trees built from tree-sitter.

tree-sitter produces a concrete tree without whitespace tokens and with
method calls spelled as "call of a field access". The hint engine wants the
opposite on both counts, so the conversion here:

- re-creates whitespace tokens from the gaps between children and turns
  comments into tokens, so token adjacency can be scanned;
- flattens ``recv.method::<T>(args)`` into one ``METHOD_CALL_EXPR`` whose
  children are ``recv``, whitespace, ``.``, the name and the argument list;
- classifies identifiers by position: ``IDENT_PAT`` in patterns (absorbing a
  leading ``mut`` / ``ref``), ``NAME`` for declarations, ``PATH_EXPR``
  elsewhere;
- wraps bare closure parameters in ``PARAM`` nodes like typed ones;
- drops zero-width nodes inserted by error recovery.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import tree_sitter

from ..syntax import SyntaxKind, SyntaxNode, SyntaxToken, TextRange

# -- Language ------------------------------------------------------------------


@lru_cache(maxsize=1)
def _get_language() -> tree_sitter.Language:
    import tree_sitter_rust

    return tree_sitter.Language(tree_sitter_rust.language())


# -- Node type mapping ---------------------------------------------------------

_COMMENT_TYPES = frozenset({"line_comment", "block_comment"})

_LITERAL_TYPES = frozenset(
    {
        "integer_literal",
        "float_literal",
        "string_literal",
        "raw_string_literal",
        "char_literal",
        "boolean_literal",
    }
)

_PATH_TYPES = frozenset(
    {"identifier", "scoped_identifier", "self", "crate", "super", "generic_function", "metavariable"}
)

_EXPR_TYPES: dict[str, SyntaxKind] = {
    "field_expression": SyntaxKind.FIELD_EXPR,
    "struct_expression": SyntaxKind.RECORD_EXPR,
    "reference_expression": SyntaxKind.REF_EXPR,
    "binary_expression": SyntaxKind.BIN_EXPR,
    "assignment_expression": SyntaxKind.BIN_EXPR,
    "compound_assignment_expr": SyntaxKind.BIN_EXPR,
    "unary_expression": SyntaxKind.PREFIX_EXPR,
    "closure_expression": SyntaxKind.CLOSURE_EXPR,
    "if_expression": SyntaxKind.IF_EXPR,
    "if_let_expression": SyntaxKind.IF_EXPR,
    "while_expression": SyntaxKind.WHILE_EXPR,
    "while_let_expression": SyntaxKind.WHILE_EXPR,
    "loop_expression": SyntaxKind.LOOP_EXPR,
    "for_expression": SyntaxKind.FOR_EXPR,
    "match_expression": SyntaxKind.MATCH_EXPR,
    "block": SyntaxKind.BLOCK_EXPR,
    "unsafe_block": SyntaxKind.BLOCK_EXPR,
    "async_block": SyntaxKind.BLOCK_EXPR,
    "const_block": SyntaxKind.BLOCK_EXPR,
    "tuple_expression": SyntaxKind.TUPLE_EXPR,
    "unit_expression": SyntaxKind.TUPLE_EXPR,
    "array_expression": SyntaxKind.ARRAY_EXPR,
    "parenthesized_expression": SyntaxKind.PAREN_EXPR,
    "index_expression": SyntaxKind.INDEX_EXPR,
    "try_expression": SyntaxKind.TRY_EXPR,
    "return_expression": SyntaxKind.RETURN_EXPR,
    "break_expression": SyntaxKind.BREAK_EXPR,
    "continue_expression": SyntaxKind.CONTINUE_EXPR,
    "range_expression": SyntaxKind.RANGE_EXPR,
    "type_cast_expression": SyntaxKind.CAST_EXPR,
    "await_expression": SyntaxKind.AWAIT_EXPR,
}

_STRUCTURE_TYPES: dict[str, SyntaxKind] = {
    "function_item": SyntaxKind.FN,
    "function_signature_item": SyntaxKind.FN,
    "parameters": SyntaxKind.PARAM_LIST,
    "closure_parameters": SyntaxKind.PARAM_LIST,
    "parameter": SyntaxKind.PARAM,
    "self_parameter": SyntaxKind.SELF_PARAM,
    "let_declaration": SyntaxKind.LET_STMT,
    "expression_statement": SyntaxKind.EXPR_STMT,
    "arguments": SyntaxKind.ARG_LIST,
    "let_condition": SyntaxKind.LET_CONDITION,
    "let_chain": SyntaxKind.LET_CHAIN,
    "match_block": SyntaxKind.MATCH_ARM_LIST,
    "match_arm": SyntaxKind.MATCH_ARM,
    "match_pattern": SyntaxKind.MATCH_PAT,
    "ERROR": SyntaxKind.ERROR,
}

_ITEM_TYPES = frozenset(
    {
        "struct_item",
        "enum_item",
        "union_item",
        "impl_item",
        "trait_item",
        "mod_item",
        "const_item",
        "static_item",
        "type_item",
        "foreign_mod_item",
    }
)

# Converted without looking inside: nothing in them can carry a hint.
_OPAQUE_TYPES = frozenset(
    {
        "attribute_item",
        "inner_attribute_item",
        "use_declaration",
        "extern_crate_declaration",
        "macro_definition",
        "token_tree",
        "label",
        "lifetime",
        "visibility_modifier",
    }
)

_TYPE_TYPES = frozenset(
    {
        "primitive_type",
        "type_identifier",
        "generic_type",
        "generic_type_with_turbofish",
        "reference_type",
        "pointer_type",
        "tuple_type",
        "array_type",
        "scoped_type_identifier",
        "function_type",
        "abstract_type",
        "dynamic_type",
        "bounded_type",
        "never_type",
        "unit_type",
        "qualified_type",
        "bracketed_type",
        "type_arguments",
        "type_parameters",
        "where_clause",
        "trait_bounds",
        "removed_trait_bound",
    }
)

_PATTERN_TYPES: dict[str, SyntaxKind] = {
    "tuple_pattern": SyntaxKind.TUPLE_PAT,
    "tuple_struct_pattern": SyntaxKind.TUPLE_STRUCT_PAT,
    "struct_pattern": SyntaxKind.RECORD_PAT,
    "field_pattern": SyntaxKind.RECORD_PAT_FIELD,
    "reference_pattern": SyntaxKind.REF_PAT,
    "slice_pattern": SyntaxKind.SLICE_PAT,
    "or_pattern": SyntaxKind.OR_PAT,
    "range_pattern": SyntaxKind.RANGE_PAT,
    "remaining_field_pattern": SyntaxKind.REST_PAT,
    "negative_literal": SyntaxKind.LITERAL_PAT,
}

# Fields whose value is a pattern, per parent node type.
_PATTERN_FIELDS: dict[str, frozenset[str]] = {
    "let_declaration": frozenset({"pattern"}),
    "parameter": frozenset({"pattern"}),
    "for_expression": frozenset({"pattern"}),
    "let_condition": frozenset({"pattern"}),
    "if_let_expression": frozenset({"pattern"}),
    "while_let_expression": frozenset({"pattern"}),
}

# Parents in which `mut` / `ref` directly before a binding belong to it.
_FOLD_PARENTS = frozenset(
    {"let_declaration", "parameter", "field_pattern", "ref_pattern", "mut_pattern"}
)

_BINDING_MODIFIERS = frozenset({"mut", "ref"})

_ROLE_RENAMES = {
    ("field_expression", "value"): "receiver",
    ("field_expression", "field"): "name",
}
_METHOD_ROLES = {"value": "receiver", "field": "name"}
_METHOD_CALL = "method_call_expression"


def _is_pattern_child(
    parent_type: str, field: str | None, child_type: str, parent_in_pattern: bool
) -> bool:
    if parent_type in _PATTERN_FIELDS:
        return field in _PATTERN_FIELDS[parent_type]
    if parent_type == "match_pattern":
        return field != "condition"
    if parent_type == "closure_parameters":
        return child_type != "parameter"
    return parent_in_pattern


def _iter_children(ts_node: Any) -> list[tuple[Any, str | None]]:
    """Children of *ts_node* paired with their field names."""
    items: list[tuple[Any, str | None]] = []
    cursor = ts_node.walk()
    if cursor.goto_first_child():
        while True:
            items.append((cursor.node, cursor.field_name))
            if not cursor.goto_next_sibling():
                break
    return items


class _Converter:
    """Builds an :mod:`inlayhints.syntax` tree from one tree-sitter tree."""

    def __init__(self, source: bytes) -> None:
        self.source = source

    def text(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8", errors="replace")

    def token(self, kind: SyntaxKind, start: int, end: int) -> SyntaxToken:
        return SyntaxToken(kind, TextRange(start, end), self.text(start, end))

    def leaf(self, ts_node: Any, kind: SyntaxKind, role: str | None) -> SyntaxNode:
        return SyntaxNode(
            kind,
            TextRange(ts_node.start_byte, ts_node.end_byte),
            self.source,
            role=role,
            raw_kind=ts_node.type,
        )

    def gap(self, start: int, end: int) -> SyntaxToken:
        text = self.text(start, end)
        kind = SyntaxKind.WHITESPACE if text.isspace() else SyntaxKind.ERROR
        return SyntaxToken(kind, TextRange(start, end), text)

    # -- tree ---------------------------------------------------------------

    def convert_root(self, ts_root: Any) -> SyntaxNode:
        children = self.convert_children(
            ts_root.type, _iter_children(ts_root), 0, len(self.source), in_pattern=False
        )
        return SyntaxNode(
            SyntaxKind.SOURCE_FILE,
            TextRange(0, len(self.source)),
            self.source,
            raw_kind=ts_root.type,
            children=children,
        )

    def node(
        self,
        ts_node: Any,
        kind: SyntaxKind,
        role: str | None,
        *,
        in_pattern: bool = False,
        items: list[tuple[Any, str | None]] | None = None,
        parent_type: str | None = None,
    ) -> SyntaxNode:
        parent_type = parent_type or ts_node.type
        children = self.convert_children(
            parent_type,
            items if items is not None else _iter_children(ts_node),
            ts_node.start_byte,
            ts_node.end_byte,
            in_pattern=in_pattern,
        )
        if parent_type in _FOLD_PARENTS:
            children = self.fold_bindings(children)
        return SyntaxNode(
            kind,
            TextRange(ts_node.start_byte, ts_node.end_byte),
            self.source,
            role=role,
            raw_kind=ts_node.type,
            children=children,
        )

    def convert_children(
        self,
        parent_type: str,
        items: list[tuple[Any, str | None]],
        start: int,
        end: int,
        *,
        in_pattern: bool,
    ) -> list[SyntaxNode | SyntaxToken]:
        elements: list[SyntaxNode | SyntaxToken] = []
        pos = start
        for child, field in items:
            if child.is_missing or child.start_byte == child.end_byte or child.start_byte < pos:
                continue
            if child.start_byte > pos:
                elements.append(self.gap(pos, child.start_byte))
            child_in_pattern = _is_pattern_child(parent_type, field, child.type, in_pattern)
            elements.append(self.convert(child, parent_type, field, child_in_pattern))
            pos = child.end_byte
        if pos < end:
            elements.append(self.gap(pos, end))
        return elements

    def convert(
        self, ts_node: Any, parent_type: str, field: str | None, in_pattern: bool
    ) -> SyntaxNode | SyntaxToken:
        ntype = ts_node.type
        role = _ROLE_RENAMES.get((parent_type, field), field)
        start, end = ts_node.start_byte, ts_node.end_byte

        if ntype in _COMMENT_TYPES:
            return self.token(SyntaxKind.COMMENT, start, end)
        if ntype == "mutable_specifier":
            return self.token(SyntaxKind.KEYWORD, start, end)
        if not ts_node.is_named and not (in_pattern and ntype == "_"):
            if ntype == ".":
                return self.token(SyntaxKind.DOT, start, end)
            kind = SyntaxKind.KEYWORD if ntype.isidentifier() else SyntaxKind.PUNCT
            return self.token(kind, start, end)

        if in_pattern:
            pat = self.convert_pattern(ts_node, role)
            if parent_type == "closure_parameters":
                pat.role = "pattern"
                return SyntaxNode(
                    SyntaxKind.PARAM,
                    pat.range,
                    self.source,
                    raw_kind="closure_parameter",
                    children=[pat],
                )
            return pat

        if ntype == "call_expression":
            return self.convert_call(ts_node, role)
        if ntype == "field_identifier" or (parent_type == "field_expression" and field == "field"):
            return self.leaf(ts_node, SyntaxKind.NAME_REF, role)
        if ntype == "identifier" and role == "name":
            return self.leaf(ts_node, SyntaxKind.NAME, role)
        if ntype in _PATH_TYPES:
            return self.leaf(ts_node, SyntaxKind.PATH_EXPR, role)
        if ntype in _LITERAL_TYPES:
            return self.leaf(ts_node, SyntaxKind.LITERAL, role)
        if ntype == "macro_invocation":
            return self.leaf(ts_node, SyntaxKind.MACRO_CALL, role)
        if ntype in _TYPE_TYPES:
            return self.leaf(ts_node, SyntaxKind.TYPE, role)
        if ntype in _OPAQUE_TYPES:
            return self.leaf(ts_node, SyntaxKind.OTHER, role)
        if ntype in _EXPR_TYPES:
            return self.node(ts_node, _EXPR_TYPES[ntype], role)
        if ntype in _STRUCTURE_TYPES:
            return self.node(ts_node, _STRUCTURE_TYPES[ntype], role)
        if ntype in _ITEM_TYPES:
            return self.node(ts_node, SyntaxKind.ITEM, role)
        return self.node(ts_node, SyntaxKind.OTHER, role)

    # -- patterns -----------------------------------------------------------

    def ident_pat(self, ts_node: Any, role: str | None) -> SyntaxNode:
        name = self.leaf(ts_node, SyntaxKind.NAME, "name")
        return SyntaxNode(
            SyntaxKind.IDENT_PAT,
            name.range,
            self.source,
            role=role,
            raw_kind=ts_node.type,
            children=[name],
        )

    def convert_pattern(self, ts_node: Any, role: str | None) -> SyntaxNode:
        ntype = ts_node.type
        if ntype == "_":
            return self.leaf(ts_node, SyntaxKind.WILDCARD_PAT, role)
        if role == "type":
            return self.leaf(ts_node, SyntaxKind.PATH_PAT, role)
        if ntype in ("identifier", "shorthand_field_identifier"):
            return self.ident_pat(ts_node, role)
        if ntype == "field_identifier":
            return self.leaf(ts_node, SyntaxKind.NAME_REF, role)
        if ntype in ("scoped_identifier", "generic_type", "scoped_type_identifier"):
            return self.leaf(ts_node, SyntaxKind.PATH_PAT, role)
        if ntype in _LITERAL_TYPES or ntype == "negative_literal":
            return self.leaf(ts_node, SyntaxKind.LITERAL_PAT, role)
        if ntype == "remaining_field_pattern":
            return self.leaf(ts_node, SyntaxKind.REST_PAT, role)
        if ntype == "macro_invocation":
            return self.leaf(ts_node, SyntaxKind.MACRO_CALL, role)
        if ntype in ("ref_pattern", "mut_pattern"):
            wrapper = self.node(ts_node, SyntaxKind.OTHER, role, in_pattern=True)
            significant = [
                c for c in wrapper.children_with_tokens() if c.kind is not SyntaxKind.WHITESPACE
            ]
            if (
                len(significant) == 1
                and significant[0].kind is SyntaxKind.IDENT_PAT
                and significant[0].range == wrapper.range
            ):
                folded = significant[0]
                folded.role = role
                return folded
            return wrapper
        return self.node(ts_node, _PATTERN_TYPES.get(ntype, SyntaxKind.OTHER), role, in_pattern=True)

    def fold_bindings(
        self, elements: list[SyntaxNode | SyntaxToken]
    ) -> list[SyntaxNode | SyntaxToken]:
        """Merge ``mut`` / ``ref`` keywords into the binding they precede."""
        out: list[SyntaxNode | SyntaxToken] = []
        for element in elements:
            if isinstance(element, SyntaxNode) and element.kind is SyntaxKind.IDENT_PAT:
                j = len(out)
                while j > 0 and (
                    out[j - 1].kind is SyntaxKind.WHITESPACE
                    or (
                        isinstance(out[j - 1], SyntaxToken)
                        and out[j - 1].kind is SyntaxKind.KEYWORD
                        and out[j - 1].text in _BINDING_MODIFIERS
                    )
                ):
                    j -= 1
                while j < len(out) and out[j].kind is SyntaxKind.WHITESPACE:
                    j += 1
                if j < len(out):
                    prefix = out[j:]
                    del out[j:]
                    element = SyntaxNode(
                        SyntaxKind.IDENT_PAT,
                        TextRange(prefix[0].range.start, element.range.end),
                        self.source,
                        role=element.role,
                        raw_kind=element.raw_kind,
                        children=[*prefix, *element.children_with_tokens()],
                    )
            out.append(element)
        return out

    # -- calls --------------------------------------------------------------

    def method_call_parts(self, function: Any) -> list[tuple[Any, str | None]] | None:
        """Flattened children of ``recv.name`` / ``recv.name::<T>``, or ``None``."""
        if function.type == "field_expression":
            inner = _iter_children(function)
            if any(f == "field" and c.type == "field_identifier" for c, f in inner):
                return [(c, _METHOD_ROLES.get(f, f) if f else f) for c, f in inner]
            return None
        if function.type == "generic_function":
            inner = _iter_children(function)
            for i, (child, field) in enumerate(inner):
                if field == "function":
                    parts = self.method_call_parts(child)
                    if parts is None:
                        return None
                    return parts + inner[i + 1 :]
        return None

    def convert_call(self, ts_node: Any, role: str | None) -> SyntaxNode:
        items = _iter_children(ts_node)
        for i, (child, field) in enumerate(items):
            if field != "function":
                continue
            parts = self.method_call_parts(child)
            if parts is None:
                break
            return self.node(
                ts_node,
                SyntaxKind.METHOD_CALL_EXPR,
                role,
                items=items[:i] + parts + items[i + 1 :],
                parent_type=_METHOD_CALL,
            )
        return self.node(ts_node, SyntaxKind.CALL_EXPR, role)


def parse_rust(source: str) -> SyntaxNode:
    """Parse Rust *source* into a lossless :class:`SyntaxNode` tree."""
    source_bytes = source.encode("utf-8")
    parser = tree_sitter.Parser(_get_language())
    tree = parser.parse(source_bytes)
    return _Converter(source_bytes).convert_root(tree.root_node)


def dump_tree(node: SyntaxNode, *, include_trivia: bool = False) -> str:
    """Indented debug rendering of *node* and everything below it."""
    lines: list[str] = []

    def walk(element: SyntaxNode | SyntaxToken, depth: int) -> None:
        indent = "  " * depth
        if isinstance(element, SyntaxToken):
            if include_trivia or element.kind not in (SyntaxKind.WHITESPACE, SyntaxKind.COMMENT):
                lines.append(f"{indent}{element.kind.name}@{element.range} {element.text!r}")
            return
        role = f" ({element.role})" if element.role else ""
        lines.append(f"{indent}{element.kind.name}@{element.range}{role}")
        children = element.children_with_tokens()
        if not children and element.kind is not SyntaxKind.SOURCE_FILE:
            lines[-1] += f" {element.text!r}"
        for child in children:
            walk(child, depth + 1)

    walk(node, 0)
    return "\n".join(lines)
