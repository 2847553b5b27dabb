"""Tests for type text parsing and length-bounded rendering."""

import pytest

from inlayhints.semantics import UNIT, UNKNOWN, Ty, TyKind
from inlayhints.type_display import parse_type, render_type


class TestParseType:
    def test_nested_reference(self):
        ty = parse_type("&mut Vec<(i32, char)>")
        assert ty == Ty.ref(
            Ty.named("Vec", Ty(TyKind.TUPLE, args=(Ty.named("i32"), Ty.named("char")))),
            mutable=True,
        )

    def test_special_types(self):
        assert parse_type("()") == UNIT
        assert parse_type("{unknown}") == UNKNOWN
        assert parse_type("!").kind is TyKind.NEVER

    def test_parenthesized_type_is_unwrapped(self):
        assert parse_type("(u8)") == Ty.named("u8")

    def test_one_element_tuple(self):
        ty = parse_type("(i32,)")
        assert ty.kind is TyKind.TUPLE
        assert render_type(ty) == "(i32,)"

    def test_slices_and_arrays(self):
        assert parse_type("[u8]") == Ty(TyKind.SLICE, args=(Ty.named("u8"),))
        array = parse_type("[u8; 4]")
        assert array.kind is TyKind.ARRAY
        assert array.name == "4"

    def test_paths_keep_segments(self):
        ty = parse_type("core::iter::Take<I>")
        assert ty.name == "core::iter::Take"
        assert ty.args == (Ty.named("I"),)

    def test_closures(self):
        ty = parse_type("|i32, i32| -> i32")
        assert ty.kind is TyKind.CLOSURE
        assert len(ty.args) == 2
        assert ty.ret == Ty.named("i32")
        assert parse_type("||") == Ty(TyKind.CLOSURE, ret=UNIT)

    def test_opaque_types_are_kept_verbatim(self):
        assert parse_type("Box<dyn Display + Sync>").args == (Ty.named("dyn Display + Sync"),)
        assert parse_type("Box<dyn Fn(u8) -> u8>").args == (Ty.named("dyn Fn(u8) -> u8"),)
        assert parse_type("&(dyn Display + Sync)") == Ty.ref(Ty.named("(dyn Display + Sync)"))

    @pytest.mark.parametrize("text", ["", "   ", "Vec<i32", "&", "::", "i32 u8", "(i32"])
    def test_invalid_type_text(self, text):
        with pytest.raises(ValueError):
            parse_type(text)


class TestRenderType:
    @pytest.mark.parametrize(
        "text",
        [
            "()",
            "!",
            "{unknown}",
            "&mut Vec<(i32, char)>",
            "[u8; 4]",
            "&[u8]",
            "|i32, i32| -> i32",
            "|| -> ()",
            "Vec<Box<dyn Display + Sync>>",
            "HashMap<String, Vec<u8>>",
        ],
    )
    def test_full_rendering(self, text):
        assert render_type(parse_type(text)) == text

    def test_fits_without_change(self):
        ty = parse_type("Vec<u8>")
        assert render_type(ty, 7) == "Vec<u8>"

    def test_deepest_level_collapses_first(self):
        ty = parse_type("Smol<Smol<Smol<u32>>>")
        assert render_type(ty, 15) == "Smol<Smol<…>>"
        assert render_type(ty, 8) == "Smol<…>"

    def test_references_do_not_add_a_level(self):
        ty = parse_type("&Smol<Smol<u32>>")
        assert render_type(ty, 14) == "&Smol<Smol<…>>"

    def test_closure_parameters_collapse(self):
        ty = parse_type("|Vec<u8>, i32| -> bool")
        assert render_type(ty, 12) == "|…| -> bool"

    def test_collapsed_array(self):
        ty = parse_type("[Vec<u8>; 16]")
        assert render_type(ty, 5) == "[…]"

    def test_may_exceed_budget_when_fully_collapsed(self):
        ty = parse_type("VeryLongName<u8>")
        assert render_type(ty, 4) == "VeryLongName<…>"
