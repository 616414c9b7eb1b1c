"""Tests for literal parsing and integer folding helpers."""

import pytest

from cregistry.errors import LiteralEvaluationError
from cregistry.frontend.c import SyntheticType
from cregistry.frontend.cursor import TypeKind
from cregistry.frontend.evaluate import (
    canonical_int_suffix,
    is_float_literal,
    parse_char_literal,
    parse_float_literal,
    parse_int_literal,
    size_of,
    string_literal_content,
    wrap_integer,
)


class TestIntLiterals:
    def test_hex_with_unsigned_suffix(self):
        assert parse_int_literal("0x1Fu") == (31, "U")

    def test_decimal_with_unsigned_long_suffix(self):
        assert parse_int_literal("10ul") == (10, "UL")

    def test_octal(self):
        assert parse_int_literal("010") == (8, "")

    def test_binary(self):
        assert parse_int_literal("0b101") == (5, "")

    def test_zero(self):
        assert parse_int_literal("0") == (0, "")

    def test_digit_separators_are_ignored(self):
        assert parse_int_literal("1'000") == (1000, "")

    def test_malformed(self):
        with pytest.raises(LiteralEvaluationError):
            parse_int_literal("0xZZ")

    @pytest.mark.parametrize(
        "raw, expected",
        [("", ""), ("u", "U"), ("l", "L"), ("lu", "UL"), ("LLU", "ULL"), ("ll", "LL")],
    )
    def test_canonical_suffix(self, raw, expected):
        assert canonical_int_suffix(raw) == expected


class TestFloatLiterals:
    def test_detection(self):
        assert is_float_literal("1.5")
        assert is_float_literal("1e10")
        assert is_float_literal("0x1p3")
        assert not is_float_literal("0x1E")
        assert not is_float_literal("42")

    def test_float_suffix(self):
        assert parse_float_literal("1.5f") == ("1.5", "F")

    def test_long_double_suffix(self):
        assert parse_float_literal("2.0L") == ("2.0", "L")

    def test_no_suffix(self):
        assert parse_float_literal("3.25") == ("3.25", "")


class TestCharLiterals:
    def test_plain(self):
        assert parse_char_literal("'a'") == 97

    def test_simple_escape(self):
        assert parse_char_literal("'\\n'") == 10

    def test_hex_escape(self):
        assert parse_char_literal("'\\x41'") == 65

    def test_octal_escape(self):
        assert parse_char_literal("'\\0'") == 0
        assert parse_char_literal("'\\101'") == 65

    def test_prefixed(self):
        assert parse_char_literal("L'a'") == 97

    def test_empty_is_rejected(self):
        with pytest.raises(LiteralEvaluationError):
            parse_char_literal("''")

    def test_unknown_escape_is_rejected(self):
        with pytest.raises(LiteralEvaluationError):
            parse_char_literal("'\\q'")


class TestStrings:
    def test_content_between_quotes(self):
        assert string_literal_content('"hello"') == "hello"

    def test_escapes_kept_verbatim(self):
        assert string_literal_content('"a\\nb"') == "a\\nb"

    def test_prefixed(self):
        assert string_literal_content('u8"x"') == "x"


class TestWidths:
    def test_unsigned_char_wraps(self):
        assert wrap_integer(256, TypeKind.UCHAR) == 0

    def test_int_wraps_to_negative(self):
        assert wrap_integer(0xFFFFFFFF, TypeKind.INT) == -1

    def test_bool_collapses(self):
        assert wrap_integer(7, TypeKind.BOOL) == 1

    def test_non_integer_kind_is_untouched(self):
        assert wrap_integer(1 << 40, TypeKind.DOUBLE) == 1 << 40

    def test_size_of_pointer(self):
        pointer = SyntheticType(
            TypeKind.POINTER, pointee=SyntheticType(TypeKind.CHAR_S)
        )
        assert size_of(pointer) == 8

    def test_size_of_constant_array(self):
        array = SyntheticType(
            TypeKind.CONSTANT_ARRAY,
            element_type=SyntheticType(TypeKind.INT),
            array_size=3,
        )
        assert size_of(array) == 12

    def test_size_of_record_is_unknown(self):
        with pytest.raises(LiteralEvaluationError):
            size_of(SyntheticType(TypeKind.RECORD, spelling="struct S"))
