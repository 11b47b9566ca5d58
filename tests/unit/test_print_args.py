"""Tests for codespark.print_args."""

from __future__ import annotations

from codespark.print_args import (
    PartKind,
    PrintPart,
    extract_print_content,
    parse_print_arguments,
    resolve_print_parts,
)


def _string(value: str) -> PrintPart:
    return PrintPart(kind=PartKind.STRING, value=value)


def _var(name: str) -> PrintPart:
    return PrintPart(kind=PartKind.VARIABLE, name=name)


class TestExtractPrintContent:
    def test_simple(self):
        assert extract_print_content("print(area)") == "area"

    def test_greedy_to_last_paren(self):
        assert extract_print_content("print(len(x))") == "len(x)"

    def test_not_a_print(self):
        assert extract_print_content("x = 1") is None


class TestParsePrintArguments:
    def test_string_then_variable(self):
        assert parse_print_arguments('"Sum is", total') == [_string("Sum is"), _var("total")]

    def test_comma_inside_quotes_is_kept(self):
        assert parse_print_arguments('"a,b", x') == [_string("a,b"), _var("x")]

    def test_single_quotes(self):
        assert parse_print_arguments("'hi'") == [_string("hi")]

    def test_other_quote_inside_literal(self):
        assert parse_print_arguments('"it\'s", n') == [_string("it's"), _var("n")]

    def test_variable_spaces_dropped(self):
        assert parse_print_arguments("a + b") == [_var("a+b")]

    def test_several_variables(self):
        assert parse_print_arguments("a, b,c") == [_var("a"), _var("b"), _var("c")]

    def test_empty_string_literal(self):
        assert parse_print_arguments('""') == [_string("")]

    def test_empty_content(self):
        assert parse_print_arguments("") == []

    def test_opening_quote_discards_pending_text(self):
        assert parse_print_arguments('x"hi"') == [_string("hi")]


class TestResolvePrintParts:
    def test_variables_get_store_values(self):
        parts = resolve_print_parts([_string("User Number is"), _var("userNo")], {"userNo": "101"})
        assert parts[0].value == "User Number is"
        assert parts[1].value == "101"
        assert parts[1].name == "userNo"

    def test_unknown_name_falls_back_to_token(self):
        parts = resolve_print_parts([_var("a+b")], {"a": "3"})
        assert parts[0].value == "a+b"

    def test_empty_value_falls_back_to_token(self):
        parts = resolve_print_parts([_var("blank")], {"blank": ""})
        assert parts[0].value == "blank"
