import json

import pytest

from nparrot.validation import (
    ParameterError,
    extract_error_context,
    sanitize_json_parameters,
)


@pytest.mark.parametrize("params", ["", "   ", "\n\t"])
def test_blank_parameters_become_empty_object(params):
    assert sanitize_json_parameters(params) == "{}"


def test_valid_object_round_trips():
    result = sanitize_json_parameters('{"message": "Hello world"}')
    assert json.loads(result) == {"message": "Hello world"}


def test_trailing_text_after_object_is_dropped():
    result = sanitize_json_parameters('{"message": "Hello world"}\nI\'m working on this')
    assert json.loads(result) == {"message": "Hello world"}


def test_trailing_comment_is_dropped():
    result = sanitize_json_parameters('{"message": "Hello world"} // sending message')
    assert json.loads(result) == {"message": "Hello world"}


def test_braces_inside_strings_do_not_end_object():
    result = sanitize_json_parameters('{"message": "a } b { c"} extra')
    assert json.loads(result) == {"message": "a } b { c"}


def test_escaped_quote_inside_string():
    result = sanitize_json_parameters('{"message": "say \\"hi\\" }"} tail')
    assert json.loads(result) == {"message": 'say "hi" }'}


def test_output_is_compact_with_sorted_keys():
    assert sanitize_json_parameters('{"b": 1, "a": 2}') == '{"a":2,"b":1}'


def test_strings_are_trimmed():
    result = sanitize_json_parameters('{"message": "   padded   "}')
    assert json.loads(result) == {"message": "padded"}


def test_symbols_outside_ascii_are_removed():
    result = sanitize_json_parameters('{"message": "done \U0001f525"}')
    assert json.loads(result) == {"message": "done"}


def test_non_ascii_letters_are_kept():
    result = sanitize_json_parameters('{"message": "héllo wörld"}')
    assert json.loads(result) == {"message": "héllo wörld"}


def test_keys_that_sanitize_to_empty_are_dropped():
    result = sanitize_json_parameters('{"  ": 1, "a": 2}')
    assert json.loads(result) == {"a": 2}


def test_nested_values_are_sanitized():
    result = sanitize_json_parameters('{"items": [" x ", {"k": " y "}], "n": 3, "f": true}')
    assert json.loads(result) == {"items": ["x", {"k": "y"}], "n": 3, "f": True}


def test_top_level_array_is_accepted():
    result = sanitize_json_parameters("[1, 2, 3]")
    assert json.loads(result) == [1, 2, 3]


def test_unclosed_object_is_closed():
    result = sanitize_json_parameters('{"message": "hi"')
    assert json.loads(result) == {"message": "hi"}


def test_bare_members_are_wrapped_in_braces():
    result = sanitize_json_parameters('"message": "hi"')
    assert json.loads(result) == {"message": "hi"}


def test_unrecoverable_input_raises():
    with pytest.raises(ParameterError) as info:
        sanitize_json_parameters("not json at all")
    assert str(info.value).startswith("Invalid JSON parameters: ")


def test_parameter_error_is_a_value_error():
    with pytest.raises(ValueError):
        sanitize_json_parameters("{{{ nope")


@pytest.mark.parametrize(
    "params",
    [
        '{"message": "Hello world"} trailing',
        '{"b": [1, " two "], "a": {"c": " d "}}',
        '"message": "x"',
        "[1, 2]",
    ],
)
def test_sanitizing_is_idempotent(params):
    once = sanitize_json_parameters(params)
    assert sanitize_json_parameters(once) == once


def test_error_context_for_trailing_characters():
    assert extract_error_context("trailing characters at line 1 column 5") == (
        "Parameter JSON contains extra characters after valid JSON. "
        "Check for unclosed quotes or brackets."
    )


def test_error_context_for_expected():
    assert extract_error_context("expected value at line 1") == (
        "Parameter JSON is malformed. Check syntax and structure."
    )


def test_error_context_for_invalid_type():
    assert extract_error_context("invalid type: integer") == (
        "Parameter contains wrong data type. Check field types match expected schema."
    )


def test_error_context_fallback_includes_error():
    assert extract_error_context("boom") == "JSON parsing error: boom"