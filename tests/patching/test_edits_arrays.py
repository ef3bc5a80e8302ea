import pytest

from retrofit.edits import (
    NotApplicable,
    append_unique_values,
    class_constant,
    find_return_array,
    merge_into_array_literal,
    to_expression,
)
from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_expression, parse_php
from retrofit.printer import print_node


def merged_text(array_code, entries):
    result = merge_into_array_literal(parse_expression(array_code), entries)
    assert not isinstance(result, NotApplicable), result
    return print_node(result)


@pytest.mark.parametrize(
    "array_code, entries, expected",
    [
        pytest.param("['a' => 1]", {"b": 2}, "['a' => 1, 'b' => 2]", id="append_missing_key"),
        pytest.param("[]", {"a": True, "b": None}, "['a' => true, 'b' => null]", id="into_empty_array"),
        pytest.param("['a' => 1]", {"a": 5}, "['a' => 1]", id="existing_scalar_wins"),
        pytest.param("['a' => $custom]", {"a": "default"}, "['a' => $custom]", id="existing_expression_wins"),
        pytest.param("[1 => 'one']", {"1": "uno"}, "[1 => 'one']", id="numeric_string_key_matches_int_key"),
        pytest.param("['bootstrap' => ['log']]", {"bootstrap": ["log", "shop"]}, "[\n    'bootstrap' => ['log', 'shop'],\n]", id="append_unique_list_values"),
        pytest.param(
            "['components' => ['foo' => Foo::class]]",
            {"components": {"bar": class_constant("Bar")}},
            "[\n    'components' => ['foo' => Foo::class, 'bar' => Bar::class],\n]",
            id="merge_nested_mapping",
        ),
        pytest.param(
            "[FOO::class => 'x']",
            [(class_constant("foo"), "y")],
            "[FOO::class => 'x']",
            id="class_constant_keys_compare_case_insensitively",
        ),
    ],
)
def test_merge_into_array_literal(array_code, entries, expected):
    assert merged_text(array_code, entries) == expected


@pytest.mark.parametrize(
    "array_code, entries",
    [
        pytest.param("$this->buildConfig()", {"a": 1}, id="not_an_array"),
        pytest.param("['components' => $components]", {"components": {"x": 1}}, id="nested_target_not_an_array"),
        pytest.param("['bootstrap' => BOOTSTRAP]", {"bootstrap": ["log"]}, id="list_target_not_an_array"),
        pytest.param("[...$defaults, 'a' => 1]", {"b": 2}, id="spread_item"),
        pytest.param("[$key => 1]", {"b": 2}, id="dynamic_key"),
        pytest.param("['components' => [...$base]]", {"components": {"x": 1}}, id="nested_spread_item"),
    ],
)
def test_merge_not_applicable(array_code, entries):
    result = merge_into_array_literal(parse_expression(array_code), entries)
    assert isinstance(result, NotApplicable)
    assert not result
    assert result.reason


def test_merge_is_idempotent():
    entries = {"components": {"bar": class_constant("Bar")}, "bootstrap": ["bar"], "id": "app"}
    array = parse_expression("['components' => ['foo' => Foo::class], 'bootstrap' => []]")

    once = merge_into_array_literal(array, entries)
    twice = merge_into_array_literal(once, entries)

    assert twice == once
    assert print_node(twice) == print_node(once)


def test_merge_does_not_modify_its_input():
    array = parse_expression("['a' => ['b' => 1]]")
    before = array.model_copy(deep=True)

    merge_into_array_literal(array, {"a": {"c": 2}, "d": 3})

    assert array == before


def test_appended_entries_keep_their_order():
    result = merge_into_array_literal(parse_expression("[]"), {"z": 1, "a": 2, "m": 3})
    assert [item.key.value for item in result.items] == ["z", "a", "m"]


def test_append_unique_values():
    result = append_unique_values(parse_expression("['log', Foo::class]"), ["log", class_constant("Foo"), "debug"])
    assert print_node(result) == "['log', Foo::class, 'debug']"


@pytest.mark.parametrize(
    "value, expected",
    [
        pytest.param("it's", "'it\\'s'", id="string"),
        pytest.param(3, "3", id="int"),
        pytest.param(False, "false", id="bool"),
        pytest.param(None, "null", id="null"),
        pytest.param(["a", "b"], "['a', 'b']", id="list"),
        pytest.param({"a": 1}, "['a' => 1]", id="dict"),
    ],
)
def test_to_expression(value, expected):
    assert print_node(to_expression(value)) == expected


def test_to_expression_rejects_unknown_values():
    with pytest.raises(TypeError):
        to_expression(object())


config_file_code = """<?php
if (!defined('APP')) {
    return [];
}

return ['id' => 'app'];
"""


def test_find_return_array_uses_first_top_level_return():
    array = find_return_array(parse_php(config_file_code))
    assert isinstance(array, ArrayLiteral)
    assert array.items[0].key.value == "id"


def test_find_return_array_without_return():
    result = find_return_array(parse_php("<?php\n$a = 1;\n"))
    assert isinstance(result, NotApplicable)
