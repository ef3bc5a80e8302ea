"""
Merging registration entries into an existing array literal.

Entries are given as a mapping (or a sequence of key/value pairs). For each key:

* key absent: a new `key => value` item is appended, in entry order;
* key present and the entry value is a mapping: the mapping is merged into the
  existing nested array literal;
* key present and the entry value is a list: its values are appended to the
  existing list-style array unless already there;
* key present otherwise: the existing item is left alone, whatever its value.

The merge never rewrites an expression it does not understand: if the target,
or an existing value the merge would have to descend into, is not a plain array
literal with static keys, the result is `NotApplicable`.
"""

from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from retrofit.parser.core.classes import ArrayItem, ArrayLiteral, ASTNode, ClassConstFetch, Literal, Reference
from retrofit.parser.core.parser import strip_spans

from .literals import to_expression
from .results import NotApplicable

Entries = Union[Mapping[Any, Any], Iterable[Tuple[Any, Any]]]


def _static_key(node: ASTNode) -> Optional[tuple]:
    """A hashable identity for a key expression, or None when the key is dynamic."""
    if isinstance(node, Literal) and node.kind in ("string", "int"):
        value = node.value
        # PHP casts decimal integer strings used as keys to integers.
        if isinstance(value, str) and value.isdigit() and (value == "0" or not value.startswith("0")):
            value = int(value)
        return ("literal", value)
    if isinstance(node, Literal):
        return ("literal", node.value)
    if isinstance(node, Reference):
        return ("constant", node.name.lstrip("\\"))
    if isinstance(node, ClassConstFetch) and isinstance(node.class_ref, Reference):
        return ("class_constant", node.class_ref.name.lstrip("\\").lower(), node.constant)
    return None


def _same_value(left: ASTNode, right: ASTNode) -> bool:
    if isinstance(left, Literal) and isinstance(right, Literal):
        return (left.kind, left.value) == (right.kind, right.value)
    if isinstance(left, ClassConstFetch) and isinstance(right, ClassConstFetch):
        return _static_key(left) is not None and _static_key(left) == _static_key(right)
    return strip_spans(left.model_copy(deep=True)) == strip_spans(right.model_copy(deep=True))


def _check_mergeable(array: ArrayLiteral) -> Optional[NotApplicable]:
    for item in array.items:
        if item.unpack:
            return NotApplicable("The array contains a spread ('...') item.")
        if item.key is not None and _static_key(item.key) is None:
            return NotApplicable("The array has a dynamic key.")
    return None


def merge_into_array_literal(array: ASTNode, entries: Entries) -> Union[ArrayLiteral, NotApplicable]:
    """
    Returns a copy of `array` with `entries` merged in, or `NotApplicable` when
    `array` (or a nested value the merge must descend into) is not a plain literal.
    Applying the same entries twice gives the same result as applying them once.
    """
    if not isinstance(array, ArrayLiteral):
        return NotApplicable(f"Expected an array literal, found {type(array).__name__}.")
    problem = _check_mergeable(array)
    if problem is not None:
        return problem

    merged = array.model_copy(deep=True)
    pairs = entries.items() if isinstance(entries, Mapping) else entries
    for key, value in pairs:
        key_node = to_expression(key)
        key_id = _static_key(key_node)
        if key_id is None:
            return NotApplicable(f"Entry key {key!r} is not a static key.")

        existing = next((item for item in merged.items if item.key is not None and _static_key(item.key) == key_id), None)
        if existing is None:
            merged.items.append(ArrayItem(key=key_node, value=to_expression(value)))
            continue

        if isinstance(value, Mapping):
            nested = merge_into_array_literal(existing.value, value)
            if isinstance(nested, NotApplicable):
                return NotApplicable(f"Cannot merge into key {key!r}: {nested.reason}")
            existing.value = nested
        elif isinstance(value, (list, tuple)):
            nested = append_unique_values(existing.value, value)
            if isinstance(nested, NotApplicable):
                return NotApplicable(f"Cannot merge into key {key!r}: {nested.reason}")
            existing.value = nested
        # Anything else: the existing value wins.

    return merged


def append_unique_values(array: ASTNode, values: Iterable[Any]) -> Union[ArrayLiteral, NotApplicable]:
    """Appends each value to a list-style array literal unless an equal value is already present."""
    if not isinstance(array, ArrayLiteral):
        return NotApplicable(f"Expected an array literal, found {type(array).__name__}.")
    problem = _check_mergeable(array)
    if problem is not None:
        return problem

    merged = array.model_copy(deep=True)
    for value in values:
        node = to_expression(value)
        if not any(_same_value(item.value, node) for item in merged.items):
            merged.items.append(ArrayItem(value=node))
    return merged
