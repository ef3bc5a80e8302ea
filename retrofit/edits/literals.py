"""
Builds fresh expression nodes from plain Python values, so callers can describe
merge entries as ordinary dicts and lists.
"""

from typing import Any

from retrofit.parser.core.classes import ArrayItem, ArrayLiteral, ASTNode, ClassConstFetch, Literal, Reference


def php_string(value: str) -> str:
    """Single-quoted PHP string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def class_constant(class_name: str) -> ClassConstFetch:
    """`Foo::class` for a class name or alias."""
    return ClassConstFetch(class_ref=Reference(name=class_name), constant="class")


def to_expression(value: Any) -> ASTNode:
    """
    Converts a Python value into an expression node:
    str/int/float/bool/None become literals, dicts become keyed arrays and
    lists/tuples become list-style arrays. Nodes are deep-copied as they are.
    """
    if isinstance(value, ASTNode):
        return value.model_copy(deep=True)
    if isinstance(value, bool):
        return Literal(kind="bool", value=value, raw="true" if value else "false")
    if value is None:
        return Literal(kind="null", value=None, raw="null")
    if isinstance(value, int):
        return Literal(kind="int", value=value, raw=str(value))
    if isinstance(value, float):
        return Literal(kind="float", value=value, raw=repr(value))
    if isinstance(value, str):
        return Literal(kind="string", value=value, raw=php_string(value))
    if isinstance(value, dict):
        items = [ArrayItem(key=to_expression(k), value=to_expression(v)) for k, v in value.items()]
        return ArrayLiteral(items=items)
    if isinstance(value, (list, tuple)):
        return ArrayLiteral(items=[ArrayItem(value=to_expression(v)) for v in value])
    raise TypeError(f"Cannot express a value of type '{type(value).__name__}' in PHP.")
