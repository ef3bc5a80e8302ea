"""Helpers for PHP class and namespace names."""

import re
from typing import Optional, Tuple

from retrofit.exceptions import ErrorCode, InvalidClassNameError

# Alphanumeric segments that do not start with a digit, separated by backslashes.
CLASS_NAME_REGEX = re.compile(r"^[a-z_]\w*(\\[a-z_]\w*)*$", re.IGNORECASE | re.ASCII)
CAMEL_BOUNDARY_REGEX = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def class_parts(fqcn: str) -> Tuple[Optional[str], str]:
    """Splits a fully-qualified class name into `(namespace, class name)`. The namespace is None at root level."""
    namespace, _, name = fqcn.rpartition("\\")
    return namespace or None, name


def namespace(fqcn: str) -> Optional[str]:
    return class_parts(fqcn)[0]


def class_name(fqcn: str) -> str:
    return class_parts(fqcn)[1]


def validate_class(name: str) -> bool:
    return bool(CLASS_NAME_REGEX.match(name))


def normalize_class(name: str) -> str:
    """
    Turns forward slashes into backslashes, collapses repeated backslashes and
    trims leading/trailing ones. Raises `InvalidClassNameError` when the result
    is not a valid class or namespace name.
    """
    normalized = re.sub(r"\\+", r"\\", name.replace("/", "\\")).strip("\\")
    if not validate_class(normalized):
        raise InvalidClassNameError(ErrorCode.INVALID_CLASS_NAME, name=normalized)
    return normalized


def camel_to_words(name: str) -> str:
    """`CacheService` -> `Cache Service`."""
    return CAMEL_BOUNDARY_REGEX.sub(" ", name.replace("_", " ")).strip()


def component_id(name: str) -> str:
    """The id a component is registered under: the class name with a lowercase first letter."""
    return name[:1].lower() + name[1:]
