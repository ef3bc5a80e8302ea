"""
Custom exception types for retrofit.

Only conditions that abort the current artifact are raised. A patch whose
target has an unexpected shape is not an error: it is reported as a
`NotApplicable` result value by the edit operations and the Workspace.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from retrofit.parser.core.classes import Span


class ErrorCode(Enum):

    # --- Syntax Pre-Parsing Errors ---
    SYNTAX_MISSING_OPEN_TAG = "Syntax Error: The file must start with an opening '<?php' tag."
    SYNTAX_UNMATCHED_BRACKET = "Syntax Error: Unmatched bracket '{char}'."
    SYNTAX_UNCLOSED_STRING = "Syntax Error: Unclosed string literal."
    SYNTAX_UNCLOSED_COMMENT = "Syntax Error: Unclosed block comment."
    SYNTAX_UNSUPPORTED_CONSTRUCT = "Syntax Error: {construct} is not supported by the patch engine."

    # This code is for when the parser finds a token that is valid, but not in the right place.
    SYNTAX_UNEXPECTED_TOKEN = "Syntax Error: Invalid syntax. {details}"

    # This code is for when the lexer finds a character that doesn't belong to any token.
    SYNTAX_INVALID_CHARACTER = "Syntax Error: Invalid character '{char}' found."

    # This is a fallback for any other, less common parsing errors from Lark.
    SYNTAX_PARSING_ERROR = "Syntax Error: A general parsing error occurred. Details: {details}"

    # --- Class Name Errors ---
    INVALID_CLASS_NAME = "`{name}` is an invalid class/namespace."

    # --- Synthesis Errors ---
    UNKNOWN_BASE_TYPE = "Type '{name}' is not declared in '{path}'."
    UNKNOWN_CONSTANT = "Base type '{type_name}' declares no constant named '{name}'."
    UNKNOWN_PROPERTY = "Base type '{type_name}' declares no property named '${name}'."
    UNKNOWN_METHOD = "Base type '{type_name}' declares no method named '{name}()'."
    DUPLICATE_MEMBER = "Member '{name}' is selected more than once."
    INVALID_OVERRIDE = "Override for '{name}' is not valid PHP: {details}"

    # --- Import Errors ---
    ALIAS_EXHAUSTED = "Could not find a free alias for '{name}' after {attempts} attempts."

    # --- Workspace Errors ---
    FILE_NOT_FOUND = "File not found: '{path}'"
    INVALID_STATE_TRANSITION = "Cannot {operation} a workspace in state '{state}'."


class RetrofitError(Exception):
    def __init__(
        self,
        code: ErrorCode,
        span: Optional["Span"] = None,
        file_path: Optional[str] = None,
        **kwargs,
    ):
        self.code = code
        self.span = span
        self.file_path = file_path
        self.details = kwargs

        # The format string (e.g., "Unmatched bracket '{char}'") is populated
        # with any extra data it needs from kwargs.
        core_message = code.value.format(**kwargs)

        location_prefix = ""
        line = kwargs.get("line")
        if span:
            location_prefix = f"Error in '{file_path or '<stdin>'}' (Line: {span.s_line}, Column: {span.s_col}):\n"
        elif file_path and line is not None:
            location_prefix = f"Error in '{file_path}' (Line: {line}):\n"
        elif file_path:
            location_prefix = f"Error in '{file_path}': "
        elif line is not None:
            location_prefix = f"Error on line {line}: "

        self.message = location_prefix + core_message

        super().__init__(self.message)


class ParseError(RetrofitError):
    """The file is not readable as PHP source. Fatal for that file."""


class MemberLookupError(RetrofitError, LookupError):
    """A selected member does not exist on the base type."""


class AliasExhaustedError(RetrofitError):
    """No free import alias could be found within the allowed number of attempts."""


class WorkspaceStateError(RetrofitError):
    """A Workspace operation was called out of order."""


class InvalidClassNameError(RetrofitError, ValueError):
    """A class or namespace name is not syntactically valid."""


class InternalError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
