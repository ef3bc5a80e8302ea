import re
from typing import Optional

from lark.exceptions import LarkError, UnexpectedCharacters, UnexpectedEOF, UnexpectedToken

from retrofit.config import OPEN_TAG, TOKEN_FRIENDLY_NAMES
from retrofit.exceptions import ErrorCode, ParseError

BRACKET_PAIRS = {"(": ")", "[": "]", "{": "}"}
OPENING_BRACKETS = set(BRACKET_PAIRS.keys())
CLOSING_BRACKETS = set(BRACKET_PAIRS.values())
HEREDOC_REGEX = re.compile(r"<<<\s*['\"]?[A-Za-z_]")


def pre_parsing_checks(script_content: str, file_path: str = "<stdin>", require_open_tag: bool = True):
    """
    Performs several simple pre-parsing checks for common errors to provide better error messages.
    This function checks for:
    1. A missing opening `<?php` tag.
    2. Mismatched or unclosed brackets across the entire file.
    3. Unclosed string literals and block comments.
    4. Heredoc/nowdoc strings, which the patch engine does not handle.

    Strings and comments are skipped while tracking brackets, so a `}` inside a
    string or a comment never counts.
    """
    if require_open_tag and not script_content.lstrip("\ufeff \t\r\n").startswith(OPEN_TAG):
        raise ParseError(ErrorCode.SYNTAX_MISSING_OPEN_TAG, file_path=file_path, line=1)

    bracket_stack = []  # A stack of (char, line_num)
    line_num = 1
    i = 0
    length = len(script_content)

    while i < length:
        char = script_content[i]

        if char == "\n":
            line_num += 1
            i += 1
            continue

        # --- Strings ---
        if char in ("'", '"'):
            start_line = line_num
            i += 1
            while i < length and script_content[i] != char:
                if script_content[i] == "\\":
                    i += 1
                elif script_content[i] == "\n":
                    line_num += 1
                i += 1
            if i >= length:
                raise ParseError(ErrorCode.SYNTAX_UNCLOSED_STRING, file_path=file_path, line=start_line)
            i += 1
            continue

        # --- Comments ---
        if script_content.startswith("/*", i):
            end = script_content.find("*/", i + 2)
            if end == -1:
                raise ParseError(ErrorCode.SYNTAX_UNCLOSED_COMMENT, file_path=file_path, line=line_num)
            line_num += script_content.count("\n", i, end)
            i = end + 2
            continue
        if script_content.startswith("//", i) or (char == "#" and not script_content.startswith("#[", i)):
            end = script_content.find("\n", i)
            i = length if end == -1 else end
            continue

        if char == "<" and HEREDOC_REGEX.match(script_content, i):
            raise ParseError(ErrorCode.SYNTAX_UNSUPPORTED_CONSTRUCT, file_path=file_path, line=line_num, construct="Heredoc/nowdoc syntax")

        # --- Brackets ---
        if char in OPENING_BRACKETS:
            bracket_stack.append((char, line_num))
        elif char in CLOSING_BRACKETS:
            if not bracket_stack:
                raise ParseError(ErrorCode.SYNTAX_UNMATCHED_BRACKET, file_path=file_path, line=line_num, char=char)
            opening_char, _ = bracket_stack.pop()
            if BRACKET_PAIRS[opening_char] != char:
                raise ParseError(ErrorCode.SYNTAX_UNMATCHED_BRACKET, file_path=file_path, line=line_num, char=char)

        i += 1

    if bracket_stack:
        # If the stack is not empty after checking the whole file, there's an unclosed bracket.
        opening_char, open_line = bracket_stack[-1]
        raise ParseError(ErrorCode.SYNTAX_UNMATCHED_BRACKET, file_path=file_path, line=open_line, char=opening_char)


def _friendly_name(name: str, terminal_text: dict) -> Optional[str]:
    if name in TOKEN_FRIENDLY_NAMES:
        return TOKEN_FRIENDLY_NAMES[name]
    if name in terminal_text:
        return f"'{terminal_text[name]}'"
    # Generated names like `__ANON_3` mean nothing to a reader.
    return None if name.startswith("__") else name


def _friendly(names, terminal_text: Optional[dict] = None) -> str:
    terminal_text = terminal_text or {}
    friendly = sorted({f for f in (_friendly_name(name, terminal_text) for name in names) if f})
    if len(friendly) > 1:
        return f"Expected one of: {', '.join(friendly[:-1])} or {friendly[-1]}"
    if friendly:
        return f"Expected {friendly[0]}"
    return ""


def _translate_lark_error(err: LarkError, file_path: str = "<stdin>", terminal_text: Optional[dict] = None) -> ParseError:
    """
    Translates a generic LarkError into a user-friendly ParseError.
    `terminal_text` maps terminal names to their literal text (`SEMICOLON` -> `;`).
    """

    if isinstance(err, UnexpectedToken):
        expected_str = _friendly(err.expected or [], terminal_text)
        found_token = err.token
        if found_token.type == "$END":
            found_str = "but reached the end of the file instead."
        else:
            found_str = f"but found '{found_token.value}' instead."
        details = f"{expected_str}, {found_str}" if expected_str else f"Found unexpected token '{found_token.value}'."
        return ParseError(ErrorCode.SYNTAX_UNEXPECTED_TOKEN, file_path=file_path, line=err.line, details=details)

    if isinstance(err, UnexpectedCharacters):
        return ParseError(ErrorCode.SYNTAX_INVALID_CHARACTER, file_path=file_path, line=err.line, char=err.char)

    if isinstance(err, UnexpectedEOF):
        expected_str = _friendly(err.expected or [], terminal_text)
        details = f"{expected_str}, but reached the end of the file instead." if expected_str else "Reached the end of the file unexpectedly."
        return ParseError(ErrorCode.SYNTAX_UNEXPECTED_TOKEN, file_path=file_path, details=details)

    # Fallback for any other Lark error
    return ParseError(ErrorCode.SYNTAX_PARSING_ERROR, file_path=file_path, line=getattr(err, "line", None), details=str(err))
