"""
Static configuration data for retrofit.
This includes printer layout, import aliasing rules, and token names.
"""

# --- Source Files ---
SOURCE_ENCODING = "utf-8"
OPEN_TAG = "<?php"

# --- Printer Layout (PSR-12) ---
INDENT = "    "
NEWLINE = "\n"

# Arrays with more items than this are printed one item per line.
INLINE_ARRAY_MAX_ITEMS = 3

# --- Import Aliasing ---
# When a short name is already taken, the first candidate tried is
# ALIAS_PREFIX + short name (e.g. `Plugin` -> `BasePlugin`).
ALIAS_PREFIX = "Base"
MAX_ALIAS_ATTEMPTS = 10

# PHP type names that never need to be imported.
BUILTIN_TYPES = {
    "array",
    "bool",
    "callable",
    "false",
    "float",
    "int",
    "iterable",
    "mixed",
    "never",
    "null",
    "object",
    "parent",
    "self",
    "static",
    "string",
    "true",
    "void",
}

# Bare names that are literals rather than constant references.
LITERAL_NAMES = {"true": ("bool", True), "false": ("bool", False), "null": ("null", None)}

CAST_TYPES = {"int", "integer", "bool", "boolean", "float", "double", "real", "string", "array", "object", "unset", "binary"}

# A mapping from Lark's internal token names to friendly, human-readable names.
TOKEN_FRIENDLY_NAMES = {
    "NAME": "a name",
    "VARIABLE": "a variable",
    "NUMBER": "a number",
    "SQ_STRING": "a string literal",
    "DQ_STRING": "a string literal",
    "OPEN_TAG": "an opening '<?php' tag",
    "SEMICOLON": "a semicolon ';'",
    "COMMA": "a comma ','",
    "LPAR": "an opening parenthesis '('",
    "RPAR": "a closing parenthesis ')'",
    "LSQB": "an opening bracket '['",
    "RSQB": "a closing bracket ']'",
    "LBRACE": "an opening brace '{'",
    "RBRACE": "a closing brace '}'",
    "EQUAL": "an equals sign '='",
    "$END": "the end of the file",
}
