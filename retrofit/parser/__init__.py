from .core.parser import parse_expression, parse_php, parse_statements
