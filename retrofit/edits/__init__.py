from .arrays import append_unique_values, merge_into_array_literal
from .docblocks import append_doc_line, has_doc_line
from .imports import ImportTable, add_imports, ensure_import
from .literals import class_constant, to_expression
from .methods import append_statement, find_return, find_return_array, has_statement, is_named_method
from .results import Applied, NotApplicable, PatchResult
