from typing import List, Optional, Union

from retrofit.parser.core.classes import ArrayLiteral, ASTNode, Method, Namespace, Return, SourceFile
from retrofit.parser.core.parser import strip_spans

from .results import NotApplicable


def is_named_method(node: ASTNode, name: str) -> bool:
    """True iff `node` is a method declaration called exactly `name` (case-sensitive)."""
    return isinstance(node, Method) and node.name == name


def _top_level_statements(container: Union[Method, SourceFile]) -> List[ASTNode]:
    if isinstance(container, Method):
        return container.body or []
    statements = []
    for statement in container.statements:
        if isinstance(statement, Namespace) and statement.body is not None:
            statements.extend(statement.body)
        else:
            statements.append(statement)
    return statements


def find_return(container: Union[Method, SourceFile]) -> Optional[Return]:
    """The first top-level `return` statement of a method body or a file."""
    return next((s for s in _top_level_statements(container) if isinstance(s, Return)), None)


def find_return_array(container: Union[Method, SourceFile]) -> Union[ArrayLiteral, NotApplicable]:
    """
    Locates the array literal returned by the first top-level `return` statement
    of a method body, or of a file (e.g. `return [...]` in a config file).
    Nested returns (inside `if` blocks, closures...) are not considered.
    """
    where = f"method '{container.name}()'" if isinstance(container, Method) else "the file"
    returned = find_return(container)
    if returned is None:
        return NotApplicable(f"No top-level return statement in {where}.")
    if not isinstance(returned.expr, ArrayLiteral):
        return NotApplicable(f"The return statement in {where} does not return an array literal.")
    return returned.expr


def has_statement(method: Method, statement: ASTNode) -> bool:
    """True iff the method body already holds a statement structurally equal to `statement`, ignoring layout."""
    wanted = strip_spans(statement.model_copy(deep=True))
    return any(strip_spans(s.model_copy(deep=True)) == wanted for s in method.body or [])


def append_statement(method: Method, statement: ASTNode) -> Union[Method, NotApplicable]:
    """Returns a copy of `method` with `statement` at the end of its body."""
    if method.body is None:
        return NotApplicable(f"Method '{method.name}()' has no body.")
    return method.model_copy(update={"body": method.body + [statement]})
