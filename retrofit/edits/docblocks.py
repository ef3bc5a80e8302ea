from typing import Union

from retrofit.parser.core.classes import DECLARATIONS_WITH_DOCS, ASTNode, DocComment

from .results import NotApplicable


def has_doc_line(declaration: ASTNode, line: str) -> bool:
    doc = getattr(declaration, "doc_comment", None)
    return doc is not None and any(existing.strip() == line.strip() for existing in doc.lines)


def append_doc_line(declaration: ASTNode, line: str) -> Union[ASTNode, NotApplicable]:
    """
    Returns a copy of `declaration` whose doc comment ends with `line`, creating
    the comment when there is none. Lines are not deduplicated: appending the
    same line twice yields it twice. Use `has_doc_line` to check first.
    """
    if not isinstance(declaration, DECLARATIONS_WITH_DOCS):
        return NotApplicable(f"{type(declaration).__name__} nodes cannot carry a doc comment.")

    doc = declaration.doc_comment
    if doc is None:
        new_doc = DocComment(lines=[line])
    else:
        new_doc = doc.model_copy(update={"lines": doc.lines + [line]})
    return declaration.model_copy(update={"doc_comment": new_doc})
