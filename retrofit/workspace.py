"""
The unit of work for patching one existing PHP file.

    UNLOADED --load--> LOADED --apply (Applied)--> MODIFIED --write--> WRITTEN
                       LOADED | MODIFIED --abort--> ABORTED

`apply` runs a visitor over a deep copy of the current tree and commits the
copy only when the visitor matched its target without reporting
`NotApplicable`. Nothing touches the disk before `write`, which performs
exactly one file write.
"""

import os
from enum import Enum
from typing import Any, Callable, Optional

from retrofit.config import SOURCE_ENCODING
from retrofit.edits import (
    Applied,
    ImportTable,
    NotApplicable,
    PatchResult,
    add_imports,
    append_doc_line,
    append_statement,
    ensure_import,
    find_return,
    find_return_array,
    has_statement,
    is_named_method,
    merge_into_array_literal,
)
from retrofit.edits.arrays import Entries
from retrofit.exceptions import ErrorCode, RetrofitError, WorkspaceStateError
from retrofit.logging import get_logger
from retrofit.parser.core.classes import ASTNode, ClassDecl, Method, SourceFile
from retrofit.parser.core.parser import parse_php
from retrofit.printer import Printer
from retrofit.visitor import Action, CallbackVisitor, NodeVisitor, Replace, traverse


class WorkspaceState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    MODIFIED = "modified"
    WRITTEN = "written"
    ABORTED = "aborted"


class Workspace:
    def __init__(self):
        self.state = WorkspaceState.UNLOADED
        self.path: Optional[str] = None
        self.source: Optional[str] = None
        self.original: Optional[SourceFile] = None
        self.tree: Optional[SourceFile] = None
        self.log = get_logger(__name__)

    def _require(self, operation: str, *states: WorkspaceState):
        if self.state not in states:
            raise WorkspaceStateError(ErrorCode.INVALID_STATE_TRANSITION, operation=operation, state=self.state.value)

    # --- Lifecycle ---

    def load(self, path: str) -> "Workspace":
        """Reads and parses `path`. A ParseError propagates and leaves the workspace unloaded."""
        self._require("load", WorkspaceState.UNLOADED)
        if not os.path.isfile(path):
            raise RetrofitError(ErrorCode.FILE_NOT_FOUND, path=path)

        # newline="" keeps CRLF line endings intact.
        with open(path, "r", encoding=SOURCE_ENCODING, newline="") as f:
            source = f.read()
        return self.load_text(source, path)

    def load_text(self, source: str, path: Optional[str] = None) -> "Workspace":
        """Like `load`, for text that is already in memory. `write` needs a path."""
        self._require("load", WorkspaceState.UNLOADED)
        tree = parse_php(source, file_path=path or "<memory>")

        self.path = path
        self.source = source
        self.original = tree
        self.tree = tree.model_copy(deep=True)
        self.state = WorkspaceState.LOADED
        self.log.debug("workspace_loaded", path=path, size=len(source))
        return self

    def apply(self, visitor: NodeVisitor) -> PatchResult:
        """
        Runs `visitor` over a copy of the tree. The edit applies when the visitor
        set `matched` and did not leave a `NotApplicable` in `outcome`.
        """
        self._require("apply", WorkspaceState.LOADED, WorkspaceState.MODIFIED)
        working = self.tree.model_copy(deep=True)
        new_tree = traverse(working, visitor)

        if isinstance(visitor.outcome, NotApplicable):
            return self._not_applicable(visitor.outcome)
        if not visitor.matched:
            return self._not_applicable(NotApplicable("No node matched the edit."))

        self.tree = new_tree
        self.state = WorkspaceState.MODIFIED
        text = self.render()
        self.log.info("patch_applied", path=self.path)
        return Applied(text)

    def _not_applicable(self, result: NotApplicable) -> NotApplicable:
        self.log.info("patch_not_applicable", path=self.path, reason=result.reason)
        return result

    def render(self) -> str:
        """The current tree as source text. Unchanged regions keep their original bytes."""
        self._require("render", WorkspaceState.LOADED, WorkspaceState.MODIFIED)
        return Printer(self.source, self.original).print(self.tree)

    def write(self) -> str:
        """Writes the modified tree back to the file it was loaded from and returns the text."""
        self._require("write", WorkspaceState.MODIFIED)
        if self.path is None:
            raise WorkspaceStateError(ErrorCode.INVALID_STATE_TRANSITION, operation="write", state="loaded from memory")

        text = self.render()
        with open(self.path, "w", encoding=SOURCE_ENCODING, newline="") as f:
            f.write(text)
        self.state = WorkspaceState.WRITTEN
        self.log.info("file_written", path=self.path, size=len(text))
        return text

    def abort(self):
        """Discards every pending edit. The file on disk is not touched."""
        self._require("abort", WorkspaceState.LOADED, WorkspaceState.MODIFIED)
        self.tree = None
        self.state = WorkspaceState.ABORTED
        self.log.debug("workspace_aborted", path=self.path)

    # --- Edit helpers ---

    @staticmethod
    def is_method(node: ASTNode, name: str) -> bool:
        return is_named_method(node, name)

    def import_class(self, fqcn: str, alias: Optional[str] = None) -> str:
        """
        Returns the alias to reference `fqcn` by in this file, adding a `use`
        statement when the class is not imported yet. Existing imports are
        never renamed.
        """
        table = ImportTable.from_source(self.tree)
        resolved = ensure_import(table, fqcn, alias)
        if not table.added:
            return resolved

        def enter(node):
            visitor.matched = True
            return Replace(add_imports(node, table.added))

        visitor = CallbackVisitor(enter_node=enter)
        self.apply(visitor)
        return resolved

    def modify_method_return_array(self, method_name: str, entries: Entries) -> PatchResult:
        """Merges `entries` into the array literal returned by the first method named `method_name`."""

        def enter(node):
            if not is_named_method(node, method_name):
                return None
            visitor.matched = True
            visitor.outcome = self._merge_returned_array(node, entries)
            return Action.STOP_TRAVERSAL

        visitor = CallbackVisitor(enter_node=enter)
        return self.apply(visitor)

    def modify_file_return_array(self, entries: Entries) -> PatchResult:
        """Merges `entries` into a file-level `return [...]`, as found in config files."""

        def enter(node):
            visitor.matched = True
            visitor.outcome = self._merge_returned_array(node, entries)
            return Action.STOP_TRAVERSAL

        visitor = CallbackVisitor(enter_node=enter)
        return self.apply(visitor)

    @staticmethod
    def _merge_returned_array(container, entries: Entries) -> Any:
        array = find_return_array(container)
        if isinstance(array, NotApplicable):
            return array
        merged = merge_into_array_literal(array, entries)
        if isinstance(merged, NotApplicable):
            return merged
        find_return(container).expr = merged
        return merged

    def append_doc_comment_on_class(self, line: str, class_name: Optional[str] = None) -> PatchResult:
        """Appends `line` to the doc comment of the first class (or of `class_name`)."""

        def enter(node):
            if not isinstance(node, ClassDecl) or (class_name and node.name != class_name):
                return None
            visitor.matched = True
            updated = append_doc_line(node, line)
            if isinstance(updated, NotApplicable):
                visitor.outcome = updated
            else:
                node.doc_comment = updated.doc_comment
            return Action.STOP_TRAVERSAL

        visitor = CallbackVisitor(enter_node=enter)
        return self.apply(visitor)


    def add_method_statement(
        self,
        method_name: str,
        statement: ASTNode,
        class_name: Optional[str] = None,
        create_method: Optional[Method] = None,
    ) -> PatchResult:
        """
        Appends `statement` to the body of method `method_name` on the first
        class (or on `class_name`). A method that already holds an equal
        statement is left as it is. When the class has no such method,
        `create_method` (if given) is added with `statement` as its only body
        statement.
        """

        def enter(node):
            if not isinstance(node, ClassDecl) or (class_name and node.name != class_name):
                return None
            visitor.matched = True
            index = next((i for i, member in enumerate(node.members) if is_named_method(member, method_name)), None)
            if index is None:
                if create_method is None:
                    visitor.outcome = NotApplicable(f"Class '{node.name}' has no method '{method_name}()'.")
                else:
                    node.members.append(create_method.model_copy(update={"name": method_name, "body": [statement]}))
                return Action.STOP_TRAVERSAL

            method = node.members[index]
            if has_statement(method, statement):
                return Action.STOP_TRAVERSAL
            updated = append_statement(method, statement)
            if isinstance(updated, NotApplicable):
                visitor.outcome = updated
            else:
                node.members[index] = updated
            return Action.STOP_TRAVERSAL

        visitor = CallbackVisitor(enter_node=enter)
        return self.apply(visitor)


def modify_file(path: str, callback: Callable[[Workspace], bool]) -> bool:
    """
    Loads `path`, hands the workspace to `callback` and writes the file only
    when the callback returns True and some edit was applied. Otherwise the
    workspace is aborted. Returns whether the file was written.
    """
    workspace = Workspace().load(path)
    if callback(workspace) and workspace.state is WorkspaceState.MODIFIED:
        workspace.write()
        return True
    workspace.abort()
    return False
