"""
Depth-first traversal over the syntax tree with enter/leave hooks.

A hook returns `None` (or `Action.CONTINUE`) to keep walking, `Replace(node)`
to substitute the current node in its parent's slot, `Action.SKIP_CHILDREN`
to avoid descending into the current node, or `Action.STOP_TRAVERSAL` to halt
the whole walk. Nothing after a stop is visited, including pending leave hooks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from retrofit.parser.core.classes import ASTNode


class Action(Enum):
    CONTINUE = "continue"
    SKIP_CHILDREN = "skip_children"
    STOP_TRAVERSAL = "stop_traversal"


@dataclass
class Replace:
    """Substitutes the visited node. The replacement itself is not visited."""

    node: ASTNode


HookResult = Optional[Union[Action, Replace]]


class NodeVisitor:
    """
    Base class for stateful visitors. Subclasses override one or both hooks and
    set `matched` (and optionally `outcome`) so that callers can tell a walk that
    found its target from one that went through the whole tree for nothing.
    """

    def __init__(self):
        self.matched = False
        self.outcome: Any = None

    def enter_node(self, node: ASTNode) -> HookResult:
        return None

    def leave_node(self, node: ASTNode) -> HookResult:
        return None


class CallbackVisitor(NodeVisitor):
    """Wraps plain callables as hooks. A callable may flip `visitor.matched` through its closure."""

    def __init__(self, enter_node: Optional[Callable] = None, leave_node: Optional[Callable] = None):
        super().__init__()
        self._enter = enter_node
        self._leave = leave_node

    def enter_node(self, node: ASTNode) -> HookResult:
        return self._enter(node) if self._enter else None

    def leave_node(self, node: ASTNode) -> HookResult:
        return self._leave(node) if self._leave else None


class _Walker:
    def __init__(self, visitor: NodeVisitor):
        self.visitor = visitor
        self.stopped = False

    def visit(self, node: ASTNode) -> ASTNode:
        result = self.visitor.enter_node(node)
        if isinstance(result, Replace):
            return result.node
        if result is Action.STOP_TRAVERSAL:
            self.stopped = True
            return node

        if result is not Action.SKIP_CHILDREN:
            self._visit_children(node)
            if self.stopped:
                return node

        result = self.visitor.leave_node(node)
        if isinstance(result, Replace):
            return result.node
        if result is Action.STOP_TRAVERSAL:
            self.stopped = True
        return node

    def _visit_children(self, node: ASTNode):
        for field_name, index, child in list(node.child_slots()):
            new_child = self.visit(child)
            if new_child is not child:
                if index is None:
                    setattr(node, field_name, new_child)
                else:
                    getattr(node, field_name)[index] = new_child
            if self.stopped:
                return


def traverse(tree: ASTNode, visitor: NodeVisitor) -> ASTNode:
    """
    Walks `tree` depth-first: `enter_node` in pre-order, `leave_node` in
    post-order, children in field declaration order. Returns the root, which is
    a different object only when a hook replaced the root itself.
    """
    return _Walker(visitor).visit(tree)


def find_first(tree: ASTNode, predicate: Callable[[ASTNode], bool]) -> Optional[ASTNode]:
    """Returns the first node in pre-order that satisfies `predicate`, stopping there."""

    def enter(node):
        if predicate(node):
            visitor.matched = True
            visitor.outcome = node
            return Action.STOP_TRAVERSAL
        return None

    visitor = CallbackVisitor(enter_node=enter)
    traverse(tree, visitor)
    return visitor.outcome
