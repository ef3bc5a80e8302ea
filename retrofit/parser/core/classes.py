"""
Defines the data structures (contracts) for the syntax tree produced by the
parser stage and consumed by the visitor, the edit operations and the printer.

Each node is a pydantic model and carries an optional `Span` locating it in the
source it was parsed from. Nodes built by edits or by the class synthesizer have
no span: the printer renders those through its generic PSR-12 printer, while
spanned nodes that are unchanged re-emit their original bytes.
"""

from typing import Any, Iterator, List, Optional, Tuple

from pydantic import BaseModel

# --- Core Data Structures ---


class Span(BaseModel):
    """Represents a location in the source code. `start`/`end` are character offsets."""

    start: int
    end: int
    s_line: int
    s_col: int
    e_line: int
    e_col: int

    def key(self) -> Tuple[int, int]:
        return (self.start, self.end)


class ASTNode(BaseModel):
    """A base class for all syntax tree nodes."""

    span: Optional[Span] = None

    def child_slots(self) -> Iterator[Tuple[str, Optional[int], "ASTNode"]]:
        """
        Yields `(field_name, list_index, child)` for every direct child node, in
        field declaration order. `list_index` is None for single-node fields.
        """
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, ASTNode):
                yield name, None, value
            elif isinstance(value, list):
                for index, item in enumerate(value):
                    if isinstance(item, ASTNode):
                        yield name, index, item

    def to_dict(self) -> dict:
        """A JSON-friendly dump that keeps the concrete node type of every child."""
        data: dict = {"node": type(self).__name__}
        for name in type(self).model_fields:
            data[name] = _dump_value(getattr(self, name))
        return data


def _dump_value(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump_value(item) for item in value]
    return value


# --- Trivia ---


class DocComment(ASTNode):
    """A `/** ... */` block. `lines` holds the content without the leading ` * `."""

    lines: List[str] = []


class RawCode(ASTNode):
    """Caller-supplied statements that are emitted verbatim (re-indented)."""

    text: str


# --- Literals and References ---


class Literal(ASTNode):
    kind: str  # "string", "int", "float", "bool" or "null"
    value: Any = None
    raw: str


class Variable(ASTNode):
    name: str


class Reference(ASTNode):
    """A bare name: a constant, a class name, `self`, `static` or `parent`."""

    name: str


class ArrayItem(ASTNode):
    key: Optional[ASTNode] = None
    value: ASTNode
    by_ref: bool = False
    unpack: bool = False


class ArrayLiteral(ASTNode):
    items: List[ArrayItem] = []
    long_syntax: bool = False


# --- Expressions ---


class Arg(ASTNode):
    value: ASTNode
    name: Optional[str] = None
    unpack: bool = False


class ClassConstFetch(ASTNode):
    class_ref: ASTNode
    constant: str


class StaticPropertyFetch(ASTNode):
    class_ref: ASTNode
    name: str


class PropertyFetch(ASTNode):
    target: ASTNode
    name: Any  # an identifier string, or a node for `$obj->$name` / `$obj->{expr}`
    nullsafe: bool = False


class ArrayAccess(ASTNode):
    target: ASTNode
    index: Optional[ASTNode] = None


class Call(ASTNode):
    callee: ASTNode
    args: List[Arg] = []


class MethodCall(ASTNode):
    target: ASTNode
    name: Any
    args: List[Arg] = []
    nullsafe: bool = False


class StaticCall(ASTNode):
    class_ref: ASTNode
    name: str
    args: List[Arg] = []


class New(ASTNode):
    class_ref: ASTNode
    args: Optional[List[Arg]] = None


class BinaryOp(ASTNode):
    op: str
    left: ASTNode
    right: ASTNode


class UnaryOp(ASTNode):
    op: str
    operand: ASTNode


class Cast(ASTNode):
    type: str
    expr: ASTNode


class Paren(ASTNode):
    expr: ASTNode


class Ternary(ASTNode):
    condition: ASTNode
    then: Optional[ASTNode] = None
    otherwise: ASTNode


class Assign(ASTNode):
    target: ASTNode
    op: str = "="
    value: ASTNode


class Instanceof(ASTNode):
    expr: ASTNode
    class_ref: ASTNode


class IncDec(ASTNode):
    op: str  # "++" or "--"
    prefix: bool = False
    target: ASTNode


class MatchArm(ASTNode):
    conditions: List[ASTNode] = []  # empty for the `default` arm
    body: ASTNode


class Match(ASTNode):
    subject: ASTNode
    arms: List[MatchArm] = []


class Param(ASTNode):
    modifiers: List[str] = []
    type: Optional[str] = None
    by_ref: bool = False
    variadic: bool = False
    name: str
    default: Optional[ASTNode] = None


class ClosureUse(ASTNode):
    name: str
    by_ref: bool = False


class Closure(ASTNode):
    static: bool = False
    by_ref: bool = False
    params: List[Param] = []
    uses: List[ClosureUse] = []
    return_type: Optional[str] = None
    body: List[ASTNode] = []


class ArrowFunction(ASTNode):
    static: bool = False
    by_ref: bool = False
    params: List[Param] = []
    return_type: Optional[str] = None
    expr: ASTNode


# --- Statements ---


class Return(ASTNode):
    expr: Optional[ASTNode] = None


class ExpressionStatement(ASTNode):
    expr: ASTNode


class Block(ASTNode):
    statements: List[ASTNode] = []


class ElseIf(ASTNode):
    condition: ASTNode
    body: ASTNode


class Else(ASTNode):
    body: ASTNode


class If(ASTNode):
    condition: ASTNode
    body: ASTNode
    elseifs: List[ElseIf] = []
    else_clause: Optional[Else] = None


class Foreach(ASTNode):
    subject: ASTNode
    key: Optional[ASTNode] = None
    by_ref: bool = False
    value: ASTNode
    body: ASTNode


class While(ASTNode):
    condition: ASTNode
    body: ASTNode


class DoWhile(ASTNode):
    body: ASTNode
    condition: ASTNode


class For(ASTNode):
    init: List[ASTNode] = []
    condition: List[ASTNode] = []
    step: List[ASTNode] = []
    body: ASTNode


class Case(ASTNode):
    test: Optional[ASTNode] = None  # None for `default`
    body: List[ASTNode] = []


class Switch(ASTNode):
    subject: ASTNode
    cases: List[Case] = []


class Break(ASTNode):
    levels: Optional[int] = None


class Continue(ASTNode):
    levels: Optional[int] = None


class Global(ASTNode):
    names: List[str]


class Catch(ASTNode):
    types: List[str]
    variable: Optional[str] = None
    body: Block


class Try(ASTNode):
    body: Block
    catches: List[Catch] = []
    finally_block: Optional[Block] = None


class Throw(ASTNode):
    expr: ASTNode


class Echo(ASTNode):
    exprs: List[ASTNode]


class EmptyStatement(ASTNode):
    pass


# --- Declarations ---


class UseClause(ASTNode):
    name: str
    alias: Optional[str] = None


class Use(ASTNode):
    kind: Optional[str] = None  # None for classes, "function" or "const"
    clauses: List[UseClause]


class Declare(ASTNode):
    directive: str
    value: ASTNode


class Namespace(ASTNode):
    name: Optional[str] = None
    body: Optional[List[ASTNode]] = None  # None for the `namespace Foo;` form


class TraitUse(ASTNode):
    names: List[str]


class ClassConst(ASTNode):
    doc_comment: Optional[DocComment] = None
    modifiers: List[str] = []
    name: str
    value: ASTNode


class Property(ASTNode):
    doc_comment: Optional[DocComment] = None
    modifiers: List[str] = []
    type: Optional[str] = None
    name: str
    default: Optional[ASTNode] = None


class Method(ASTNode):
    doc_comment: Optional[DocComment] = None
    modifiers: List[str] = []
    by_ref: bool = False
    name: str
    params: List[Param] = []
    return_type: Optional[str] = None
    body: Optional[List[ASTNode]] = None  # None for abstract/interface methods


class ClassDecl(ASTNode):
    doc_comment: Optional[DocComment] = None
    modifiers: List[str] = []
    kind: str = "class"  # "class", "trait", "interface" or "enum"
    name: str
    backing_type: Optional[str] = None  # enums only
    extends: Optional[str] = None
    implements: List[str] = []
    members: List[ASTNode] = []

    def constants(self) -> List[ClassConst]:
        return [m for m in self.members if isinstance(m, ClassConst)]

    def properties(self) -> List[Property]:
        return [m for m in self.members if isinstance(m, Property)]

    def methods(self) -> List[Method]:
        return [m for m in self.members if isinstance(m, Method)]


class EnumCase(ASTNode):
    doc_comment: Optional[DocComment] = None
    name: str
    value: Optional[ASTNode] = None


class AnonymousClass(ASTNode):
    """`new class(...) extends A implements B { ... }`."""

    args: Optional[List[Arg]] = None
    extends: Optional[str] = None
    implements: List[str] = []
    members: List[ASTNode] = []


class SourceFile(ASTNode):
    statements: List[ASTNode] = []
    file_path: Optional[str] = None


DECLARATIONS_WITH_DOCS = (ClassDecl, Method, Property, ClassConst, EnumCase)
