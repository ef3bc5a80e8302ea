"""
The describe step: reads a base type's declared members from its PHP source.

The result is a plain pydantic model. It can be dumped to JSON, stored next to
a generator and loaded back with `TypeDescription.model_validate_json`, so that
synthesis does not need the base type's source at hand. Type names and class
references inside default values are resolved to fully-qualified names
(`\\craft\\base\\Model`) using the declaring file's namespace and imports.
"""

from typing import List, Optional

from pydantic import BaseModel

from retrofit.config import BUILTIN_TYPES, SOURCE_ENCODING
from retrofit.edits.imports import ImportTable
from retrofit.exceptions import ErrorCode, MemberLookupError
from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_php
from retrofit.printer import print_node
from retrofit.visitor import CallbackVisitor, traverse

CLASS_REF_NODES = (ClassConstFetch, StaticPropertyFetch, StaticCall, New, Instanceof)
RELATIVE_CLASS_NAMES = {"self", "static", "parent"}


class ConstantDescription(BaseModel):
    name: str
    modifiers: List[str] = []
    value: str


class PropertyDescription(BaseModel):
    name: str
    modifiers: List[str] = []
    type: Optional[str] = None
    default: Optional[str] = None


class ParameterDescription(BaseModel):
    name: str
    type: Optional[str] = None
    by_ref: bool = False
    variadic: bool = False
    default: Optional[str] = None


class MethodDescription(BaseModel):
    name: str
    modifiers: List[str] = []
    by_ref: bool = False
    params: List[ParameterDescription] = []
    return_type: Optional[str] = None


class TypeDescription(BaseModel):
    """The declared members of a type, with PHP expressions kept as source text."""

    name: str  # fully-qualified, without a leading backslash
    kind: str = "class"
    constants: List[ConstantDescription] = []
    properties: List[PropertyDescription] = []
    methods: List[MethodDescription] = []

    @property
    def short_name(self) -> str:
        return self.name.rsplit("\\", 1)[-1]

    def find_constant(self, name: str) -> ConstantDescription:
        for constant in self.constants:
            if constant.name == name:
                return constant
        raise MemberLookupError(ErrorCode.UNKNOWN_CONSTANT, type_name=self.name, name=name)

    def find_property(self, name: str) -> PropertyDescription:
        for prop in self.properties:
            if prop.name == name:
                return prop
        raise MemberLookupError(ErrorCode.UNKNOWN_PROPERTY, type_name=self.name, name=name)

    def find_method(self, name: str) -> MethodDescription:
        # Method names are case-insensitive in PHP.
        for method in self.methods:
            if method.name.lower() == name.lower():
                return method
        raise MemberLookupError(ErrorCode.UNKNOWN_METHOD, type_name=self.name, name=name)


class NameResolver:
    """Resolves class names as written in a file to fully-qualified names."""

    def __init__(self, namespace: Optional[str], imports: ImportTable):
        self.namespace = namespace
        self.imports = imports

    def resolve_class(self, name: str) -> str:
        if name.startswith("\\") or name.lower() in RELATIVE_CLASS_NAMES:
            return name
        head, _, rest = name.partition("\\")
        imported = self.imports.owner_of(head)
        if imported is not None:
            return "\\" + imported + ("\\" + rest if rest else "")
        if self.namespace:
            return f"\\{self.namespace}\\{name}"
        return "\\" + name

    def resolve_type(self, type_hint: Optional[str]) -> Optional[str]:
        if type_hint is None:
            return None
        nullable = type_hint.startswith("?")
        parts = type_hint.lstrip("?").split("|")
        resolved = "|".join(p if p.lower() in BUILTIN_TYPES else self.resolve_class(p) for p in parts)
        return ("?" if nullable else "") + resolved

    def resolve_expression(self, expr: Optional[ASTNode]) -> Optional[str]:
        """Prints `expr` with every class reference made fully-qualified."""
        if expr is None:
            return None
        expr = expr.model_copy(deep=True)

        def enter(node):
            if isinstance(node, CLASS_REF_NODES) and isinstance(node.class_ref, Reference):
                node.class_ref.name = self.resolve_class(node.class_ref.name)

        traverse(expr, CallbackVisitor(enter_node=enter))
        return print_node(expr)


def _find_class(tree: SourceFile, class_name: Optional[str]):
    namespace = None
    for statement in tree.statements:
        scope = [statement]
        if isinstance(statement, Namespace):
            if statement.body is None:
                namespace = statement.name
                continue
            namespace, scope = statement.name, statement.body
        for node in scope:
            if isinstance(node, ClassDecl) and (class_name is None or node.name.lower() == class_name.lower()):
                return namespace, node
    return namespace, None


def describe_type(source: str, class_name: Optional[str] = None, file_path: str = "<stdin>") -> TypeDescription:
    """
    Parses `source` and describes the class-like named `class_name` (the first
    one when omitted). Raises `MemberLookupError` when the file declares no such type.
    """
    tree = parse_php(source, file_path=file_path)
    namespace, decl = _find_class(tree, class_name)
    if decl is None:
        raise MemberLookupError(ErrorCode.UNKNOWN_BASE_TYPE, name=class_name or "<any class>", path=file_path)

    resolver = NameResolver(namespace, ImportTable.from_source(tree))
    return TypeDescription(
        name=f"{namespace}\\{decl.name}" if namespace else decl.name,
        kind=decl.kind,
        constants=[
            ConstantDescription(name=c.name, modifiers=c.modifiers, value=resolver.resolve_expression(c.value))
            for c in decl.constants()
        ],
        properties=[
            PropertyDescription(
                name=p.name,
                modifiers=p.modifiers,
                type=resolver.resolve_type(p.type),
                default=resolver.resolve_expression(p.default),
            )
            for p in decl.properties()
        ],
        methods=[
            MethodDescription(
                name=m.name,
                modifiers=m.modifiers,
                by_ref=m.by_ref,
                params=[
                    ParameterDescription(
                        name=p.name,
                        type=resolver.resolve_type(p.type),
                        by_ref=p.by_ref,
                        variadic=p.variadic,
                        default=resolver.resolve_expression(p.default),
                    )
                    for p in m.params
                ],
                return_type=resolver.resolve_type(m.return_type),
            )
            for m in decl.methods()
        ],
    )


def describe_file(path: str, class_name: Optional[str] = None) -> TypeDescription:
    with open(path, "r", encoding=SOURCE_ENCODING) as f:
        return describe_type(f.read(), class_name, file_path=path)


def load_description(path: str) -> TypeDescription:
    """Loads a description previously saved with `TypeDescription.model_dump_json()`."""
    with open(path, "r", encoding=SOURCE_ENCODING) as f:
        return TypeDescription.model_validate_json(f.read())
