from typing import List, Optional, Tuple

from retrofit.edits.imports import ImportTable, ensure_import, use_statement
from retrofit.exceptions import ErrorCode, ParseError
from retrofit.logging import get_logger
from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_expression, parse_statements
from retrofit.printer import print_node
from retrofit.visitor import CallbackVisitor, traverse

from .reflection import CLASS_REF_NODES, TypeDescription
from .selection import MemberSelection, Override

log = get_logger(__name__)


class GeneratedType:
    """A synthesized class together with the imports it needs."""

    def __init__(self, name: str, namespace: Optional[str], imports: List[Tuple[str, str]], class_decl: ClassDecl):
        self.name = name
        self.namespace = namespace
        self.imports = imports
        self.class_decl = class_decl

    @property
    def fqcn(self) -> str:
        return f"{self.namespace}\\{self.name}" if self.namespace else self.name

    def source_file(self) -> SourceFile:
        statements: List[ASTNode] = []
        if self.namespace:
            statements.append(Namespace(name=self.namespace))
        statements.extend(use_statement(fqcn, alias) for fqcn, alias in self.imports)
        statements.append(self.class_decl)
        return SourceFile(statements=statements)

    def render(self) -> str:
        """The complete PHP file for the generated type."""
        return print_node(self.source_file())


class _Synthesis:
    def __init__(self, new_name: str, base_type: TypeDescription):
        self.new_name = new_name
        self.base_type = base_type
        # The generated class's own name is never available as an alias.
        self.imports = ImportTable(reserved=[new_name])

    def localize_class(self, name: str) -> str:
        if not name.startswith("\\"):
            return name
        return ensure_import(self.imports, name)

    def localize_type(self, type_hint: Optional[str]) -> Optional[str]:
        if type_hint is None:
            return None
        nullable = type_hint.startswith("?")
        parts = [self.localize_class(p) for p in type_hint.lstrip("?").split("|")]
        return ("?" if nullable else "") + "|".join(parts)

    def expression(self, member: str, source: Optional[str]) -> Optional[ASTNode]:
        if source is None:
            return None
        try:
            expr = parse_expression(source)
        except ParseError as e:
            raise ParseError(ErrorCode.INVALID_OVERRIDE, name=member, details=e.message) from e

        def enter(node):
            if isinstance(node, CLASS_REF_NODES) and isinstance(node.class_ref, Reference):
                node.class_ref.name = self.localize_class(node.class_ref.name)

        traverse(expr, CallbackVisitor(enter_node=enter))
        return expr

    def body(self, member: str, source: Optional[str]) -> List[ASTNode]:
        if not source or not source.strip():
            return []
        try:
            parse_statements(source)
        except ParseError as e:
            raise ParseError(ErrorCode.INVALID_OVERRIDE, name=f"{member}()", details=e.message) from e
        return [RawCode(text=source)]

    # --- Members ---

    def build_constant(self, name: str, choice) -> ClassConst:
        described = self.base_type.find_constant(name)
        value = choice.value if isinstance(choice, Override) and choice.value is not None else described.value
        return ClassConst(modifiers=list(described.modifiers), name=name, value=self.expression(name, value))

    def build_property(self, name: str, choice) -> Property:
        described = self.base_type.find_property(name)
        default = choice.value if isinstance(choice, Override) and choice.value is not None else described.default
        return Property(
            modifiers=list(described.modifiers),
            type=self.localize_type(described.type),
            name=name,
            default=self.expression(f"${name}", default),
        )

    def build_method(self, name: str, choice) -> Method:
        described = self.base_type.find_method(name)
        if isinstance(choice, Override) and choice.value is not None:
            raise ParseError(ErrorCode.INVALID_OVERRIDE, name=f"{name}()", details="methods take a `body`, not a `value`.")

        params = [
            Param(
                type=self.localize_type(p.type),
                by_ref=p.by_ref,
                variadic=p.variadic,
                name=p.name,
                default=self.expression(f"${p.name}", p.default),
            )
            for p in described.params
        ]
        body = choice.body if isinstance(choice, Override) else None
        return Method(
            modifiers=[m for m in described.modifiers if m != "abstract"],
            by_ref=described.by_ref,
            name=described.name,
            params=params,
            return_type=self.localize_type(described.return_type),
            body=self.body(name, body),
        )


def synthesize(
    new_name: str,
    base_type: TypeDescription,
    selection: MemberSelection,
    namespace: Optional[str] = None,
    comment: Optional[str] = None,
) -> GeneratedType:
    """
    Builds a class `new_name` extending `base_type` with the selected members:
    constants, then properties, then methods, each in selection order.

    The base type is imported under its own short name unless that collides
    with `new_name` (or another import), in which case an alias such as
    `BasePlugin` is used everywhere the base is referenced. Raises
    `MemberLookupError` when a selected member is not declared by the base.
    """
    synthesis = _Synthesis(new_name, base_type)
    base_alias = ensure_import(synthesis.imports, base_type.name)

    members: List[ASTNode] = []
    members.extend(synthesis.build_constant(name, choice) for name, choice in selection.constants.items())
    members.extend(synthesis.build_property(name, choice) for name, choice in selection.properties.items())
    members.extend(synthesis.build_method(name, choice) for name, choice in selection.methods.items())

    doc_comment = DocComment(lines=comment.strip("\n").split("\n")) if comment else None
    class_decl = ClassDecl(doc_comment=doc_comment, name=new_name, extends=base_alias, members=members)

    log.debug("type_synthesized", name=new_name, base=base_type.name, base_alias=base_alias, members=len(members))
    return GeneratedType(new_name, namespace, list(synthesis.imports.added), class_decl)
