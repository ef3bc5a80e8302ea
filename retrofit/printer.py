"""
Serializes a syntax tree back to PHP source.

Given the text a tree was parsed from and a pristine copy of that tree, the
printer re-emits every unchanged node as its original bytes. A changed node that
still carries a span is spliced: its source slice is kept and only the children
that changed (or the items that were inserted) are rewritten. Nodes without a
span, and changed nodes whose shape cannot be spliced, go through a generic
PSR-12 style printer, whose children are again printed verbatim when pristine.
"""

import textwrap
from typing import Dict, List, Optional, Tuple

from retrofit.config import INDENT, INLINE_ARRAY_MAX_ITEMS, NEWLINE, OPEN_TAG
from retrofit.exceptions import InternalError
from retrofit.parser.core.classes import *

# (node type, field) pairs holding statement-like lists; every other list is comma separated.
STATEMENT_LISTS = {
    ("SourceFile", "statements"),
    ("Namespace", "body"),
    ("ClassDecl", "members"),
    ("Method", "body"),
    ("Closure", "body"),
    ("Block", "statements"),
    ("Switch", "cases"),
    ("Case", "body"),
    ("AnonymousClass", "members"),
}

TIGHT_UNARY_OPS = {"!", "-", "+", "~", "@"}

Edit = Tuple[int, int, str]


def _node_key(node: ASTNode) -> Tuple[str, int, int]:
    return (type(node).__name__, node.span.start, node.span.end)


def _walk(node: ASTNode):
    yield node
    for _, _, child in node.child_slots():
        yield from _walk(child)


class Printer:
    def __init__(self, source: str = "", original: Optional[ASTNode] = None):
        self.source = source
        # Inserted lines follow the line ending of the first line.
        first_break = source.find("\n")
        self.newline = "\r\n" if first_break > 0 and source[first_break - 1] == "\r" else NEWLINE
        self.index: Dict[Tuple[str, int, int], ASTNode] = {}
        if original is not None:
            for node in _walk(original):
                if node.span is not None:
                    self.index[_node_key(node)] = node

    # --- Entry point ---

    def print(self, node: ASTNode, indent: str = "") -> str:
        if node.span is None or not self.source:
            return self._render(node, indent)

        original = self.index.get(_node_key(node))
        if original is None:
            return self._render(node, indent)
        if original == node:
            return self.source[node.span.start : node.span.end]
        if isinstance(node, DocComment):
            return self._splice_doc(node, original)

        spliced = self._splice(node, original)
        if spliced is None:
            return self._render(node, self._line_indent(node.span.start))
        return spliced

    # --- Source scanning helpers ---

    def _line_indent(self, pos: int) -> str:
        line_start = self.source.rfind("\n", 0, pos) + 1
        line = self.source[line_start:pos]
        return line[: len(line) - len(line.lstrip())]

    def _skip_trivia(self, pos: int) -> int:
        """Skips whitespace and comments starting at `pos`."""
        source, length = self.source, len(self.source)
        while pos < length:
            if source[pos].isspace():
                pos += 1
            elif source.startswith("/*", pos):
                end = source.find("*/", pos + 2)
                pos = length if end == -1 else end + 2
            elif source.startswith("//", pos) or (source[pos] == "#" and not source.startswith("#[", pos)):
                end = source.find("\n", pos)
                pos = length if end == -1 else end
            else:
                break
        return pos

    def _end_of_line_trivia(self, pos: int) -> int:
        """Moves `pos` past spaces and a trailing line comment on the same line, if that is all there is."""
        source = self.source
        cursor = pos
        while cursor < len(source) and source[cursor] in " \t":
            cursor += 1
        if source.startswith("//", cursor) or (source.startswith("#", cursor) and not source.startswith("#[", cursor)):
            end = source.find("\n", cursor)
            return len(source) if end == -1 else end
        if cursor >= len(source) or source[cursor] in "\r\n":
            return cursor
        return pos

    def _comma_after(self, pos: int) -> Optional[int]:
        pos = self._skip_trivia(pos)
        if pos < len(self.source) and self.source[pos] == ",":
            return pos
        return None

    def _is_multiline(self, first: ASTNode) -> bool:
        before = self.source[: first.span.start]
        return "\n" in before[len(before.rstrip()) :]

    # --- Splicing ---

    def _splice(self, node: ASTNode, original: ASTNode) -> Optional[str]:
        if type(node) is not type(original):
            return None

        edits: List[Edit] = []
        for name in type(node).model_fields:
            if name == "span":
                continue
            new, old = getattr(node, name), getattr(original, name)
            if new == old:
                continue
            if isinstance(new, ASTNode) or isinstance(old, ASTNode):
                if not self._splice_child(node, name, new, old, edits):
                    return None
            elif isinstance(new, list) and isinstance(old, list) and any(isinstance(i, ASTNode) for i in new + old):
                if not self._splice_list(node, name, new, old, edits):
                    return None
            else:
                return None

        return self._apply_edits(node.span, edits)

    def _apply_edits(self, span: Span, edits: List[Edit]) -> str:
        out, cursor = [], span.start
        for start, end, text in sorted(edits, key=lambda e: e[0]):
            if start < cursor:
                raise InternalError(f"Overlapping edits while printing the region {span.start}-{span.end}.")
            out.append(self.source[cursor:start])
            out.append(text)
            cursor = end
        out.append(self.source[cursor : span.end])
        return "".join(out)

    def _splice_child(self, parent: ASTNode, name: str, new, old, edits: List[Edit]) -> bool:
        if old is None and isinstance(new, DocComment) and name == "doc_comment":
            indent = self._line_indent(parent.span.start)
            edits.append((parent.span.start, parent.span.start, self._render(new, indent) + self.newline + indent))
            return True
        if not isinstance(old, ASTNode) or not isinstance(new, ASTNode):
            return False

        indent = self._line_indent(old.span.start)
        edits.append((old.span.start, old.span.end, self.print(new, indent)))
        return True

    def _splice_list(self, parent: ASTNode, name: str, new: list, old: list, edits: List[Edit]) -> bool:
        if not old:
            return False
        positions = {item.span.key(): i for i, item in enumerate(old) if isinstance(item, ASTNode) and item.span}

        groups: List[Tuple[int, List[ASTNode]]] = []
        pending: List[ASTNode] = []
        last = -1
        for item in new:
            if not isinstance(item, ASTNode):
                return False
            if item.span is None:
                pending.append(item)
                continue
            index = positions.get(item.span.key())
            if index != last + 1:
                # Removed or reordered items cannot be spliced.
                return False
            if pending:
                groups.append((last, pending))
                pending = []
            last = index
            text = self.print(item, self._line_indent(item.span.start))
            if text != self.source[item.span.start : item.span.end]:
                edits.append((item.span.start, item.span.end, text))
        if last != len(old) - 1:
            return False
        if pending:
            groups.append((last, pending))

        statement_like = (type(parent).__name__, name) in STATEMENT_LISTS
        for anchor, items in groups:
            if statement_like:
                self._insert_statements(parent, old, anchor, items, edits)
            else:
                self._insert_list_items(old, anchor, items, edits)
        return True

    def _separator(self, container: ASTNode, before: ASTNode, after: ASTNode) -> str:
        if isinstance(container, (ClassDecl, AnonymousClass)):
            return self.newline * 2
        if isinstance(container, (SourceFile, Namespace)):
            return self.newline if isinstance(before, Use) and isinstance(after, Use) else self.newline * 2
        return self.newline

    def _insert_statements(self, parent: ASTNode, old: list, anchor: int, items: List[ASTNode], edits: List[Edit]):
        if anchor >= 0:
            reference = old[anchor]
            indent = self._line_indent(reference.span.start)
            text, previous = "", reference
            for item in items:
                text += self._separator(parent, previous, item) + indent + self._statement(item, indent)
                previous = item
            position = self._end_of_line_trivia(reference.span.end)
            edits.append((position, position, text))
            return

        reference = old[0]
        indent = self._line_indent(reference.span.start)
        text = ""
        for item, following in zip(items, items[1:] + [reference]):
            text += self._statement(item, indent) + self._separator(parent, item, following) + indent
        edits.append((reference.span.start, reference.span.start, text))

    def _insert_list_items(self, old: list, anchor: int, items: List[ASTNode], edits: List[Edit]):
        first = old[0]
        multiline = self._is_multiline(first)
        indent = self._line_indent(first.span.start)
        rendered = [self.print(item, indent) for item in items]

        if anchor < 0:
            separator = "," + self.newline + indent if multiline else ", "
            text = "".join(r + separator for r in rendered)
            edits.append((first.span.start, first.span.start, text))
            return

        reference = old[anchor]
        if not multiline:
            edits.append((reference.span.end, reference.span.end, "".join(", " + r for r in rendered)))
            return

        comma = self._comma_after(reference.span.end)
        if comma is not None:
            position = self._end_of_line_trivia(comma + 1)
            edits.append((position, position, "".join(self.newline + indent + r + "," for r in rendered)))
        else:
            # The last item had no trailing comma, so the new ones follow that style.
            edits.append((reference.span.end, reference.span.end, ","))
            position = self._end_of_line_trivia(reference.span.end)
            edits.append((position, position, ",".join(self.newline + indent + r for r in rendered)))

    def _splice_doc(self, node: DocComment, original: DocComment) -> str:
        span = node.span
        text = self.source[span.start : span.end]
        indent = self._line_indent(span.start)
        old_lines = original.lines
        if node.lines[: len(old_lines)] != old_lines or "\n" not in text:
            return self._render(node, indent)

        added = node.lines[len(old_lines) :]
        close = span.end - 2
        line_start = self.source.rfind("\n", span.start, close) + 1
        prefix = self.source[line_start:close]
        if not prefix.strip():
            insertion = "".join(self._doc_line(prefix, line) + self.newline for line in added)
            return self.source[span.start : line_start] + insertion + self.source[line_start : span.end]

        pad = indent + " "
        insertion = "".join(self.newline + self._doc_line(pad, line) for line in added) + self.newline + pad
        return self.source[span.start : close] + insertion + self.source[close : span.end]

    @staticmethod
    def _doc_line(pad: str, line: str) -> str:
        return f"{pad}* {line}".rstrip()

    # --- Generic rendering ---

    def _render(self, node: ASTNode, indent: str) -> str:
        method = getattr(self, f"_print_{type(node).__name__}", None)
        if method is None:
            raise InternalError(f"No printer for node type '{type(node).__name__}'.")
        return method(node, indent)

    def _statement(self, node: ASTNode, indent: str) -> str:
        if isinstance(node, RawCode):
            # The caller already wrote the indentation of the first line.
            lines = textwrap.dedent(node.text).strip("\n").split("\n")
            text = self.newline.join(indent + line.rstrip() if line.strip() else "" for line in lines)
            return text[len(indent) :]
        return self.print(node, indent)

    def _block(self, statements: List[ASTNode], indent: str) -> str:
        inner = indent + INDENT
        if not statements:
            return "{" + self.newline + indent + "}"
        body = self.newline.join(inner + self._statement(s, inner) for s in statements)
        return "{" + self.newline + body + self.newline + indent + "}"

    def _body(self, node: ASTNode, indent: str) -> str:
        if isinstance(node, Block):
            return self.print(node, indent)
        return self._block([node], indent)

    def _join(self, nodes: List[ASTNode], indent: str, separator: str = ", ") -> str:
        return separator.join(self.print(n, indent) for n in nodes)

    def _doc_prefix(self, node, indent: str) -> str:
        if node.doc_comment is None:
            return ""
        return self.print(node.doc_comment, indent) + self.newline + indent

    @staticmethod
    def _modifiers(modifiers: List[str]) -> str:
        return "".join(m + " " for m in modifiers)

    # Trivia and files

    def _print_DocComment(self, node: DocComment, indent: str) -> str:
        pad = indent + " "
        lines = "".join(self._doc_line(pad, line) + self.newline for line in node.lines)
        return "/**" + self.newline + lines + pad + "*/"

    def _print_RawCode(self, node: RawCode, indent: str) -> str:
        return self._statement(node, indent)

    def _print_SourceFile(self, node: SourceFile, indent: str) -> str:
        return OPEN_TAG + self.newline * 2 + self._top_level(node, node.statements, indent) + self.newline

    def _top_level(self, container: ASTNode, statements: List[ASTNode], indent: str) -> str:
        out = ""
        for i, statement in enumerate(statements):
            if i:
                out += self._separator(container, statements[i - 1], statement) + indent
            out += self._statement(statement, indent)
        return out

    def _print_Namespace(self, node: Namespace, indent: str) -> str:
        head = "namespace" + (f" {node.name}" if node.name else "")
        if node.body is None:
            return head + ";"
        inner = indent + INDENT
        return head + " {" + self.newline + inner + self._top_level(node, node.body, inner) + self.newline + indent + "}"

    def _print_Use(self, node: Use, indent: str) -> str:
        kind = f"{node.kind} " if node.kind else ""
        return f"use {kind}{self._join(node.clauses, indent)};"

    def _print_UseClause(self, node: UseClause, indent: str) -> str:
        return node.name + (f" as {node.alias}" if node.alias else "")

    def _print_Declare(self, node: Declare, indent: str) -> str:
        return f"declare({node.directive}={self.print(node.value, indent)});"

    # Class-likes

    def _print_ClassDecl(self, node: ClassDecl, indent: str) -> str:
        head = self._doc_prefix(node, indent) + self._modifiers(node.modifiers) + f"{node.kind} {node.name}"
        if node.backing_type:
            head += f": {node.backing_type}"
        if node.kind == "interface":
            if node.implements:
                head += " extends " + ", ".join(node.implements)
        else:
            head += self._inheritance(node)
        return head + self.newline + indent + self._class_body(node.members, indent)

    @staticmethod
    def _inheritance(node) -> str:
        out = f" extends {node.extends}" if node.extends else ""
        if node.implements:
            out += " implements " + ", ".join(node.implements)
        return out

    def _class_body(self, members: List[ASTNode], indent: str) -> str:
        inner = indent + INDENT
        text = (self.newline * 2).join(inner + self._statement(m, inner) for m in members)
        body = self.newline + text + self.newline if text else self.newline
        return "{" + body + indent + "}"

    def _print_EnumCase(self, node: EnumCase, indent: str) -> str:
        out = self._doc_prefix(node, indent) + f"case {node.name}"
        if node.value is not None:
            out += f" = {self.print(node.value, indent)}"
        return out + ";"

    def _print_TraitUse(self, node: TraitUse, indent: str) -> str:
        return "use " + ", ".join(node.names) + ";"

    def _print_ClassConst(self, node: ClassConst, indent: str) -> str:
        head = self._doc_prefix(node, indent) + self._modifiers(node.modifiers)
        return f"{head}const {node.name} = {self.print(node.value, indent)};"

    def _print_Property(self, node: Property, indent: str) -> str:
        out = self._doc_prefix(node, indent) + self._modifiers(node.modifiers)
        if node.type:
            out += node.type + " "
        out += f"${node.name}"
        if node.default is not None:
            out += f" = {self.print(node.default, indent)}"
        return out + ";"

    def _print_Method(self, node: Method, indent: str) -> str:
        out = self._doc_prefix(node, indent) + self._modifiers(node.modifiers) + "function "
        out += ("&" if node.by_ref else "") + node.name + "(" + self._join(node.params, indent) + ")"
        if node.return_type:
            out += f": {node.return_type}"
        if node.body is None:
            return out + ";"
        return out + self.newline + indent + self._block(node.body, indent)

    def _print_Param(self, node: Param, indent: str) -> str:
        out = self._modifiers(node.modifiers)
        if node.type:
            out += node.type + " "
        out += ("&" if node.by_ref else "") + ("..." if node.variadic else "") + f"${node.name}"
        if node.default is not None:
            out += f" = {self.print(node.default, indent)}"
        return out

    # Statements

    def _print_Return(self, node: Return, indent: str) -> str:
        return "return;" if node.expr is None else f"return {self.print(node.expr, indent)};"

    def _print_ExpressionStatement(self, node: ExpressionStatement, indent: str) -> str:
        return self.print(node.expr, indent) + ";"

    def _print_Block(self, node: Block, indent: str) -> str:
        return self._block(node.statements, indent)

    def _print_If(self, node: If, indent: str) -> str:
        out = f"if ({self.print(node.condition, indent)}) " + self._body(node.body, indent)
        for clause in node.elseifs:
            out += " " + self.print(clause, indent)
        if node.else_clause is not None:
            out += " " + self.print(node.else_clause, indent)
        return out

    def _print_ElseIf(self, node: ElseIf, indent: str) -> str:
        return f"elseif ({self.print(node.condition, indent)}) " + self._body(node.body, indent)

    def _print_Else(self, node: Else, indent: str) -> str:
        return "else " + self._body(node.body, indent)

    def _print_Foreach(self, node: Foreach, indent: str) -> str:
        out = f"foreach ({self.print(node.subject, indent)} as "
        if node.key is not None:
            out += self.print(node.key, indent) + " => "
        out += ("&" if node.by_ref else "") + self.print(node.value, indent) + ") "
        return out + self._body(node.body, indent)

    def _print_While(self, node: While, indent: str) -> str:
        return f"while ({self.print(node.condition, indent)}) " + self._body(node.body, indent)

    def _print_DoWhile(self, node: DoWhile, indent: str) -> str:
        return "do " + self._body(node.body, indent) + f" while ({self.print(node.condition, indent)});"

    def _print_For(self, node: For, indent: str) -> str:
        parts = [self._join(part, indent) for part in (node.init, node.condition, node.step)]
        head = "; ".join(parts).strip() if any(parts) else ";;"
        return f"for ({head}) " + self._body(node.body, indent)

    def _print_Switch(self, node: Switch, indent: str) -> str:
        inner = indent + INDENT
        cases = "".join(self.newline + inner + self.print(case, inner) for case in node.cases)
        return f"switch ({self.print(node.subject, indent)}) {{" + cases + self.newline + indent + "}"

    def _print_Case(self, node: Case, indent: str) -> str:
        head = "default:" if node.test is None else f"case {self.print(node.test, indent)}:"
        inner = indent + INDENT
        return head + "".join(self.newline + inner + self._statement(s, inner) for s in node.body)

    def _print_Break(self, node: Break, indent: str) -> str:
        return "break;" if node.levels is None else f"break {node.levels};"

    def _print_Continue(self, node: Continue, indent: str) -> str:
        return "continue;" if node.levels is None else f"continue {node.levels};"

    def _print_Global(self, node: Global, indent: str) -> str:
        return "global " + ", ".join("$" + name for name in node.names) + ";"

    def _print_Try(self, node: Try, indent: str) -> str:
        out = "try " + self.print(node.body, indent)
        for catch in node.catches:
            out += " " + self.print(catch, indent)
        if node.finally_block is not None:
            out += " finally " + self.print(node.finally_block, indent)
        return out

    def _print_Catch(self, node: Catch, indent: str) -> str:
        variable = f" ${node.variable}" if node.variable else ""
        return f"catch ({' | '.join(node.types)}{variable}) " + self.print(node.body, indent)

    def _print_Throw(self, node: Throw, indent: str) -> str:
        return f"throw {self.print(node.expr, indent)};"

    def _print_Echo(self, node: Echo, indent: str) -> str:
        return f"echo {self._join(node.exprs, indent)};"

    def _print_EmptyStatement(self, node: EmptyStatement, indent: str) -> str:
        return ";"

    # Expressions

    def _print_Literal(self, node: Literal, indent: str) -> str:
        return node.raw

    def _print_Variable(self, node: Variable, indent: str) -> str:
        return f"${node.name}"

    def _print_Reference(self, node: Reference, indent: str) -> str:
        return node.name

    def _print_ArrayLiteral(self, node: ArrayLiteral, indent: str) -> str:
        opening, closing = ("array(", ")") if node.long_syntax else ("[", "]")
        if not node.items:
            return opening + closing

        rendered = [self.print(item, indent) for item in node.items]
        nested = any(isinstance(item.value, ArrayLiteral) and item.value.items for item in node.items)
        if len(node.items) <= INLINE_ARRAY_MAX_ITEMS and not nested and not any("\n" in r for r in rendered):
            return opening + ", ".join(rendered) + closing

        inner = indent + INDENT
        lines = "".join(inner + self.print(item, inner) + "," + self.newline for item in node.items)
        return opening + self.newline + lines + indent + closing

    def _print_ArrayItem(self, node: ArrayItem, indent: str) -> str:
        out = ""
        if node.key is not None:
            out += self.print(node.key, indent) + " => "
        if node.by_ref:
            out += "&"
        if node.unpack:
            out += "..."
        return out + self.print(node.value, indent)

    def _print_Arg(self, node: Arg, indent: str) -> str:
        out = f"{node.name}: " if node.name else ""
        return out + ("..." if node.unpack else "") + self.print(node.value, indent)

    def _args(self, args: List[Arg], indent: str) -> str:
        return "(" + self._join(args, indent) + ")"

    def _member_name(self, name, indent: str) -> str:
        if isinstance(name, Variable):
            return self.print(name, indent)
        if isinstance(name, ASTNode):
            return "{" + self.print(name, indent) + "}"
        return name

    def _print_ClassConstFetch(self, node: ClassConstFetch, indent: str) -> str:
        return f"{self.print(node.class_ref, indent)}::{node.constant}"

    def _print_StaticPropertyFetch(self, node: StaticPropertyFetch, indent: str) -> str:
        return f"{self.print(node.class_ref, indent)}::${node.name}"

    def _print_PropertyFetch(self, node: PropertyFetch, indent: str) -> str:
        arrow = "?->" if node.nullsafe else "->"
        return self.print(node.target, indent) + arrow + self._member_name(node.name, indent)

    def _print_ArrayAccess(self, node: ArrayAccess, indent: str) -> str:
        index = self.print(node.index, indent) if node.index is not None else ""
        return f"{self.print(node.target, indent)}[{index}]"

    def _print_Call(self, node: Call, indent: str) -> str:
        return self.print(node.callee, indent) + self._args(node.args, indent)

    def _print_MethodCall(self, node: MethodCall, indent: str) -> str:
        arrow = "?->" if node.nullsafe else "->"
        return self.print(node.target, indent) + arrow + self._member_name(node.name, indent) + self._args(node.args, indent)

    def _print_StaticCall(self, node: StaticCall, indent: str) -> str:
        return f"{self.print(node.class_ref, indent)}::{node.name}" + self._args(node.args, indent)

    def _print_New(self, node: New, indent: str) -> str:
        out = "new " + self.print(node.class_ref, indent)
        return out if node.args is None else out + self._args(node.args, indent)

    def _print_BinaryOp(self, node: BinaryOp, indent: str) -> str:
        return f"{self.print(node.left, indent)} {node.op} {self.print(node.right, indent)}"

    def _print_UnaryOp(self, node: UnaryOp, indent: str) -> str:
        separator = "" if node.op in TIGHT_UNARY_OPS else " "
        return node.op + separator + self.print(node.operand, indent)

    def _print_Cast(self, node: Cast, indent: str) -> str:
        return f"({node.type}) {self.print(node.expr, indent)}"

    def _print_Paren(self, node: Paren, indent: str) -> str:
        return f"({self.print(node.expr, indent)})"

    def _print_Ternary(self, node: Ternary, indent: str) -> str:
        condition, otherwise = self.print(node.condition, indent), self.print(node.otherwise, indent)
        if node.then is None:
            return f"{condition} ?: {otherwise}"
        return f"{condition} ? {self.print(node.then, indent)} : {otherwise}"

    def _print_Assign(self, node: Assign, indent: str) -> str:
        return f"{self.print(node.target, indent)} {node.op} {self.print(node.value, indent)}"

    def _print_Instanceof(self, node: Instanceof, indent: str) -> str:
        return f"{self.print(node.expr, indent)} instanceof {self.print(node.class_ref, indent)}"

    def _print_IncDec(self, node: IncDec, indent: str) -> str:
        target = self.print(node.target, indent)
        return node.op + target if node.prefix else target + node.op

    def _print_Match(self, node: Match, indent: str) -> str:
        inner = indent + INDENT
        arms = "".join(self.newline + inner + self.print(arm, inner) + "," for arm in node.arms)
        return f"match ({self.print(node.subject, indent)}) {{" + arms + self.newline + indent + "}"

    def _print_MatchArm(self, node: MatchArm, indent: str) -> str:
        conditions = self._join(node.conditions, indent) if node.conditions else "default"
        return f"{conditions} => {self.print(node.body, indent)}"

    def _print_AnonymousClass(self, node: AnonymousClass, indent: str) -> str:
        out = "new class" + ("" if node.args is None else self._args(node.args, indent))
        return out + self._inheritance(node) + " " + self._class_body(node.members, indent)

    def _print_ClosureUse(self, node: ClosureUse, indent: str) -> str:
        return ("&" if node.by_ref else "") + f"${node.name}"

    def _print_Closure(self, node: Closure, indent: str) -> str:
        out = ("static " if node.static else "") + "function " + ("&" if node.by_ref else "")
        out += "(" + self._join(node.params, indent) + ")"
        if node.uses:
            out += " use (" + self._join(node.uses, indent) + ")"
        if node.return_type:
            out += f": {node.return_type}"
        return out + " " + self._block(node.body, indent)

    def _print_ArrowFunction(self, node: ArrowFunction, indent: str) -> str:
        out = ("static " if node.static else "") + "fn" + ("&" if node.by_ref else "")
        out += "(" + self._join(node.params, indent) + ")"
        if node.return_type:
            out += f": {node.return_type}"
        return out + " => " + self.print(node.expr, indent)


def print_node(node: ASTNode, indent: str = "") -> str:
    """Renders a node with the generic printer, ignoring any spans it carries."""
    return Printer().print(node, indent)
