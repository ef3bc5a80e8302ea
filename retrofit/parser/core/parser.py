import os
import re
from typing import Any, List, NamedTuple, Optional

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import LarkError, VisitError
from lark.lexer import PatternStr

from retrofit.config import CAST_TYPES, LITERAL_NAMES
from retrofit.exceptions import ErrorCode, ParseError, RetrofitError

from ..helpers import _translate_lark_error, pre_parsing_checks
from .classes import *

LARK_PARSER = None
START_SYMBOLS = ["start", "snippet_statements", "snippet_expr"]

# Block comments seen by the lexer during the current parse.
_COMMENT_SINK: List[Token] = []

try:
    # Use importlib.resources for robust package data access
    from importlib.resources import files as pkg_files

    php_grammar = (pkg_files("retrofit.parser") / "php.lark").read_text()
except Exception:
    # Fallback for development environments
    grammar_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), "php.lark")
    with open(grammar_path, "r") as f:
        php_grammar = f.read()

# The basic lexer turns keywords into their own token types, the Earley
# parser handles the few genuinely ambiguous spots (casts, dangling else).
LARK_PARSER = Lark(
    php_grammar,
    start=START_SYMBOLS,
    parser="earley",
    lexer="basic",
    propagate_positions=True,
    lexer_callbacks={"BLOCK_COMMENT": _COMMENT_SINK.append},
)

# Literal text of the string terminals, for error messages.
TERMINAL_TEXT = {t.name: t.pattern.value for t in LARK_PARSER.terminals if isinstance(t.pattern, PatternStr)}

ATTRIBUTES_OR_SPACE_REGEX = re.compile(r"^(?:\s|#\[(?:[^\[\]]|\[[^\[\]]*\])*\])*$")


class _Tag(NamedTuple):
    """Intermediate value for grammar helper rules that are not nodes themselves."""

    kind: str
    value: Any


def _pick(children, kind: str, default=None):
    return next((c.value for c in children if isinstance(c, _Tag) and c.kind == kind), default)


def _pick_all(children, kind: str) -> list:
    return [c.value for c in children if isinstance(c, _Tag) and c.kind == kind]


def _nodes(children) -> list:
    return [c for c in children if isinstance(c, ASTNode)]


def _tokens(children, token_type: str) -> List[Token]:
    return [c for c in children if isinstance(c, Token) and c.type == token_type]


@v_args(meta=True)
class PhpTransformer(Transformer):
    """
    Transforms the Lark parse tree into the pydantic syntax tree.
    Each method is called whenever the Lark parser produced a rule or an alias
    with the same name; the transformation runs bottom-up. Helper rules that do
    not map to a node (modifiers, type hints, argument lists...) return a `_Tag`
    that the enclosing rule unpacks.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__()

    # --- Helper methods for creating spans ---
    @staticmethod
    def _span(meta) -> Optional[Span]:
        if getattr(meta, "empty", True):
            return None
        return Span(
            start=meta.start_pos,
            end=meta.end_pos,
            s_line=meta.line,
            s_col=meta.column,
            e_line=meta.end_line,
            e_col=meta.end_column,
        )

    @staticmethod
    def _join_spans(first: Optional[Span], last: Optional[Span]) -> Optional[Span]:
        if first is None or last is None:
            return None
        return Span(start=first.start, end=last.end, s_line=first.s_line, s_col=first.s_col, e_line=last.e_line, e_col=last.e_col)

    def _build_infix_tree(self, meta, items):
        """Helper to build a left-associative tree for any infix expression."""
        if len(items) == 1:
            return items[0]

        tree, i = items[0], 1
        while i < len(items):
            op, right = items[i], items[i + 1]
            span = self._join_spans(tree.span, right.span)
            tree = BinaryOp(op=op.value, left=tree, right=right, span=span)
            i += 2
        tree.span = self._span(meta)
        return tree

    # --- Top-level ---
    def start(self, meta, children):
        return SourceFile(statements=_nodes(children), file_path=self.file_path, span=self._span(meta))

    def snippet_statements(self, meta, children):
        return _nodes(children)

    def snippet_expr(self, meta, children):
        return children[0]

    def namespace_decl(self, meta, children):
        name = _tokens(children, "NAME")[0]
        return Namespace(name=str(name), span=self._span(meta))

    def namespace_block(self, meta, children):
        names = _tokens(children, "NAME")
        return Namespace(name=str(names[0]) if names else None, body=_nodes(children), span=self._span(meta))

    def use_decl(self, meta, children):
        return Use(kind=_pick(children, "use_kind"), clauses=_nodes(children), span=self._span(meta))

    def use_kind(self, meta, children):
        return _Tag("use_kind", str(children[0]))

    def use_clause(self, meta, children):
        names = _tokens(children, "NAME")
        alias = str(names[1]) if len(names) > 1 else None
        return UseClause(name=str(names[0]).lstrip("\\"), alias=alias, span=self._span(meta))

    def declare_stmt(self, meta, children):
        name = _tokens(children, "NAME")[0]
        return Declare(directive=str(name), value=_nodes(children)[0], span=self._span(meta))

    def const_stmt(self, meta, children):
        return ClassConst(name=_pick(children, "identifier"), value=_nodes(children)[0], span=self._span(meta))

    # --- Class-likes ---
    def class_decl(self, meta, children):
        return ClassDecl(
            modifiers=_pick_all(children, "modifier"),
            kind=_pick(children, "class_kind"),
            name=str(_tokens(children, "NAME")[0]),
            extends=_pick(children, "extends"),
            implements=_pick(children, "implements", []),
            members=_nodes(children),
            span=self._span(meta),
        )

    def interface_decl(self, meta, children):
        return ClassDecl(
            kind="interface",
            name=str(_tokens(children, "NAME")[0]),
            implements=_pick(children, "implements", []),
            members=_nodes(children),
            span=self._span(meta),
        )

    def enum_decl(self, meta, children):
        return ClassDecl(
            kind="enum",
            name=str(_tokens(children, "NAME")[0]),
            backing_type=_pick(children, "backing"),
            implements=_pick(children, "implements", []),
            members=_nodes(children),
            span=self._span(meta),
        )

    def enum_backing(self, meta, children):
        return _Tag("backing", _pick(children, "type_name"))

    def enum_case(self, meta, children):
        nodes = _nodes(children)
        return EnumCase(name=_pick(children, "identifier"), value=nodes[0] if nodes else None, span=self._span(meta))

    def class_kind(self, meta, children):
        return _Tag("class_kind", str(children[0]))

    def extends_clause(self, meta, children):
        return _Tag("extends", str(children[0]))

    def implements_clause(self, meta, children):
        return _Tag("implements", [str(name) for name in children])

    def interface_extends(self, meta, children):
        return _Tag("implements", [str(name) for name in children])

    def trait_use(self, meta, children):
        return TraitUse(names=[str(name) for name in children], span=self._span(meta))

    def class_const(self, meta, children):
        return ClassConst(
            modifiers=_pick_all(children, "modifier"),
            name=_pick(children, "identifier"),
            value=_nodes(children)[0],
            span=self._span(meta),
        )

    def property_decl(self, meta, children):
        variable = _tokens(children, "VARIABLE")[0]
        nodes = _nodes(children)
        return Property(
            modifiers=_pick_all(children, "modifier"),
            type=_pick(children, "type"),
            name=str(variable)[1:],
            default=nodes[0] if nodes else None,
            span=self._span(meta),
        )

    def method_decl(self, meta, children):
        return Method(
            modifiers=_pick_all(children, "modifier"),
            by_ref=_pick(children, "byref", False),
            name=_pick(children, "identifier"),
            params=_pick(children, "params", []),
            return_type=_pick(children, "return_type"),
            body=_pick(children, "body"),
            span=self._span(meta),
        )

    function_decl = method_decl

    def method_body(self, meta, children):
        return _Tag("body", _nodes(children))

    def abstract_body(self, meta, children):
        return _Tag("body", None)

    def modifier(self, meta, children):
        return _Tag("modifier", str(children[0]))

    def param_list(self, meta, children):
        return _Tag("params", _nodes(children))

    def param(self, meta, children):
        variable = _tokens(children, "VARIABLE")[0]
        nodes = _nodes(children)
        return Param(
            modifiers=_pick_all(children, "modifier"),
            type=_pick(children, "type"),
            by_ref=_pick(children, "byref", False),
            variadic=_pick(children, "variadic", False),
            name=str(variable)[1:],
            default=nodes[0] if nodes else None,
            span=self._span(meta),
        )

    def return_type(self, meta, children):
        return _Tag("return_type", _pick(children, "type"))

    def byref(self, meta, children):
        return _Tag("byref", True)

    def variadic(self, meta, children):
        return _Tag("variadic", True)

    def nullable_type(self, meta, children):
        return _Tag("type", "?" + _pick(children, "type_name"))

    def union_type(self, meta, children):
        return _Tag("type", "|".join(_pick_all(children, "type_name")))

    def type_name(self, meta, children):
        return _Tag("type_name", str(children[0]))

    # --- Statements ---
    def return_stmt(self, meta, children):
        nodes = _nodes(children)
        return Return(expr=nodes[0] if nodes else None, span=self._span(meta))

    def expr_stmt(self, meta, children):
        return ExpressionStatement(expr=children[0], span=self._span(meta))

    def if_stmt(self, meta, children):
        nodes = _nodes(children)
        else_clause = next((n for n in nodes if isinstance(n, Else)), None)
        return If(
            condition=nodes[0],
            body=nodes[1],
            elseifs=[n for n in nodes[2:] if isinstance(n, ElseIf)],
            else_clause=else_clause,
            span=self._span(meta),
        )

    def elseif_clause(self, meta, children):
        condition, body = _nodes(children)
        return ElseIf(condition=condition, body=body, span=self._span(meta))

    def else_clause(self, meta, children):
        return Else(body=_nodes(children)[0], span=self._span(meta))

    def foreach_stmt(self, meta, children):
        subject, value, body = _nodes(children)
        return Foreach(
            subject=subject,
            key=_pick(children, "key"),
            by_ref=_pick(children, "byref", False),
            value=value,
            body=body,
            span=self._span(meta),
        )

    def foreach_key(self, meta, children):
        return _Tag("key", children[0])

    def while_stmt(self, meta, children):
        condition, body = _nodes(children)
        return While(condition=condition, body=body, span=self._span(meta))

    def do_while_stmt(self, meta, children):
        body, condition = _nodes(children)
        return DoWhile(body=body, condition=condition, span=self._span(meta))

    def for_stmt(self, meta, children):
        return For(
            init=_pick(children, "init", []),
            condition=_pick(children, "condition", []),
            step=_pick(children, "step", []),
            body=_nodes(children)[-1],
            span=self._span(meta),
        )

    def for_init(self, meta, children):
        return _Tag("init", _nodes(children))

    def for_condition(self, meta, children):
        return _Tag("condition", _nodes(children))

    def for_step(self, meta, children):
        return _Tag("step", _nodes(children))

    def switch_stmt(self, meta, children):
        nodes = _nodes(children)
        return Switch(subject=nodes[0], cases=nodes[1:], span=self._span(meta))

    def case_clause(self, meta, children):
        nodes = _nodes(children)
        return Case(test=nodes[0], body=nodes[1:], span=self._span(meta))

    def default_clause(self, meta, children):
        return Case(body=_nodes(children), span=self._span(meta))

    @staticmethod
    def _levels(children) -> Optional[int]:
        numbers = _tokens(children, "NUMBER")
        return int(str(numbers[0])) if numbers else None

    def break_stmt(self, meta, children):
        return Break(levels=self._levels(children), span=self._span(meta))

    def continue_stmt(self, meta, children):
        return Continue(levels=self._levels(children), span=self._span(meta))

    def global_stmt(self, meta, children):
        return Global(names=[str(v)[1:] for v in _tokens(children, "VARIABLE")], span=self._span(meta))

    def try_stmt(self, meta, children):
        nodes = _nodes(children)
        return Try(
            body=nodes[0],
            catches=[n for n in nodes if isinstance(n, Catch)],
            finally_block=_pick(children, "finally"),
            span=self._span(meta),
        )

    def catch_clause(self, meta, children):
        variables = _tokens(children, "VARIABLE")
        return Catch(
            types=[str(name) for name in _tokens(children, "NAME")],
            variable=str(variables[0])[1:] if variables else None,
            body=_nodes(children)[0],
            span=self._span(meta),
        )

    def finally_clause(self, meta, children):
        return _Tag("finally", children[0])

    def throw_stmt(self, meta, children):
        return Throw(expr=children[0], span=self._span(meta))

    def echo_stmt(self, meta, children):
        return Echo(exprs=_nodes(children), span=self._span(meta))

    def block(self, meta, children):
        return Block(statements=_nodes(children), span=self._span(meta))

    def empty_stmt(self, meta, children):
        return EmptyStatement(span=self._span(meta))

    # --- Expressions ---
    def assign(self, meta, children):
        target, op, value = children
        return Assign(target=target, op=op.value, value=value, span=self._span(meta))

    def _op(self, meta, children):
        return _Tag("op", str(children[0]))

    assign_op = or_op = and_op = bit_or_op = bit_and_op = eq_op = cmp_op = concat_op = add_op = mul_op = _op

    def _infix(self, meta, children):
        return self._build_infix_tree(meta, children)

    or_expr = and_expr = bit_or = bit_and = equality = comparison = concat = additive = multiplicative = _infix

    def ternary(self, meta, children):
        condition, then, otherwise = children
        return Ternary(condition=condition, then=then, otherwise=otherwise, span=self._span(meta))

    def short_ternary(self, meta, children):
        condition, otherwise = children
        return Ternary(condition=condition, otherwise=otherwise, span=self._span(meta))

    def coalesce_op(self, meta, children):
        left, right = children
        return BinaryOp(op="??", left=left, right=right, span=self._span(meta))

    def pow(self, meta, children):
        left, right = children
        return BinaryOp(op="**", left=left, right=right, span=self._span(meta))

    def instanceof(self, meta, children):
        expr, class_ref = children
        return Instanceof(expr=expr, class_ref=class_ref, span=self._span(meta))

    def unary(self, meta, children):
        op, operand = children
        return UnaryOp(op=op.value if isinstance(op, _Tag) else str(op), operand=operand, span=self._span(meta))

    def unary_op(self, meta, children):
        return _Tag("op", str(children[0]))

    def include_op(self, meta, children):
        return _Tag("op", str(children[0]))

    def cast(self, meta, children):
        type_name, expr = children
        if str(type_name).lower() not in CAST_TYPES:
            raise ParseError(ErrorCode.SYNTAX_UNSUPPORTED_CONSTRUCT, file_path=self.file_path, line=meta.line, construct=f"Cast to '{type_name}'")
        return Cast(type=str(type_name), expr=expr, span=self._span(meta))

    def new_expr(self, meta, children):
        target = _nodes(children)[0]
        if isinstance(target, AnonymousClass):
            target.span = self._span(meta)
            return target
        return New(class_ref=target, args=_pick(children, "args"), span=self._span(meta))

    def anonymous_class(self, meta, children):
        return AnonymousClass(
            args=_pick(children, "args"),
            extends=_pick(children, "extends"),
            implements=_pick(children, "implements", []),
            members=_nodes(children),
            span=self._span(meta),
        )

    def _inc_dec(self, meta, children, op, prefix):
        return IncDec(op=op, prefix=prefix, target=children[0], span=self._span(meta))

    def post_inc(self, meta, children):
        return self._inc_dec(meta, children, "++", prefix=False)

    def post_dec(self, meta, children):
        return self._inc_dec(meta, children, "--", prefix=False)

    def pre_inc(self, meta, children):
        return self._inc_dec(meta, children, "++", prefix=True)

    def pre_dec(self, meta, children):
        return self._inc_dec(meta, children, "--", prefix=True)

    def match_expr(self, meta, children):
        nodes = _nodes(children)
        return Match(subject=nodes[0], arms=nodes[1:], span=self._span(meta))

    def match_arm(self, meta, children):
        nodes = _nodes(children)
        return MatchArm(conditions=nodes[:-1], body=nodes[-1], span=self._span(meta))

    def default_arm(self, meta, children):
        return MatchArm(body=children[0], span=self._span(meta))

    def name_ref(self, meta, children):
        name = str(children[0])
        if name.lower() in LITERAL_NAMES:
            kind, value = LITERAL_NAMES[name.lower()]
            return Literal(kind=kind, value=value, raw=name, span=self._span(meta))
        return Reference(name=name, span=self._span(meta))

    def variable(self, meta, children):
        return Variable(name=str(children[0])[1:], span=self._span(meta))

    def static_ref(self, meta, children):
        return Reference(name="static", span=self._span(meta))

    def _fetch(self, meta, children, nullsafe):
        target, member = children
        name = member.value if isinstance(member, _Tag) else member
        return PropertyFetch(target=target, name=name, nullsafe=nullsafe, span=self._span(meta))

    def property_fetch(self, meta, children):
        return self._fetch(meta, children, nullsafe=False)

    def nullsafe_property_fetch(self, meta, children):
        return self._fetch(meta, children, nullsafe=True)

    def class_const_fetch(self, meta, children):
        class_ref, constant = children
        return ClassConstFetch(class_ref=class_ref, constant=constant.value, span=self._span(meta))

    def static_property_fetch(self, meta, children):
        class_ref, variable = children
        return StaticPropertyFetch(class_ref=class_ref, name=str(variable)[1:], span=self._span(meta))

    def array_access(self, meta, children):
        nodes = _nodes(children)
        return ArrayAccess(target=nodes[0], index=nodes[1] if len(nodes) > 1 else None, span=self._span(meta))

    def call(self, meta, children):
        callee, args_tag = children
        args = args_tag.value
        span = self._span(meta)

        # The long `array(...)` syntax parses as a call to `array`.
        if isinstance(callee, Reference) and callee.name.lower() == "array":
            items = [a if isinstance(a, ArrayItem) else ArrayItem(value=a.value, unpack=a.unpack, span=a.span) for a in args]
            return ArrayLiteral(items=items, long_syntax=True, span=span)

        if any(isinstance(a, ArrayItem) for a in args):
            raise ParseError(ErrorCode.SYNTAX_UNEXPECTED_TOKEN, file_path=self.file_path, line=meta.line, details="'=>' is only allowed inside arrays.")

        if isinstance(callee, PropertyFetch):
            return MethodCall(target=callee.target, name=callee.name, args=args, nullsafe=callee.nullsafe, span=span)
        if isinstance(callee, ClassConstFetch):
            return StaticCall(class_ref=callee.class_ref, name=callee.constant, args=args, span=span)
        return Call(callee=callee, args=args, span=span)

    def call_args(self, meta, children):
        args = []
        for child in _nodes(children):
            if isinstance(child, (Arg, ArrayItem)):
                args.append(child)
            else:
                args.append(Arg(value=child, span=child.span))
        return _Tag("args", args)

    def spread_arg(self, meta, children):
        return Arg(value=children[0], unpack=True, span=self._span(meta))

    def named_arg(self, meta, children):
        name, value = children
        return Arg(value=value, name=name.value, span=self._span(meta))

    def keyed_arg(self, meta, children):
        key, value = children
        return ArrayItem(key=key, value=value, span=self._span(meta))

    def paren(self, meta, children):
        return Paren(expr=children[0], span=self._span(meta))

    # --- Literals ---
    def number(self, meta, children):
        raw = str(children[0])
        digits = raw.replace("_", "")
        if "." in digits or ("e" in digits.lower() and not digits.lower().startswith("0x")):
            return Literal(kind="float", value=float(digits), raw=raw, span=self._span(meta))
        if len(digits) > 1 and digits.startswith("0") and digits.isdigit():
            value = int(digits, 8)
        else:
            value = int(digits, 0)
        return Literal(kind="int", value=value, raw=raw, span=self._span(meta))

    def string(self, meta, children):
        raw = str(children[0])
        inner = raw[1:-1]
        if raw.startswith("'"):
            value = inner.replace("\\\\", "\\").replace("\\'", "'")
        else:
            value = inner.replace('\\"', '"').replace("\\\\", "\\")
        return Literal(kind="string", value=value, raw=raw, span=self._span(meta))

    def array_literal(self, meta, children):
        return ArrayLiteral(items=_nodes(children), span=self._span(meta))

    def array_item(self, meta, children):
        return ArrayItem(value=children[0], span=self._span(meta))

    def keyed_item(self, meta, children):
        key, value = children
        return ArrayItem(key=key, value=value, span=self._span(meta))

    def keyed_ref_item(self, meta, children):
        key, value = children
        return ArrayItem(key=key, value=value, by_ref=True, span=self._span(meta))

    def ref_item(self, meta, children):
        return ArrayItem(value=children[0], by_ref=True, span=self._span(meta))

    def spread_item(self, meta, children):
        return ArrayItem(value=children[0], unpack=True, span=self._span(meta))

    # --- Closures ---
    def closure(self, meta, children):
        return Closure(
            static=_pick(children, "static", False),
            by_ref=_pick(children, "byref", False),
            params=_pick(children, "params", []),
            uses=_pick(children, "uses", []),
            return_type=_pick(children, "return_type"),
            body=_nodes(children),
            span=self._span(meta),
        )

    def closure_uses(self, meta, children):
        return _Tag("uses", _nodes(children))

    def closure_use(self, meta, children):
        variable = _tokens(children, "VARIABLE")[0]
        return ClosureUse(name=str(variable)[1:], by_ref=_pick(children, "byref", False), span=self._span(meta))

    def arrow_fn(self, meta, children):
        return ArrowFunction(
            static=_pick(children, "static", False),
            by_ref=_pick(children, "byref", False),
            params=_pick(children, "params", []),
            return_type=_pick(children, "return_type"),
            expr=_nodes(children)[-1],
            span=self._span(meta),
        )

    def static_kw(self, meta, children):
        return _Tag("static", True)

    def identifier(self, meta, children):
        return _Tag("identifier", str(children[0]))


# --- Doc comments ---


def parse_doc_comment(text: str) -> List[str]:
    """Splits a `/** ... */` block into its content lines."""
    body = text[3:-2] if text.startswith("/**") else text[2:-2]
    lines = []
    for line in body.split("\n"):
        stripped = line.strip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            if stripped.startswith(" "):
                stripped = stripped[1:]
        lines.append(stripped.rstrip())
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return lines


def _iter_nodes(node: ASTNode):
    yield node
    for _, _, child in node.child_slots():
        yield from _iter_nodes(child)


def _comment_span(token: Token) -> Span:
    # Tokens of ignored terminals only carry their start position.
    text = str(token)
    newlines = text.count("\n")
    if newlines:
        e_col = len(text) - text.rfind("\n")
    else:
        e_col = token.column + len(text)
    return Span(
        start=token.start_pos,
        end=token.start_pos + len(text),
        s_line=token.line,
        s_col=token.column,
        e_line=token.line + newlines,
        e_col=e_col,
    )


def attach_doc_comments(tree: ASTNode, source: str, comments: List[Token]) -> None:
    """
    Anchors each `/** */` block to the declaration that directly follows it
    (only whitespace and attributes in between) and widens the declaration's
    span so that it starts at the comment.
    """
    doc_comments = [(c, _comment_span(c)) for c in comments if str(c).startswith("/**") and str(c) != "/**/"]
    if not doc_comments:
        return

    for node in _iter_nodes(tree):
        if not isinstance(node, DECLARATIONS_WITH_DOCS) or node.span is None:
            continue
        candidates = [(c, span) for c, span in doc_comments if span.end <= node.span.start]
        if not candidates:
            continue
        comment, comment_span = candidates[-1]
        if not ATTRIBUTES_OR_SPACE_REGEX.match(source[comment_span.end : node.span.start]):
            continue
        node.doc_comment = DocComment(lines=parse_doc_comment(str(comment)), span=comment_span)
        node.span = Span(
            start=comment_span.start,
            end=node.span.end,
            s_line=comment_span.s_line,
            s_col=comment_span.s_col,
            e_line=node.span.e_line,
            e_col=node.span.e_col,
        )


def strip_spans(node: Any) -> Any:
    """Turns parsed nodes into fresh ones, so the printer renders them instead of copying source."""
    if isinstance(node, list):
        for item in node:
            strip_spans(item)
        return node
    if isinstance(node, ASTNode):
        node.span = None
        for name in type(node).model_fields:
            value = getattr(node, name)
            if isinstance(value, (ASTNode, list)):
                strip_spans(value)
    return node


def _run(source: str, start: str, file_path: str):
    _COMMENT_SINK.clear()
    try:
        parse_tree = LARK_PARSER.parse(source, start=start)
        return PhpTransformer(file_path=file_path).transform(parse_tree), list(_COMMENT_SINK)
    except VisitError as e:
        if isinstance(e.orig_exc, RetrofitError):
            raise e.orig_exc from e
        raise
    except LarkError as e:
        raise _translate_lark_error(e, file_path=file_path, terminal_text=TERMINAL_TEXT) from e
    finally:
        _COMMENT_SINK.clear()


def parse_php(source: str, file_path: str = "<stdin>") -> SourceFile:
    """Parses a PHP file and transforms it into a span-annotated syntax tree."""

    pre_parsing_checks(source, file_path=file_path)

    tree, comments = _run(source, "start", file_path)
    attach_doc_comments(tree, source, comments)

    # The root covers the whole text, so bytes around the PHP tags survive printing.
    lines = source.split("\n")
    tree.span = Span(start=0, end=len(source), s_line=1, s_col=1, e_line=len(lines), e_col=len(lines[-1]) + 1)
    return tree


def parse_statements(source: str) -> List[ASTNode]:
    """Parses statements written without an opening tag. The result has no spans."""
    pre_parsing_checks(source, file_path="<snippet>", require_open_tag=False)
    statements, _ = _run(source, "snippet_statements", "<snippet>")
    return strip_spans(statements)


def parse_expression(source: str) -> ASTNode:
    """Parses a single expression, e.g. a default value. The result has no spans."""
    pre_parsing_checks(source, file_path="<snippet>", require_open_tag=False)
    expr, _ = _run(source, "snippet_expr", "<snippet>")
    return strip_spans(expr)
