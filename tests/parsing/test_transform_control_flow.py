import pytest

from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_php, parse_statements

from ..utils.assertion_helper import assert_asts_equal
from ..utils.factory_helpers import *

for_code = """
for ($i = 0, $n = count($items); $i < $n; $i++) {
    continue;
}
"""
for_exp = For(
    init=[
        Assign(target=get_variable("i"), value=get_int(0)),
        Assign(target=get_variable("n"), value=Call(callee=get_reference("count"), args=[get_arg(get_variable("items"))])),
    ],
    condition=[get_binary_op("<", get_variable("i"), get_variable("n"))],
    step=[IncDec(op="++", target=get_variable("i"))],
    body=Block(statements=[Continue()]),
)

endless_for_code = "for (;;) { break 2; }"
endless_for_exp = For(body=Block(statements=[Break(levels=2)]))

do_while_code = """
do {
    --$retries;
} while ($retries > 0);
"""
do_while_exp = DoWhile(
    body=Block(statements=[ExpressionStatement(expr=IncDec(op="--", prefix=True, target=get_variable("retries")))]),
    condition=get_binary_op(">", get_variable("retries"), get_int(0)),
)

switch_code = """
switch ($type) {
    case 'a':
    case 'b';
        $handler = 'letters';
        break;
    default:
        $handler = null;
}
"""
switch_exp = Switch(
    subject=get_variable("type"),
    cases=[
        Case(test=get_string("a")),
        Case(
            test=get_string("b"),
            body=[ExpressionStatement(expr=Assign(target=get_variable("handler"), value=get_string("letters"))), Break()],
        ),
        Case(body=[ExpressionStatement(expr=Assign(target=get_variable("handler"), value=get_null()))]),
    ],
)

global_code = "global $config, $app;"
global_exp = Global(names=["config", "app"])


@pytest.mark.parametrize(
    "code, expected",
    [
        pytest.param(for_code, for_exp, id="for_with_comma_lists"),
        pytest.param(endless_for_code, endless_for_exp, id="for_without_header_and_break_levels"),
        pytest.param(do_while_code, do_while_exp, id="do_while"),
        pytest.param(switch_code, switch_exp, id="switch_with_fallthrough_and_default"),
        pytest.param(global_code, global_exp, id="global"),
    ],
)
def test_transform_control_flow(code, expected):
    statements = parse_statements(code)

    assert len(statements) == 1
    assert_asts_equal(statements[0], expected)


enum_code = """<?php
enum Status: string implements HasLabel
{
    use Labels;

    const DEFAULT = self::Active;

    /**
     * Shown in the control panel.
     */
    case Active = 'active';
    case Disabled = 'disabled';

    public function label(): string
    {
        return match ($this) {
            self::Active => 'On',
            default => 'Off',
        };
    }
}
"""
enum_exp = get_source_file(
    [
        ClassDecl(
            kind="enum",
            name="Status",
            backing_type="string",
            implements=["HasLabel"],
            members=[
                TraitUse(names=["Labels"]),
                ClassConst(name="DEFAULT", value=get_class_constant("self", "Active")),
                EnumCase(doc_comment=DocComment(lines=["Shown in the control panel."]), name="Active", value=get_string("active")),
                EnumCase(name="Disabled", value=get_string("disabled")),
                get_method(
                    "label",
                    return_type="string",
                    body=[
                        get_return(
                            Match(
                                subject=get_variable("this"),
                                arms=[
                                    MatchArm(conditions=[get_class_constant("self", "Active")], body=get_string("On")),
                                    MatchArm(body=get_string("Off")),
                                ],
                            )
                        )
                    ],
                ),
            ],
        )
    ]
)

pure_enum_code = "<?php\nenum Suit\n{\n    case Hearts;\n    case Spades;\n}\n"
pure_enum_exp = get_source_file([ClassDecl(kind="enum", name="Suit", members=[EnumCase(name="Hearts"), EnumCase(name="Spades")])])


@pytest.mark.parametrize(
    "code, expected",
    [
        pytest.param(enum_code, enum_exp, id="backed_enum"),
        pytest.param(pure_enum_code, pure_enum_exp, id="pure_enum"),
    ],
)
def test_transform_enum(code, expected):
    actual = parse_php(code)
    assert_asts_equal(actual, expected)


def test_keywords_are_allowed_as_member_names():
    statements = parse_statements("$query->match($a)->default()->for('x');\nFoo::switch();")

    assert statements[0].expr.name == "for"
    assert statements[0].expr.target.target.name == "match"
    assert statements[1].expr.name == "switch"
