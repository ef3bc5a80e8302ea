import pytest

from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_doc_comment, parse_php

documented_code = """<?php

/**
 * Module class.
 *
 * @property-read Foo $foo
 */
#[SomeAttribute]
class Module
{
    /** The version. */
    public string $version = '1.0';

    /* not a doc comment */
    public function init()
    {
    }

    /**
     * Returns the config.
     */
    public static function config(): array
    {
        return [];
    }
}
"""


def test_doc_comments_attach_to_the_following_declaration():
    tree = parse_php(documented_code)
    module = tree.statements[0]
    version = module.properties()[0]
    init, config = module.methods()

    assert module.doc_comment.lines == ["Module class.", "", "@property-read Foo $foo"]
    assert version.doc_comment.lines == ["The version."]
    assert init.doc_comment is None
    assert config.doc_comment.lines == ["Returns the config."]


def test_declaration_span_starts_at_its_doc_comment():
    tree = parse_php(documented_code)
    module = tree.statements[0]

    assert module.span.start == documented_code.index("/**")
    assert module.doc_comment.span.start == module.span.start
    assert documented_code[module.doc_comment.span.start : module.doc_comment.span.end].endswith("*/")


def test_comment_separated_by_code_is_not_attached():
    code = "<?php\n/** Orphan. */\n$a = 1;\nclass Foo {}\n"
    tree = parse_php(code)
    assert tree.statements[1].doc_comment is None


@pytest.mark.parametrize(
    "text, lines",
    [
        pytest.param("/** Single line. */", ["Single line."], id="single_line"),
        pytest.param("/**\n * First\n * Second\n */", ["First", "Second"], id="multi_line"),
        pytest.param("/**\n *\n * Padded\n *\n */", ["Padded"], id="blank_edges_trimmed"),
        pytest.param("/**\n   *    Indented\n   */", ["   Indented"], id="keeps_inner_indent"),
    ],
)
def test_parse_doc_comment(text, lines):
    assert parse_doc_comment(text) == lines
