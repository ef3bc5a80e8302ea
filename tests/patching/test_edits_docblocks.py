from retrofit.edits import NotApplicable, append_doc_line, has_doc_line
from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_php

documented_code = """<?php
/**
 * Module class.
 */
class Module
{
    public function init()
    {
        return null;
    }
}
"""


def test_append_to_existing_comment():
    module = parse_php(documented_code).statements[0]
    updated = append_doc_line(module, "@property-read Cache $cache")

    assert updated.doc_comment.lines == ["Module class.", "@property-read Cache $cache"]
    # The original declaration is untouched.
    assert module.doc_comment.lines == ["Module class."]


def test_append_creates_missing_comment():
    method = parse_php(documented_code).statements[0].methods()[0]
    updated = append_doc_line(method, "@inheritdoc")

    assert updated.doc_comment.lines == ["@inheritdoc"]
    assert updated.doc_comment.span is None


def test_append_twice_keeps_both_lines():
    module = parse_php(documented_code).statements[0]
    line = "@property-read Cache $cache"
    updated = append_doc_line(append_doc_line(module, line), line)

    assert updated.doc_comment.lines.count(line) == 2


def test_has_doc_line():
    module = parse_php(documented_code).statements[0]

    assert has_doc_line(module, "Module class.")
    assert not has_doc_line(module, "@property-read Cache $cache")
    assert not has_doc_line(module.methods()[0], "Module class.")


def test_append_to_non_declaration_is_not_applicable():
    statement = parse_php(documented_code).statements[0].methods()[0].body[0]
    result = append_doc_line(statement, "@var int")

    assert isinstance(result, NotApplicable)
