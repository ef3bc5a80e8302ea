import pytest

from retrofit.edits import ImportTable, add_imports, ensure_import
from retrofit.edits.imports import alias_candidates, use_statement
from retrofit.exceptions import AliasExhaustedError, ErrorCode
from retrofit.parser.core.parser import parse_php
from retrofit.printer import print_node

from ..utils.php_sources import MODULE_SOURCE

plugin_file_code = """<?php

namespace acme\\plugin;

use craft\\base\\Model;
use foo\\BasePlugin;

class Plugin
{
}
"""


def test_import_table_reads_existing_imports():
    table = ImportTable.from_source(parse_php(MODULE_SOURCE))

    assert table.alias_for("Craft") == "Craft"
    assert table.alias_for("\\yii\\base\\Module") == "BaseModule"
    assert table.owner_of("basemodule") == "yii\\base\\Module"
    assert table.added == []


@pytest.mark.parametrize(
    "alias, taken",
    [
        pytest.param("Module", True, id="declared_class_is_reserved"),
        pytest.param("module", True, id="case_insensitive"),
        pytest.param("BaseModule", True, id="existing_alias"),
        pytest.param("string", True, id="builtin_type"),
        pytest.param("Cache", False, id="free"),
    ],
)
def test_is_taken(alias, taken):
    table = ImportTable.from_source(parse_php(MODULE_SOURCE))
    assert table.is_taken(alias) is taken


def test_ensure_import_uses_short_name_when_free():
    table = ImportTable.from_source(parse_php(MODULE_SOURCE))

    assert ensure_import(table, "app\\services\\Cache") == "Cache"
    assert ensure_import(table, "\\app\\services\\Cache") == "Cache"
    assert table.added == [("app\\services\\Cache", "Cache")]


def test_existing_import_is_never_renamed():
    table = ImportTable.from_source(parse_php(MODULE_SOURCE))

    assert ensure_import(table, "yii\\base\\Module", preferred_alias="Module") == "BaseModule"
    assert table.added == []


@pytest.mark.parametrize(
    "fqcn, expected",
    [
        pytest.param("craft\\base\\Plugin", "CraftBasePlugin", id="prefixed_alias_taken"),
        pytest.param("other\\Model", "BaseModel", id="short_name_taken"),
        pytest.param("Plugin", "Plugin2", id="root_namespace_class"),
    ],
)
def test_ensure_import_disambiguates(fqcn, expected):
    table = ImportTable.from_source(parse_php(plugin_file_code))
    alias = ensure_import(table, fqcn)

    assert alias == expected
    # No two imports ever share an alias.
    aliases = [a.lower() for _, a in table.entries]
    assert len(aliases) == len(set(aliases))


def test_generated_class_name_forces_base_prefix():
    table = ImportTable(reserved=["Plugin"])
    assert ensure_import(table, "craft\\base\\Plugin") == "BasePlugin"


def test_alias_candidates():
    candidates = alias_candidates("craft\\base\\Plugin")

    assert candidates[:4] == ["Plugin", "BasePlugin", "CraftBasePlugin", "Plugin2"]
    assert len(candidates) <= 10


def test_alias_exhaustion():
    table = ImportTable(reserved=alias_candidates("craft\\base\\Plugin"))

    with pytest.raises(AliasExhaustedError) as excinfo:
        ensure_import(table, "craft\\base\\Plugin")

    assert excinfo.value.code == ErrorCode.ALIAS_EXHAUSTED


def test_use_statement_omits_redundant_alias():
    assert print_node(use_statement("craft\\base\\Plugin", "Plugin")) == "use craft\\base\\Plugin;"
    assert print_node(use_statement("craft\\base\\Plugin", "BasePlugin")) == "use craft\\base\\Plugin as BasePlugin;"


def test_add_imports_goes_after_the_last_use():
    tree = parse_php(MODULE_SOURCE)
    updated = add_imports(tree, [("app\\services\\Cache", "Cache")])

    kinds = [type(s).__name__ for s in updated.statements]
    assert kinds == ["Namespace", "Use", "Use", "Use", "ClassDecl"]
    assert updated.statements[3].clauses[0].name == "app\\services\\Cache"
    # The input tree is left alone.
    assert len(tree.statements) == 4


def test_add_imports_into_braced_namespace():
    tree = parse_php("<?php\nnamespace app {\n    class Foo {}\n}\n")
    updated = add_imports(tree, [("yii\\base\\Component", "Component")])

    body = updated.statements[0].body
    assert [type(s).__name__ for s in body] == ["Use", "ClassDecl"]
