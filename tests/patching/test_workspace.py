import pytest

from retrofit.edits import Applied, NotApplicable, class_constant
from retrofit.exceptions import ErrorCode, ParseError, RetrofitError, WorkspaceStateError
from retrofit.parser.core.classes import *
from retrofit.parser.core.parser import parse_statements
from retrofit.visitor import CallbackVisitor
from retrofit.workspace import Workspace, WorkspaceState, modify_file

from ..utils.php_sources import APP_CONFIG_SOURCE, MODULE_SOURCE, MODULE_WITH_BUILDER_SOURCE, read_php, write_php

module_with_service = """<?php

namespace modules;

use Craft;
use yii\\base\\Module as BaseModule;
use modules\\services\\Bar;

/**
 * Custom module class.
 * @property-read Bar $bar
 */
class Module extends BaseModule
{
    public static function config(): array
    {
        return [
            'components' => [
                'foo' => Foo::class,
                'bar' => Bar::class,
            ],
        ];
    }

    public function init(): void
    {
        // Keep   this    comment   exactly.
        parent::init();
    }
}
"""


def test_full_service_registration_patch(tmp_path):
    path = write_php(tmp_path, "Module.php", MODULE_SOURCE)
    workspace = Workspace().load(path)

    alias = workspace.import_class("modules\\services\\Bar")
    merged = workspace.modify_method_return_array("config", {"components": {"bar": class_constant(alias)}})
    documented = workspace.append_doc_comment_on_class(f"@property-read {alias} $bar")

    assert alias == "Bar"
    assert isinstance(merged, Applied)
    assert isinstance(documented, Applied)
    assert documented.text == module_with_service
    # Nothing is on disk before write().
    assert read_php(path) == MODULE_SOURCE

    workspace.write()

    assert workspace.state is WorkspaceState.WRITTEN
    assert read_php(path) == module_with_service


def test_state_transitions(tmp_path):
    path = write_php(tmp_path, "Module.php", MODULE_SOURCE)
    workspace = Workspace()
    assert workspace.state is WorkspaceState.UNLOADED

    workspace.load(path)
    assert workspace.state is WorkspaceState.LOADED

    workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})
    assert workspace.state is WorkspaceState.MODIFIED

    workspace.abort()
    assert workspace.state is WorkspaceState.ABORTED
    assert read_php(path) == MODULE_SOURCE


@pytest.mark.parametrize(
    "operation",
    [
        pytest.param(lambda ws: ws.write(), id="write_before_modify"),
        pytest.param(lambda ws: ws.load_text(MODULE_SOURCE), id="load_twice"),
    ],
)
def test_invalid_transitions_on_loaded_workspace(operation):
    workspace = Workspace().load_text(MODULE_SOURCE)

    with pytest.raises(WorkspaceStateError) as excinfo:
        operation(workspace)

    assert excinfo.value.code == ErrorCode.INVALID_STATE_TRANSITION


def test_aborted_workspace_rejects_edits():
    workspace = Workspace().load_text(MODULE_SOURCE)
    workspace.abort()

    with pytest.raises(WorkspaceStateError):
        workspace.modify_method_return_array("config", {"a": 1})


def test_write_needs_a_path():
    workspace = Workspace().load_text(MODULE_SOURCE)
    workspace.modify_method_return_array("config", {"a": 1})

    with pytest.raises(WorkspaceStateError):
        workspace.write()


def test_missing_file(tmp_path):
    with pytest.raises(RetrofitError) as excinfo:
        Workspace().load(str(tmp_path / "missing.php"))

    assert excinfo.value.code == ErrorCode.FILE_NOT_FOUND


def test_parse_error_leaves_workspace_unloaded(tmp_path):
    path = write_php(tmp_path, "broken.php", "<?php\nclass Foo {\n")
    workspace = Workspace()

    with pytest.raises(ParseError):
        workspace.load(path)

    assert workspace.state is WorkspaceState.UNLOADED


def test_method_returning_a_call_is_not_applicable(tmp_path):
    path = write_php(tmp_path, "Module.php", MODULE_WITH_BUILDER_SOURCE)
    workspace = Workspace().load(path)

    result = workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.LOADED
    assert workspace.render() == MODULE_WITH_BUILDER_SOURCE


def test_missing_method_is_not_applicable():
    workspace = Workspace().load_text(MODULE_SOURCE)
    result = workspace.modify_method_return_array("configure", {"a": 1})

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.LOADED


@pytest.mark.parametrize(
    "returned",
    [
        pytest.param("[...$defaults, 'components' => ['foo' => Foo::class]]", id="spread_item"),
        pytest.param("[$key => 1, 'components' => []]", id="dynamic_key"),
        pytest.param("['components' => [...$shared, 'foo' => Foo::class]]", id="nested_spread_item"),
    ],
)
def test_unmergeable_return_array_leaves_workspace_unchanged(returned):
    code = MODULE_SOURCE.replace(
        "return [\n            'components' => [\n                'foo' => Foo::class,\n            ],\n        ];",
        f"return {returned};",
    )
    workspace = Workspace().load_text(code)

    result = workspace.modify_method_return_array("config", {"components": {"cache": class_constant("CacheService")}})

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.LOADED
    assert workspace.render() == code


def test_method_name_match_is_exact():
    code = MODULE_SOURCE.replace("public static function config()", "public static function configOther()")
    workspace = Workspace().load_text(code)

    assert isinstance(workspace.modify_method_return_array("config", {"a": 1}), NotApplicable)


def test_failed_edit_keeps_earlier_edits():
    workspace = Workspace().load_text(MODULE_SOURCE)
    workspace.import_class("modules\\services\\Bar")
    before = workspace.render()

    result = workspace.modify_method_return_array("missing", {"a": 1})

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.MODIFIED
    assert workspace.render() == before


def test_import_of_already_imported_class_changes_nothing():
    workspace = Workspace().load_text(MODULE_SOURCE)

    assert workspace.import_class("yii\\base\\Module") == "BaseModule"
    assert workspace.state is WorkspaceState.LOADED


def test_import_without_existing_uses(tmp_path):
    code = "<?php\n\nnamespace app;\n\nclass Foo\n{\n}\n"
    workspace = Workspace().load_text(code)

    assert workspace.import_class("yii\\base\\Component") == "Component"
    assert workspace.render() == "<?php\n\nnamespace app;\n\nuse yii\\base\\Component;\n\nclass Foo\n{\n}\n"


def test_file_level_return_merge():
    workspace = Workspace().load_text(APP_CONFIG_SOURCE)
    result = workspace.modify_file_return_array({"params": {"adminEmail": "admin@example.com"}})

    assert isinstance(result, Applied)
    assert result.text.endswith("    'bootstrap' => ['my-module'],\n    'params' => ['adminEmail' => 'admin@example.com'],\n];\n")


def test_apply_requires_a_match():
    workspace = Workspace().load_text(MODULE_SOURCE)
    result = workspace.apply(CallbackVisitor(enter_node=lambda node: None))

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.LOADED


def test_modify_file_writes_once(tmp_path, monkeypatch):
    path = write_php(tmp_path, "Module.php", MODULE_SOURCE)
    writes = []
    original_write = Workspace.write

    def counting_write(self):
        writes.append(self.path)
        return original_write(self)

    monkeypatch.setattr(Workspace, "write", counting_write)

    def callback(workspace):
        workspace.import_class("modules\\services\\Bar")
        workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})
        return True

    assert modify_file(path, callback) is True
    assert writes == [path]


def test_modify_file_leaves_file_alone_when_not_applicable(tmp_path):
    path = write_php(tmp_path, "Module.php", MODULE_WITH_BUILDER_SOURCE)

    def callback(workspace):
        workspace.import_class("modules\\services\\Bar")
        result = workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})
        return not isinstance(result, NotApplicable)

    assert modify_file(path, callback) is False
    assert read_php(path) == MODULE_WITH_BUILDER_SOURCE


def test_crlf_is_preserved_on_unchanged_lines(tmp_path):
    code = MODULE_SOURCE.replace("\n", "\r\n")
    path = write_php(tmp_path, "Module.php", code)
    workspace = Workspace().load(path)

    workspace.append_doc_comment_on_class("@since 2.0")
    text = workspace.write()

    assert text.startswith("<?php\r\n\r\nnamespace modules;\r\n")
    assert "        parent::init();\r\n" in text
    assert " * @since 2.0\r\n */" in text
    assert "\n" not in text.replace("\r\n", "")


def test_merge_into_inline_nested_array():
    code = """<?php
class Module
{
    public function config()
    {
        return ['components' => ['cache' => CacheService::class]];
    }
}
"""
    workspace = Workspace().load_text(code)
    result = workspace.modify_method_return_array("config", {"components": {"log": class_constant("LogService")}})

    expected = code.replace("CacheService::class]", "CacheService::class, 'log' => LogService::class]")
    assert result.text == expected


def test_add_method_statement():
    workspace = Workspace().load_text(MODULE_SOURCE)
    result = workspace.add_method_statement("init", parse_statements("$this->setUp();")[0])

    assert isinstance(result, Applied)
    assert "        parent::init();\n        $this->setUp();\n    }\n" in result.text
    assert workspace.state is WorkspaceState.MODIFIED


def test_add_method_statement_keeps_existing_statement():
    workspace = Workspace().load_text(MODULE_SOURCE)
    result = workspace.add_method_statement("init", parse_statements("parent :: init ( ) ;")[0])

    assert isinstance(result, Applied)
    assert result.text == MODULE_SOURCE


def test_add_method_statement_creates_missing_method():
    workspace = Workspace().load_text(MODULE_SOURCE)
    template = Method(modifiers=["protected"], name="boot", return_type="void")
    result = workspace.add_method_statement("boot", parse_statements("$this->setUp();")[0], create_method=template)

    assert result.text.endswith("        parent::init();\n    }\n\n    protected function boot(): void\n    {\n        $this->setUp();\n    }\n}\n")


def test_add_method_statement_to_missing_method_is_not_applicable():
    workspace = Workspace().load_text(MODULE_SOURCE)
    result = workspace.add_method_statement("boot", parse_statements("$this->setUp();")[0])

    assert isinstance(result, NotApplicable)
    assert workspace.state is WorkspaceState.LOADED


def test_add_method_statement_targets_named_class():
    code = "<?php\nclass A\n{\n    function run()\n    {\n    }\n}\n\nclass B\n{\n    function run()\n    {\n        $b = 1;\n    }\n}\n"
    workspace = Workspace().load_text(code)

    text = workspace.add_method_statement("run", parse_statements("$c = 2;")[0], class_name="B").text

    assert text.startswith("<?php\nclass A\n{\n    function run()\n    {\n    }\n}\n")
    assert "        $b = 1;\n        $c = 2;\n" in text
