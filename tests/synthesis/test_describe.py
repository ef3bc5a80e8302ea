import pytest

from retrofit.exceptions import ErrorCode, MemberLookupError
from retrofit.synthesizer import TypeDescription, describe_file, describe_type, load_description

from ..utils.php_sources import PLUGIN_SOURCE, write_php


@pytest.fixture
def description():
    return describe_type(PLUGIN_SOURCE)


def test_describe_names_the_type(description):
    assert description.name == "craft\\base\\Plugin"
    assert description.short_name == "Plugin"
    assert description.kind == "class"


def test_describe_members_in_declaration_order(description):
    assert [c.name for c in description.constants] == ["EDITION_LITE", "EDITION_PRO"]
    assert [p.name for p in description.properties] == ["schemaVersion", "hasCpSettings", "components"]
    assert [m.name for m in description.methods] == ["init", "setSettings", "createSettingsModel"]


def test_describe_keeps_expressions_as_source(description):
    assert description.find_constant("EDITION_PRO").value == "'pro'"
    assert description.find_property("schemaVersion").default == "'1.0.0'"
    assert description.find_property("hasCpSettings").default == "false"


def test_describe_resolves_class_names(description):
    set_settings = description.find_method("setSettings")

    assert description.find_property("schemaVersion").type == "?string"
    assert description.find_property("components").default == "[\\craft\\helpers\\Json::class]"
    assert [p.type for p in set_settings.params] == ["array", "\\craft\\helpers\\Json"]
    assert set_settings.params[1].default == "null"
    # Not imported, so resolved against the file's namespace.
    assert description.find_method("createSettingsModel").return_type == "?\\craft\\base\\Model"


def test_describe_keeps_modifiers(description):
    assert description.find_method("createSettingsModel").modifiers == ["abstract", "protected"]
    assert description.find_property("hasCpSettings").modifiers == ["public"]


def test_method_lookup_is_case_insensitive(description):
    assert description.find_method("SETSETTINGS").name == "setSettings"


@pytest.mark.parametrize(
    "lookup, code",
    [
        pytest.param(lambda d: d.find_constant("EDITION_ENTERPRISE"), ErrorCode.UNKNOWN_CONSTANT, id="constant"),
        pytest.param(lambda d: d.find_property("schemaversion"), ErrorCode.UNKNOWN_PROPERTY, id="property_is_case_sensitive"),
        pytest.param(lambda d: d.find_method("afterInstall"), ErrorCode.UNKNOWN_METHOD, id="method"),
    ],
)
def test_unknown_members(description, lookup, code):
    with pytest.raises(MemberLookupError) as excinfo:
        lookup(description)

    assert excinfo.value.code == code


def test_unknown_base_type():
    with pytest.raises(MemberLookupError) as excinfo:
        describe_type(PLUGIN_SOURCE, "Module")

    assert excinfo.value.code == ErrorCode.UNKNOWN_BASE_TYPE


def test_describe_named_type_in_braced_namespace():
    code = "<?php\nnamespace app\\models {\n    class A {}\n    interface B { public function run(); }\n}\n"
    description = describe_type(code, "B")

    assert description.name == "app\\models\\B"
    assert description.kind == "interface"
    assert description.methods[0].name == "run"


def test_description_round_trips_through_json(tmp_path, description):
    path = tmp_path / "plugin.json"
    path.write_text(description.model_dump_json(indent=2), encoding="utf-8")

    assert load_description(str(path)) == description


def test_describe_file(tmp_path):
    path = write_php(tmp_path, "Plugin.php", PLUGIN_SOURCE)
    description = describe_file(path, "Plugin")

    assert isinstance(description, TypeDescription)
    assert description == describe_type(PLUGIN_SOURCE)
