import io
import json

import structlog
from structlog.testing import capture_logs

from retrofit.edits import class_constant
from retrofit.logging import configure_library_defaults, configure_logging, get_logger
from retrofit.workspace import Workspace

from .utils.php_sources import MODULE_SOURCE, MODULE_WITH_BUILDER_SOURCE


def test_patch_events_are_logged():
    configure_logging("DEBUG")

    with capture_logs() as logs:
        workspace = Workspace().load_text(MODULE_SOURCE)
        workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})

    events = [entry["event"] for entry in logs]
    assert events == ["workspace_loaded", "patch_applied"]
    assert logs[1]["log_level"] == "info"


def test_not_applicable_is_logged_with_reason():
    configure_logging("DEBUG")

    with capture_logs() as logs:
        Workspace().load_text(MODULE_WITH_BUILDER_SOURCE).modify_method_return_array("config", {"a": 1})

    entry = next(e for e in logs if e["event"] == "patch_not_applicable")
    assert entry["reason"]


def test_json_output():
    stream = io.StringIO()
    configure_logging("INFO", json_format=True, stream=stream)

    get_logger("tests").info("file_written", path="Module.php", size=10)

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "file_written"
    assert record["path"] == "Module.php"
    assert record["level"] == "info"
    assert record["logger"] == "tests"


def test_level_filters_debug_events():
    stream = io.StringIO()
    configure_logging("WARNING", stream=stream)

    get_logger("tests").info("patch_applied")

    assert stream.getvalue() == ""


def test_library_defaults_keep_stdout_quiet(capsys):
    structlog.reset_defaults()
    configure_library_defaults()

    workspace = Workspace().load_text(MODULE_SOURCE)
    workspace.modify_method_return_array("config", {"components": {"bar": class_constant("Bar")}})

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_library_defaults_forward_warnings_to_stdlib(caplog):
    structlog.reset_defaults()
    configure_library_defaults()

    get_logger("tests").warning("alias_fallback", alias="ServicesModule")

    assert "event='alias_fallback'" in caplog.text
    assert "alias='ServicesModule'" in caplog.text
