"""
Registration recipes: the small edits a generator hands to the Workspace after
writing a new class, so that the class gets wired into files the user owns.

When the target file does not have the expected shape, the file is left as it
is and the outcome carries the instructions for doing the registration by hand.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from retrofit import code
from retrofit.edits import NotApplicable, class_constant, is_named_method
from retrofit.parser.core.classes import Method
from retrofit.parser.core.parser import parse_statements
from retrofit.visitor import find_first
from retrofit.logging import get_logger
from retrofit.workspace import Workspace, WorkspaceState, modify_file

log = get_logger(__name__)


@dataclass
class RegistrationOutcome:
    applied: bool
    instructions: Optional[str] = None
    text: Optional[str] = None  # the patched file content, when applied


def _patch_file(path: str, patch: Callable[[Workspace], bool], dry_run: bool) -> Optional[str]:
    """Runs `patch` against `path`. Returns the new content if it applied, writing it unless `dry_run`."""
    rendered = []

    def run(workspace: Workspace) -> bool:
        if not patch(workspace) or workspace.state is not WorkspaceState.MODIFIED:
            return False
        rendered.append(workspace.render())
        return not dry_run

    modify_file(path, run)
    return rendered[0] if rendered else None


def service_instructions(module_file: str, service_class: str, component_id: str) -> str:
    short_name = code.class_name(service_class)
    return f"""Add the following code to `{module_file}` to register the service:

```
use {service_class};

public static function config(): array
{{
    return [
        'components' => [
            '{component_id}' => {short_name}::class,
        ],
    ];
}}
```

You should also add a `@property-read` tag to the class's DocBlock comment, to help with IDE autocompletion:

```
/**
 * @property-read {short_name} ${component_id}
 */
```"""


def register_service(
    module_file: str,
    service_class: str,
    component_id: Optional[str] = None,
    dry_run: bool = False,
) -> RegistrationOutcome:
    """
    Registers `service_class` as a component of the module defined in
    `module_file`: merges `'components' => [id => Service::class]` into the
    array returned by its `config()` method and documents the component with a
    `@property-read` tag on the module class.
    """
    service_class = code.normalize_class(service_class)
    component = component_id or code.component_id(code.class_name(service_class))

    def patch(workspace: Workspace) -> bool:
        alias = workspace.import_class(service_class)
        result = workspace.modify_method_return_array("config", {"components": {component: class_constant(alias)}})
        if isinstance(result, NotApplicable):
            return False
        workspace.append_doc_comment_on_class(f"@property-read {alias} ${component}")
        return True

    text = _patch_file(module_file, patch, dry_run)
    if text is None:
        log.info("registration_not_applied", kind="service", path=module_file, component=component)
        return RegistrationOutcome(applied=False, instructions=service_instructions(module_file, service_class, component))
    return RegistrationOutcome(applied=True, text=text)


def module_instructions(app_config_file: str, module_id: str, module_class: str) -> str:
    return f"""To install the module, open `{app_config_file}` and add the following to the `return` array:

```
'modules' => [
    '{module_id}' => \\{module_class}::class,
],
```

If you want your module to be loaded during application initialization on every request,
also include `'{module_id}'` in the `bootstrap` array:

```
'bootstrap' => [
    '{module_id}',
],
```"""


def register_module(
    app_config_file: str,
    module_id: str,
    module_class: str,
    bootstrap: bool = False,
    dry_run: bool = False,
) -> RegistrationOutcome:
    """
    Adds `module_id => \\Module::class` to the `modules` array returned by
    `app_config_file` (usually `config/app.php`), and `module_id` to its
    `bootstrap` array when `bootstrap` is set.
    """
    module_class = code.normalize_class(module_class)
    entries = {"modules": {module_id: class_constant("\\" + module_class)}}
    if bootstrap:
        entries["bootstrap"] = [module_id]

    def patch(workspace: Workspace) -> bool:
        return not isinstance(workspace.modify_file_return_array(entries), NotApplicable)

    text = _patch_file(app_config_file, patch, dry_run)
    if text is None:
        log.info("registration_not_applied", kind="module", path=app_config_file, module=module_id)
        return RegistrationOutcome(applied=False, instructions=module_instructions(app_config_file, module_id, module_class))
    return RegistrationOutcome(applied=True, text=text)


EVENT_CLASS = "yii\\base\\Event"
REGISTER_TYPES_EVENT_CLASS = "craft\\events\\RegisterComponentTypesEvent"
EVENT_HANDLERS_METHOD = "attachEventHandlers"


def _event_handler_code(sender: str, event: str, event_type: str, handler: str, event_alias: str = "Event") -> str:
    return f"""{event_alias}::on({sender}::class, {sender}::{event}, function({event_type} $event) {{
    $event->types[] = {handler}::class;
}});"""


def event_handler_instructions(
    module_file: str,
    sender_class: str,
    event: str,
    handler_class: str,
    event_class: str = REGISTER_TYPES_EVENT_CLASS,
) -> str:
    uses = "".join(f"use {name};\n" for name in sorted({EVENT_CLASS, sender_class, handler_class, event_class}))
    snippet = _event_handler_code(code.class_name(sender_class), event, code.class_name(event_class), code.class_name(handler_class))
    return f"""Register the class by adding the following code to `{module_file}`:

```
{uses}
{snippet}
```"""


def register_event_handler(
    module_file: str,
    sender_class: str,
    event: str,
    handler_class: str,
    event_class: str = REGISTER_TYPES_EVENT_CLASS,
    method_name: str = EVENT_HANDLERS_METHOD,
    dry_run: bool = False,
) -> RegistrationOutcome:
    """
    Registers `handler_class` through an event: appends
    `Event::on(Sender::class, Sender::EVENT, function(...) { $event->types[] = Handler::class; })`
    to method `method_name` of the class in `module_file`.

    The method is created when the class does not have it yet, and a call to it
    is appended to `init()`. Running the recipe twice adds the handler once.
    """
    sender_class = code.normalize_class(sender_class)
    handler_class = code.normalize_class(handler_class)
    event_class = code.normalize_class(event_class)
    notes: List[str] = []

    def patch(workspace: Workspace) -> bool:
        event_alias = workspace.import_class(EVENT_CLASS)
        sender = workspace.import_class(sender_class)
        event_type = workspace.import_class(event_class)
        handler = workspace.import_class(handler_class)
        statement = parse_statements(_event_handler_code(sender, event, event_type, handler, event_alias))[0]

        created = find_first(workspace.tree, lambda node: is_named_method(node, method_name)) is None
        template = Method(modifiers=["private"], name=method_name, return_type="void", body=[])
        result = workspace.add_method_statement(method_name, statement, create_method=template)
        if isinstance(result, NotApplicable):
            return False

        if created:
            call = parse_statements(f"$this->{method_name}();")[0]
            if isinstance(workspace.add_method_statement("init", call), NotApplicable):
                notes.append(f"Call `$this->{method_name}()` from the `init()` method of `{module_file}`.")
        return True

    text = _patch_file(module_file, patch, dry_run)
    if text is None:
        log.info("registration_not_applied", kind="event_handler", path=module_file, handler=handler_class)
        return RegistrationOutcome(
            applied=False,
            instructions=event_handler_instructions(module_file, sender_class, event, handler_class, event_class),
        )
    return RegistrationOutcome(applied=True, instructions="\n".join(notes) or None, text=text)
