import argparse
import json
import os
import sys
import time

from retrofit.config import SOURCE_ENCODING
from retrofit.edits import NotApplicable
from retrofit.exceptions import RetrofitError
from retrofit.logging import configure_logging
from retrofit.parser.core.parser import parse_expression, parse_php
from retrofit.registration import EVENT_HANDLERS_METHOD, REGISTER_TYPES_EVENT_CLASS, register_event_handler, register_module, register_service
from retrofit.synthesizer import MemberSelection, Override, describe_file, load_description, synthesize
from retrofit.utils import ArtifactEncoder, TerminalColors
from retrofit.workspace import Workspace, WorkspaceState

# In JSON entry documents, {"$php": "Foo::class"} stands for a PHP expression.
PHP_EXPRESSION_KEY = "$php"


def _entries_from_json(value):
    if isinstance(value, dict):
        if set(value) == {PHP_EXPRESSION_KEY}:
            return parse_expression(value[PHP_EXPRESSION_KEY])
        return {key: _entries_from_json(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_entries_from_json(item) for item in value]
    return value


def _load_json_argument(argument: str):
    """Accepts either a path to a JSON file or an inline JSON document."""
    if os.path.isfile(argument):
        with open(argument, "r", encoding=SOURCE_ENCODING) as f:
            return json.load(f)
    return json.loads(argument)


def _split_override(argument: str):
    name, separator, value = argument.partition("=")
    return name, (Override(value=value) if separator else None)


def _finish_patch(workspace: Workspace, result, dry_run: bool) -> int:
    if isinstance(result, NotApplicable):
        workspace.abort()
        print(f"{TerminalColors.YELLOW}--- Patch not applicable: {result.reason} ---{TerminalColors.RESET}", file=sys.stderr)
        print("The file was left unchanged.", file=sys.stderr)
        return 2
    if dry_run:
        print(workspace.render(), end="")
        workspace.abort()
        return 0
    workspace.write()
    print(f"{TerminalColors.GREEN}--- Patched {workspace.path} ---{TerminalColors.RESET}", file=sys.stderr)
    return 0


# --- Subcommands ---


def cmd_ast(args) -> int:
    with open(args.file, "r", encoding=SOURCE_ENCODING, newline="") as f:
        tree = parse_php(f.read(), file_path=os.path.abspath(args.file))
    artifact = json.dumps(tree, indent=2, cls=ArtifactEncoder)
    if args.output:
        with open(args.output, "w", encoding=SOURCE_ENCODING) as f:
            f.write(artifact)
        print(f"{TerminalColors.GREEN}--- Syntax tree written to {os.path.abspath(args.output)} ---{TerminalColors.RESET}", file=sys.stderr)
    else:
        print(artifact)
    return 0


def cmd_merge(args) -> int:
    entries = _entries_from_json(_load_json_argument(args.entries))
    workspace = Workspace().load(args.file)
    if args.method:
        result = workspace.modify_method_return_array(args.method, entries)
    else:
        result = workspace.modify_file_return_array(entries)
    return _finish_patch(workspace, result, args.dry_run)


def cmd_doc(args) -> int:
    workspace = Workspace().load(args.file)
    result = workspace.append_doc_comment_on_class(args.line, class_name=args.class_name)
    return _finish_patch(workspace, result, args.dry_run)


def cmd_import(args) -> int:
    workspace = Workspace().load(args.file)
    alias = workspace.import_class(args.fqcn, args.alias)
    print(alias)
    if workspace.state is WorkspaceState.LOADED:
        workspace.abort()
        print(f"{TerminalColors.CYAN}--- Already imported ---{TerminalColors.RESET}", file=sys.stderr)
        return 0
    return _finish_patch(workspace, None, args.dry_run)


def cmd_synthesize(args) -> int:
    if args.description:
        base_type = load_description(args.description)
    else:
        base_type = describe_file(args.base, args.base_class)

    methods = {}
    for argument in args.method:
        name, separator, body = argument.partition("=")
        methods[name] = Override(body=body) if separator else None

    selection = MemberSelection(
        constants=dict(_split_override(a) for a in args.constant),
        properties=dict(_split_override(a) for a in args.property),
        methods=methods,
    )
    generated = synthesize(args.name, base_type, selection, namespace=args.namespace, comment=args.comment)
    text = generated.render()

    if args.output and not args.dry_run:
        with open(args.output, "w", encoding=SOURCE_ENCODING) as f:
            f.write(text)
        print(f"{TerminalColors.GREEN}--- {generated.fqcn} written to {os.path.abspath(args.output)} ---{TerminalColors.RESET}", file=sys.stderr)
    else:
        print(text, end="")
    return 0


def _report_registration(outcome, dry_run: bool) -> int:
    if not outcome.applied:
        print(f"{TerminalColors.YELLOW}--- Automatic registration was not possible ---{TerminalColors.RESET}", file=sys.stderr)
        print(outcome.instructions)
        return 0
    if dry_run:
        print(outcome.text, end="")
    else:
        print(f"{TerminalColors.GREEN}--- Registered ---{TerminalColors.RESET}", file=sys.stderr)
    return 0


def cmd_register_service(args) -> int:
    outcome = register_service(args.module_file, args.service_class, component_id=args.id, dry_run=args.dry_run)
    return _report_registration(outcome, args.dry_run)


def cmd_register_module(args) -> int:
    outcome = register_module(args.config_file, args.module_id, args.module_class, bootstrap=args.bootstrap, dry_run=args.dry_run)
    return _report_registration(outcome, args.dry_run)


def cmd_register_event_handler(args) -> int:
    outcome = register_event_handler(
        args.module_file,
        args.sender_class,
        args.event,
        args.handler_class,
        event_class=args.event_class,
        method_name=args.method,
        dry_run=args.dry_run,
    )
    if outcome.applied and outcome.instructions:
        print(outcome.instructions, file=sys.stderr)
    return _report_registration(outcome, args.dry_run)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Patch registration code into existing PHP files, or generate classes from a base type.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log patch events to stderr.")
    parser.add_argument("--log-json", action="store_true", help="Log as JSON lines instead of console text.")
    parser.add_argument("--dry-run", action="store_true", help="Print the resulting file instead of writing it.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ast_parser = subparsers.add_parser("ast", help="Dump the parsed syntax tree of a PHP file as JSON.")
    ast_parser.add_argument("file")
    ast_parser.add_argument("-o", "--output", help="Write the JSON to this path instead of stdout.")
    ast_parser.set_defaults(handler=cmd_ast)

    merge_parser = subparsers.add_parser("merge", help="Merge entries into a returned array literal.")
    merge_parser.add_argument("file")
    merge_parser.add_argument("entries", help=f'JSON file or inline JSON. Use {{"{PHP_EXPRESSION_KEY}": "Foo::class"}} for PHP expressions.')
    merge_parser.add_argument("-m", "--method", help="Merge into this method's returned array instead of the file-level `return`.")
    merge_parser.set_defaults(handler=cmd_merge)

    doc_parser = subparsers.add_parser("doc", help="Append a line to a class's doc comment.")
    doc_parser.add_argument("file")
    doc_parser.add_argument("line")
    doc_parser.add_argument("--class", dest="class_name", help="Target class (defaults to the first class in the file).")
    doc_parser.set_defaults(handler=cmd_doc)

    import_parser = subparsers.add_parser("import", help="Import a class and print the alias to use.")
    import_parser.add_argument("file")
    import_parser.add_argument("fqcn")
    import_parser.add_argument("--alias")
    import_parser.set_defaults(handler=cmd_import)

    synth_parser = subparsers.add_parser("synthesize", help="Generate a class from selected members of a base type.")
    synth_parser.add_argument("name", help="Short name of the new class.")
    base_group = synth_parser.add_mutually_exclusive_group(required=True)
    base_group.add_argument("--base", help="PHP file declaring the base type.")
    base_group.add_argument("--description", help="JSON type description of the base type.")
    synth_parser.add_argument("--base-class", help="Base type name, when the file declares several.")
    synth_parser.add_argument("--namespace")
    synth_parser.add_argument("--comment")
    synth_parser.add_argument("--constant", action="append", default=[], metavar="NAME[=VALUE]")
    synth_parser.add_argument("--property", action="append", default=[], metavar="NAME[=VALUE]")
    synth_parser.add_argument("--method", action="append", default=[], metavar="NAME[=BODY]")
    synth_parser.add_argument("-o", "--output")
    synth_parser.set_defaults(handler=cmd_synthesize)

    service_parser = subparsers.add_parser("register-service", help="Register a service component on a module class.")
    service_parser.add_argument("module_file")
    service_parser.add_argument("service_class")
    service_parser.add_argument("--id", help="Component ID (defaults to the class name, lower camel case).")
    service_parser.set_defaults(handler=cmd_register_service)

    module_parser = subparsers.add_parser("register-module", help="Register a module in the application config.")
    module_parser.add_argument("config_file")
    module_parser.add_argument("module_id")
    module_parser.add_argument("module_class")
    module_parser.add_argument("--bootstrap", action="store_true", help="Also load the module on every request.")
    module_parser.set_defaults(handler=cmd_register_module)

    event_parser = subparsers.add_parser("register-event-handler", help="Register a class through an event handler on a module class.")
    event_parser.add_argument("module_file")
    event_parser.add_argument("sender_class", help="Class that triggers the event.")
    event_parser.add_argument("event", help="Event constant on the sender, e.g. EVENT_REGISTER_FIELD_TYPES.")
    event_parser.add_argument("handler_class", help="Class to add to `$event->types`.")
    event_parser.add_argument("--event-class", default=REGISTER_TYPES_EVENT_CLASS, help="Type of the event object.")
    event_parser.add_argument("--method", default=EVENT_HANDLERS_METHOD, help="Method the handler is added to; created when missing.")
    event_parser.set_defaults(handler=cmd_register_event_handler)

    return parser


def main(argv=None):
    start_time = time.perf_counter()
    args = build_parser().parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else "WARNING", json_format=args.log_json)

    try:
        exit_code = args.handler(args)

    # --- Error Handling ---
    except RetrofitError as e:
        print(f"\n{TerminalColors.RED}--- ERROR ---\n{e}{TerminalColors.RESET}", file=sys.stderr)
        exit_code = 1
    except FileNotFoundError as e:
        print(f"{TerminalColors.RED}ERROR: File '{e.filename}' not found.{TerminalColors.RESET}", file=sys.stderr)
        exit_code = 1
    except json.JSONDecodeError as e:
        print(f"{TerminalColors.RED}ERROR: Invalid JSON: {e}{TerminalColors.RESET}", file=sys.stderr)
        exit_code = 1
    except Exception as e:
        print(f"\n{TerminalColors.RED}--- UNEXPECTED ERROR ---{TerminalColors.RESET}", file=sys.stderr)
        print("This may be a bug in retrofit. Please report it.", file=sys.stderr)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        exit_code = 1
    finally:
        if args.verbose:
            duration = time.perf_counter() - start_time
            print(f"\n{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}", file=sys.stderr)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
