"""Command-line entry point for ``nod``.

Usage::

    nod init my-api --preset api --framework express -y
    nod preset list
    nod preset create mystack --description "Supabase + Drizzle"
    nod preset default mystack
    nod preset show mystack
    nod preset delete mystack --yes
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime
from typing import Optional, Sequence

from rich.markup import escape

from nod import __version__
from nod.config import Settings
from nod.models import Auth, CliFlags, Database, Framework, ProjectConfig, Queue
from nod.presets import (
    PresetError,
    PresetStore,
    ReservedPresetError,
    builtin_names,
    get_builtin,
    global_defaults,
    is_builtin,
)
from nod.presets.store import validate_preset_name
from nod.prompts import Prompter, RichPrompter
from nod.resolver import ConfigResolver, ResolutionError
from nod.scaffolder.generator import ProjectGenerator, ScaffoldError
from nod.utils import (
    configure_logging,
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_name,
)

logger = logging.getLogger(__name__)

PRESET_ACTIONS = {
    "list": "list",
    "ls": "list",
    "create": "create",
    "add": "create",
    "delete": "delete",
    "rm": "delete",
    "default": "default",
    "show": "show",
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nod",
        description="Scaffold backend projects from presets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nod init my-api --preset api -y\n"
            "  nod init my-api --framework hono --db supabase --auth supabase\n"
            "  nod preset create mystack\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )
    sub = parser.add_subparsers(dest="command")

    init = sub.add_parser("init", help="Create a new project")
    init.add_argument("name", nargs="?", default=None, help="Project name")
    init.add_argument(
        "--preset",
        default=None,
        help="Preset: minimal, api, full, ai, 1, custom, or a custom preset name",
    )
    init.add_argument("--framework", choices=_values(Framework), default=None)
    init.add_argument("--db", dest="database", choices=_values(Database), default=None)
    init.add_argument("--auth", choices=_values(Auth), default=None)
    init.add_argument("--queue", choices=_values(Queue), default=None)
    init.add_argument(
        "--ts",
        dest="typescript",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use TypeScript (--no-ts for JavaScript)",
    )
    init.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip prompts and use preset/default values",
    )
    init.add_argument(
        "--output", "-o",
        default=None,
        help="Parent directory for the project (default: current directory)",
    )
    init.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the resolved configuration without writing files",
    )

    preset = sub.add_parser("preset", help="Manage presets: list, create, delete, default, show")
    preset.add_argument("action", nargs="?", default=None)
    preset.add_argument("name", nargs="?", default=None)
    preset.add_argument("--description", default=None, help="Description for create")
    preset.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing custom preset on create",
    )
    preset.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Do not ask for confirmation",
    )
    preset.add_argument(
        "--clear",
        action="store_true",
        help="Clear the default preset (with 'default')",
    )
    return parser


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


def flags_from_args(args: argparse.Namespace) -> CliFlags:
    """Translate parsed ``init`` arguments into ``CliFlags``."""
    name = args.name
    if name is not None:
        cleaned = sanitize_name(name)
        if not cleaned:
            raise ResolutionError(f"Invalid project name: {name!r}")
        if cleaned != name:
            print_warning(f"Using project name '{cleaned}'")
        name = cleaned
    return CliFlags(
        name=name,
        preset=args.preset,
        framework=args.framework,
        database=args.database,
        auth=args.auth,
        queue=args.queue,
        typescript=args.typescript,
        yes=args.yes,
    )


def _summary(config: ProjectConfig) -> dict[str, str]:
    features = [
        key for key, value in config.features.to_json_dict().items() if value is True
    ]
    return {
        "Name": config.name,
        "Preset": config.preset,
        "Framework": config.framework.value,
        "Language": "TypeScript" if config.typescript else "JavaScript",
        "Database": config.database.value,
        "ORM": config.orm.value,
        "Auth": config.auth.value,
        "Queue": config.queue.value,
        "Features": ", ".join(features) or "-",
    }


async def init_command(
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter] = None,
) -> int:
    store = PresetStore(settings)
    flags = flags_from_args(args)
    config = await ConfigResolver(store, settings, prompter).run(flags)

    if args.dry_run:
        console.print_json(json.dumps(config.to_json_dict()))
        return 0

    print_summary_table(_summary(config), title="Project")
    root = await ProjectGenerator(config, settings).generate(args.output)
    print_success(f"Project '{config.name}' created at {root}")
    return 0


# ---------------------------------------------------------------------------
# preset
# ---------------------------------------------------------------------------


def _format_date(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return timestamp


def _require_name(name: Optional[str], action: str) -> str:
    if not name:
        raise PresetError(f"Please specify a preset name: nod preset {action} <name>")
    return name


def _require_prompter(settings: Settings, prompter: Optional[Prompter], what: str) -> Prompter:
    if prompter is None or not settings.interactive:
        raise PresetError(f"{what} requires an interactive terminal")
    return prompter


async def _list_presets(store: PresetStore) -> int:
    custom = await store.list()
    default = await store.get_default()

    console.print("\n[bold blue]Available Presets[/bold blue]\n")
    console.print("[yellow]Built-in:[/yellow]")
    for name in builtin_names():
        marker = " [green](default)[/green]" if default == name else ""
        console.print(f"  [cyan]{name}[/cyan]{marker}")

    if custom:
        console.print("\n[yellow]Custom:[/yellow]")
        for preset in custom:
            marker = " [green](default)[/green]" if default == preset.name else ""
            desc = f" [dim]- {escape(preset.description)}[/dim]" if preset.description else ""
            console.print(f"  [cyan]{preset.name}[/cyan]{marker}{desc}")

    console.print("\n[dim]Use `nod preset show <name>` to see preset details[/dim]")
    return 0


async def _create_preset(
    store: PresetStore,
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter],
) -> int:
    name = _require_name(args.name, "create")
    validate_preset_name(name, "create")
    ask = _require_prompter(settings, prompter, "Creating a preset")
    defaults = ProjectConfig.model_validate(global_defaults())
    config, description = ask.ask_preset_config(defaults)
    description = args.description or description

    if args.force:
        await store.save(name, config, description)
    else:
        await store.create(name, config, description)
    print_success(f"Preset '{name}' created")
    console.print(f"[dim]Use it with: nod init my-project --preset {name}[/dim]")
    return 0


async def _delete_preset(
    store: PresetStore,
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter],
) -> int:
    name = args.name
    if not name:
        custom = [p.name for p in await store.list()]
        if not custom:
            print_warning("No custom presets to delete")
            return 0
        name = _require_prompter(settings, prompter, "Selecting a preset").ask_preset(
            custom, custom[0]
        )

    if is_builtin(name):
        raise ReservedPresetError(f"Cannot delete built-in preset: {name}", name)

    if not args.yes:
        ask = _require_prompter(settings, prompter, "Confirming deletion (or pass --yes)")
        if not ask.confirm(f"Delete preset '{name}'?", default=False):
            print_warning("Deletion cancelled")
            return 0

    if await store.delete(name):
        print_success(f"Preset '{name}' deleted")
    else:
        print_warning(f"Preset '{name}' not found")
    return 0


async def _set_default(
    store: PresetStore,
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter],
) -> int:
    if args.clear:
        await store.set_default(None)
        print_success("Default preset cleared")
        return 0

    name = args.name
    if not name:
        choices = builtin_names() + [p.name for p in await store.list()]
        current = await store.get_default() or "custom"
        name = _require_prompter(settings, prompter, "Selecting a preset").ask_preset(
            choices, current
        )

    await store.set_default(name)
    print_success(f"Default preset set to '{name}'")
    console.print("[dim]New projects will use this preset by default.[/dim]")
    return 0


async def _show_preset(store: PresetStore, args: argparse.Namespace) -> int:
    name = _require_name(args.name, "show")
    preset = await store.get(name)

    if preset is None and not is_builtin(name):
        print_error(f"Preset '{name}' not found")
        return 1

    console.print(f"\n[bold blue]Preset: {name}[/bold blue]\n")
    if preset is not None:
        if preset.description:
            console.print(f"[dim]Description: {escape(preset.description)}[/dim]")
        console.print(f"[dim]Created: {_format_date(preset.created_at)}[/dim]")
        console.print(f"[dim]Updated: {_format_date(preset.updated_at)}[/dim]")
        console.print("\nConfiguration:")
        console.print_json(json.dumps(preset.config))
    else:
        console.print("[yellow](Built-in preset - configuration is hardcoded)[/yellow]")
        console.print_json(json.dumps(get_builtin(name)))
    return 0


def _preset_help() -> int:
    console.print("\n[bold blue]Preset Management[/bold blue]\n")
    console.print("Commands:")
    console.print("  [cyan]nod preset list[/cyan]              List all presets")
    console.print("  [cyan]nod preset create <name>[/cyan]     Create a new preset")
    console.print("  [cyan]nod preset delete \\[name][/cyan]     Delete a custom preset")
    console.print("  [cyan]nod preset default \\[name][/cyan]    Set default preset")
    console.print("  [cyan]nod preset show <name>[/cyan]       Show preset details")
    return 0


async def preset_command(
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter] = None,
) -> int:
    store = PresetStore(settings)
    action = PRESET_ACTIONS.get(args.action or "")

    if action == "list":
        return await _list_presets(store)
    if action == "create":
        return await _create_preset(store, args, settings, prompter)
    if action == "delete":
        return await _delete_preset(store, args, settings, prompter)
    if action == "default":
        return await _set_default(store, args, settings, prompter)
    if action == "show":
        return await _show_preset(store, args)
    return _preset_help()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def dispatch(
    args: argparse.Namespace,
    settings: Settings,
    prompter: Optional[Prompter] = None,
) -> int:
    """Run the parsed command, reporting expected failures as exit status 1."""
    try:
        if args.command == "init":
            return await init_command(args, settings, prompter)
        if args.command == "preset":
            return await preset_command(args, settings, prompter)
    except (PresetError, ResolutionError, ScaffoldError) as exc:
        logger.debug("Command failed", exc_info=True)
        print_error(f"Error: {exc}")
        return 1
    build_parser().print_help()
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for ``nod``."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    prompter = RichPrompter(console) if settings.interactive else None
    return asyncio.run(dispatch(args, settings, prompter))


if __name__ == "__main__":
    raise SystemExit(main())
