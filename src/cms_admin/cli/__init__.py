"""CLI module for CMS schema checks and agent collection editing.

Provides commands for API profile management, CMS configuration
validation, form plan inspection, record validation, and editing the
agent collection through the draft/commit store.

Usage:
    CMS_PROFILE=local cms-admin connect
    cms-admin status
    cms-admin profiles
    cms-admin validate
    cms-admin plan posts
    cms-admin check posts --record post.json --cms-file cmsConfig.json
    cms-admin agents list --search support --sort description --desc
    cms-admin agents put support_bot --from-file bot.json --create --confirm
    cms-admin agents delete support_bot --confirm

Commands:
    connect   - Fetch CMS config, validate layouts, remember the profile
    status    - Show current connection status
    profiles  - List available profiles
    validate  - Re-validate the current profile's CMS config
    plan      - Show the compiled form plan of a table
    check     - Validate a record (JSON file) against a table
    agents    - List, create/update or delete agents
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from cms_admin.adapters.http import HttpCmsAdapter
from cms_admin.config.loader import load_client_config, load_cms_config
from cms_admin.config.models import CMSConfig
from cms_admin.errors import (
    ConfigurationError,
    PreconditionViolation,
    ProfileNotFoundError,
    TransportError,
)
from cms_admin.factory import (
    connect_and_validate,
    get_adapter,
    load_remote_config,
    read_profile_lock,
)
from cms_admin.schema.plan import FormPlan, PlanCache
from cms_admin.store.draft import DraftStore
from cms_admin.store.session import RecordEditor

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


def _read_json_file(path: str | Path) -> Any:
    """Read a JSON file, raising ValueError with the file name on bad JSON."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path.name}: {e}") from e


async def _load_cms(args: argparse.Namespace) -> CMSConfig:
    """CMS config from ``--cms-file`` if given, else from the active profile."""
    cms_file = getattr(args, "cms_file", None)
    if cms_file:
        return load_cms_config(cms_file)
    return await load_remote_config(
        config_path=_config_path(args),
        env_prefix=getattr(args, "env_prefix", ""),
    )


def _print_plan(plan: FormPlan) -> None:
    table = Table(title=f"Form plan: {plan.title}", show_header=True, header_style="bold")
    table.add_column("Section", style="dim")
    table.add_column("Field")
    table.add_column("Widget")
    table.add_column("Input")
    table.add_column("Flags")

    for section in plan.sections:
        for name in section.fields:
            widget = plan.widget(name)
            flags = []
            if widget.required:
                flags.append("[red]required[/red]")
            if widget.readonly:
                flags.append("[yellow]readonly[/yellow]")
            table.add_row(
                section.title or "",
                f"{name} [dim]({widget.label})[/dim]",
                widget.kind.value,
                widget.input_type,
                " ".join(flags),
            )

    console.print(table)
    if not plan.writable:
        console.print("[yellow]Table is read-only[/yellow]")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Async implementation for connect command.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    previous_profile = read_profile_lock()

    console.print("Fetching CMS configuration...", style="dim")

    result = await connect_and_validate(
        config_path=_config_path(args), env_prefix=env_prefix
    )

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Connected to profile: "
            f"[bold cyan]{result.profile_name}[/bold cyan]"
        )
        console.print(
            f"  Config validation: [green]PASSED[/green] "
            f"({len(result.table_reports)} tables)"
        )
        for report in result.table_reports:
            if report.unplaced_fields:
                console.print(
                    f"  {report.table}: fields in no tab: [yellow]"
                    f"{', '.join(report.unplaced_fields)}[/yellow]"
                )

        if previous_profile and previous_profile != result.profile_name:
            console.print(
                f"\n[dim]Switched from[/dim] [bold]{previous_profile}[/bold] "
                f"[dim]to[/dim] [bold cyan]{result.profile_name}[/bold cyan]"
            )

        return 0
    else:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")

        for report in result.invalid_tables:
            console.print(report.format_report())

        return 1


async def _async_validate(args: argparse.Namespace) -> int:
    """Async implementation for validate command.

    Returns:
        0 on valid config, 1 on invalid or no profile.
    """
    env_prefix = getattr(args, "env_prefix", "")

    profile = read_profile_lock()

    if not profile:
        console.print("[yellow]No validated profile.[/yellow]")
        console.print(
            "[dim]Run[/dim] [cyan]cms-admin connect[/cyan] [dim]first.[/dim]"
        )
        return 1

    console.print(
        f"Validating CMS config for profile: [bold cyan]{profile}[/bold cyan]"
    )

    result = await connect_and_validate(
        profile_name=profile,
        config_path=_config_path(args),
        env_prefix=env_prefix,
        validate_only=True,
    )

    if result.config_valid:
        console.print()
        console.print("[bold green]v[/bold green] CMS config is valid")
        return 0
    else:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")
        for report in result.invalid_tables:
            console.print(report.format_report())
        return 1


async def _async_plan(args: argparse.Namespace) -> int:
    """Async implementation for plan command."""
    try:
        cms_config = await _load_cms(args)
        plan = PlanCache(cms_config).get(args.table)
    except (FileNotFoundError, ValueError, ProfileNotFoundError, TransportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    _print_plan(plan)
    return 0


async def _async_check(args: argparse.Namespace) -> int:
    """Async implementation for check command."""
    try:
        cms_config = await _load_cms(args)
        plan = PlanCache(cms_config).get(args.table)
        record = _read_json_file(args.record)
    except (FileNotFoundError, ValueError, ProfileNotFoundError, TransportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except ConfigurationError as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1

    if not isinstance(record, dict):
        console.print("[red]Error: record file must contain a JSON object[/red]")
        return 1

    result = plan.schema.validate(record)
    if result.valid:
        console.print("[bold green]v[/bold green] Record valid")
        return 0

    console.print(f"[bold red]x[/bold red] {result.format_report()}")
    return 1


async def _open_store(args: argparse.Namespace) -> tuple[HttpCmsAdapter, DraftStore]:
    """Adapter for the active profile and a store loaded through it."""
    adapter = await get_adapter(
        config_path=_config_path(args),
        env_prefix=getattr(args, "env_prefix", ""),
    )
    store = DraftStore(adapter)
    try:
        await store.fetch_all()
    except TransportError:
        await adapter.close()
        raise
    return adapter, store


async def _async_agents_list(args: argparse.Namespace) -> int:
    """Async implementation for agents list command."""
    try:
        adapter, store = await _open_store(args)
    except (FileNotFoundError, ValueError, ProfileNotFoundError, TransportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        rows = RecordEditor(store).list_records(
            search=args.search, sort_field=args.sort, descending=args.desc
        )
    finally:
        await adapter.close()

    table = Table(title="Agents", show_header=True, header_style="bold")
    table.add_column("ID", style="bold cyan")
    table.add_column("Description")

    for row in rows:
        table.add_row(row["id"], str(row.get("description", "")))

    console.print(table)
    console.print(f"[dim]{len(rows)} of {len(store)} agents[/dim]")
    return 0


async def _async_agents_put(args: argparse.Namespace) -> int:
    """Async implementation for agents put command (create or update + save)."""
    if not args.confirm:
        console.print("[yellow]Dry run: pass --confirm to save.[/yellow]")

    try:
        body = _read_json_file(args.from_file)
        adapter, store = await _open_store(args)
    except (FileNotFoundError, ValueError, ProfileNotFoundError, TransportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if not isinstance(body, dict):
        await adapter.close()
        console.print("[red]Error: body file must contain a JSON object[/red]")
        return 1

    editor = RecordEditor(store)
    try:
        if args.create:
            outcome = await editor.submit_create(args.key, body, save=args.confirm)
        else:
            outcome = await editor.submit_update(args.key, body, save=args.confirm)
    finally:
        await adapter.close()

    if outcome.errors:
        console.print(f"[bold red]x[/bold red] Agent '{args.key}' not saved:")
        for field_name, message in outcome.errors.items():
            console.print(f"    - {field_name}: {message}")
        return 1

    if outcome.save_error:
        console.print(f"[bold red]x[/bold red] Save failed: {outcome.save_error}")
        return 1

    if outcome.saved:
        console.print(f"[bold green]v[/bold green] Saved agent '{args.key}'")
    else:
        console.print(f"[green]v[/green] Agent '{args.key}' is valid (not saved)")
    return 0


async def _async_agents_delete(args: argparse.Namespace) -> int:
    """Async implementation for agents delete command."""
    try:
        adapter, store = await _open_store(args)
    except (FileNotFoundError, ValueError, ProfileNotFoundError, TransportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    try:
        if not RecordEditor(store).remove(args.key):
            console.print(f"[yellow]No agent '{args.key}'.[/yellow]")
            return 1

        if not args.confirm:
            console.print(
                f"[yellow]Dry run: would delete '{args.key}'. "
                f"Pass --confirm to save.[/yellow]"
            )
            return 0

        try:
            await store.save_changes()
        except (TransportError, PreconditionViolation) as e:
            console.print(f"[bold red]x[/bold red] Save failed: {e}")
            return 1
    finally:
        await adapter.close()

    console.print(f"[bold green]v[/bold green] Deleted agent '{args.key}'")
    return 0


# ============================================================================
# Sync command wrappers (cmd_status, cmd_profiles read local files only)
# ============================================================================


def cmd_connect(args: argparse.Namespace) -> int:
    """Fetch and validate the CMS config, then remember the profile.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_connect(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show current connection status.

    Reads only local files (lock file and TOML config) -- no network calls.

    Returns:
        0 always (informational command).
    """
    profile = read_profile_lock()

    if profile:
        table = Table(title="Connection Status", show_header=False)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Current profile", f"[bold cyan]{profile}[/bold cyan]")
        table.add_row("Profile source", ".cms-profile (validated)")

        try:
            config = load_client_config(_config_path(args))
            if profile in config.profiles:
                p = config.profiles[profile]
                table.add_row("Base URL", p.base_url)
                if p.description:
                    table.add_row("Description", p.description)
        except FileNotFoundError:
            table.add_row("Warning", "[yellow]cms.toml not found[/yellow]")

        console.print(table)
    else:
        console.print("[yellow]No validated profile.[/yellow]")
        console.print(
            "[dim]Run:[/dim] [cyan]CMS_PROFILE=<name> cms-admin connect[/cyan]"
        )

    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from cms.toml.

    Reads only local TOML config -- no network calls.

    Returns:
        0 on success, 1 if cms.toml not found.
    """
    try:
        config = load_client_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = read_profile_lock()

    table = Table(title="API Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Base URL")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.base_url,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Re-validate the current profile's CMS config."""
    return asyncio.run(_async_validate(args))


def cmd_plan(args: argparse.Namespace) -> int:
    """Show the compiled form plan of a table."""
    return asyncio.run(_async_plan(args))


def cmd_check(args: argparse.Namespace) -> int:
    """Validate a record file against a table's schema."""
    return asyncio.run(_async_check(args))


def cmd_agents(args: argparse.Namespace) -> int:
    """Dispatch ``agents`` subcommands.

    Wraps the async implementations with ``asyncio.run()``.
    """
    handlers = {
        "list": _async_agents_list,
        "put": _async_agents_put,
        "delete": _async_agents_delete,
    }
    return asyncio.run(handlers[args.agents_command](args))


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``cms-admin``."""
    parser = argparse.ArgumentParser(
        prog="cms-admin",
        description="CMS schema checks and agent collection editing",
    )

    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_CMS_PROFILE)"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to cms.toml (default: ./cms.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_connect = subparsers.add_parser(
        "connect",
        help="Fetch CMS config, validate layouts and remember the profile",
    )
    p_connect.set_defaults(func=cmd_connect)

    p_status = subparsers.add_parser("status", help="Show current connection status")
    p_status.set_defaults(func=cmd_status)

    p_profiles = subparsers.add_parser("profiles", help="List available profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    p_validate = subparsers.add_parser(
        "validate",
        help="Re-validate the current profile's CMS config",
    )
    p_validate.set_defaults(func=cmd_validate)

    p_plan = subparsers.add_parser("plan", help="Show the compiled form plan of a table")
    p_plan.add_argument("table", help="Table id from the CMS config")
    p_plan.add_argument(
        "--cms-file",
        default=None,
        help="Read the CMS config from a local JSON file instead of the API",
    )
    p_plan.set_defaults(func=cmd_plan)

    p_check = subparsers.add_parser("check", help="Validate a record against a table")
    p_check.add_argument("table", help="Table id from the CMS config")
    p_check.add_argument("--record", required=True, help="Path to a JSON record")
    p_check.add_argument(
        "--cms-file",
        default=None,
        help="Read the CMS config from a local JSON file instead of the API",
    )
    p_check.set_defaults(func=cmd_check)

    p_agents = subparsers.add_parser("agents", help="List, create/update or delete agents")
    agents_sub = p_agents.add_subparsers(dest="agents_command", required=True)

    p_list = agents_sub.add_parser("list", help="List agents")
    p_list.add_argument("--search", default=None, help="Filter by ID or description")
    p_list.add_argument("--sort", default="id", help="Field to sort by (default: id)")
    p_list.add_argument("--desc", action="store_true", help="Sort descending")

    p_put = agents_sub.add_parser("put", help="Create or update an agent from a JSON file")
    p_put.add_argument("key", help="Agent ID")
    p_put.add_argument("--from-file", required=True, help="Path to JSON agent body")
    p_put.add_argument("--create", action="store_true", help="Create a new agent")
    p_put.add_argument("--confirm", action="store_true", help="Save the collection")

    p_delete = agents_sub.add_parser("delete", help="Delete an agent")
    p_delete.add_argument("key", help="Agent ID")
    p_delete.add_argument("--confirm", action="store_true", help="Save the collection")

    p_agents.set_defaults(func=cmd_agents)

    return parser


def main() -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
