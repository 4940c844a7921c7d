"""Command line entry point."""

from __future__ import annotations

import dataclasses
import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .app import App, build_app
from .config import load_settings
from .core.exceptions import MinevaapenError
from .data.weapons import WeaponFilters
from .logging_config import setup_logging

console = Console()

_SWITCH = click.Choice(["on", "off"])


class _Group(click.Group):
    """Report errors from the data core as a one-line message and exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except MinevaapenError as exc:
            raise click.ClickException(str(exc)) from exc


def _app(ctx: click.Context) -> App:
    app: App = ctx.obj
    app.seeder.ensure_seeded()
    return app


@click.group(cls=_Group)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the database, backups and exports.",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None) -> None:
    """Keep track of weapons, memberships and program approvals."""
    settings = load_settings()
    if data_dir is not None:
        settings = dataclasses.replace(settings, data_dir=data_dir)
    app = build_app(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)


@cli.command("init")
@click.pass_context
def init_cmd(ctx: click.Context) -> None:
    """Create the database and synchronise reference data."""
    app = _app(ctx)
    orgs = app.organizations.list_organizations()
    programs = app.organizations.list_programs()
    weapons = app.weapons.list_weapons()
    console.print(f"Database: {app.settings.database_path}")
    console.print(
        f"{len(orgs)} organizations, {len(programs)} programs, {len(weapons)} weapons"
    )


@cli.command("weapons")
@click.option("--organization", "organization_id", default=None)
@click.option("--program", "program_id", default=None)
@click.option(
    "--reserve",
    "reserve_filter",
    type=click.Choice(["any", "reserveOnly", "nonReserve"]),
    default="any",
    show_default=True,
)
@click.option(
    "--ownership",
    "ownership_filter",
    type=click.Choice(["all", "own", "loanIn", "loanOut"]),
    default="all",
    show_default=True,
)
@click.option("--members-only", is_flag=True, default=False)
@click.pass_context
def weapons_cmd(
    ctx: click.Context,
    organization_id: str | None,
    program_id: str | None,
    reserve_filter: str,
    ownership_filter: str,
    members_only: bool,
) -> None:
    """List weapons with their program approvals."""
    app = _app(ctx)
    allowed = app.organizations.member_organization_ids() if members_only else None
    weapons = app.weapons.list_weapons(
        WeaponFilters(
            organization_id=organization_id,
            program_id=program_id,
            reserve_filter=reserve_filter,
            ownership_filter=ownership_filter,
            allowed_organization_ids=allowed,
        )
    )
    if not weapons:
        console.print("No weapons found.")
        return

    table = Table(title="Weapons")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Ownership")
    table.add_column("Programs")
    for weapon in weapons:
        programs = ", ".join(
            f"{p.program_name} ({p.status}{', reserve' if p.is_reserve else ''})"
            for p in weapon.programs
        )
        table.add_row(
            weapon.id, weapon.display_name, weapon.type, weapon.ownership_status, programs
        )
    console.print(table)


@cli.command("programs")
@click.option("--organization", "organization_id", default=None)
@click.option("--members-only", is_flag=True, default=False)
@click.pass_context
def programs_cmd(ctx: click.Context, organization_id: str | None, members_only: bool) -> None:
    """Show how many weapons are approved for each program."""
    app = _app(ctx)
    allowed = app.organizations.member_organization_ids() if members_only else None
    usage = app.weapons.program_usage(organization_id, allowed)

    table = Table(title="Programs")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Program")
    table.add_column("Organization")
    table.add_column("Weapons", justify="right")
    table.add_column("Reserve", justify="right")
    for program in usage:
        table.add_row(
            program.id,
            program.name,
            program.organization_id,
            str(program.weapon_count),
            str(program.reserve_count),
        )
    console.print(table)


@cli.command("membership")
@click.argument("organization_id")
@click.argument("state", type=_SWITCH)
@click.pass_context
def membership_cmd(ctx: click.Context, organization_id: str, state: str) -> None:
    """Mark membership of one organization on or off."""
    app = _app(ctx)
    if not app.organizations.set_membership(organization_id, state == "on"):
        console.print(f"Unknown organization: {organization_id}")
        return
    console.print(f"Membership for {organization_id}: {state}")


@cli.command("membership-all")
@click.argument("state", type=_SWITCH)
@click.pass_context
def membership_all_cmd(ctx: click.Context, state: str) -> None:
    """Mark membership of every organization on or off."""
    app = _app(ctx)
    changed = app.organizations.set_all_memberships(state == "on")
    console.print(f"Membership for {changed} organizations: {state}")


@cli.command("backup")
@click.pass_context
def backup_cmd(ctx: click.Context) -> None:
    """Copy the database into the backup directory."""
    app = _app(ctx)
    path = app.storage.backup_database()
    console.print(f"Backup written to {path}")


@cli.command("backups")
@click.pass_context
def backups_cmd(ctx: click.Context) -> None:
    """List backups, newest first."""
    app: App = ctx.obj
    backups = app.storage.list_backup_files()
    if not backups:
        console.print("No backups found.")
        return
    table = Table(title="Backups")
    table.add_column("Name")
    table.add_column("Modified")
    for backup in backups:
        modified = datetime.datetime.fromtimestamp(backup.modified_at)
        table.add_row(backup.name, modified.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)


@cli.command("restore")
@click.option(
    "--path",
    "source_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Backup to restore; defaults to the newest one.",
)
@click.option(
    "--file",
    "from_file",
    is_flag=True,
    default=False,
    help="Treat --path as any database file, not only a listed backup.",
)
@click.pass_context
def restore_cmd(ctx: click.Context, source_path: Path | None, from_file: bool) -> None:
    """Replace the database with a backup."""
    app: App = ctx.obj
    if from_file:
        if source_path is None:
            raise click.UsageError("--file requires --path")
        backup = app.storage.restore_database_from_file(source_path)
    else:
        backup = app.storage.restore_database(source_path)
    app.seeder.ensure_seeded()
    console.print(f"Restored {backup.name}")


@cli.command("export")
@click.pass_context
def export_cmd(ctx: click.Context) -> None:
    """Export all weapons to CSV."""
    app = _app(ctx)
    path = app.storage.export_weapons_to_csv()
    console.print(f"Export written to {path}")


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    cli(prog_name="minevaapen")


if __name__ == "__main__":
    main()
