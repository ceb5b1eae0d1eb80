"""patchline CLI — forward-only schema migrations for SQLite."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from patchline import __version__
from patchline.config import MigrateConfig
from patchline.errors import ConfigurationError, MigrationError, PatchExecutionError

console = Console()
err_console = Console(stderr=True)

HELP_TEXT = """\
PATCHLINE(1)                     User Commands                    PATCHLINE(1)

NAME
    patchline - forward-only schema migrations for SQLite

SYNOPSIS
    patchline <command> [options]

DESCRIPTION
    patchline brings a SQLite database forward through a timeline of
    schema patches. The current schema version lives inside the database
    itself, in SQLite's built-in user_version pragma (zero for a new file).

    A timeline is a directory of standalone scripts named after the version
    they migrate to:

        migrate-01.pl
        migrate-02.pl
        migrate-03.py

    Starting from the database's user_version, patchline steps forward one
    version at a time for as long as a matching script exists. The first
    missing number ends the plan. Each script runs in its own process with
    the timeline as its working directory and receives the absolute path
    of the database as a single line on standard input. A non-zero exit
    status stops the migration at once.

    user_version is only written after every patch in the plan succeeded.
    A failed patch is not rolled back: the database is left in an unknown,
    partially migrated state and must be repaired by hand.

COMMANDS
    migrate [--db FILE] [--timeline DIR] [--[no-]create] [--user-version N] [--[no-]debug]
        Apply every pending patch. With --user-version, the plan must end at
        exactly N or nothing is run.

            patchline migrate --db app.db --timeline patches
            patchline migrate --db app.db --timeline patches -u 8 --create

    status [--db FILE] [--timeline DIR]
        Show the current version and the patches a migration would apply.

            patchline status --db app.db --timeline patches

    patches [--timeline DIR]
        List every patch found in the timeline.

            patchline patches --timeline patches

    help
        Show this help page.

PATCH SCRIPTS
    Scripts ending in .pl run under perl (or $PATCHLINE_PERL). Scripts
    ending in .py run under the Python interpreter running patchline.
    Two scripts that claim the same version are an error.

ENVIRONMENT VARIABLES
    PATCHLINE_DB
        Database file used when --db is not given.

    PATCHLINE_TIMELINE
        Timeline directory used when --timeline is not given.

    PATCHLINE_CREATE
        Set to 1, true or yes to create a missing database.

    PATCHLINE_USER_VERSION
        Expected destination version used when --user-version is not given.

    PATCHLINE_DEBUG
        Set to 1, true or yes to announce each patch and show its stderr.

    PATCHLINE_PERL
        Interpreter for .pl patches (default: perl).

LIMITATIONS
    There is no locking. Never migrate the same file from two processes.
    There is no timeout: a hung patch blocks the migration.

VERSION
    patchline {version}

PATCHLINE(1)                     User Commands                    PATCHLINE(1)
""".format(version=__version__)


def _setup_logging(debug: bool) -> None:
    """Send patchline's log records to stderr."""
    logger = logging.getLogger("patchline")
    for old in list(logger.handlers):
        logger.removeHandler(old)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO if debug else logging.WARNING)


def get_config(
    db: Path | None = None,
    timeline: Path | None = None,
    create: bool | None = None,
    user_version: int | None = None,
    debug: bool | None = None,
) -> MigrateConfig:
    """Environment defaults, overridden by whatever was passed on the command line."""
    config = MigrateConfig.from_env()
    if db is not None:
        config.file = db
    if timeline is not None:
        config.timeline = timeline
    if create is not None:
        config.create = create
    if user_version is not None:
        config.user_version = user_version
    if debug is not None:
        config.debug = debug
    return config


def _fail(e: MigrationError) -> None:
    err_console.print(f"[red]{escape(str(e))}[/]", soft_wrap=True)
    if isinstance(e, PatchExecutionError):
        err_console.print(
            "[red bold]The database has been left in an undefined intermediate "
            "state. Repair it before migrating again.[/]",
            soft_wrap=True,
        )
    sys.exit(1)


db_option = click.option(
    "--db", "-d", type=click.Path(path_type=Path), default=None,
    help="SQLite database file (default: $PATCHLINE_DB)",
)
timeline_option = click.option(
    "--timeline", "-t", type=click.Path(path_type=Path), default=None,
    help="Directory holding migrate-<N> patches (default: $PATCHLINE_TIMELINE)",
)


@click.group()
@click.version_option(package_name="patchline")
def cli() -> None:
    """patchline - forward-only schema migrations for SQLite.

    Run 'patchline help' for full documentation.
    """


@cli.command()
@click.argument("topic", required=False, default=None)
def help(topic: str | None) -> None:
    """Show detailed help. Optionally specify a command name for targeted help."""
    if topic is None:
        click.echo_via_pager(HELP_TEXT)
        return

    cmd = cli.get_command(None, topic)  # type: ignore[arg-type]
    if cmd is not None:
        with click.Context(cmd, info_name=f"patchline {topic}") as sub_ctx:
            click.echo(cmd.get_help(sub_ctx))
        return

    commands = ", ".join(cli.list_commands(click.get_current_context()))
    console.print(f"[yellow]Unknown topic: '{topic}'. Available commands: {commands}[/]")


@cli.command("migrate")
@db_option
@timeline_option
@click.option("--create/--no-create", default=None,
              help="Create the database if it does not exist (default: $PATCHLINE_CREATE)")
@click.option("--user-version", "-u", type=int, default=None,
              help="Refuse to run unless the plan ends at this version")
@click.option("--debug/--no-debug", default=None,
              help="Announce each patch and show its stderr (default: $PATCHLINE_DEBUG)")
def migrate_(db: Path | None, timeline: Path | None, create: bool | None,
             user_version: int | None, debug: bool | None) -> None:
    """Apply all pending patches to a database."""
    from patchline.migrate import Migrator

    config = get_config(db, timeline, create, user_version, debug)
    _setup_logging(config.debug)

    try:
        result = Migrator(config).run()
    except MigrationError as e:
        _fail(e)
        return

    if result.created:
        console.print(f"[dim]Created {result.database}[/]")
    if result.changed:
        console.print(
            f"[green]Migrated {result.database.name} from version "
            f"{result.start_version} to {result.destination} "
            f"({len(result.applied)} patch(es))[/]"
        )
    else:
        console.print(
            f"[green]{result.database.name} is up to date at version {result.destination}[/]"
        )


@cli.command()
@db_option
@timeline_option
def status(db: Path | None, timeline: Path | None) -> None:
    """Show the current version and pending patches."""
    from patchline.migrate import Migrator
    from patchline.timeline.catalog import scan_timeline

    config = get_config(db, timeline)
    _setup_logging(config.debug)

    try:
        plan = Migrator(config).plan()
        latest = scan_timeline(config.timeline).latest()
    except MigrationError as e:
        _fail(e)
        return

    console.print(f"[bold]Database:[/] {escape(str(config.database))}")
    console.print(f"[bold]Current version:[/] {plan.start_version}")

    if plan.empty:
        console.print("[green]No pending patches[/]")
    else:
        table = Table(title="Pending Patches")
        table.add_column("Version", justify="right")
        table.add_column("Patch", style="bold")
        for patch in plan:
            table.add_row(str(patch.version), patch.name)
        console.print(table)
        console.print(f"[bold]Destination:[/] {plan.destination}")

    if latest > plan.destination:
        console.print(
            f"[yellow]Timeline has patches up to version {latest} beyond a gap "
            f"at version {plan.destination + 1}[/]"
        )


@cli.command()
@timeline_option
def patches(timeline: Path | None) -> None:
    """List the patches found in a timeline directory."""
    from patchline.timeline.catalog import scan_timeline

    config = get_config(timeline=timeline)
    _setup_logging(config.debug)

    if config.timeline is None:
        _fail(ConfigurationError("Missing or invalid timeline directory: None"))
        return

    try:
        catalog = scan_timeline(config.timeline)
    except MigrationError as e:
        _fail(e)
        return

    if not len(catalog):
        console.print(f"[yellow]No patches in {escape(str(config.timeline))}[/]")
        return

    table = Table(title=f"Timeline: {config.timeline}")
    table.add_column("Version", justify="right")
    table.add_column("Patch", style="bold")
    table.add_column("Interpreter")
    for patch in catalog:
        table.add_row(str(patch.version), patch.name, patch.interpreter)
    console.print(table)
