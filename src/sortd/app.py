"""
Main application controller and command line interface for sortd.
Composes configuration, logging and organizers for each command.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import click

from sortd import __version__
from sortd.file_access.local_accessor import FileSystemAccessor
from sortd.organization_logic.engine import OrganizeResult
from sortd.organization_logic.factory import OrganizerFactory, default_organizer_factory
from sortd.organization_logic.interface import Organizer
from sortd.organization_logic.rules import OrganizationRule
from sortd.organization_logic.settings import Config
from sortd.utils.config_manager import ConfigManager
from sortd.utils.errors import BatchAbortedError, SortdError
from sortd.utils.logging_config import setup_logging
from sortd.utils.report_generator import ReportGenerator
from sortd.watch.daemon import WatchDaemon

logger = logging.getLogger(__name__)


class SortdApp:
    """Application controller that wires configuration to organizers."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        organizer_factory: OrganizerFactory = default_organizer_factory,
        use_env: bool = True,
    ):
        """Initialize the application.

        Args:
            config_file: Path to a YAML or JSON configuration file
            overrides: Dotted-path configuration values from the command line
            organizer_factory: Builds the organizer used by every command
            use_env: Whether SORTD_* environment variables are applied
        """
        self.config_file = config_file
        self.overrides = overrides or {}
        self.organizer_factory = organizer_factory
        self.use_env = use_env
        self.config_manager: Optional[ConfigManager] = None
        self.config: Optional[Config] = None
        self._is_initialized = False

    def initialize(self, configure_logging: bool = True):
        """Load configuration and set up logging.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        if self._is_initialized:
            return

        self.config_manager = ConfigManager(
            config_file=self.config_file,
            overrides=self.overrides,
            use_env=self.use_env,
        )
        self.config = self.config_manager.to_config()

        if configure_logging:
            log_config = self.config_manager.get("logging", {})
            setup_logging(
                log_level=log_config.get("level"),
                log_file=log_config.get("file"),
                max_size=log_config.get("max_size", 10485760),
                backup_count=log_config.get("backup_count", 5),
                fmt=log_config.get("format") or "%(levelname)s - %(message)s",
            )

        self._is_initialized = True
        logger.debug(f"Application initialized with {len(self.config.rules)} rules")

    def create_organizer(self, dry_run: bool = False) -> Organizer:
        """Build an organizer for the loaded configuration.

        Args:
            dry_run: Force a preview regardless of the configured setting
        """
        self.initialize()
        organizer = self.organizer_factory(self.config)
        if dry_run:
            organizer.set_dry_run(True)
        return organizer

    def collect_files(self, paths: Sequence[str], recursive: bool = False) -> List[str]:
        """Expand directories among ``paths`` to the files they contain."""
        self.initialize()
        if not paths:
            paths = [self.config.default_directory]

        files = []
        for path in paths:
            if os.path.isdir(path):
                files.extend(FileSystemAccessor(path).list_files(recursive=recursive))
            else:
                files.append(path)
        return files

    def organize(
        self,
        paths: Sequence[str],
        dest_dir: Optional[str] = None,
        recursive: bool = False,
        dry_run: bool = False,
    ) -> Tuple[List[OrganizeResult], Optional[BatchAbortedError]]:
        """Organize files by the rules, or straight into ``dest_dir``.

        Returns:
            Tuple of (results, abort error or None)
        """
        organizer = self.create_organizer(dry_run=dry_run)
        files = self.collect_files(paths, recursive=recursive)

        try:
            if dest_dir:
                results = organizer.organize_files(files, dest_dir)
            else:
                results = organizer.organize_by_patterns(files)
        except BatchAbortedError as e:
            return e.results, e

        return results, None

    def move(
        self, source: str, destination: str, dry_run: bool = False
    ) -> OrganizeResult:
        """Move one file; a directory destination keeps the file name."""
        organizer = self.create_organizer(dry_run=dry_run)
        if os.path.isdir(destination):
            destination = os.path.join(destination, os.path.basename(source))
        return organizer.move_file(source, destination)

    def list_rules(self) -> List[OrganizationRule]:
        self.initialize()
        return list(self.config.rules)

    def add_rule(self, rule: Dict[str, Any]) -> Tuple[OrganizationRule, Path]:
        """Append a pattern and persist the configuration.

        Returns:
            Tuple of (added rule, path the configuration was saved to)
        """
        self.initialize()
        added = self.config_manager.add_rule(rule)
        path = self.config_manager.save()
        self.config = self.config_manager.to_config()
        return added, path

    def create_watcher(
        self,
        directories: Sequence[str] = (),
        interval: Optional[float] = None,
        recursive: Optional[bool] = None,
    ) -> WatchDaemon:
        """Build a watch daemon; unset arguments come from the configuration."""
        organizer = self.create_organizer()
        directories = list(directories) or list(self.config.watch_directories)
        if not directories:
            directories = [self.config.default_directory]

        return WatchDaemon(
            organizer,
            directories,
            interval=interval or self.config_manager.get("watch.interval", 5.0),
            recursive=(
                recursive
                if recursive is not None
                else bool(self.config_manager.get("watch.recursive", False))
            ),
        )


def _get_app(ctx: click.Context) -> SortdApp:
    app = ctx.obj["app"]
    try:
        app.initialize()
    except SortdError as e:
        raise click.ClickException(str(e))
    return app


def _echo_results(results: List[OrganizeResult]):
    formatter = ReportGenerator(results)
    for result in results:
        click.echo(formatter.format_result(result))


@click.group()
@click.option(
    "--config", "config_file", type=click.Path(), help="Path to configuration file"
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.version_option(__version__, prog_name="sortd")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Optional[str],
    log_level: Optional[str],
    verbose: bool,
):
    """Organize files into directories by name patterns."""
    ctx.ensure_object(dict)
    if verbose:
        log_level = "DEBUG"

    overrides = {"logging.level": log_level.upper()} if log_level else {}
    ctx.obj["app"] = SortdApp(
        config_file=config_file,
        overrides=overrides,
        organizer_factory=ctx.obj.get("organizer_factory", default_organizer_factory),
    )


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--dry-run", is_flag=True, help="Preview changes without moving files")
@click.option(
    "--dest", "dest_dir", type=click.Path(), help="Move all files into this directory"
)
@click.option("--recursive", is_flag=True, help="Include files in subdirectories")
@click.option("--report", "report_file", type=click.Path(), help="Write a JSON report")
@click.pass_context
def organize(
    ctx: click.Context,
    paths: Tuple[str, ...],
    dry_run: bool,
    dest_dir: Optional[str],
    recursive: bool,
    report_file: Optional[str],
):
    """Organize files (or the files in directories) by the configured patterns."""
    app = _get_app(ctx)

    try:
        results, aborted = app.organize(
            paths, dest_dir=dest_dir, recursive=recursive, dry_run=dry_run
        )
    except SortdError as e:
        raise click.ClickException(str(e))

    _echo_results(results)

    preview = dry_run or app.config.settings.dry_run
    report = ReportGenerator(
        results,
        dry_run=preview,
        aborted_at=aborted.source_path if aborted else None,
    )
    summary = report.get_summary()
    if preview:
        click.echo(
            f"[DRY RUN] {summary['would_move']} would move, "
            f"{summary['unmoved'] - summary['would_move']} unchanged, "
            f"{summary['failed']} failed"
        )
    else:
        click.echo(
            f"{summary['moved']} moved, {summary['unmoved']} not moved, "
            f"{summary['failed']} failed"
        )

    if report_file:
        report.export_json(report_file)
        click.echo(f"Report written to {report_file}")

    if aborted:
        click.echo(f"Aborted: {aborted}", err=True)
        ctx.exit(1)


@cli.command()
@click.argument("source", type=click.Path())
@click.argument("destination", type=click.Path())
@click.option("--dry-run", is_flag=True, help="Preview the move without performing it")
@click.pass_context
def move(ctx: click.Context, source: str, destination: str, dry_run: bool):
    """Move SOURCE to DESTINATION with collision handling."""
    app = _get_app(ctx)

    try:
        result = app.move(source, destination, dry_run=dry_run)
    except SortdError as e:
        click.echo(f"{source}: {e}", err=True)
        ctx.exit(1)

    _echo_results([result])


@cli.group()
def rules():
    """Show or edit organization patterns."""


@rules.command("list")
@click.pass_context
def list_rules(ctx: click.Context):
    """List configured patterns in match order."""
    app = _get_app(ctx)
    configured = app.list_rules()

    if not configured:
        click.echo("No organization patterns configured.")
        return

    for index, rule in enumerate(configured, 1):
        label = f" [{rule.name}]" if rule.name else ""
        click.echo(f"{index}. {rule.describe()}{label}")


@rules.command("add")
@click.option("--glob", "glob", default=None, help="Glob matched against file names")
@click.option("--prefix", "prefixes", multiple=True, help="Required name prefix")
@click.option("--suffix", "suffixes", multiple=True, help="Required stem suffix")
@click.option("--target", required=True, help="Destination directory")
@click.option("--name", default=None, help="Optional pattern name")
@click.pass_context
def add_rule(
    ctx: click.Context,
    glob: Optional[str],
    prefixes: Tuple[str, ...],
    suffixes: Tuple[str, ...],
    target: str,
    name: Optional[str],
):
    """Append a pattern after the existing ones."""
    app = _get_app(ctx)

    rule = {"target": target}
    if glob is not None:
        rule["match"] = glob
    if prefixes:
        rule["prefixes"] = list(prefixes)
    if suffixes:
        rule["suffixes"] = list(suffixes)
    if name:
        rule["name"] = name

    try:
        added, path = app.add_rule(rule)
    except SortdError as e:
        raise click.ClickException(str(e))

    click.echo(f"Added pattern: {added.describe()}")
    click.echo(f"Configuration saved to {path}")


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option("--recursive", is_flag=True, help="Scan subdirectories")
@click.pass_context
def scan(ctx: click.Context, directory: str, recursive: bool):
    """List files with their size and detected content type."""
    _get_app(ctx)
    from sortd.utils.file_utils import get_file_mime_type, human_readable_size

    try:
        files = FileSystemAccessor(directory).scan_directory(recursive=recursive)
    except SortdError as e:
        raise click.ClickException(str(e))

    click.echo(f"Files in {directory}:")
    for file in files:
        size = human_readable_size(file.size)
        click.echo(f"  {file.name} - {size} - {get_file_mime_type(file.path)}")

    click.echo(f"\nTotal: {len(files)} files")


@cli.command()
@click.argument("directories", nargs=-1, type=click.Path())
@click.option("--interval", type=float, default=None, help="Seconds between polls")
@click.option("--recursive/--no-recursive", default=None, help="Watch subdirectories")
@click.option("--once", is_flag=True, help="Poll a single time and exit")
@click.pass_context
def watch(
    ctx: click.Context,
    directories: Tuple[str, ...],
    interval: Optional[float],
    recursive: Optional[bool],
    once: bool,
):
    """Organize new files as they appear in watched directories."""
    app = _get_app(ctx)

    try:
        watcher = app.create_watcher(
            directories, interval=interval, recursive=recursive
        )
    except (SortdError, ValueError) as e:
        raise click.ClickException(str(e))

    if once:
        _echo_results(watcher.poll_once())
        return

    click.echo(f"Watching {', '.join(watcher.directories)} (Ctrl+C to stop)")
    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()
        click.echo("Stopped watching")


def main():
    """Main entry point for the application."""
    cli(prog_name="sortd", obj={})


if __name__ == "__main__":
    main()
