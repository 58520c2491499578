# cli.py - Command line entry point for mdproc
"""
mdproc CLI - Text class resource synchronizer

COMMANDS:
    mdproc run [--max-passes N]      Poll the database and process new text classes
    mdproc once                      Run a single synchronization pass
    mdproc init-db                   Create the grade/course/text_class tables
    mdproc config [--template]       Show resolved configuration
    mdproc version                   Show version information

GLOBAL OPTIONS (before the command):
    -D PATH      sqlite database            (default ./ecommunity.db)
    --dir PATH   sync directory             (default sync/)
    -p MS        polling rate in ms         (default 5000)
    -b URL       base path of served files  (default http://localhost:3000/static/)
    -A TEXT      User-Agent for downloads
    -v           more output (-vv for debug)

EXAMPLES:
    # Run the worker next to the wiki backend
    mdproc -D ./ecommunity.db --dir sync/ run

    # Process whatever is pending right now and exit
    mdproc once

    # Local setup
    mdproc init-db
    mdproc config --template > mdproc.yaml
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from mdproc import __version__
from mdproc.config_utils import (
    SyncConfig,
    create_config_template,
    describe_config,
    get_config,
)
from mdproc.errors import MdprocError
from mdproc.log_utils import fence, setup_logging
from mdproc.store import TextClassStore
from mdproc.sync import Synchronizer

log = logging.getLogger(__name__)


# ============================================================================
# Context
# ============================================================================

class MdprocContext:
    """Shared context for CLI commands"""

    def __init__(self, overrides: Dict[str, Any], verbosity: int):
        self.work_dir = Path.cwd()
        self.overrides = overrides
        self.verbosity = verbosity
        self._config: Optional[SyncConfig] = None

    @property
    def config(self) -> SyncConfig:
        if self._config is None:
            try:
                self._config = get_config(self.work_dir, self.overrides)
            except MdprocError as e:
                raise click.ClickException(str(e))
        return self._config


# ============================================================================
# Click Group Setup
# ============================================================================

@click.group()
@click.option('-D', 'db_path', help='sqlite database path')
@click.option('--dir', 'destination_root', help='Directory holding synchronized files')
@click.option('-p', 'poll_interval_ms', type=int, help='Polling rate in milliseconds')
@click.option('-b', 'base_path', help='URL prefix the file server exposes assets under')
@click.option('-A', 'user_agent', help='User-Agent header for downloads')
@click.option('--timeout', 'request_timeout', type=float, help='Download timeout in seconds')
@click.option('-v', '--verbose', count=True, help='Increase output (-vv for debug)')
@click.pass_context
def cli(ctx, db_path, destination_root, poll_interval_ms, base_path, user_agent,
        request_timeout, verbose):
    """
    mdproc - localize resources linked from text classes

    Downloads the images, files and pages each uploaded markdown file links
    to, and writes a processed copy that points at the local copies.
    """
    setup_logging(verbose)
    overrides = {
        "db_path": db_path,
        "destination_root": destination_root,
        "poll_interval_ms": poll_interval_ms,
        "base_path": base_path,
        "user_agent": user_agent,
        "request_timeout": request_timeout,
    }
    ctx.obj = MdprocContext(overrides, verbose)


# ============================================================================
# Sync Commands
# ============================================================================

@cli.command()
@click.option('--max-passes', type=int, default=None,
              help='Stop after this many passes (default: run until interrupted)')
@click.pass_obj
def run(ctx: MdprocContext, max_passes: Optional[int]):
    """
    Poll for new text classes and process them

    Every polling interval the worker looks for text classes with an
    uploaded file and an empty processed file, and processes each one.
    Stop with Ctrl+C.
    """
    config = ctx.config
    fence("mdproc")
    log.info("Initializing resource mdproc with directory %s", config.destination_root)
    log.info("Database: %s, polling every %d ms", config.db_path, config.poll_interval_ms)

    synchronizer = Synchronizer(config)
    try:
        passes = synchronizer.run(max_passes=max_passes)
    except KeyboardInterrupt:
        click.echo("\n[wave] Stopping...")
        return
    finally:
        synchronizer.store.close()
    click.echo(f"[*] Finished after {passes} pass(es)")


@cli.command()
@click.pass_obj
def once(ctx: MdprocContext):
    """Run one synchronization pass and exit"""
    config = ctx.config
    synchronizer = Synchronizer(config)
    try:
        report = synchronizer.run_pass()
    finally:
        synchronizer.store.close()

    click.echo(f"[ok] Discovered: {report.discovered}, "
               f"Processed: {report.processed}, Failed: {report.failed}")
    if report.failed:
        sys.exit(1)


# ============================================================================
# Setup Commands
# ============================================================================

@cli.command('init-db')
@click.pass_obj
def init_db(ctx: MdprocContext):
    """Create the tables the worker reads (safe to re-run)"""
    config = ctx.config
    try:
        with TextClassStore(config.db_path) as store:
            store.ensure_schema()
    except MdprocError as e:
        raise click.ClickException(str(e))
    click.echo(f"[ok] Schema ready in {config.db_path}")


@cli.command()
@click.option('--template', is_flag=True, help='Print a commented mdproc.yaml instead')
@click.pass_obj
def config(ctx: MdprocContext, template: bool):
    """Show resolved configuration and where each value came from"""
    if template:
        click.echo(create_config_template(), nl=False)
        return
    try:
        report = describe_config(ctx.work_dir, ctx.overrides)
    except MdprocError as e:
        raise click.ClickException(str(e))
    for name, entry in report.items():
        click.echo(f"{name:18} {entry['value']!r:40} ({entry['source']})")


# ============================================================================
# Version
# ============================================================================

@cli.command()
def version():
    """Show mdproc version"""
    click.echo(f"mdproc v{__version__}")
    click.echo("Resource synchronizer for wiki text classes")


# ============================================================================
# Entry Point
# ============================================================================

if __name__ == '__main__':
    cli()
