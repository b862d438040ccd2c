"""Command-line interface for the caffeine8 idle inhibitor."""
import logging
import os
import signal
from pathlib import Path

import click

from .daemon import build_state, install_signal_handlers, run_loop
from .status import read_status
from .utils import (
    check_existing_instance,
    delete_pid_file,
    get_pid_file_path,
    get_poll_interval,
    get_status_file_path,
    read_pid_file,
    wait_for_exit,
    write_pid_file,
)
from .version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
STOP_TIMEOUT = 5.0


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )
    if debug:
        logger.debug("Debug logging enabled.")


def terminate_instance(pid: int) -> bool:
    try:
        os.kill(pid, signal.SIGTERM)
    except ProcessLookupError:
        return False
    return True


def run_daemon(status_file: Path, pid_file: Path, debug: bool, poll_interval: float) -> None:
    state = build_state(status_file, debug=debug, poll_interval=poll_interval)
    install_signal_handlers(state.flags)
    try:
        run_loop(state)
    finally:
        if read_pid_file(pid_file) == os.getpid():
            delete_pid_file(pid_file)


@click.group(invoke_without_command=True)
@click.option("--debug", is_flag=True, help="Log debug messages and flag them in the status file")
@click.option(
    "--status-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Status file path [env: CAFFEINE8_STATUS_FILE]",
)
@click.option(
    "--pid-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="PID file path [env: CAFFEINE8_PID_FILE]",
)
@click.version_option(__version__, prog_name="caffeine8")
@click.pass_context
def main(ctx, debug, status_file, pid_file):
    """caffeine8 - keep the screen locker and power management at bay."""
    setup_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["status_file"] = status_file or get_status_file_path()
    ctx.obj["pid_file"] = pid_file or get_pid_file_path()
    if ctx.invoked_subcommand is None:
        ctx.invoke(start)


@main.command()
@click.option("--foreground", is_flag=True, help="Run the inhibitor loop in this process")
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between control checks [env: CAFFEINE8_POLL_INTERVAL]",
)
@click.pass_context
def start(ctx, foreground, poll_interval):
    """Start the inhibitor daemon, replacing a running instance."""
    pid_file = ctx.obj["pid_file"]
    status_file = ctx.obj["status_file"]
    debug = ctx.obj["debug"]
    poll_interval = poll_interval or get_poll_interval()

    existing = check_existing_instance(pid_file)
    if existing is not None:
        click.echo(f"An instance of caffeine8 is already running with PID {existing}. Killing it.")
        # the old instance rewrites the status file on its way out
        if terminate_instance(existing) and not wait_for_exit(
            existing, timeout=max(STOP_TIMEOUT, 3 * poll_interval)
        ):
            click.echo(f"Instance {existing} did not exit in time; starting anyway.")

    if foreground:
        write_pid_file(pid_file, os.getpid())
        run_daemon(status_file, pid_file, debug, poll_interval)
        return

    try:
        pid = os.fork()
    except OSError as e:
        raise click.ClickException(f"Fork failed: {e}")

    if pid > 0:
        write_pid_file(pid_file, pid)
        click.echo(f"New instance of caffeine8 started with PID {pid}")
        return

    run_daemon(status_file, pid_file, debug, poll_interval)


@main.command()
@click.pass_context
def stop(ctx):
    """Stop the running instance."""
    pid_file = ctx.obj["pid_file"]
    existing = check_existing_instance(pid_file)
    if existing is None:
        click.echo("No existing instance found.")
        return

    click.echo(f"Stopping existing instance with PID {existing}")
    if not terminate_instance(existing):
        click.echo(f"Instance {existing} already exited.")
    delete_pid_file(pid_file)


@main.command()
@click.pass_context
def status(ctx):
    """Show the state published by the running instance."""
    target = check_existing_instance(ctx.obj["pid_file"])
    record = read_status(ctx.obj["status_file"])

    click.echo(f"Target PID: {target if target is not None else 'N/A'}")
    if record is None:
        click.echo("Status: Status file not found.")
        return

    click.echo(f"Loop PID: {record.pid if record.pid > 0 else 'unknown'}")
    click.echo(f"Inhibitors: {'ACTIVE' if record.active else 'inactive'}")
    click.echo(f"Debug mode: {'enabled' if record.debug else 'disabled'}")
    click.echo(f"Status: {record.message}")


@main.command()
@click.pass_context
def toggle(ctx):
    """Ask the running instance to release or re-acquire its inhibitors."""
    target = check_existing_instance(ctx.obj["pid_file"])
    if target is None:
        raise click.ClickException("No active caffeine8 process.")

    record = read_status(ctx.obj["status_file"])
    active = record is not None and record.active
    try:
        os.kill(target, signal.SIGUSR2 if active else signal.SIGUSR1)
    except OSError as e:
        raise click.ClickException(f"Failed to signal caffeine8 process: {e}")

    if active:
        click.echo("Toggle requested: release inhibitors.")
    else:
        click.echo("Toggle requested: acquire inhibitors.")


if __name__ == "__main__":
    main()
