"""
CLI - manage the notification target and send test notifications.

Commands:
    runnotifier check URI     - Validate a target without saving it
    runnotifier set-uri URI   - Validate and save the target ("" clears it)
    runnotifier show          - Print the current configuration
    runnotifier ping          - Fire a synthetic run event and wait for delivery
"""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from runnotifier import __version__

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """runnotifier - HTTP notifications for run lifecycle events."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Target configuration
# ---------------------------------------------------------------------------


@main.command()
@click.argument("uri")
def check(uri: str) -> None:
    """Validate a notification target URI."""
    from runnotifier.notifications.config import check_uri

    result = check_uri(uri)
    if not result.ok:
        console.print(f"[red]Error: {result.message}[/red]")
        sys.exit(1)
    console.print("[green]>[/green] OK")


@main.command("set-uri")
@click.argument("uri")
def set_uri(uri: str) -> None:
    """Validate and save the notification target URI."""
    from runnotifier.core import RUNNOTIFIER_CONFIG_FILE, YamlSettings
    from runnotifier.notifications.config import ConfigurationStore

    store = ConfigurationStore(YamlSettings())
    result = store.update(uri)
    if not result.ok:
        console.print(f"[red]Error: {result.message}[/red]")
        sys.exit(1)

    if store.get():
        console.print(f"[green]>[/green] Target set to {store.get()}")
    else:
        console.print("[green]>[/green] Target cleared")
    console.print(f"[green]>[/green] Config saved to {RUNNOTIFIER_CONFIG_FILE}")


@main.command()
def show() -> None:
    """Show the current configuration."""
    from runnotifier.core import RUNNOTIFIER_CONFIG_FILE, load_config

    config = load_config()
    console.print(f"\n[bold]Config file:[/bold] {RUNNOTIFIER_CONFIG_FILE}")
    console.print(f"  Target: {config.uri or '[dim](not set)[/dim]'}")
    console.print(f"  Max pending deliveries: {config.delivery.max_pending}")
    console.print(f"  Delivery workers: {config.delivery.workers}\n")


# ---------------------------------------------------------------------------
# Test notification
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--phase",
    type=click.Choice(["started", "completed", "finalized"]),
    default="started",
    help="Lifecycle phase to report",
)
@click.option("--name", default="#1", help="Run display name")
@click.option("--job", "job_name", default="test-job", help="Job display name")
@click.option("--duration", default=0, type=int, help="Run duration in milliseconds")
@click.option("--status-summary", default="", help="Build status summary")
@click.option("--root-url", default=None, help="Host root URL used to build absolute links")
@click.option("--executors", default=1, type=int, help="Executors on the simulated node")
@click.option("--busy", default=0, type=int, help="Busy executors on the simulated node")
@click.option("--uri", default=None, help="Send here instead of the saved target")
@click.option("--timeout", default=10.0, type=float, help="Seconds to wait for delivery")
def ping(phase, name, job_name, duration, status_summary, root_url, executors, busy, uri, timeout):
    """Send one notification for a synthetic run."""
    from runnotifier.core import YamlSettings, load_config
    from runnotifier.notifications.config import ConfigurationStore, MemorySettings
    from runnotifier.notifications.events import LifecyclePhase
    from runnotifier.notifications.host import JobRecord, NodeInfo, RunRecord, StaticHost
    from runnotifier.notifications.notifier import RunNotifier
    from runnotifier.notifications.scheduler import DeliveryScheduler

    if uri is not None:
        store = ConfigurationStore(MemorySettings())
        result = store.update(uri)
        if not result.ok:
            console.print(f"[red]Error: {result.message}[/red]")
            sys.exit(1)
    else:
        store = ConfigurationStore(YamlSettings())

    if not store.get():
        console.print("[red]Error: No target configured. Run 'runnotifier set-uri' first.[/red]")
        sys.exit(1)

    config = load_config()
    host = StaticHost(
        nodes=[NodeInfo(name="local", num_executors=executors, busy_executors=busy)],
        root_url=root_url,
    )
    notifier = RunNotifier(
        store,
        host,
        scheduler=DeliveryScheduler(
            max_pending=config.delivery.max_pending,
            workers=config.delivery.workers,
        ),
    )

    job = JobRecord(display_name=job_name, url=f"job/{job_name}/")
    run = RunRecord(
        display_name=name,
        parent=job,
        build_status_summary=status_summary,
        duration=duration,
        url=f"job/{job_name}/{name.lstrip('#')}/",
    )

    console.print(f"[green]>[/green] Sending {phase} notification to {store.get()}")
    notifier.notify(LifecyclePhase(phase), run, job)
    notifier.close(timeout=timeout)
    console.print("[green]>[/green] Done")
