"""
Provider Publisher CLI - command-line interface.

Publish a goreleaser dist/ folder to a private provider registry.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from provider_publisher.catalog.reader import load_catalog, load_metadata
from provider_publisher.config import PublisherConfig
from provider_publisher.core.exceptions import PublisherError, format_exception
from provider_publisher.orchestrator.core import (
    PublishRequest,
    PublishResult,
    Publisher,
    StepKind,
)
from provider_publisher.registry.client import TFERegistryClient

app = typer.Typer(
    name="provider-publisher",
    help="Provider Publisher - publish goreleaser builds to a private provider registry",
    no_args_is_help=True,
)
console = Console()

STEP_STYLES = {
    StepKind.FOUND: "dim",
    StepKind.CREATED: "green",
    StepKind.UPLOADED: "green",
    StepKind.SKIPPED: "dim",
    StepKind.PLANNED: "yellow",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _summary_table(result: PublishResult) -> Table:
    title = "Publish Plan" if result.dry_run else "Publish Summary"
    table = Table(title=f"{title} ({result.version})")
    table.add_column("Action")
    table.add_column("Resource", style="cyan")
    table.add_column("Detail", style="dim")

    for step in result.steps:
        style = STEP_STYLES.get(step.kind, "white")
        table.add_row(f"[{style}]{step.kind.value}[/{style}]", escape(step.resource), escape(step.detail))

    return table


def run_publish(config: PublisherConfig) -> PublishResult:
    """
    Load the catalog and publish it with the given configuration.

    Raises:
        PublisherError: On any unrecovered failure
    """
    if (not config.name or not config.version) and config.metadata_path.exists():
        config = config.with_metadata(load_metadata(config.metadata_path))
    config.validate_required()

    catalog = load_catalog(config.artifacts_path, root=config.root)
    request = PublishRequest(
        version=config.version_identity(),
        key_id=config.key_id,
        catalog=catalog,
        targets=config.targets,
    )

    with TFERegistryClient(config.registry_config()) as client:
        publisher = Publisher(client, dry_run=config.dry_run)
        return publisher.publish(request)


@app.command()
def publish(
    token: Optional[str] = typer.Option(None, "--token", "-t", help="TFC API token"),
    organization: Optional[str] = typer.Option(
        None, "--organization", "-o", help="TFC organization"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Full project name, e.g.: terraform-provider-hashicups"
    ),
    version: Optional[str] = typer.Option(None, "--version", "-v", help="Version, e.g.: 0.1.1"),
    fingerprint: Optional[str] = typer.Option(
        None, "--fingerprint", "-f", help="GPG key ID registered with the organization"
    ),
    artifact: Optional[list[str]] = typer.Option(
        None,
        "--artifact",
        "-a",
        help="Archive to publish, e.g.: terraform-provider-hashicups_0.0.1_darwin_arm64.zip "
        "or darwin_arm64. Repeatable; defaults to every archive.",
    ),
    artifacts: Optional[Path] = typer.Option(
        None, "--artifacts", help="goreleaser artifacts.json (default: dist/artifacts.json)"
    ),
    metadata: Optional[Path] = typer.Option(
        None, "--metadata", help="goreleaser metadata.json (default: dist/metadata.json)"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Directory artifact paths are relative to"
    ),
    address: Optional[str] = typer.Option(None, "--address", help="TFC/TFE address"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Read the registry and report what would change"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Publish a provider version and its platforms."""
    _configure_logging(verbose)

    try:
        config = PublisherConfig.from_env(
            token=token,
            organization=organization,
            name=name,
            version=version,
            key_id=fingerprint,
            targets=artifact,
            artifacts_path=artifacts,
            metadata_path=metadata,
            root=root,
            address=address,
            dry_run=dry_run,
        )

        console.print(
            Panel.fit(
                f"[bold blue]Provider Publisher[/bold blue]\n"
                f"Registry: {config.address}\n"
                f"Organization: {config.organization or '-'}\n"
                f"Artifacts: {config.artifacts_path}"
                + ("\nMode: dry run" if config.dry_run else ""),
            )
        )

        result = run_publish(config)
    except PublisherError as e:
        console.print(f"[red]Error:[/red] {escape(format_exception(e))}")
        raise typer.Exit(1)

    console.print(_summary_table(result))
    if result.dry_run:
        console.print("[yellow]Dry run: no changes were made[/yellow]")
    elif result.changed:
        console.print(
            f"[green]Done:[/green] {len(result.created)} created, "
            f"{len(result.uploaded)} uploaded"
        )
    else:
        console.print("[green]Already up to date[/green]")


@app.command("version")
def version_cmd():
    """Show build information."""
    from provider_publisher import __commit__, __date__, __version__

    console.print(f"Version: {__version__}")
    console.print(f"Commit: {__commit__}")
    console.print(f"Date: {__date__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
