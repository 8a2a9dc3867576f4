#!/usr/bin/env python3
"""Command-line interface for the azurepreview provider"""

import sys
import typer
from typing import Any, Dict, List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .. import __version__
from ..auth.manager import AuthenticationManager
from ..core.declarations import load_declarations
from ..core.errors import ProviderError
from ..core.models import (
    DiagnosticSeverity,
    Diagnostics,
    ResourcesQuery,
    ResourcesResult,
)
from ..core.provider import Provider
from ..core.state import StateStore
from ..data_sources.resources import ResourcesDataSource
from ..utils.config import ConfigurationLoader
from ..utils.ids import parse_budget_id, parse_subscription_id
from ..utils.logger import setup_logger

app = typer.Typer(
    name="azurepreview",
    help="Manage Azure budgets and subscriptions declaratively",
    add_completion=False
)

console = Console()

DEFAULT_STATE_FILE = "azurepreview.state.yml"


def build_provider(
    config_file: Optional[str],
    file_config: Optional[Dict[str, Any]] = None,
    **overrides
) -> Provider:
    """Load provider configuration, authenticate and build the client bundle"""
    config = ConfigurationLoader().load_configuration(config_file, file_config, **overrides)
    meta = AuthenticationManager(config).build_meta()
    return Provider(meta)


def display_diagnostics(diagnostics: Diagnostics) -> None:
    for diagnostic in diagnostics:
        style = "red" if diagnostic.severity == DiagnosticSeverity.ERROR else "yellow"
        prefix = f"{diagnostic.address}: " if diagnostic.address else ""
        console.print(f"{diagnostic.severity.value.upper()} {prefix}{diagnostic.summary}", style=style)


def display_resources(label: str, result: ResourcesResult) -> None:
    table = Table(title=f"Resources: {label}")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="blue")
    table.add_column("Location", style="green")
    table.add_column("ID", style="magenta")

    for resource in result.resources:
        table.add_row(resource.name or "", resource.type or "", resource.location or "", resource.id)

    console.print(table)


def display_state(state: StateStore) -> None:
    table = Table(title="Managed objects")
    table.add_column("Address", style="cyan")
    table.add_column("ID", style="magenta")

    for address, entry in state:
        table.add_row(address, entry.id)

    console.print(table)


def _finish(diagnostics: Diagnostics, success_message: str) -> None:
    display_diagnostics(diagnostics)
    if diagnostics.has_errors:
        console.print("\nCompleted with errors.", style="red")
        raise typer.Exit(code=1)
    console.print(f"\n{success_message}", style="green")


@app.command()
def apply(
    declarations_file: str = typer.Argument(..., help="YAML file declaring budgets, subscriptions and lookups"),
    state_file: str = typer.Option(DEFAULT_STATE_FILE, "--state", "-s", help="State file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Create, update or remove objects so Azure matches the declarations"""

    setup_logger("cli", "DEBUG" if verbose else "INFO")

    try:
        declarations = load_declarations(declarations_file)
        # An absent provider block falls back to the default config locations
        provider = build_provider(None, file_config=declarations.provider or None)
        state = StateStore(state_file).load()
    except ProviderError as e:
        console.print(f"Invalid configuration: {e}", style="red")
        raise typer.Exit(code=1)

    diagnostics, results = provider.apply_all(declarations, state)
    state.save()

    for label, result in results.items():
        display_resources(label, result)
    display_state(state)
    _finish(diagnostics, "Apply complete.")


@app.command()
def refresh(
    state_file: str = typer.Option(DEFAULT_STATE_FILE, "--state", "-s", help="State file path"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Provider configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Re-read every managed object and update the state file"""

    setup_logger("cli", "DEBUG" if verbose else "INFO")

    try:
        provider = build_provider(config_file)
        state = StateStore(state_file).load()
    except ProviderError as e:
        console.print(f"Invalid configuration: {e}", style="red")
        raise typer.Exit(code=1)

    diagnostics = provider.refresh_all(state)
    state.save()

    display_state(state)
    _finish(diagnostics, "Refresh complete.")


@app.command()
def destroy(
    state_file: str = typer.Option(DEFAULT_STATE_FILE, "--state", "-s", help="State file path"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Provider configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Delete budgets and cancel subscriptions recorded in the state file"""

    setup_logger("cli", "DEBUG" if verbose else "INFO")

    try:
        provider = build_provider(config_file)
        state = StateStore(state_file).load()
    except ProviderError as e:
        console.print(f"Invalid configuration: {e}", style="red")
        raise typer.Exit(code=1)

    diagnostics = provider.destroy_all(state)
    state.save()

    _finish(diagnostics, "Destroy complete.")


@app.command()
def resources(
    subscription_id: Optional[str] = typer.Option(None, "--subscription", help="Subscription to search"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Exact resource name"),
    resource_type: Optional[str] = typer.Option(None, "--type", "-t", help="Resource type, e.g. Microsoft.Web/sites"),
    resource_group: Optional[str] = typer.Option(None, "--resource-group", "-g", help="Resource group name"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="Required tag as key=value (repeatable)"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Provider configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """List resources matching every given filter"""

    setup_logger("cli", "DEBUG" if verbose else "INFO")

    required_tags = {}
    for tag in tags or []:
        key, sep, value = tag.partition("=")
        if not sep or not key:
            console.print(f"Invalid tag {tag!r}, expected key=value", style="red")
            raise typer.Exit(code=1)
        required_tags[key] = value

    query = ResourcesQuery(
        subscription_id=subscription_id,
        name=name,
        resource_type=resource_type,
        resource_group_name=resource_group,
        tags=required_tags,
    )

    try:
        provider = build_provider(config_file)
    except ProviderError as e:
        console.print(f"Invalid configuration: {e}", style="red")
        raise typer.Exit(code=1)

    result, diagnostics = provider.read_data_source(ResourcesDataSource.type_name, query)
    if result is not None:
        display_resources("query", result)
    _finish(diagnostics, f"Found {len(result.resources) if result else 0} resources.")


@app.command("parse-id")
def parse_id(
    value: str = typer.Argument(..., help="Resource ID to parse"),
    kind: str = typer.Option("budget", "--kind", "-k", help="budget or subscription"),
):
    """Split a budget or subscription ID into its parts"""

    try:
        if kind == "budget":
            budget_id = parse_budget_id(value)
            console.print(f"scope: {budget_id.scope}")
            console.print(f"name: {budget_id.budget_name}")
        elif kind == "subscription":
            console.print(f"subscription_id: {parse_subscription_id(value)}")
        else:
            console.print(f"Unknown kind {kind!r}, expected budget or subscription", style="red")
            raise typer.Exit(code=1)
    except ProviderError as e:
        console.print(str(e), style="red")
        raise typer.Exit(code=1)


@app.command()
def version():
    """Show version information"""

    version_info = {
        "azurepreview": __version__,
        "Python": sys.version.split()[0],
        "Platform": sys.platform
    }

    panel_content = "\n".join([f"{k}: {v}" for k, v in version_info.items()])
    console.print(Panel(panel_content, title="Version Information", expand=False))


def main():
    """Main entry point"""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\nInterrupted by user.", style="red")
        sys.exit(130)


if __name__ == "__main__":
    main()
