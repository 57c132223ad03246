"""Dataset Planner CLI using Typer."""

import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from dataset_planner import __version__
from dataset_planner.cli.plan import file_command, plan_command, refine_command
from dataset_planner.core.config import get_default_config
from dataset_planner.core.errors import SettingsError
from dataset_planner.core.settings import SUPPORTED_SERVICES, get_default_settings_store
from dataset_planner.services.ai.client import PROVIDER_KEY_ENV, LLMProvider
from dataset_planner.services.ai.prompts import PROMPT_VERSION

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

console = Console()
app = typer.Typer(
    name="dataset-planner",
    help="Dataset Planner - discover data sources and generate ingestion plans",
    add_completion=False,
)
settings_app = typer.Typer(help="Manage saved service API keys")
app.add_typer(settings_app, name="settings")

app.command("plan")(plan_command)
app.command("file")(file_command)
app.command("refine")(refine_command)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Dataset Planner - discover data sources and generate ingestion plans."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _key_configured(provider: LLMProvider) -> bool:
    return bool(os.environ.get(PROVIDER_KEY_ENV[provider]))


@app.command()
def version() -> None:
    """Show the Dataset Planner version."""
    typer.echo(f"Dataset Planner v{__version__} (prompts v{PROMPT_VERSION})")


@app.command()
def providers() -> None:
    """List supported LLM providers and whether their keys are set."""
    config = get_default_config()

    table = Table(title="LLM Providers")
    table.add_column("Provider", style="bold")
    table.add_column("API Key Variable")
    table.add_column("Status")

    for provider in LLMProvider:
        status = "[green]configured[/green]" if _key_configured(provider) else "[yellow]missing[/yellow]"
        name = provider.value
        if name == config.provider:
            name += " (default)"
        table.add_row(name, PROVIDER_KEY_ENV[provider], status)

    console.print(table)


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    typer.echo("Dataset Planner Configuration")
    typer.echo("=" * 40)

    env_found = False
    for _env_path in _env_paths:
        if _env_path.exists():
            typer.echo(f"  .env file: {_env_path}")
            env_found = True
            break
    if not env_found:
        typer.echo("  .env file: Not found")

    config = get_default_config()
    try:
        provider = LLMProvider(config.provider)
    except ValueError:
        typer.echo(f"  LLM provider: {config.provider} (unsupported)")
    else:
        state = "configured" if _key_configured(provider) else f"{PROVIDER_KEY_ENV[provider]} not set"
        typer.echo(f"  LLM provider: {provider.value} ({state})")
    if config.model:
        typer.echo(f"  Model override: {config.model}")

    if config.validation.enabled:
        store = get_default_settings_store()
        firecrawl = "configured" if store.get_api_key("firecrawl") else "no API key (URLs will be marked failed)"
        typer.echo(f"  Crawl validation: enabled, Firecrawl {firecrawl}")
    else:
        typer.echo("  Crawl validation: disabled")

    typer.echo(
        f"  Rate limiting: {config.rate_limit.delay_between_calls}s between URLs, "
        f"{config.rate_limit.max_retries} retries"
    )


# Settings subcommands


@settings_app.command("set-key")
def set_key(
    service: str = typer.Argument(..., help="Service name (e.g. firecrawl)"),
    api_key: str = typer.Argument(..., help="API key to save"),
) -> None:
    """
    Save an API key for an external service.

    Examples:
        dataset-planner settings set-key firecrawl fc-123
    """
    store = get_default_settings_store()
    try:
        store.save_api_key(service, api_key)
    except SettingsError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]API key saved for {service}[/green]")


@settings_app.command("clear-key")
def clear_key(
    service: str = typer.Argument(..., help="Service name"),
) -> None:
    """Remove a saved API key."""
    store = get_default_settings_store()
    if store.clear_api_key(service):
        rprint(f"[yellow]API key cleared for {service}[/yellow]")
    else:
        rprint(f"No saved API key for {service}")


@settings_app.command("show")
def show_settings() -> None:
    """Show which service keys are available."""
    store = get_default_settings_store()
    saved = set(store.saved_services())

    table = Table(title="Service API Keys")
    table.add_column("Service", style="bold")
    table.add_column("Source")

    for service in SUPPORTED_SERVICES:
        if service in saved:
            source = f"[green]saved[/green] ({store.path})"
        elif store.get_api_key(service):
            source = "[green]environment[/green]"
        else:
            source = "[yellow]not set[/yellow]"
        table.add_row(service, source)

    console.print(table)


if __name__ == "__main__":
    app()
