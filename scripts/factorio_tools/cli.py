"""
Command-line interface for the Factorio data loader.
Provides the dump exporter, the local calculator server and diagnostics.
"""

import os
import sys
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import LoaderConfig, env_var_names
from .errors import LoaderError, RawDataDumped
from .output import DatasetExporter
from .paths import (
    find_game_dir, find_mod_dir, game_dir_candidates, mod_dir_candidates,
    valid_game_dir, valid_mod_dir,
)

# Initialize typer app and rich console
app = typer.Typer(
    name="factorio-tools",
    help="Load Factorio game data and icons for the calculator",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]factorio-tools dump --calcdir ../factorio-web-calc[/cyan]   Write datasets and sprite sheet
  [cyan]factorio-tools serve[/cyan]                                 Run the calculator locally
  [cyan]factorio-tools dump --raw raw.json[/cyan]                   Dump unprocessed data.raw and exit
  [cyan]factorio-tools locate[/cyan]                                Show where the game was found
    """
)
console = Console()


GAMEDIR_OPTION = typer.Option(None, "--gamedir", help="Factorio installation directory")
MODDIR_OPTION = typer.Option(None, "--moddir", help="User mod directory (e.g. ~/.factorio/mods)")
RAW_OPTION = typer.Option(None, "--raw", help="Write unprocessed data.raw to this file, and exit")
GAMEVER_OPTION = typer.Option(None, "--gamever", help="Factorio major version (1 or 2)")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Print more output")
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Configuration file path")


@app.command()
def dump(
    config_file: Optional[Path] = CONFIG_OPTION,
    gamedir: Optional[Path] = GAMEDIR_OPTION,
    moddir: Optional[Path] = MODDIR_OPTION,
    raw: Optional[Path] = RAW_OPTION,
    gamever: Optional[str] = GAMEVER_OPTION,
    verbose: bool = VERBOSE_OPTION,
    calc_dir: Optional[Path] = typer.Option(None, "--calcdir", help="Calculator development directory"),
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Prefix to use for data files"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files"),
):
    """Dump game data and the sprite sheet into a calculator directory."""
    config = _load_config(
        config_file, game_dir=gamedir, mod_dir=moddir, raw_file=raw, game_version=gamever,
        verbose=verbose or None, calc_dir=calc_dir, prefix=prefix, force=force or None,
    )

    try:
        exporter = DatasetExporter(config.calc_dir, config.prefix, config.force)
        data = _run_loader(config)
        paths = exporter.export(data)
    except LoaderError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print("Created files:")
    for path in paths.all():
        console.print(f"  {escape(str(path))}")


@app.command()
def serve(
    config_file: Optional[Path] = CONFIG_OPTION,
    gamedir: Optional[Path] = GAMEDIR_OPTION,
    moddir: Optional[Path] = MODDIR_OPTION,
    raw: Optional[Path] = RAW_OPTION,
    gamever: Optional[str] = GAMEVER_OPTION,
    verbose: bool = VERBOSE_OPTION,
    calc_dir: Optional[Path] = typer.Option(None, "--calcdir", help="Calculator directory to serve"),
    http_addr: Optional[str] = typer.Option(None, "--http-addr", help="Address on which to serve calculator"),
    browser: Optional[bool] = typer.Option(None, "--browser/--no-browser", help="Launch a web browser"),
):
    """Run the calculator locally using the installed game's data."""
    from .server import create_server
    import webbrowser

    config = _load_config(
        config_file, game_dir=gamedir, mod_dir=moddir, raw_file=raw, game_version=gamever,
        verbose=verbose or None, calc_dir=calc_dir, http_addr=http_addr, open_browser=browser,
    )

    try:
        data = _run_loader(config)
        server = create_server(data, config.calc_dir, config.http_addr)
    except LoaderError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Cannot listen on {escape(config.http_addr)}:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    url = f"http://{config.http_addr}/calc.html"
    console.print(f"Starting server on [cyan]{url}[/cyan]")
    console.print("[dim](Ctrl-C to exit.)[/dim]")

    if config.open_browser and not webbrowser.open(url):
        console.print(f"[yellow]Could not launch a browser; open {url} manually[/yellow]")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        console.print("\nStopped.")
    finally:
        server.server_close()


@app.command()
def locate(
    config_file: Optional[Path] = CONFIG_OPTION,
    gamedir: Optional[Path] = GAMEDIR_OPTION,
    moddir: Optional[Path] = MODDIR_OPTION,
    candidates: bool = typer.Option(False, "--candidates", help="List every searched location"),
):
    """Show which game and mod directories would be used."""
    config = _load_config(config_file, game_dir=gamedir, mod_dir=moddir)
    failed = False

    for kind, finder, override in (
        ("Game", find_game_dir, config.game_dir),
        ("Mod", find_mod_dir, config.mod_dir),
    ):
        try:
            path = finder(override)
            console.print(f"[green]✓[/green] {kind} directory: {escape(str(path))}")
        except LoaderError as e:
            console.print(f"[red]✗[/red] {escape(str(e))}")
            failed = True

    if candidates:
        table = Table(title="Search Locations")
        table.add_column("Kind", style="cyan")
        table.add_column("Path", style="white")
        table.add_column("Valid", width=6)
        for path in game_dir_candidates():
            table.add_row("game", str(path), _mark(valid_game_dir(path)))
        for path in mod_dir_candidates():
            table.add_row("mod", str(path), _mark(valid_mod_dir(path)))
        console.print(table)

    if failed:
        raise typer.Exit(1)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = CONFIG_OPTION,
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage loader configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    config = _load_config(config_file)

    if show:
        _display_config(config)

    if validate_config:
        errors = config.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print("[bold]Factorio Tools[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    deps_status = []
    for package in ("Pillow", "lupa", "numpy", "Jinja2", "typer", "rich"):
        try:
            from importlib.metadata import version as dist_version
            deps_status.append((package, dist_version(package), "✓"))
        except Exception:
            deps_status.append((package, "Not installed", "✗"))

    console.print("\n[bold]Dependencies:[/bold]")
    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for name, dep_version, status in deps_status:
        color = "green" if status == "✓" else "red"
        table.add_row(f"[{color}]{status}[/{color}]", name, dep_version)

    console.print(table)


def _run_loader(config: LoaderConfig):
    """Run the pipeline; a raw dump ends the command successfully."""
    from .pipeline import FactorioLoader

    try:
        return FactorioLoader(config).load_data()
    except RawDataDumped as e:
        console.print(f"[green]✓[/green] {escape(str(e))}")
        raise typer.Exit(0)


def _load_config(config_file: Optional[Path], **overrides) -> LoaderConfig:
    """Load configuration from file or defaults, then apply env and command-line overrides."""
    config = None

    if config_file:
        if not config_file.exists():
            console.print(f"[red]Configuration file not found:[/red] {config_file}")
            raise typer.Exit(1)
        config = _read_config_file(config_file)
        console.print(f"[dim]Using configuration: {config_file}[/dim]")
    else:
        for config_path in (Path("factorio_tools.toml"), Path("factorio_tools.json")):
            if config_path.exists():
                console.print(f"[dim]Using configuration: {config_path}[/dim]")
                config = _read_config_file(config_path)
                break

        if config is None:
            config = LoaderConfig()

    try:
        config = LoaderConfig._apply_env_overrides(config)
    except ValueError as e:
        console.print(f"[red]Invalid environment override:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    overrides = {k: (str(v) if isinstance(v, Path) else v) for k, v in overrides.items()}
    return config.with_overrides(**overrides)


def _read_config_file(config_path: Path) -> LoaderConfig:
    try:
        return LoaderConfig.from_file(config_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid configuration file {escape(str(config_path))}:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _mark(ok: bool) -> str:
    return "[green]✓[/green]" if ok else "[dim]-[/dim]"


def _display_config(config: LoaderConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Loader Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Game Directory", config.game_dir or "(auto)")
    table.add_row("Mod Directory", config.mod_dir or "(auto)")
    table.add_row("Game Version", config.game_version)
    table.add_row("Verbose", str(config.verbose))
    table.add_row("Raw Dump File", config.raw_file or "(none)")
    table.add_row("Loader Library", config.loader_lib_dir)
    table.add_row("Process Data Scripts", config.process_data_dir)
    table.add_row("Compression Level", str(config.compression_level))
    table.add_row("Calculator Directory", config.calc_dir)
    table.add_row("Dataset Prefix", config.prefix)
    table.add_row("Force Overwrite", str(config.force))
    table.add_row("HTTP Address", config.http_addr)
    table.add_row("Open Browser", str(config.open_browser))

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Loader Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Currently Set", style="green")

    for name in env_var_names():
        table.add_row(name, os.environ.get(name, ""))

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")


if __name__ == "__main__":
    app()
