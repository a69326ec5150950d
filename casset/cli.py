"""Command-line interface for the casset asset pipeline."""

import sys
from pathlib import Path
from typing import Optional

import click
from loguru import logger

from casset.config_loader import load_config, ensure_directories
from casset.manager import AssetManager
from casset.models import AssetKind


def setup_logging(config: dict):
    """Setup logging configuration."""
    log_config = config.get("logging", {}) or {}
    level = log_config.get("level", "INFO")
    log_file = log_config.get("file", "data/logs/casset.log")

    # Ensure log directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}",
    )
    logger.add(
        log_file,
        level=level,
        rotation=log_config.get("rotation", "1 week"),
        retention=log_config.get("retention", "1 month"),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name} | {message}",
    )


@click.group()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """casset - compile, combine and cache stylesheets and scripts."""
    ctx.ensure_object(dict)

    try:
        cfg = load_config(config)
        if verbose:
            cfg.setdefault("logging", {})
            cfg["logging"] = dict(cfg["logging"] or {}, level="DEBUG")
        ctx.obj["config"] = cfg

        ensure_directories(cfg)
        setup_logging(cfg)

        logger.debug("casset initialized")

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


def _selected_kinds(kind: str):
    if kind == "style":
        return [AssetKind.STYLE]
    if kind == "script":
        return [AssetKind.SCRIPT]
    return [AssetKind.STYLE, AssetKind.SCRIPT]


@cli.command()
@click.option("--container", "-n", "container_name", default=None, help="Container to render (default container if omitted)")
@click.option(
    "--kind", "-k",
    type=click.Choice(["style", "script", "all"], case_sensitive=False),
    default="all",
    help="Asset kind to render",
)
@click.pass_context
def render(ctx, container_name: Optional[str], kind: str):
    """Print the HTML tags for a container's assets."""
    config = ctx.obj["config"]

    try:
        manager = AssetManager.from_config(config)
        container = manager.container(container_name)
        for selected in _selected_kinds(kind.lower()):
            html = container.styles() if selected is AssetKind.STYLE else container.scripts()
            if html:
                click.echo(html)

    except Exception as e:
        logger.exception("Render failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def warm(ctx):
    """Compile and combine every configured container."""
    config = ctx.obj["config"]

    try:
        manager = AssetManager.from_config(config)
        if not manager.containers:
            click.echo("No containers configured")
            return

        click.echo(f"\n{'='*70}")
        click.echo("CACHE WARM-UP")
        click.echo("="*70)
        for name, container in manager.containers.items():
            for selected in _selected_kinds("all"):
                entries = container.entries(selected)
                for entry in entries:
                    click.echo(f"{name:<12} {selected.value:<7} {entry.url}")
        click.echo("="*70)

    except Exception as e:
        logger.exception("Warm-up failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--container", "-n", "container_name", default=None, help="Only show this container")
@click.pass_context
def status(ctx, container_name: Optional[str]):
    """Show the cache state of every declared asset without rebuilding anything."""
    config = ctx.obj["config"]

    try:
        manager = AssetManager.from_config(config)
        names = [container_name] if container_name else list(manager.containers)
        if not names:
            click.echo("No containers configured")
            return

        click.echo(f"{'Container':<12} {'Kind':<7} {'State':<10} Source")
        click.echo("-"*70)
        counts = {}
        for name in names:
            container = manager.container(name)
            for declaration in container.assets:
                if declaration.kind is AssetKind.OTHER:
                    continue
                state = container.cache.status(declaration)
                counts[state] = counts.get(state, 0) + 1
                click.echo(f"{name:<12} {declaration.kind.value:<7} {state:<10} {declaration.source}")

        click.echo("\nSummary:")
        for state, count in sorted(counts.items()):
            click.echo(f"  {state}: {count}")

        if counts.get("missing"):
            sys.exit(2)

    except Exception as e:
        logger.exception("Status check failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
