"""Command-line interface for kitconf.

This module defines the CLI commands using Click framework.
All commands run against the project in the current working directory.

Commands:
- show: Print the composed build configuration as JSON.
- emit: Write svelte.config.js for the project.
- preprocess: Run a source document through the preprocessing stages.
- init: Create a starter sveltin.json and kitconf.yaml.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .composer import resolve_extensions
from .config import CONFIG_FILE, load_config
from .emit import UnknownStageError, write_svelte_config
from .metadata import MetadataError
from .stages import StageRegistry
from .themes import (
    THEME_VARIANTS,
    UnknownThemeError,
    create_default_stages,
    get_variant,
    make_composer,
)
from .utils import match_extension

STARTER_ADAPTER = {"pages": "build", "assets": "build", "fallback": "200.html"}

_css_option = click.option(
    "--css",
    "css_lib",
    type=click.Choice(sorted(THEME_VARIANTS), case_sensitive=False),
    required=False,
    help="CSS lib of the theme (overrides kitconf.yaml)",
)
_fixed_option = click.option(
    "--fixed/--from-metadata",
    "fixed",
    default=None,
    help="Use the built-in adapter settings instead of the metadata file",
)


@click.group()
@click.version_option(version=__version__, prog_name="kitconf")
def cli():
    """Build-configuration assembler for SvelteKit static sites."""


@cli.command()
@_css_option
@_fixed_option
def show(css_lib: str | None, fixed: bool | None):
    """Print the composed build configuration as JSON."""
    config = _compose(Path.cwd(), css_lib, fixed)
    click.echo(json.dumps(config.to_dict(), indent=2))


@cli.command()
@_css_option
@_fixed_option
@click.option(
    "--output",
    type=click.Path(path_type=Path),
    required=False,
    help="Output file (overrides kitconf.yaml output)",
)
def emit(css_lib: str | None, fixed: bool | None, output: Path | None):
    """Write svelte.config.js for the project."""
    project_root = Path.cwd()
    config = _compose(project_root, css_lib, fixed)
    settings = load_config(project_root)
    target = output or project_root / settings["output"]
    try:
        written = write_svelte_config(config, target)
    except UnknownStageError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Wrote {written}")


@cli.command()
@_css_option
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def preprocess(css_lib: str | None, source: Path):
    """Run a source document through the preprocessing stages."""
    settings = load_config(Path.cwd())
    try:
        variant = get_variant(css_lib or settings["css_lib"])
    except UnknownThemeError as exc:
        raise click.ClickException(str(exc)) from None
    registry = StageRegistry(create_default_stages(variant))
    extension = match_extension(source.name, resolve_extensions(registry.registered))
    result = registry.process(source.read_text(encoding="utf-8"), extension)
    click.echo(result.code)


@cli.command()
@_css_option
def init(css_lib: str | None):
    """Create a starter sveltin.json and kitconf.yaml."""
    project_root = Path.cwd()
    settings = load_config(project_root)
    metadata_path = project_root / settings["metadata_file"]
    if metadata_path.exists():
        raise click.ClickException(
            f"Refusing to overwrite existing metadata file: {metadata_path}"
        )

    if css_lib is None:
        css_lib = questionary.select(
            "Select CSS lib:",
            choices=sorted(THEME_VARIANTS),
            default=settings["css_lib"],
            style=_questionary_style(),
        ).ask()
        if css_lib is None:
            raise click.Abort()

    metadata = {
        "theme": {"name": project_root.name, "style": css_lib},
        "sveltekit": {"adapter": dict(STARTER_ADAPTER)},
    }
    metadata_path.write_text(json.dumps(metadata, indent=2) + "\n", encoding="utf-8")

    config_path = project_root / CONFIG_FILE
    if not config_path.exists():
        payload = {"css_lib": css_lib, "metadata_file": settings["metadata_file"]}
        config_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")

    click.echo(f"Created {metadata_path.relative_to(project_root)}")


def _compose(project_root: Path, css_lib: str | None, fixed: bool | None):
    """Compose the configuration, presenting load failures and exiting."""
    settings = load_config(project_root)
    try:
        composer = make_composer(
            project_root,
            css_lib or settings["css_lib"],
            fixed=settings["fixed_adapter"] if fixed is None else fixed,
            metadata_file=settings["metadata_file"],
        )
        return composer.build()
    except UnknownThemeError as exc:
        raise click.ClickException(str(exc)) from None
    except MetadataError as exc:
        click.echo(click.style("Configuration failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
