"""Theme variants for kitconf.

A theme variant is fixed per project: it decides whether style blocks get the
project's Sass variables partial prepended, and whether the adapter settings
come from the metadata file or from a literal constant.

Key functions:
- get_variant: Look up the variant of a CSS library.
- create_default_stages: Stages registered for a variant.
- make_composer: PipelineComposer for a project directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .composer import PipelineComposer
from .metadata import (
    DEFAULT_METADATA_FILE,
    FIXED_ADAPTER_SETTINGS,
    LiteralSettingsProvider,
    MetadataSettingsProvider,
)
from .protocols import AdapterSettingsProvider
from .stages import BaseStage, MarkdownStage, StylePreprocessStage

SCSS_VARIABLES_PREPEND = '@use "src/_variables.scss" as *;'


class UnknownThemeError(Exception):
    """Error raised for a CSS library without a theme variant.

    Attributes:
        css_lib: The requested CSS library.
    """

    def __init__(self, css_lib: str):
        self.css_lib = css_lib
        valid = ", ".join(sorted(THEME_VARIANTS))
        super().__init__(f"Unknown CSS lib '{css_lib}'. Valid: {valid}")


@dataclass(frozen=True)
class ThemeVariant:
    """Per-CSS-library theme settings.

    Attributes:
        css_lib: CSS library name.
        scss_prepend: Partial prepended to scss style blocks, or None.
    """

    css_lib: str
    scss_prepend: str | None = None


THEME_VARIANTS = {
    "bootstrap": ThemeVariant("bootstrap", SCSS_VARIABLES_PREPEND),
    "bulma": ThemeVariant("bulma", SCSS_VARIABLES_PREPEND),
    "scss": ThemeVariant("scss", SCSS_VARIABLES_PREPEND),
    "tailwindcss": ThemeVariant("tailwindcss"),
    "unocss": ThemeVariant("unocss"),
    "vanillacss": ThemeVariant("vanillacss"),
}


def get_variant(css_lib: str) -> ThemeVariant:
    """Return the theme variant of a CSS library.

    Raises:
        UnknownThemeError: If no variant exists for the library.
    """
    try:
        return THEME_VARIANTS[css_lib.lower()]
    except KeyError:
        raise UnknownThemeError(css_lib) from None


def create_default_stages(variant: ThemeVariant) -> list[BaseStage]:
    """Create the stages registered for a variant.

    Args:
        variant: Theme variant.

    Returns:
        Markdown expansion followed by style preprocessing.
    """
    return [
        MarkdownStage(),
        StylePreprocessStage(scss_prepend=variant.scss_prepend),
    ]


def make_composer(
    project_root: Path,
    css_lib: str,
    fixed: bool = False,
    metadata_file: str = DEFAULT_METADATA_FILE,
) -> PipelineComposer:
    """Create the composer of a project.

    Args:
        project_root: Directory holding the project's build config.
        css_lib: CSS library of the theme.
        fixed: Use the literal adapter settings instead of the metadata file.
        metadata_file: Metadata file name, relative to project_root.

    Returns:
        Configured PipelineComposer.
    """
    variant = get_variant(css_lib)
    provider: AdapterSettingsProvider
    if fixed:
        provider = LiteralSettingsProvider(FIXED_ADAPTER_SETTINGS)
    else:
        provider = MetadataSettingsProvider(project_root, metadata_file)
    return PipelineComposer(provider, create_default_stages(variant))
