"""Build configuration composition for kitconf.

This module contains the core logic that turns adapter settings and a set of
preprocessing stages into one immutable BuildConfiguration. Composition is a
pure function of its inputs; any I/O failure happens earlier, in the
settings provider.

Key parts:
- resolve_extensions: base extension followed by stage-contributed ones.
- sequence_stages: markdown-class stages strictly before style stages.
- compose: assemble the final BuildConfiguration.
- PipelineComposer: binds a settings provider and stages for one project.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .metadata import AdapterSettings
from .protocols import AdapterSettingsProvider, PreprocessingStage
from .stages import StageRegistry
from .utils import append_unique

BASE_EXTENSION = ".svelte"


@dataclass(frozen=True)
class AdapterConfig:
    """Resolved adapter parameters handed to the static adapter."""

    pages_dir: str
    assets_dir: str
    fallback_document: str
    precompress: bool
    strict: bool

    @classmethod
    def from_settings(cls, settings: AdapterSettings) -> AdapterConfig:
        return cls(
            pages_dir=settings.pages_dir,
            assets_dir=settings.assets_dir,
            fallback_document=settings.fallback_document,
            precompress=settings.precompress,
            strict=settings.strict,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "pages": self.pages_dir,
            "assets": self.assets_dir,
            "fallback": self.fallback_document,
            "precompress": self.precompress,
            "strict": self.strict,
        }


@dataclass(frozen=True)
class PrerenderPolicy:
    """Prerender crawling rules. Constant for every project."""

    crawl: bool = True
    entries: tuple[str, ...] = ("*",)

    def to_dict(self) -> dict[str, Any]:
        return {"crawl": self.crawl, "entries": list(self.entries)}


PRERENDER_POLICY = PrerenderPolicy()


@dataclass(frozen=True)
class BuildConfiguration:
    """The assembled build configuration.

    Attributes:
        extensions: Recognized extensions, base extension first.
        preprocess: Preprocessing stages in execution order.
        adapter: Resolved adapter parameters.
        prerender: Prerender policy.
    """

    extensions: tuple[str, ...]
    preprocess: tuple[PreprocessingStage, ...]
    adapter: AdapterConfig
    prerender: PrerenderPolicy = field(default=PRERENDER_POLICY)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration in the shape the build tool consumes."""
        return {
            "extensions": list(self.extensions),
            "preprocess": [
                {"name": stage.name, "options": stage.options}
                for stage in self.preprocess
            ],
            "kit": {
                "adapter": self.adapter.to_dict(),
                "prerender": self.prerender.to_dict(),
            },
        }


def resolve_extensions(
    stages: Iterable[PreprocessingStage], base: str = BASE_EXTENSION
) -> tuple[str, ...]:
    """Build the extension allow-list.

    Args:
        stages: Stages in registration order.
        base: The base markup extension, always first.

    Returns:
        Tuple of unique extensions: base first, then each expanding stage's
        extensions in registration order.
    """
    extensions = [base]
    for stage in stages:
        if stage.expands_extensions:
            append_unique(extensions, stage.extensions)
    return tuple(extensions)


def sequence_stages(
    stages: Iterable[PreprocessingStage],
) -> tuple[PreprocessingStage, ...]:
    """Order stages by phase, keeping registration order within a phase."""
    return tuple(StageRegistry(list(stages)).stages)


def compose(
    settings: AdapterSettings,
    stages: Sequence[PreprocessingStage],
    base_extension: str = BASE_EXTENSION,
) -> BuildConfiguration:
    """Assemble the build configuration.

    Args:
        settings: Fully resolved adapter settings.
        stages: Registered preprocessing stages, in registration order.
        base_extension: The base markup extension.

    Returns:
        The immutable BuildConfiguration.
    """
    registered = list(stages)
    return BuildConfiguration(
        extensions=resolve_extensions(registered, base_extension),
        preprocess=sequence_stages(registered),
        adapter=AdapterConfig.from_settings(settings),
        prerender=PRERENDER_POLICY,
    )


class PipelineComposer:
    """Composes the build configuration for one theme variant.

    The settings provider is chosen when the composer is constructed; each
    build() call asks it for fresh settings.

    Attributes:
        provider: Source of the adapter settings.
        registry: Registered preprocessing stages.
        base_extension: The base markup extension.
    """

    def __init__(
        self,
        provider: AdapterSettingsProvider,
        stages: Iterable[PreprocessingStage] | StageRegistry,
        base_extension: str = BASE_EXTENSION,
    ):
        self.provider = provider
        if isinstance(stages, StageRegistry):
            self.registry = stages
        else:
            self.registry = StageRegistry(list(stages))
        self.base_extension = base_extension

    def build(self) -> BuildConfiguration:
        """Resolve the adapter settings and compose the configuration.

        Raises:
            MissingFileError: If the metadata file does not exist.
            ParseError: If the metadata file is malformed.
        """
        settings = self.provider.settings()
        return compose(settings, self.registry.registered, self.base_extension)
