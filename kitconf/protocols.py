"""Protocol definitions for kitconf.

This module defines the interfaces (protocols) the composer depends on.
Stages and settings providers are looked up through these protocols only,
so variants can be swapped without touching the composer.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .metadata import AdapterSettings
    from .stages import Phase, StageResult


@runtime_checkable
class PreprocessingStage(Protocol):
    """Protocol for source-to-source transformations run before compilation.

    Implementations handle one concern each (markdown expansion, style
    preprocessing). The phase decides where the stage sits in the sequence.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the stage name (e.g., 'mdsvex', 'svelte-preprocess')."""
        ...

    @property
    @abstractmethod
    def phase(self) -> Phase:
        """Return the ordering phase of the stage."""
        ...

    @property
    @abstractmethod
    def extensions(self) -> tuple[str, ...]:
        """Return the file extensions this stage recognizes and contributes."""
        ...

    @property
    @abstractmethod
    def options(self) -> dict[str, Any]:
        """Return the stage options handed to the build tool."""
        ...

    @property
    @abstractmethod
    def expands_extensions(self) -> bool:
        """Return True when the stage adds extensions to the recognized set."""
        ...

    @abstractmethod
    def process(self, source: str, extension: str) -> StageResult:
        """Transform a source document.

        Args:
            source: Raw source text.
            extension: Extension of the source file (e.g., '.md').

        Returns:
            StageResult with the transformed markup and, for expanding
            stages, the extension list they contribute.
        """
        ...


@runtime_checkable
class AdapterSettingsProvider(Protocol):
    """Protocol for supplying the adapter settings of a theme variant.

    The metadata-driven variant reads them from disk on every call, the
    fixed variant returns a literal constant.
    """

    @abstractmethod
    def settings(self) -> AdapterSettings:
        """Return fully resolved adapter settings.

        Raises:
            MissingFileError: If the metadata file does not exist.
            ParseError: If the metadata file is malformed.
        """
        ...
