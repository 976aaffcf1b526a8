"""Preprocessing stages for kitconf.

This module contains implementations of the PreprocessingStage protocol.
Each stage handles a single kind of source transformation and declares the
phase it runs in, so the sequence never depends on registration order.

Key classes:
- Phase: Ordering phase (EXPAND runs before TRANSFORM).
- MarkdownStage: Expands markdown documents into component markup (mdsvex).
- StylePreprocessStage: Preprocesses style blocks (svelte-preprocess).
- StageRegistry: Registry returning stages in phase order.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import mistune

from .utils import escape_braces, extract_frontmatter, normalize_extension

if TYPE_CHECKING:
    from .protocols import PreprocessingStage

MARKDOWN_EXTENSIONS = (".svelte.md", ".md", ".svx")
DEFAULT_PRESERVE = ("ld+json",)

# Top-level component blocks kept verbatim by the markdown stage.
_COMPONENT_BLOCK_RE = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1>", re.DOTALL | re.IGNORECASE
)
_FENCE_RE = re.compile(r"^(`{3,}|~{3,}).*?^\1[ \t]*$", re.DOTALL | re.MULTILINE)
_MODULE_SCRIPT_RE = re.compile(
    r"<script\b[^>]*\bcontext=[\"']module[\"'][^>]*>", re.IGNORECASE
)
_STYLE_BLOCK_RE = re.compile(
    r"(<style\b(?P<attrs>[^>]*)>)(?P<body>.*?)(</style>)", re.DOTALL | re.IGNORECASE
)
_SCSS_LANG_RE = re.compile(
    r"\b(?:lang|type)=[\"'](?:text/)?(?:scss|sass)[\"']", re.IGNORECASE
)


class Phase(Enum):
    """Ordering phase of a preprocessing stage."""

    EXPAND = "expand"
    TRANSFORM = "transform"


_PHASE_ORDER = {Phase.EXPAND: 0, Phase.TRANSFORM: 1}


@dataclass(frozen=True)
class StageResult:
    """Output of a preprocessing stage.

    Attributes:
        code: Transformed markup.
        extensions: Extensions contributed by the stage, or None.
    """

    code: str
    extensions: tuple[str, ...] | None = None


class BaseStage(ABC):
    """Base class for preprocessing stages.

    Subclasses declare a name, a phase, the extensions they contribute and
    the options handed to the build tool.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def phase(self) -> Phase: ...

    @property
    def extensions(self) -> tuple[str, ...]:
        return ()

    @property
    @abstractmethod
    def options(self) -> dict[str, Any]: ...

    @property
    def expands_extensions(self) -> bool:
        """True when the stage adds extensions to the recognized set."""
        return bool(self.extensions)

    @abstractmethod
    def process(self, source: str, extension: str) -> StageResult:
        """Transform a source document.

        Args:
            source: Raw source text.
            extension: Extension of the source file.

        Returns:
            StageResult with the transformed markup.
        """
        ...

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.name == other.name and self.options == other.options

    def __hash__(self) -> int:
        return hash((type(self), self.name))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"{type(self).__name__}({self.options!r})"


class _MarkupRenderer(mistune.HTMLRenderer):
    """Markdown renderer with code highlighting and brace escaping.

    Code is escaped so that ``{expr}`` inside a code sample is shown as-is
    instead of being evaluated by the component compiler.
    """

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block with Pygments highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'svelte').

        Returns:
            HTML string with highlighted, brace-escaped code.
        """
        if info:
            try:
                from pygments import highlight
                from pygments.formatters import HtmlFormatter
                from pygments.lexers import get_lexer_by_name
                from pygments.util import ClassNotFound

                lexer = get_lexer_by_name(info.split()[0], stripall=True)
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return escape_braces(highlight(code, lexer, formatter))
            except ClassNotFound:
                pass
        return escape_braces(super().block_code(code, info))

    def codespan(self, text: str) -> str:
        return escape_braces(super().codespan(text))


class MarkdownStage(BaseStage):
    """Expands markdown documents into component markup.

    Recognized documents have their YAML frontmatter exported as
    ``metadata`` from the module script, their top-level ``<script>`` and
    ``<style>`` blocks hoisted verbatim, and the remaining body rendered
    with mistune.
    """

    def __init__(self, extensions: tuple[str, ...] = MARKDOWN_EXTENSIONS):
        self._extensions = tuple(normalize_extension(ext) for ext in extensions)

    @property
    def name(self) -> str:
        return "mdsvex"

    @property
    def phase(self) -> Phase:
        return Phase.EXPAND

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    @property
    def options(self) -> dict[str, Any]:
        return {"extensions": list(self._extensions)}

    def can_process(self, extension: str) -> bool:
        """Check if the extension belongs to this stage."""
        return normalize_extension(extension).lower() in self._extensions

    def process(self, source: str, extension: str) -> StageResult:
        """Expand a markdown document.

        Args:
            source: Markdown source, optionally with frontmatter.
            extension: Extension of the source file.

        Returns:
            StageResult with component markup and this stage's extensions.
            Unrecognized extensions are returned unchanged.
        """
        if not self.can_process(extension):
            return StageResult(source, self._extensions)

        frontmatter, body = extract_frontmatter(source)
        blocks, body = _hoist_component_blocks(body)

        if frontmatter:
            blocks = _export_metadata(blocks, frontmatter)

        markdown = mistune.create_markdown(
            renderer=_MarkupRenderer(), plugins=["strikethrough", "table", "url"]
        )
        html = markdown(body.strip())
        parts = [*blocks, html] if blocks else [html]
        return StageResult("\n".join(parts), self._extensions)


def _hoist_component_blocks(body: str) -> tuple[list[str], str]:
    """Split top-level script/style blocks from the markdown body.

    Blocks inside fenced code are part of the document and stay in place.
    """
    fences = [m.span() for m in _FENCE_RE.finditer(body)]
    blocks: list[str] = []
    kept: list[str] = []
    last = 0
    for match in _COMPONENT_BLOCK_RE.finditer(body):
        start, end = match.span()
        if any(lo <= start < hi for lo, hi in fences):
            continue
        blocks.append(match.group(0))
        kept.append(body[last:start])
        last = end
    kept.append(body[last:])
    return blocks, "".join(kept)


def _export_metadata(blocks: list[str], frontmatter: dict[str, Any]) -> list[str]:
    """Export frontmatter from the module script, creating one if absent."""
    export = f"export const metadata = {json.dumps(frontmatter, default=str)};"
    for i, block in enumerate(blocks):
        match = _MODULE_SCRIPT_RE.match(block)
        if match:
            end = match.end()
            blocks[i] = f"{block[:end]}\n\t{export}{block[end:]}"
            return blocks
    return [f'<script context="module">\n\t{export}\n</script>', *blocks]


class StylePreprocessStage(BaseStage):
    """Preprocesses style blocks in component markup.

    Blocks of a preserved type (e.g. ``<script type="application/ld+json">``)
    are left untouched. When ``scss_prepend`` is set it is prepended to every
    scss/sass style block; otherwise the ``scss`` option is omitted.
    """

    def __init__(
        self,
        preserve: tuple[str, ...] = DEFAULT_PRESERVE,
        scss_prepend: str | None = None,
    ):
        self._preserve = tuple(preserve)
        self._scss_prepend = scss_prepend

    @property
    def name(self) -> str:
        return "svelte-preprocess"

    @property
    def phase(self) -> Phase:
        return Phase.TRANSFORM

    @property
    def preserve(self) -> tuple[str, ...]:
        return self._preserve

    @property
    def scss_prepend(self) -> str | None:
        return self._scss_prepend

    @property
    def options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"preserve": list(self.preserve)}
        if self.scss_prepend is not None:
            options["scss"] = {"prependData": self.scss_prepend}
        return options

    def process(self, source: str, extension: str) -> StageResult:
        """Prepend the style partial to scss blocks, skipping preserved blocks.

        Args:
            source: Component markup.
            extension: Extension of the source file (unused).

        Returns:
            StageResult with the transformed markup.
        """
        masked, saved = self._mask_preserved(source)
        if self.scss_prepend is not None:
            masked = _STYLE_BLOCK_RE.sub(self._prepend, masked)
        for i, block in enumerate(saved):
            masked = masked.replace(_placeholder(i), block)
        return StageResult(masked)

    def _mask_preserved(self, source: str) -> tuple[str, list[str]]:
        saved: list[str] = []

        def stash(match: re.Match) -> str:
            saved.append(match.group(0))
            return _placeholder(len(saved) - 1)

        for kind in self.preserve:
            pattern = re.compile(
                r"<script\b[^>]*\btype=[\"']application/"
                + re.escape(kind)
                + r"[\"'][^>]*>.*?</script>",
                re.DOTALL | re.IGNORECASE,
            )
            source = pattern.sub(stash, source)
        return source, saved

    def _prepend(self, match: re.Match) -> str:
        if not _SCSS_LANG_RE.search(match.group("attrs")):
            return match.group(0)
        opening, body, closing = match.group(1), match.group("body"), match.group(4)
        return f"{opening}\n{self.scss_prepend}{body}{closing}"


def _placeholder(index: int) -> str:
    return f"\x00kitconf-preserved-{index}\x00"


class StageRegistry:
    """Registry of preprocessing stages.

    Stages are returned sorted by phase; stages sharing a phase keep their
    registration order.
    """

    def __init__(self, stages: list[PreprocessingStage] | None = None):
        self._stages: list[PreprocessingStage] = []
        for stage in stages or []:
            self.register(stage)

    def register(self, stage: PreprocessingStage) -> None:
        """Register a new stage.

        Args:
            stage: Preprocessing stage to register.
        """
        self._stages.append(stage)

    @property
    def registered(self) -> list[PreprocessingStage]:
        """Stages in registration order."""
        return list(self._stages)

    @property
    def stages(self) -> list[PreprocessingStage]:
        """Stages in execution order."""
        return sorted(self._stages, key=lambda s: _PHASE_ORDER[s.phase])

    def process(self, source: str, extension: str) -> StageResult:
        """Run a document through every stage in execution order.

        Args:
            source: Raw source text.
            extension: Extension of the source file.

        Returns:
            StageResult with the final markup and the contributed extensions.
        """
        code = source
        extensions: list[str] = []
        for stage in self.stages:
            result = stage.process(code, extension)
            code = result.code
            for ext in result.extensions or ():
                if ext not in extensions:
                    extensions.append(ext)
        return StageResult(code, tuple(extensions) or None)

    def __len__(self) -> int:
        return len(self._stages)
