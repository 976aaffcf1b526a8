"""Project metadata loading for kitconf.

This module reads the project metadata file (sveltin.json) and projects its
adapter sub-record into AdapterSettings. The metadata file is never written
and never cached: each call re-reads it, so edits apply to the next build.

Key parts:
- AdapterSettings: resolved adapter settings with defaults applied.
- load_metadata / project_adapter_settings / load_adapter_settings.
- MetadataSettingsProvider / LiteralSettingsProvider: the two theme variants.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_METADATA_FILE = "sveltin.json"

_REQUIRED_FIELDS = (
    ("pages", "pages_dir"),
    ("assets", "assets_dir"),
    ("fallback", "fallback_document"),
)


class MetadataError(Exception):
    """Error while loading the project metadata file.

    Attributes:
        path: Path to the metadata file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class MissingFileError(MetadataError):
    """The metadata file does not exist."""

    def __init__(self, path: Path):
        super().__init__(path, "metadata file not found")


class ParseError(MetadataError):
    """The metadata file is not valid JSON or lacks the adapter record."""


class UnreadableFileError(MetadataError):
    """The metadata path exists but cannot be read as a file."""


@dataclass(frozen=True)
class AdapterSettings:
    """Adapter settings for the static export.

    Attributes:
        pages_dir: Directory the prerendered pages are written to.
        assets_dir: Directory the static assets are written to.
        fallback_document: Document served for unmatched routes.
        precompress: Whether gzip/brotli copies are emitted.
        strict: Whether the adapter fails on unprerenderable routes.
    """

    pages_dir: str
    assets_dir: str
    fallback_document: str
    precompress: bool = False
    strict: bool = True


# Hard-coded settings of the fixed theme variant; strict keeps its default.
FIXED_ADAPTER_SETTINGS = AdapterSettings(
    pages_dir="build",
    assets_dir="build",
    fallback_document="200.html",
    precompress=True,
)


def load_metadata(path: Path) -> dict[str, Any]:
    """Read and parse the metadata file.

    Args:
        path: Path to the metadata file.

    Returns:
        The parsed JSON object.

    Raises:
        MissingFileError: If the file does not exist.
        ParseError: If the content is not UTF-8 or not a JSON object.
        UnreadableFileError: If the path is a directory or cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        raise MissingFileError(path) from None
    except UnicodeDecodeError as exc:
        raise ParseError(path, f"not valid UTF-8: {exc.reason}") from exc
    except OSError as exc:
        raise UnreadableFileError(path, exc.strerror or str(exc)) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(
            path, f"invalid JSON on line {exc.lineno}: {exc.msg}"
        ) from exc
    if not isinstance(data, dict):
        raise ParseError(path, "expected a JSON object at the top level")
    return data


def project_adapter_settings(
    metadata: dict[str, Any],
    path: Path,
    honor_explicit_false: bool = False,
) -> AdapterSettings:
    """Project the sveltekit.adapter record into AdapterSettings.

    ``precompress`` defaults to False and ``strict`` to True whenever the
    stored value is falsy, so an explicit ``"strict": false`` resolves to
    True. Pass ``honor_explicit_false=True`` to keep an explicit false.

    Args:
        metadata: Parsed metadata object.
        path: Path of the metadata file, used in error messages.
        honor_explicit_false: Respect an explicit ``strict: false``.

    Returns:
        Fully resolved AdapterSettings.

    Raises:
        ParseError: If the adapter record or a required field is missing.
    """
    sveltekit = metadata.get("sveltekit")
    if not isinstance(sveltekit, dict):
        raise ParseError(path, "missing 'sveltekit' record")
    adapter = sveltekit.get("adapter")
    if not isinstance(adapter, dict):
        raise ParseError(path, "missing 'sveltekit.adapter' record")

    fields: dict[str, Any] = {}
    for key, attr in _REQUIRED_FIELDS:
        value = adapter.get(key)
        if not isinstance(value, str):
            raise ParseError(path, f"'sveltekit.adapter.{key}' must be a string")
        fields[attr] = value

    strict = adapter.get("strict")
    if honor_explicit_false and strict is False:
        fields["strict"] = False
    else:
        fields["strict"] = bool(strict or True)
    fields["precompress"] = bool(adapter.get("precompress") or False)
    return AdapterSettings(**fields)


def load_adapter_settings(
    path: Path, honor_explicit_false: bool = False
) -> AdapterSettings:
    """Load the metadata file and return its adapter settings.

    Args:
        path: Path to the metadata file.
        honor_explicit_false: Respect an explicit ``strict: false``.

    Returns:
        Fully resolved AdapterSettings.
    """
    metadata = load_metadata(path)
    return project_adapter_settings(metadata, path, honor_explicit_false)


class MetadataSettingsProvider:
    """Reads adapter settings from the project metadata file.

    The file name is resolved against ``base_dir`` (the directory holding the
    project's build config), never the process working directory.

    Attributes:
        base_dir: Directory the metadata file lives in.
        metadata_path: Absolute path of the metadata file.
    """

    def __init__(
        self,
        base_dir: Path,
        filename: str = DEFAULT_METADATA_FILE,
        honor_explicit_false: bool = False,
    ):
        self.base_dir = Path(base_dir).resolve()
        self.metadata_path = self.base_dir / filename
        self.honor_explicit_false = honor_explicit_false

    def settings(self) -> AdapterSettings:
        """Read the metadata file and return its adapter settings."""
        return load_adapter_settings(self.metadata_path, self.honor_explicit_false)


class LiteralSettingsProvider:
    """Returns a fixed AdapterSettings without reading any file."""

    def __init__(self, settings: AdapterSettings = FIXED_ADAPTER_SETTINGS):
        self._settings = settings

    def settings(self) -> AdapterSettings:
        return self._settings
