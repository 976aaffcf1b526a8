"""Utility functions for kitconf.

String helpers shared by the preprocessing stages and the composer.

Key functions:
    extract_frontmatter: Split YAML frontmatter from a document.
    escape_braces: Escape curly braces so the component compiler ignores them.
    append_unique: Extend a list while skipping values already present.
    normalize_extension: Ensure an extension starts with a dot.
    match_extension: Pick the longest known extension of a filename.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


def escape_braces(text: str) -> str:
    """Escape curly braces as HTML entities.

    Examples:
        >>> escape_braces("{count}")
        '&#123;count&#125;'
    """
    return text.replace("{", "&#123;").replace("}", "&#125;")


def append_unique(target: list[str], values: Iterable[str]) -> list[str]:
    """Append values to target in order, skipping ones already present.

    Args:
        target: List to extend in place.
        values: Values to append.

    Returns:
        The same list, for chaining.
    """
    for value in values:
        if value not in target:
            target.append(value)
    return target


def normalize_extension(ext: str) -> str:
    """Return the extension with a single leading dot.

    Examples:
        >>> normalize_extension("svx")
        '.svx'
        >>> normalize_extension(".md")
        '.md'
    """
    ext = ext.strip()
    return ext if ext.startswith(".") else f".{ext}"


def match_extension(filename: str, extensions: Iterable[str]) -> str:
    """Return the longest known extension filename ends with.

    Falls back to the last suffix when no known extension matches.

    Examples:
        >>> match_extension("post.svelte.md", [".svelte", ".svelte.md", ".md"])
        '.svelte.md'
        >>> match_extension("notes.txt", [".svelte"])
        '.txt'
    """
    lowered = filename.lower()
    matches = [ext for ext in extensions if lowered.endswith(ext.lower())]
    if matches:
        return max(matches, key=len)
    dot = filename.rfind(".")
    return filename[dot:] if dot > 0 else ""
