"""svelte.config.js emission for kitconf.

This module renders a BuildConfiguration into the JavaScript module the site
building tool loads. Values are written as JSON literals, which are valid
JavaScript expressions.

Key functions:
- render_svelte_config: Render the module source.
- write_svelte_config: Render and write it next to the project.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader

from .composer import BuildConfiguration

ADAPTER_IMPORT = "import adapter from '@sveltejs/adapter-static';"

# Stage name -> (import statement, factory expression)
STAGE_IMPORTS = {
    "mdsvex": ("import { mdsvex } from 'mdsvex';", "mdsvex"),
    "svelte-preprocess": ("import preprocess from 'svelte-preprocess';", "preprocess"),
}


class UnknownStageError(Exception):
    """Error raised when a stage has no known JavaScript factory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No JavaScript factory known for stage '{name}'")


def _js(value: Any) -> str:
    return json.dumps(value)


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("kitconf", "templates"),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
    )
    env.filters["js"] = _js
    return env


def render_svelte_config(config: BuildConfiguration) -> str:
    """Render the svelte.config.js source for a configuration.

    Args:
        config: Composed build configuration.

    Returns:
        JavaScript module source.

    Raises:
        UnknownStageError: If a stage has no JavaScript factory.
    """
    imports = [ADAPTER_IMPORT]
    calls = []
    for stage in config.preprocess:
        if stage.name not in STAGE_IMPORTS:
            raise UnknownStageError(stage.name)
        statement, factory = STAGE_IMPORTS[stage.name]
        if statement not in imports:
            imports.append(statement)
        calls.append(f"{factory}({_js(stage.options)})")

    template = _environment().get_template("svelte.config.js.jinja")
    return template.render(config=config, imports=imports, calls=calls)


def write_svelte_config(config: BuildConfiguration, target: Path) -> Path:
    """Render a configuration and write it to target.

    Args:
        config: Composed build configuration.
        target: Output file path.

    Returns:
        The path written.
    """
    source = render_svelte_config(config)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(source, encoding="utf-8")
    return target
