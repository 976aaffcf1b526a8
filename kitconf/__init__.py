"""Kitconf build-configuration assembler.

This package turns declarative project settings into the single, ordered build
configuration a SvelteKit static site is compiled with. It reads the adapter
settings from the project metadata file, orders the preprocessing stages and
fills in the fixed prerender policy.

The main entry point is the CLI module, which provides commands for showing the
composed configuration, emitting svelte.config.js and scaffolding the metadata file.

Architecture:
- metadata: loads sveltin.json and projects the adapter settings.
- stages: preprocessing stages (markdown expansion, style preprocessing).
- composer: pure composition of the final BuildConfiguration.
- themes: per-CSS-library variants selected once per project.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
