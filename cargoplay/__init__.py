"""
cargoplay package

This package implements cargo-play: run loose Rust source files as a Cargo project.

Key responsibilities are split across modules:
- `config.py`: resolved options + optional YAML defaults file
- `sources.py`: source units (files or stdin)
- `headers.py`: `//#` dependency header extraction
- `infer.py`: syntactic dependency inference over a tree-sitter token tree
- `manifest.py`: Cargo.toml synthesis (explicit + inferred dependencies)
- `workspace.py`: deterministic workspace identity and lifecycle
- `materialize.py`: copy sources into the workspace `src/` tree
- `dispatch.py`: cached binary / export / `cargo <mode>` invocation
- `cli.py`: CLI entrypoint and orchestration
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
