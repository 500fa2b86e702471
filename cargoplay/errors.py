"""
errors.py

Base error for every fatal pipeline failure; `cli.main` maps it to exit code 1.

`ParseError` is shared by header parsing (`manifest.py`) and source parsing
(`infer.py`). Other failures get a subclass next to the code that raises them.
"""

from __future__ import annotations


class CargoPlayError(RuntimeError):
    pass


class ParseError(CargoPlayError):
    """Malformed dependency header fragment or unparseable Rust source."""
