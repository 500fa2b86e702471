"""
sources.py

Responsibility: Load source units for one invocation.

A source unit is either a file on disk (`origin` is its canonical path) or
the transient standard-input payload (`origin is None`). Order matters: the
first unit is the program entry point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, TextIO

from cargoplay.errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    text: str
    origin: Path | None = None

    @property
    def is_transient(self) -> bool:
        return self.origin is None


def read_sources(paths: Iterable[Path], *, stdin: TextIO | None = None) -> list[SourceUnit]:
    """
    Read every source unit. When `stdin` is given its payload becomes the
    entry unit, ahead of the file-backed ones.
    """
    units: list[SourceUnit] = []
    if stdin is not None:
        logger.debug("Reading entry unit from standard input")
        try:
            units.append(SourceUnit(text=stdin.read()))
        except UnicodeDecodeError as e:
            raise ParseError(f"<stdin>: not valid UTF-8: {e}") from e
    for path in paths:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"{path}: not valid UTF-8: {e}") from e
        units.append(SourceUnit(text=text, origin=path))
    return units


def file_origins(units: Iterable[SourceUnit]) -> list[Path]:
    return [u.origin for u in units if not u.is_transient]
