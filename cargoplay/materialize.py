"""
materialize.py

Responsibility: Write every source unit into the workspace `src/` tree.

Rules:
- The entry unit (first unit) becomes `src/main.rs`.
- Every other file-backed unit keeps its path relative to the entry unit's
  directory (or the current directory when the entry came from stdin), so
  `mod foo;` / `#[path = "..."]` / `include!` relationships still resolve.
- All destinations are computed before anything is written.
- File-backed units are copied byte-for-byte; the stdin unit is written as text.

This module intentionally does NOT know about Cargo.toml or cargo itself.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from cargoplay.errors import CargoPlayError
from cargoplay.sources import SourceUnit

logger = logging.getLogger(__name__)

ENTRY_FILENAME = "main.rs"


class DiffPathError(CargoPlayError):
    pass


@dataclass(frozen=True)
class MaterializeResult:
    entry: Path
    copied_files: int


def _relative_to(path: Path, base: Path) -> Path:
    try:
        return Path(os.path.relpath(path, base))
    except ValueError as e:
        # Windows: paths on different drives have no relative form.
        raise DiffPathError(f"Unable to compute relative path of {path} from {base}") from e


def _plan(units: Sequence[SourceUnit], src_dir: Path, cwd: Path) -> list[tuple[SourceUnit, Path]]:
    entry = units[0]
    base = cwd if entry.is_transient else entry.origin.parent

    plan = [(entry, src_dir / ENTRY_FILENAME)]
    for unit in units[1:]:
        if unit.is_transient:
            continue
        plan.append((unit, src_dir / _relative_to(unit.origin, base)))
    return plan


def copy_sources(
    units: Sequence[SourceUnit],
    src_dir: str | Path,
    *,
    cwd: str | Path | None = None,
) -> MaterializeResult:
    """
    Materialize `units` under `src_dir`; the first unit is the entry point.

    - Creates destination directories as needed.
    - Raises DiffPathError before writing anything if a unit has no relative path.
    """
    if not units:
        raise CargoPlayError("No source units to materialize")

    dst_dir = Path(src_dir)
    plan = _plan(units, dst_dir, Path(cwd) if cwd is not None else Path.cwd())

    dst_dir.mkdir(parents=True, exist_ok=True)
    copied = 0
    for unit, dst_path in plan:
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        if unit.is_transient:
            logger.debug("Writing <stdin> => %s", dst_path)
            dst_path.write_text(unit.text, encoding="utf-8")
        else:
            logger.debug("Copying %s => %s", unit.origin, dst_path)
            shutil.copy2(unit.origin, dst_path)
        copied += 1

    return MaterializeResult(entry=plan[0][1], copied_files=copied)
