"""
workspace.py

Responsibility: Derive the deterministic workspace identity for a set of
source files and manage the workspace directory's lifecycle.

Identity: SHA-1 over the sorted canonical source paths, URL-safe base64
without padding. File contents are not hashed, so editing a source keeps the
same workspace (and the same cached binary, see `cached_binary`).

Lifecycle:
- `create` is idempotent; an existing directory is reused.
- `clean` is best-effort; a failed removal is logged and ignored.
- Nothing is ever removed without an explicit clean request.
"""

from __future__ import annotations

import base64
import hashlib
import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from cargoplay.manifest import package_name

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "cargo-play"


def src_hash(paths: Iterable[str | Path]) -> str:
    """Workspace identity for a set of source paths; input order does not matter."""
    canonical = sorted(str(Path(p).resolve()) for p in paths)
    digest = hashlib.sha1()
    for path in canonical:
        digest.update(path.encode("utf-8", errors="surrogateescape"))
    return base64.urlsafe_b64encode(digest.digest()).decode("ascii").rstrip("=")


@dataclass(frozen=True)
class Workspace:
    root: Path
    identity: str

    @classmethod
    def for_sources(cls, paths: Iterable[str | Path], *, workspace_root: str | Path) -> "Workspace":
        return cls(root=Path(workspace_root), identity=src_hash(paths))

    @property
    def path(self) -> Path:
        return self.root / f"{WORKSPACE_PREFIX}.{self.identity}"

    @property
    def package_name(self) -> str:
        return package_name(self.identity)

    @property
    def manifest_path(self) -> Path:
        return self.path / "Cargo.toml"

    @property
    def src_dir(self) -> Path:
        return self.path / "src"

    def exists(self) -> bool:
        return self.path.is_dir()

    def create(self) -> Path:
        logger.debug("Creating temporary building folder at: %s", self.path)
        try:
            self.path.mkdir(parents=True)
        except FileExistsError:
            logger.debug("Temporary directory already exists.")
        return self.path

    def clean(self) -> None:
        logger.debug("Cleaning temporary folder at: %s", self.path)
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove %s: %s", self.path, e)

    def binary_path(self, *, release: bool) -> Path:
        name = self.package_name + (".exe" if sys.platform == "win32" else "")
        return self.path / "target" / ("release" if release else "debug") / name

    def cached_binary(self, *, release: bool) -> Path | None:
        """Previously built binary for this mode, if the workspace has one."""
        if not self.exists():
            return None
        binary = self.binary_path(release=release)
        return binary if binary.is_file() else None
