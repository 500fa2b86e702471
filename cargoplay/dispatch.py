"""
dispatch.py

Responsibility: Decide what to do with a materialized workspace and do it.

Decision, evaluated once per invocation:
1) `--cached` and a binary from a previous build exists: run it directly
2) `--save DEST`: copy the workspace to DEST (no build)
3) otherwise: `cargo <mode> --manifest-path ...` with the configured flags

The child's stdio is inherited. Its exit code is returned as-is; a child
killed by a signal maps to `SIGNALED_EXIT_CODE`.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path

from cargoplay.config import Options
from cargoplay.errors import CargoPlayError
from cargoplay.workspace import Workspace

logger = logging.getLogger(__name__)

SIGNALED_EXIT_CODE = -1

# cargo subcommands that accept `-- <args>` for the built program
_ARGS_MODES = frozenset({"run", "test", "bench"})


class PathExistsError(CargoPlayError):
    pass


def exit_code(returncode: int) -> int:
    # subprocess reports signal termination as -signum
    return SIGNALED_EXIT_CODE if returncode < 0 else returncode


def _run(cmd: list[str], *, cwd: Path | None = None) -> int:
    logger.debug("Running: %s", shlex.join(cmd))
    completed = subprocess.run(cmd, cwd=str(cwd) if cwd is not None else None)
    return exit_code(completed.returncode)


def cargo_command(options: Options, manifest_path: Path) -> list[str]:
    cmd = ["cargo"]
    if options.toolchain:
        cmd.append(f"+{options.toolchain}")

    cmd += [options.mode, "--manifest-path", str(manifest_path)]

    if options.cargo_option:
        cmd += shlex.split(options.cargo_option)
    if options.release:
        cmd.append("--release")
    if options.quiet:
        cmd.append("--quiet")
    cmd += ["-v"] * options.verbose

    if options.args or options.mode in _ARGS_MODES:
        cmd.append("--")
        cmd += list(options.args)
    return cmd


def run_cargo(options: Options, workspace: Workspace) -> int:
    return _run(cargo_command(options, workspace.manifest_path))


def run_binary(binary: Path, args: tuple[str, ...] | list[str]) -> int:
    logger.debug("Reusing cached binary %s", binary)
    return _run([str(binary), *args])


def check_destination(destination: str | Path) -> Path:
    dest = Path(destination)
    if dest.is_dir():
        raise PathExistsError(f"Path already exists at {dest}")
    return dest


def copy_project(source: str | Path, destination: str | Path) -> int:
    """Copy the materialized workspace to `destination`, which must not exist as a directory."""
    dest = check_destination(destination)
    shutil.copytree(source, dest)
    print(f"Generated project at {dest.resolve()}")
    return 0


def dispatch(options: Options, workspace: Workspace) -> int:
    if options.cached:
        binary = workspace.cached_binary(release=options.release)
        if binary is not None:
            return run_binary(binary, options.args)
        logger.debug("No cached binary at %s", workspace.binary_path(release=options.release))

    if options.save is not None:
        return copy_project(workspace.path, options.save)

    return run_cargo(options, workspace)
