"""
cli.py

Responsibility: CLI entrypoint for cargo-play.

High-level flow (one invocation):
1) Resolve options (argv > YAML defaults file > built-in defaults)
2) Read source units, extract `//#` headers, optionally infer dependencies
3) Build the manifest
4) Clean (optional) and create the workspace, write Cargo.toml, copy sources
5) Dispatch: cached binary, export, or `cargo <mode>`

This module orchestrates; each step lives in its own module:
- Headers: `headers.py`
- Inference: `infer.py`
- Manifest: `manifest.py`
- Workspace: `workspace.py`
- Materialization: `materialize.py`
- Dispatch: `dispatch.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from cargoplay.config import DEFAULT_EDITION, FileDefaults, Options, config_path_from_env, load_defaults
from cargoplay.dispatch import check_destination, dispatch
from cargoplay.errors import CargoPlayError
from cargoplay.headers import extract_headers
from cargoplay.infer import analyze_sources
from cargoplay.manifest import EDITIONS, build_manifest, write_manifest
from cargoplay.materialize import copy_sources
from cargoplay.sources import file_origins, read_sources
from cargoplay.workspace import Workspace

logger = logging.getLogger(__name__)


def play(options: Options, *, stdin: TextIO | None = None, cwd: Path | None = None) -> int:
    """
    Run the whole pipeline for resolved `options` and return the exit code.

    `stdin` supplies the entry unit when `options.stdin` is set.
    """
    if options.save is not None:
        check_destination(options.save)

    if options.stdin:
        units = read_sources(options.src, stdin=stdin if stdin is not None else sys.stdin)
    else:
        units = read_sources(options.src)
    if not units:
        raise CargoPlayError("No source files given")

    headers = extract_headers(u.text for u in units)
    inferred = (
        analyze_sources(
            (u.text for u in units),
            origins=[str(u.origin) if u.origin is not None else "<stdin>" for u in units],
        )
        if options.infer
        else set()
    )

    workspace = Workspace.for_sources(file_origins(units), workspace_root=options.resolved_workspace_root())
    manifest = build_manifest(
        identity=workspace.identity,
        headers=headers,
        inferred=inferred,
        edition=options.edition,
    )

    if options.clean:
        workspace.clean()
    workspace.create()

    write_manifest(workspace.path, manifest)
    copy_sources(units, workspace.src_dir, cwd=cwd)

    return dispatch(options, workspace)


def _canonical_file(value: str) -> Path:
    path = Path(value)
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"input file does not exist: {value}")
    return path.resolve()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cargo-play", description="Single file cargo runner.")

    p.add_argument("src", nargs="*", type=_canonical_file, help="Rust source files; the first is the entry point")
    p.add_argument("--stdin", action="store_true", help="Read the entry point from standard input")
    p.add_argument("--config", default=None, help="YAML defaults file (or set env CARGO_PLAY_CONFIG)")

    p.add_argument("-e", "--edition", default=None, choices=EDITIONS, help=f"Rust edition (default: {DEFAULT_EDITION})")
    p.add_argument("-t", "--toolchain", default=None, help="Toolchain override, passed as cargo +TOOLCHAIN")
    p.add_argument("--cargo-option", default=None, help="Extra options appended to the cargo command")
    p.add_argument("-i", "--infer", action="store_true", default=None, help="Infer dependencies from `use` statements")

    p.add_argument("-c", "--clean", action="store_true", help="Remove the cached workspace before building")
    p.add_argument("--cached", action="store_true", default=None, help="Run the previously built binary if present")
    p.add_argument("--release", action="store_true", default=None, help="Build in release mode")
    p.add_argument("-q", "--quiet", action="store_true", default=None, help="Pass --quiet to cargo")
    p.add_argument("-v", "--verbose", action="count", default=None, help="Pass -v to cargo (repeatable)")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--test", dest="mode", action="store_const", const="test", help="Run cargo test")
    mode.add_argument("--check", dest="mode", action="store_const", const="check", help="Run cargo check")
    mode.add_argument("--mode", dest="mode", default=None, help="Run an arbitrary cargo subcommand")

    p.add_argument("-s", "--save", default=None, help="Export the generated project to PATH instead of building")

    p.add_argument("-d", "--debug", action="store_true", help=argparse.SUPPRESS)
    p.add_argument("--workspace-root", default=None, help=argparse.SUPPRESS)
    return p


def _split_program_args(argv: list[str]) -> tuple[list[str], list[str]]:
    if "--" in argv:
        i = argv.index("--")
        return argv[:i], argv[i + 1 :]
    return argv, []


def resolve_options(args: argparse.Namespace, program_args: list[str], defaults: FileDefaults) -> Options:
    def pick(name: str, fallback):
        value = getattr(args, name)
        return value if value is not None else defaults.get(name, fallback)

    workspace_root = pick("workspace_root", None)
    return Options(
        src=tuple(args.src),
        stdin=bool(args.stdin),
        edition=str(pick("edition", DEFAULT_EDITION)),
        toolchain=pick("toolchain", None),
        cargo_option=pick("cargo_option", None),
        infer=bool(pick("infer", False)),
        clean=bool(args.clean),
        cached=bool(pick("cached", False)),
        release=bool(pick("release", False)),
        quiet=bool(pick("quiet", False)),
        verbose=int(pick("verbose", 0)),
        mode=args.mode or "run",
        save=Path(args.save) if args.save else None,
        args=tuple(program_args),
        workspace_root=Path(workspace_root) if workspace_root else None,
    )


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # `cargo play ...` invokes us as `cargo-play play ...`
    if argv and argv[0] == "play":
        argv = argv[1:]

    own_args, program_args = _split_program_args(argv)
    parser = _build_parser()
    args = parser.parse_args(own_args)
    if not args.src and not args.stdin:
        parser.error("at least one source file is required (or --stdin)")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        defaults = load_defaults(config_path_from_env(args.config))
        options = resolve_options(args, program_args, defaults)
        return play(options)
    except (CargoPlayError, OSError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
