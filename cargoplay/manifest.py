"""
manifest.py

Responsibility: Build the Cargo.toml for a workspace from explicit header
fragments and inferred crate names, and render it deterministically.

Rules:
- Every header fragment is parsed on its own and must hold exactly one
  TOML entry (`name = "req"` or `name = { ... }`).
- Explicit entries win over inferred names; names are compared with `-` and
  `_` treated as the same character.
- Inferred names are added in sorted order with requirement `"*"`.
- Scalar requirements are written before inline-table requirements.

This module does not touch the filesystem except for `write_manifest`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Mapping

import tomlkit
from jinja2 import Environment, StrictUndefined
from tomlkit.exceptions import TOMLKitError

from cargoplay.errors import CargoPlayError, ParseError

logger = logging.getLogger(__name__)

EDITIONS = ("2015", "2018", "2021", "2024")
PACKAGE_VERSION = "0.1.0"
PACKAGE_PREFIX = "play-"
ANY_VERSION = "*"
MANIFEST_FILENAME = "Cargo.toml"


class InvalidEditionError(CargoPlayError):
    pass


@dataclass(frozen=True)
class Package:
    name: str
    version: str = PACKAGE_VERSION
    edition: str = "2021"


@dataclass(frozen=True)
class Manifest:
    """Serializable project descriptor; `dependencies` is already merged."""

    package: Package
    dependencies: dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        return render_manifest(self)


def normalize_name(name: str) -> str:
    return name.replace("-", "_")


def package_name(identity: str) -> str:
    """Cargo package name for a workspace identity (also the binary name)."""
    return PACKAGE_PREFIX + identity.lower()


def validate_edition(edition: str) -> str:
    edition = str(edition).strip()
    if edition not in EDITIONS:
        raise InvalidEditionError(
            f"Unexpected edition {edition!r}. Edition must be one of {', '.join(EDITIONS)}."
        )
    return edition


def parse_dependencies(fragments: Iterable[str]) -> dict[str, Any]:
    """
    Parse explicit header fragments into an ordered name -> requirement mapping.

    Raises ParseError for a fragment that is not valid TOML, that holds other
    than exactly one entry, or that repeats an earlier dependency.
    """
    out: dict[str, Any] = {}
    seen: dict[str, str] = {}
    for fragment in fragments:
        try:
            doc = tomlkit.parse(fragment).unwrap()
        except TOMLKitError as e:
            raise ParseError(f"Invalid dependency header {fragment!r}: {e}") from e

        if len(doc) != 1:
            raise ParseError(f"Dependency header must declare exactly one dependency: {fragment!r}")

        ((name, requirement),) = doc.items()
        key = normalize_name(name)
        if key in seen:
            raise ParseError(f"Dependency {name!r} is declared more than once (first as {seen[key]!r})")
        seen[key] = name
        out[name] = requirement
    return out


def merge_dependencies(explicit: Mapping[str, Any], inferred: Iterable[str]) -> dict[str, Any]:
    """
    Combine explicit and inferred dependencies into a new mapping.

    Neither input is modified. An inferred name is dropped only when an
    explicit entry has the same normalized name.
    """
    merged = dict(explicit)
    taken = {normalize_name(name) for name in explicit}
    for name in sorted(set(inferred)):
        key = normalize_name(name)
        if key in taken:
            logger.debug("Inferred dependency %r overridden by header", name)
            continue
        taken.add(key)
        merged[name] = ANY_VERSION
    return merged


def ordered_entries(dependencies: Mapping[str, Any]) -> list[tuple[str, Any]]:
    scalars = [(k, v) for k, v in dependencies.items() if not isinstance(v, Mapping)]
    tables = [(k, v) for k, v in dependencies.items() if isinstance(v, Mapping)]
    return scalars + tables


def build_manifest(
    *,
    identity: str,
    headers: Iterable[str],
    inferred: Iterable[str] = (),
    edition: str = "2021",
) -> Manifest:
    package = Package(name=package_name(identity), edition=validate_edition(edition))
    explicit = parse_dependencies(headers)
    return Manifest(package=package, dependencies=merge_dependencies(explicit, inferred))


# ── Rendering ────────────────────────────────────────────────────────────────


def _toml_item(value: Any) -> Any:
    if isinstance(value, Mapping):
        table = tomlkit.inline_table()
        for k, v in value.items():
            table.append(k, _toml_item(v))
        return table
    if isinstance(value, (list, tuple)):
        array = tomlkit.array()
        array.extend(_toml_item(v) for v in value)
        return array
    return tomlkit.item(value)


def _toml_value(value: Any) -> str:
    return _toml_item(value).as_string()


def _toml_key(name: str) -> str:
    return tomlkit.key(name).as_string()


def _environment() -> Environment:
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["toml"] = _toml_value
    env.filters["toml_key"] = _toml_key
    return env


def _template_text() -> str:
    return (resources.files("cargoplay") / "templates" / "Cargo.toml.j2").read_text(encoding="utf-8")


def render_manifest(manifest: Manifest) -> str:
    template = _environment().from_string(_template_text())
    return template.render(package=manifest.package, dependencies=ordered_entries(manifest.dependencies))


def write_manifest(workspace_dir: str | Path, manifest: Manifest) -> Path:
    path = Path(workspace_dir) / MANIFEST_FILENAME
    path.write_text(manifest.render(), encoding="utf-8", newline="\n")
    logger.debug("Wrote %s", path)
    return path
