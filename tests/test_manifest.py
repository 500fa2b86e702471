"""Tests for manifest synthesis and rendering."""
import pytest
import tomlkit

from cargoplay.errors import ParseError
from cargoplay.manifest import (
    ANY_VERSION,
    InvalidEditionError,
    Manifest,
    Package,
    build_manifest,
    merge_dependencies,
    parse_dependencies,
    render_manifest,
    write_manifest,
)


class TestParseDependencies:

    def test_scalar_and_table(self):
        deps = parse_dependencies(['rand = "0.5.0"', 'dtoa = { git = "https://example.invalid/dtoa.git" }'])
        assert deps == {"rand": "0.5.0", "dtoa": {"git": "https://example.invalid/dtoa.git"}}
        assert list(deps) == ["rand", "dtoa"]

    def test_malformed_fragment_is_fatal(self):
        with pytest.raises(ParseError):
            parse_dependencies(['rand = "0.5.0"', "this is not toml"])

    def test_fragment_must_hold_one_entry(self):
        with pytest.raises(ParseError, match="exactly one"):
            parse_dependencies(['rand = "0.5"\nlog = "0.4"'])
        with pytest.raises(ParseError, match="exactly one"):
            parse_dependencies(["# just a comment"])

    def test_duplicate_declaration_is_fatal(self):
        with pytest.raises(ParseError, match="more than once"):
            parse_dependencies(['regex-syntax = "0.6"', 'regex_syntax = "0.7"'])


class TestMergeDependencies:

    def test_explicit_wins(self):
        merged = merge_dependencies({"foo": "1.0"}, {"foo"})
        assert merged == {"foo": "1.0"}

    def test_normalized_names_collide(self):
        merged = merge_dependencies({"regex-syntax": "*"}, {"regex_syntax", "bitflags"})
        assert merged == {"regex-syntax": "*", "bitflags": ANY_VERSION}

    def test_inferred_sorted_after_explicit(self):
        merged = merge_dependencies({"zeta": "1"}, {"beta", "alpha"})
        assert list(merged) == ["zeta", "alpha", "beta"]

    def test_inputs_untouched(self):
        explicit = {"foo": "1.0"}
        inferred = {"bar"}
        merge_dependencies(explicit, inferred)
        assert explicit == {"foo": "1.0"}
        assert inferred == {"bar"}


class TestBuildManifest:

    def test_package_section(self):
        manifest = build_manifest(identity="AbC-_9", headers=[], edition="2018")
        assert manifest.package == Package(name="play-abc-_9", version="0.1.0", edition="2018")

    def test_invalid_edition(self):
        with pytest.raises(InvalidEditionError):
            build_manifest(identity="x", headers=[], edition="2017")

    def test_explicit_wins_over_inferred(self):
        manifest = build_manifest(identity="x", headers=['foo = "1.0"'], inferred={"foo", "bar"})
        assert manifest.dependencies == {"foo": "1.0", "bar": "*"}


class TestRender:

    def _manifest(self) -> Manifest:
        return build_manifest(
            identity="Hash",
            headers=['dtoa = { git = "https://example.invalid/dtoa.git" }', 'rand = "0.5.0"'],
            inferred={"bitflags"},
            edition="2021",
        )

    def test_round_trips_as_toml(self):
        doc = tomlkit.parse(render_manifest(self._manifest())).unwrap()
        assert doc == {
            "package": {"name": "play-hash", "version": "0.1.0", "edition": "2021"},
            "dependencies": {
                "rand": "0.5.0",
                "bitflags": "*",
                "dtoa": {"git": "https://example.invalid/dtoa.git"},
            },
        }

    def test_scalars_before_tables(self):
        lines = render_manifest(self._manifest()).splitlines()
        start = lines.index("[dependencies]")
        names = [line.split("=", 1)[0].strip() for line in lines[start + 1 :] if line]
        assert names == ["rand", "bitflags", "dtoa"]
        assert 'rand = "0.5.0"' in lines

    def test_exact_text_without_dependencies(self):
        text = render_manifest(Manifest(package=Package(name="play-x", edition="2015")))
        assert text == (
            "[package]\n"
            'name = "play-x"\n'
            'version = "0.1.0"\n'
            'edition = "2015"\n'
            "\n"
            "[dependencies]\n"
        )

    def test_write_manifest(self, tmp_path):
        path = write_manifest(tmp_path, self._manifest())
        assert path == tmp_path / "Cargo.toml"
        assert path.read_text(encoding="utf-8") == render_manifest(self._manifest())
