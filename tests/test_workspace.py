"""Tests for workspace identity and lifecycle."""
import itertools
import shutil
import sys
from pathlib import Path

from cargoplay.workspace import Workspace, src_hash


class TestSrcHash:

    def test_order_independent(self, write_source):
        paths = [write_source("a.rs"), write_source("b.rs"), write_source("nested/c.rs")]
        hashes = {src_hash(p) for p in itertools.permutations(paths)}
        assert len(hashes) == 1

    def test_different_sets_differ(self, write_source):
        a, b = write_source("a.rs"), write_source("b.rs")
        assert src_hash([a]) != src_hash([a, b])

    def test_ignores_content(self, write_source):
        path = write_source("main.rs", "fn main() {}\n")
        before = src_hash([path])
        path.write_text('fn main() { println!("changed"); }\n', encoding="utf-8")
        assert src_hash([path]) == before

    def test_url_safe_without_padding(self, write_source):
        h = src_hash([write_source("main.rs")])
        assert len(h) == 27  # 20-byte SHA-1, unpadded base64
        assert "=" not in h and "/" not in h and "+" not in h

    def test_relative_and_absolute_agree(self, write_source, monkeypatch):
        path = write_source("main.rs")
        monkeypatch.chdir(path.parent)
        assert src_hash(["main.rs"]) == src_hash([path])


class TestWorkspace:

    def test_layout(self, tmp_path):
        ws = Workspace(root=tmp_path, identity="AbC")
        assert ws.path == tmp_path / "cargo-play.AbC"
        assert ws.manifest_path == ws.path / "Cargo.toml"
        assert ws.src_dir == ws.path / "src"
        assert ws.package_name == "play-abc"

    def test_create_is_idempotent(self, tmp_path):
        ws = Workspace(root=tmp_path, identity="x")
        assert not ws.exists()
        ws.create()
        (ws.path / "keep").write_text("1")
        ws.create()
        assert ws.exists()
        assert (ws.path / "keep").exists()

    def test_clean_removes_tree(self, tmp_path):
        ws = Workspace(root=tmp_path, identity="x")
        ws.create()
        (ws.path / "src").mkdir()
        (ws.path / "src" / "main.rs").write_text("")
        ws.clean()
        assert not ws.exists()

    def test_clean_missing_is_fine(self, tmp_path):
        Workspace(root=tmp_path, identity="never-created").clean()

    def test_clean_failure_swallowed(self, tmp_path, monkeypatch, caplog):
        ws = Workspace(root=tmp_path, identity="x")
        ws.create()

        def boom(path, *args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(shutil, "rmtree", boom)
        ws.clean()
        assert ws.exists()
        assert "Could not remove" in caplog.text

    def test_cached_binary(self, tmp_path):
        ws = Workspace(root=tmp_path, identity="Key")
        assert ws.cached_binary(release=False) is None

        binary = ws.binary_path(release=False)
        suffix = ".exe" if sys.platform == "win32" else ""
        assert binary == ws.path / "target" / "debug" / f"play-key{suffix}"
        binary.parent.mkdir(parents=True)
        binary.write_bytes(b"")

        assert ws.cached_binary(release=False) == binary
        assert ws.cached_binary(release=True) is None

    def test_for_sources(self, write_source, tmp_path):
        path = write_source("main.rs")
        ws = Workspace.for_sources([path], workspace_root=tmp_path)
        assert ws.root == tmp_path
        assert ws.identity == src_hash([path])
        assert isinstance(ws.path, Path)
