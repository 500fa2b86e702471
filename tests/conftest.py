"""
Test fixtures for cargoplay.

Provides sample Rust sources and a recorder standing in for subprocess.run,
so no test needs a Rust toolchain.
"""
from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


# ── Sample Rust sources ─────────────────────────────────────────────────────

HELLO_RS = textwrap.dedent("""\
    fn main() {
        println!("Hello World!");
    }
""")

HEADERS_RS = textwrap.dedent("""\
    #!/usr/bin/env run-cargo-play
    //# rand = "0.5.0"
    //# dtoa = { git = "https://github.com/dtolnay/dtoa.git" }

    fn main() {
        println!("{}", 1);
    }
""")

INFER_RS = textwrap.dedent("""\
    use bitflags::bitflags;
    use std::collections::HashMap;
    use crate::helpers;

    mod helpers {
        use serde::Serialize;
        pub fn noop() {}
    }

    fn main() {
        use regex_syntax::Parser;
        // use commented_out;
        let s = "use not_a_crate;";
        let _m: HashMap<u8, u8> = HashMap::new();
        println!("{}", s);
    }
""")

BROKEN_RS = textwrap.dedent("""\
    use rand;

    fn main( {
        let x = ;
""")


@pytest.fixture
def write_source(tmp_path: Path):
    """Write `text` at `tmp_path / rel` and return the canonical path."""

    def _write(rel: str, text: str = HELLO_RS) -> Path:
        path = tmp_path / "src_tree" / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path.resolve()

    return _write


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


class RunRecorder:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.returncode = 0

    def __call__(self, cmd, *args, **kwargs):
        self.calls.append([str(c) for c in cmd])
        return subprocess.CompletedProcess(cmd, self.returncode)


@pytest.fixture
def fake_run(monkeypatch) -> RunRecorder:
    recorder = RunRecorder()
    monkeypatch.setattr("cargoplay.dispatch.subprocess.run", recorder)
    return recorder
