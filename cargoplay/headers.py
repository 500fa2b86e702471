"""
headers.py

Responsibility: Extract explicit dependency declarations from the `//#`
comment header at the top of each source unit.

    #!/usr/bin/env run-cargo-play
    //# rand = "0.8"
    //# serde = { version = "1", features = ["derive"] }

A shebang line and blank lines may precede the header. The header is the
unbroken run of `//#` lines that follows; the first other line ends it.
"""

from __future__ import annotations

from typing import Iterable

HEADER_MARKER = "//#"


def _unit_headers(text: str) -> list[str]:
    # Only \n and \r\n end a line; form feeds and other separators stay in the line.
    lines = (line[:-1] if line.endswith("\r") else line for line in text.split("\n"))
    out: list[str] = []

    for line in lines:
        if line.startswith("#!") or not line:
            continue
        if not line.startswith(HEADER_MARKER):
            return out
        break
    else:
        return out

    while True:
        fragment = line[len(HEADER_MARKER) :].lstrip()
        if fragment:
            out.append(fragment)
        line = next(lines, None)
        if line is None or not line.startswith(HEADER_MARKER):
            return out


def extract_headers(texts: Iterable[str]) -> list[str]:
    """Concatenate every unit's header fragments, in order, duplicates kept."""
    headers: list[str] = []
    for text in texts:
        headers.extend(_unit_headers(text))
    return headers
