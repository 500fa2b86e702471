"""
Dependency inference over Rust token trees.

Each source unit is parsed with the tree-sitter Rust grammar. The leaves of
the concrete syntax tree are regrouped into a token tree (atoms plus
``()``/``[]``/``{}`` groups) and every ``use <ident>`` pair found at any
nesting depth contributes ``<ident>`` as a candidate crate name.

The walk is purely syntactic: a local module re-exported under a ``use``
looks exactly like an external crate.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Set, Union

import tree_sitter_rust as tsrust
from tree_sitter import Language, Node, Parser

from cargoplay.errors import ParseError

logger = logging.getLogger(__name__)

# Path roots that never name an external crate.
RESERVED_ROOTS = frozenset({"std", "core", "alloc", "crate", "self", "super"})

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = frozenset(_OPEN.values())

# Subtrees kept as a single atom rather than descended into.
_ATOMIC_NODES = frozenset({
    "string_literal",
    "raw_string_literal",
    "char_literal",
    "integer_literal",
    "float_literal",
})
_SKIPPED_NODES = frozenset({"line_comment", "block_comment", "shebang"})

_IDENT_RE = re.compile(r"^(?:r#)?[A-Za-z_][A-Za-z0-9_]*$")

# ── Language / parser singletons ─────────────────────────────────────────────

_RUST_LANGUAGE = Language(tsrust.language())
_PARSER: Parser | None = None


def _get_parser() -> Parser:
    """Return a cached tree-sitter Rust parser."""
    global _PARSER
    if _PARSER is None:
        _PARSER = Parser(_RUST_LANGUAGE)
    return _PARSER


# ── Token tree ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Atom:
    """A single token: identifier, keyword, literal or punctuation."""
    text: str
    is_ident: bool


@dataclass
class Group:
    """A delimited token sequence; ``delimiter`` is the opening character."""
    delimiter: str
    tokens: List["Token"] = field(default_factory=list)


Token = Union[Atom, Group]


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _leaves(node: Node) -> Iterable[Node]:
    """Yield token-level nodes in source order (iterative, no recursion limit)."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in _SKIPPED_NODES:
            continue
        if current.type in _ATOMIC_NODES or current.child_count == 0:
            yield current
            continue
        stack.extend(reversed(current.children))


def tokenize(text: str, *, origin: str = "<source>") -> List[Token]:
    """
    Parse ``text`` and return its top-level token sequence.

    Raises
    ------
    ParseError
        If the source does not parse cleanly.
    """
    source = text.encode("utf-8")
    tree = _get_parser().parse(source)
    root = tree.root_node

    if root.has_error:
        bad = _first_error(root) or root
        row, col = bad.start_point
        what = f"missing {bad.type}" if bad.is_missing else "syntax error"
        raise ParseError(f"{origin}:{row + 1}:{col + 1}: {what}")

    top: List[Token] = []
    stack: List[Group] = []
    for leaf in _leaves(root):
        leaf_text = source[leaf.start_byte:leaf.end_byte].decode("utf-8")
        if not leaf_text:
            continue
        target = stack[-1].tokens if stack else top

        if leaf.type not in _ATOMIC_NODES and leaf_text in _OPEN:
            group = Group(delimiter=leaf_text)
            target.append(group)
            stack.append(group)
        elif leaf.type not in _ATOMIC_NODES and leaf_text in _CLOSE:
            if not stack or _OPEN[stack[-1].delimiter] != leaf_text:
                row, col = leaf.start_point
                raise ParseError(f"{origin}:{row + 1}:{col + 1}: unbalanced {leaf_text!r}")
            stack.pop()
        else:
            is_ident = leaf.type not in _ATOMIC_NODES and bool(_IDENT_RE.match(leaf_text))
            target.append(Atom(text=leaf_text, is_ident=is_ident))

    if stack:
        raise ParseError(f"{origin}: unclosed {stack[-1].delimiter!r}")
    return top


# ── Walk ─────────────────────────────────────────────────────────────────────

def extract_uses(tokens: List[Token]) -> List[str]:
    """
    Collect the identifier following every ``use`` identifier, at any depth.

    Every group is scanned with the same pairwise rule, whatever token came
    before it, so imports inside function bodies, modules and macro bodies
    are found too.
    """
    found: List[str] = []
    pending: List[List[Token]] = [tokens]
    while pending:
        sequence = pending.pop()
        for index, token in enumerate(sequence):
            if isinstance(token, Group):
                pending.append(token.tokens)
                continue
            if not (token.is_ident and token.text == "use"):
                continue
            if index + 1 < len(sequence):
                following = sequence[index + 1]
                if isinstance(following, Atom) and following.is_ident:
                    found.append(following.text)
    return found


def analyze_sources(texts: Iterable[str], *, origins: Iterable[str] | None = None) -> Set[str]:
    """
    Infer external crate names from every source text.

    All texts are tokenized before any result is produced; one failure aborts
    the whole batch.
    """
    texts = list(texts)
    names = list(origins) if origins is not None else [f"<source {i}>" for i in range(len(texts))]

    streams = [tokenize(text, origin=name) for text, name in zip(texts, names)]

    inferred: Set[str] = set()
    for stream in streams:
        inferred.update(u for u in extract_uses(stream) if u not in RESERVED_ROOTS)

    logger.debug("Inferred dependencies: %s", sorted(inferred))
    return inferred
