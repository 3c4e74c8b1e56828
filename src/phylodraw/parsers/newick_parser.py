from __future__ import annotations

import logging
import math
from pathlib import Path

import newick

from ..styles import TreeStyle
from ..tree import Clade, Tree

logger = logging.getLogger(__name__)


class TreeFormatError(ValueError):
    """Raised when tree text cannot be parsed."""


def _unquote(label: str | None) -> str | None:
    if not label:
        return None
    label = label.strip()
    if len(label) >= 2 and label[0] == label[-1] == "'":
        label = label[1:-1].replace("''", "'")
    return label or None


def _check_balanced(text: str) -> None:
    depth = 0
    quoted = False
    for ch in text:
        if ch == "'":
            quoted = not quoted
        elif quoted:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise TreeFormatError("Unbalanced parentheses: unexpected ')'")
    if quoted:
        raise TreeFormatError("Unterminated quoted label")
    if depth != 0:
        raise TreeFormatError("Unbalanced parentheses: missing ')'")


def _convert(node: newick.Node) -> Clade:
    def make(n: newick.Node) -> Clade:
        label = _unquote(n.name)
        # Node.length reads a missing length as 0.0; the raw token keeps it distinguishable
        raw = "" if n._length is None else str(n._length).strip()
        try:
            length = float(raw) if raw else math.nan
        except ValueError as e:
            raise TreeFormatError(f"Invalid branch length on node {n.name!r}") from e
        if n.descendants:
            return Clade(supports=label, branch_length=length)
        return Clade(taxon=label, branch_length=length)

    root = make(node)
    stack = [(node, root)]
    while stack:
        source, target = stack.pop()
        for child in source.descendants:
            clade = make(child)
            target.add_child(clade)
            stack.append((child, clade))
    return root


def parse_newick(text: str, style: TreeStyle | None = None) -> list[Tree]:
    """
    Parses Newick text holding one or more ``;``-terminated trees.

    Internal node labels are read as support values, leaf labels as taxa.
    Every tree gets its own copy of ``style``.
    """
    if text is None:
        raise TypeError("text must not be None")
    text = text.strip()
    if not text:
        raise TreeFormatError("No tree found in empty input")
    _check_balanced(text)

    try:
        nodes = newick.loads(text, strip_comments=True)
    except (ValueError, IndexError) as e:
        raise TreeFormatError(f"Malformed Newick text: {e}") from e
    if not nodes:
        raise TreeFormatError("No tree found")

    trees = []
    for node in nodes:
        tree_style = style.clone() if style is not None else TreeStyle()
        trees.append(Tree(_convert(node), tree_style))
    logger.debug("Parsed %d tree(s) from Newick text", len(trees))
    return trees


def read_newick(path: str | Path, style: TreeStyle | None = None) -> list[Tree]:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        return parse_newick(f.read(), style)


def write_newick(trees, path: str | Path) -> None:
    if isinstance(trees, Tree):
        trees = [trees]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for tree in trees:
            f.write(tree.to_newick() + "\n")
