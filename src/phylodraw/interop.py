from __future__ import annotations

import math

from .styles import TreeStyle
from .tree import Clade, Tree


def _require_ete3():
    try:
        import ete3
    except ImportError as e:
        raise ImportError("ete3 interop requires ete3. Install with: pip install 'phylodraw[ete3]'") from e
    return ete3


def from_ete3(ete_tree, style: TreeStyle | None = None) -> Tree:
    """Convert an ete3 tree.

    Internal node names become support labels, leaf names become taxa. The
    root's ``dist`` is dropped since a root carries no branch.
    """
    _require_ete3()

    def make(node) -> Clade:
        label = node.name or None
        if node.is_leaf():
            return Clade(taxon=label, branch_length=node.dist)
        return Clade(supports=label, branch_length=node.dist)

    root = make(ete_tree)
    root.branch_length = math.nan
    stack = [(ete_tree, root)]
    while stack:
        source, target = stack.pop()
        for child in source.children:
            clade = make(child)
            target.add_child(clade)
            stack.append((child, clade))
    return Tree(root, style)


def to_ete3(tree: Tree):
    """Convert to an ete3 tree; unspecified branch lengths become 0."""
    ete3 = _require_ete3()

    result = ete3.Tree()
    result.name = tree.root.supports or ""
    result.dist = 0.0
    stack = [(tree.root, result)]
    while stack:
        source, target = stack.pop()
        for child in source.children:
            name = child.taxon if child.is_leaf else child.supports
            dist = 0.0 if math.isnan(child.branch_length) else child.branch_length
            node = target.add_child(name=name or "", dist=dist)
            stack.append((child, node))
    return result
