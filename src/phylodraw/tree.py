from __future__ import annotations

import logging
import math
from typing import Callable, Iterator

from .styles import CladeStyle, TreeStyle
from .utils import format_number

logger = logging.getLogger(__name__)

_NEWICK_SPECIAL = set("()[]':;, \t\n")


def _add_lengths(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return a + b


def _quote_label(label: str) -> str:
    if any(ch in _NEWICK_SPECIAL for ch in label):
        return "'" + label.replace("'", "''") + "'"
    return label


def _index_of(items: list, item) -> int:
    for i, candidate in enumerate(items):
        if candidate is item:
            return i
    raise ValueError(f"{item!r} is not in the list")


class Clade:
    """A node of a rooted tree, together with the subtree it roots.

    Parameters
    ----------
    taxon:
        Label of the node; conventionally only set on leaves.
    supports:
        Support label of the bipartition above the node (e.g. ``"85/95"``).
    branch_length:
        Length of the edge to the parent. ``nan`` means unspecified and is
        distinct from ``0``.
    style:
        Per-node drawing style.

    Children are owned by their parent and kept in order; the parent link is a
    plain back-reference. Only a root knows the :class:`Tree` it belongs to.
    """

    def __init__(
        self,
        taxon: str | None = None,
        supports: str | None = None,
        branch_length: float = math.nan,
        style: CladeStyle | None = None,
    ):
        self.taxon = taxon
        self.supports = supports
        self.branch_length = math.nan if branch_length is None else float(branch_length)
        self.style = style if style is not None else CladeStyle()
        self._children: list[Clade] = []
        self._parent: Clade | None = None
        self._tree: Tree | None = None

    def __repr__(self) -> str:
        label = self.taxon if self.taxon is not None else self.supports
        return f"Clade({label!r}, branch_length={self.branch_length!r}, children={len(self._children)})"

    def __str__(self) -> str:
        return self.to_newick()

    # --- relations -------------------------------------------------------

    @property
    def parent(self) -> Clade | None:
        return self._parent

    @property
    def children(self) -> tuple[Clade, ...]:
        return tuple(self._children)

    @property
    def tree(self) -> Tree | None:
        """The tree owning this clade, resolved through the root."""
        return self.find_root()._tree

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def is_leaf(self) -> bool:
        return not self._children

    @property
    def is_collapsed(self) -> bool:
        return self.style.collapsed

    @property
    def is_external(self) -> bool:
        return self.is_leaf or self.style.collapsed

    @property
    def is_hidden(self) -> bool:
        """True when any strict ancestor is collapsed."""
        node = self._parent
        while node is not None:
            if node.style.collapsed:
                return True
            node = node._parent
        return False

    def add_child(self, child: Clade) -> None:
        self._check_new_child(child)
        self._children.append(child)
        child._parent = self

    def insert_child(self, index: int, child: Clade) -> None:
        self._check_new_child(child)
        self._children.insert(index, child)
        child._parent = self

    def remove_child(self, child: Clade) -> None:
        if child is None:
            raise TypeError("child must not be None")
        if child._parent is not self:
            raise ValueError(f"{child!r} is not a child of {self!r}")
        del self._children[_index_of(self._children, child)]
        child._parent = None

    def _check_new_child(self, child: Clade) -> None:
        if child is None:
            raise TypeError("child must not be None")
        if child._parent is not None:
            raise ValueError(f"{child!r} already has a parent")
        if child._tree is not None:
            raise ValueError(f"{child!r} is the root of another tree")
        node = self
        while node is not None:
            if node is child:
                raise ValueError("a clade cannot become its own descendant")
            node = node._parent

    # --- traversal -------------------------------------------------------

    def find_root(self) -> Clade:
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    def get_descendants(self) -> Iterator[Clade]:
        """Pre-order descendants, excluding the clade itself."""
        stack = self._children[::-1]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def iter_postorder(self) -> Iterator[Clade]:
        """Post-order traversal including the clade itself."""
        stack: list[tuple[Clade, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded or not node._children:
                yield node
                continue
            stack.append((node, True))
            stack.extend((c, False) for c in reversed(node._children))

    def get_all_external_descendants(self) -> Iterator[Clade]:
        """Leaves and collapsed clades below this clade, in document order.

        Descendants of a collapsed clade are never visited.
        """
        stack = self._children[::-1]
        while stack:
            node = stack.pop()
            if node.is_external:
                yield node
            else:
                stack.extend(reversed(node._children))

    def get_leaves_count(self) -> int:
        if not self._children:
            return 1
        return sum(1 for c in self.get_descendants() if not c._children)

    def get_total_branch_length(self, fallback: float | None = None) -> float:
        """Sum of branch lengths from the root down to this clade.

        Unspecified (``nan``) segments make the result ``nan`` unless a
        ``fallback`` is given, which then replaces each of them.
        """
        total = 0.0
        node = self
        while node._parent is not None:
            length = node.branch_length
            if math.isnan(length):
                if fallback is None:
                    return math.nan
                length = fallback
            total += length
            node = node._parent
        return total

    def get_drawn_branch_length(self) -> float:
        if self._parent is None:
            return 0.0
        if not math.isnan(self.branch_length):
            return self.branch_length
        tree = self.tree
        if tree is None:
            return 0.0
        return tree.style.default_branch_length

    # --- copying ---------------------------------------------------------

    def _copy_node(self) -> Clade:
        return Clade(self.taxon, self.supports, self.branch_length, self.style.clone())

    def clone(self, only_descendants: bool = False) -> Clade:
        """Deep copy.

        With ``only_descendants`` the subtree rooted here is copied. Otherwise
        the whole containing tree is copied and the copy of this clade is
        returned.
        """
        if only_descendants:
            return self._clone_subtree()
        root = self.find_root()
        path = []
        node = self
        while node._parent is not None:
            path.append(_index_of(node._parent._children, node))
            node = node._parent
        tree = root._tree
        result = tree.clone().root if tree is not None else root._clone_subtree()
        for index in reversed(path):
            result = result._children[index]
        return result

    def _clone_subtree(self) -> Clade:
        result = self._copy_node()
        stack = [(self, result)]
        while stack:
            source, target = stack.pop()
            for child in source._children:
                copied = child._copy_node()
                copied._parent = target
                target._children.append(copied)
                stack.append((child, copied))
        return result

    # --- output ----------------------------------------------------------

    def to_newick(self) -> str:
        texts: dict[int, str] = {}
        for node in self.iter_postorder():
            if node._children:
                inner = ",".join(texts.pop(id(c)) for c in node._children)
                text = f"({inner}){_quote_label(node.supports or '')}"
            else:
                text = _quote_label(node.taxon or "")
            if not math.isnan(node.branch_length):
                text += ":" + format_number(node.branch_length)
            texts[id(node)] = text
        return texts[id(self)]


class CladeView:
    """Restartable view over the clades of a tree.

    Every iteration starts again from the tree's current root, so a view stays
    valid across rerooting.
    """

    def __init__(self, tree: Tree, predicate: Callable[[Clade], bool] | None = None):
        self._tree = tree
        self._predicate = predicate

    def __iter__(self) -> Iterator[Clade]:
        root = self._tree.root
        if self._predicate is None or self._predicate(root):
            yield root
        for clade in root.get_descendants():
            if self._predicate is None or self._predicate(clade):
                yield clade

    def __len__(self) -> int:
        return sum(1 for _ in self)


class ExternalNodeView:
    """Restartable view over the external nodes (leaves and collapsed clades)."""

    def __init__(self, tree: Tree):
        self._tree = tree

    def __iter__(self) -> Iterator[Clade]:
        root = self._tree.root
        if root.is_external:
            yield root
            return
        yield from root.get_all_external_descendants()

    def __len__(self) -> int:
        return sum(1 for _ in self)


class Tree:
    """A rooted tree and its drawing style.

    Parameters
    ----------
    root:
        Root clade; it must not have a parent.
    style:
        Tree-wide style. Defaults to :class:`TreeStyle`.
    """

    def __init__(self, root: Clade, style: TreeStyle | None = None):
        if root is None:
            raise TypeError("root must not be None")
        if root._parent is not None:
            raise ValueError("the root clade must not have a parent")
        if root._tree is not None:
            raise ValueError("the clade is already the root of another tree")
        self._root = root
        root._tree = self
        self.style = style if style is not None else TreeStyle()

    def __repr__(self) -> str:
        return f"Tree({self.to_newick()!r})"

    def __str__(self) -> str:
        return self.to_newick()

    @property
    def root(self) -> Clade:
        return self._root

    def _set_root(self, root: Clade) -> None:
        if self._root._tree is self:
            self._root._tree = None
        root._tree = self
        self._root = root

    @property
    def is_rooted(self) -> bool:
        return len(self._root._children) == 2

    @property
    def is_unrooted(self) -> bool:
        return len(self._root._children) >= 3

    # --- queries ---------------------------------------------------------

    def get_all_clades(self) -> CladeView:
        return CladeView(self)

    def get_all_bipartitions(self) -> CladeView:
        """Internal clades, root included, in pre-order."""
        return CladeView(self, lambda c: not c.is_leaf)

    def get_all_leaves(self) -> CladeView:
        return CladeView(self, lambda c: c.is_leaf)

    def get_all_external_nodes(self) -> ExternalNodeView:
        return ExternalNodeView(self)

    def _check_member(self, clade: Clade, name: str = "clade") -> None:
        if clade is None:
            raise TypeError(f"{name} must not be None")
        if clade.find_root() is not self._root:
            raise ValueError(f"{clade!r} does not belong to this tree")

    def get_indexes(self, clade: Clade) -> list[int]:
        """Child indexes leading from the root down to ``clade``."""
        self._check_member(clade)
        path = []
        node = clade
        while node._parent is not None:
            path.append(_index_of(node._parent._children, node))
            node = node._parent
        path.reverse()
        return path

    def clade_at(self, indexes) -> Clade:
        node = self._root
        for index in indexes:
            node = node._children[index]
        return node

    def find_leaf(self, taxon: str) -> Clade:
        for leaf in self.get_all_leaves():
            if leaf.taxon == taxon:
                return leaf
        raise ValueError(f"No leaf named {taxon!r}")

    def get_common_ancestor(self, taxa) -> Clade:
        """Smallest clade containing every leaf named in ``taxa``."""
        taxa = list(taxa)
        if not taxa:
            raise ValueError("at least one taxon is required")
        common: list[Clade] | None = None
        for taxon in taxa:
            path = []
            node = self.find_leaf(taxon)
            while node is not None:
                path.append(node)
                node = node._parent
            path.reverse()
            if common is None:
                common = path
                continue
            shared = 0
            for a, b in zip(common, path):
                if a is not b:
                    break
                shared += 1
            common = common[:shared]
        return common[-1]

    def to_newick(self) -> str:
        return self._root.to_newick() + ";"

    # --- copies and edits ------------------------------------------------

    def clone(self) -> Tree:
        return Tree(self._root.clone(True), self.style.clone())

    def swap_sisters(self, a: Clade, b: Clade) -> None:
        """Exchange the positions of two children of the same parent."""
        self._check_member(a, "a")
        self._check_member(b, "b")
        if a is b:
            raise ValueError("cannot swap a clade with itself")
        if a._parent is None or b._parent is None:
            raise ValueError("the root has no sisters")
        if a._parent is not b._parent:
            raise ValueError("clades to swap must share a parent")
        siblings = a._parent._children
        i, j = _index_of(siblings, a), _index_of(siblings, b)
        siblings[i], siblings[j] = b, a

    def order_by_length(self, descending: bool = False) -> None:
        """Sort every child list by the deepest leaf below each child.

        The sort is stable, so equal subtrees keep their relative order.
        """
        depths: dict[int, float] = {}
        for node in self._root.iter_postorder():
            own = 0.0 if node._parent is None or math.isnan(node.branch_length) else node.branch_length
            depths[id(node)] = own + max((depths[id(c)] for c in node._children), default=0.0)
        for node in self.get_all_bipartitions():
            node._children.sort(key=lambda c: depths[id(c)], reverse=descending)

    def clear_branch_lengths(self) -> None:
        for clade in self.get_all_clades():
            clade.branch_length = math.nan

    def extract_subtree(self, clade: Clade) -> Tree:
        """Copy the subtree rooted at ``clade`` into a new tree."""
        self._check_member(clade)
        if clade.is_root:
            raise ValueError("cannot extract the whole tree as a subtree")
        if clade.is_leaf:
            raise ValueError("cannot extract a leaf as a subtree")
        return Tree(clade.clone(True), self.style.clone())

    # --- rerooting -------------------------------------------------------

    def _check_reroot(self, anchor: Clade, as_rooted: bool) -> None:
        self._check_member(anchor, "anchor")
        if anchor.is_leaf:
            raise ValueError("cannot reroot on a leaf")
        if as_rooted:
            if anchor.is_root:
                raise ValueError("the root has no branch to split")
            if self.is_rooted and anchor._parent is self._root:
                raise ValueError(
                    "the tree is already rooted on this branch; rooting on a child of a two-way root is not supported"
                )

    def rerooted(self, anchor: Clade, as_rooted: bool) -> Tree:
        """Return a rerooted copy; this tree is left untouched.

        See :meth:`reroot` for the meaning of ``as_rooted``.
        """
        self._check_reroot(anchor, as_rooted)
        result = self.clone()
        result._reroot(result.clade_at(self.get_indexes(anchor)), as_rooted)
        return result

    def reroot(self, anchor: Clade, as_rooted: bool) -> None:
        """Reroot the tree in place; the root clade is replaced.

        Parameters
        ----------
        anchor:
            Internal clade of this tree.
        as_rooted:
            If True, the branch above ``anchor`` is split in two halves under a
            new bifurcating root, both halves keeping the branch's support.
            If False, ``anchor`` itself becomes the root and the former path to
            the root is reversed below it.
        """
        self._check_reroot(anchor, as_rooted)
        self._reroot(anchor, as_rooted)

    def _reroot(self, anchor: Clade, as_rooted: bool) -> None:
        if anchor._parent is None:
            return

        path = [anchor]
        while path[-1]._parent is not None:
            path.append(path[-1]._parent)
        old_root = path[-1]
        lengths = [node.branch_length for node in path[:-1]]
        supports = [node.supports for node in path[:-1]]
        for child, parent in zip(path, path[1:]):
            parent.remove_child(child)
        old_root._tree = None

        if as_rooted:
            new_root = Clade()
            lengths[0] = lengths[0] / 2
            anchor.branch_length = lengths[0]
            new_root.add_child(anchor)
        else:
            new_root = anchor
            anchor.supports = None

        for i in range(1, len(path)):
            node = path[i]
            node.branch_length = lengths[i - 1]
            node.supports = supports[i - 1]
            host = new_root if as_rooted and i == 1 else path[i - 1]
            host.add_child(node)

        new_root.branch_length = math.nan
        new_root.supports = None
        self._set_root(new_root)
        self._dissolve_old_root(old_root)
        logger.debug("Rerooted tree (as_rooted=%s): %s", as_rooted, self.to_newick())

    @staticmethod
    def _dissolve_old_root(old_root: Clade) -> None:
        # A former bifurcating root is left with a single child; merge its two
        # edges into one.
        host = old_root._parent
        if host is None or len(old_root._children) > 1:
            return
        index = _index_of(host._children, old_root)
        host.remove_child(old_root)
        if not old_root._children:
            return
        child = old_root._children[0]
        old_root.remove_child(child)
        child.branch_length = _add_lengths(old_root.branch_length, child.branch_length)
        if not child.supports:
            child.supports = old_root.supports
        host.insert_child(index, child)
