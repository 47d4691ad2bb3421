"""
Document tree construction.

Turns the flat node and piece lists returned by the API into the nested
view rendered by the document browser.

Two builders share the same contract. build_tree() is the straightforward
parent-pointer grouping. DocumentForest stores the hierarchy in an arena
(one index per node, parent index, child index lists), rejects duplicate ids
and cycles when it is built, and reports orphans instead of silently losing
them.

In both, a parent id of None or 0 marks a root, and a node whose parent id
is not in the input is dropped together with its descendants (it is never
promoted to root).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from marches_dashboard.errors import DocumentCycleError
from marches_dashboard.models.documents import DocumentNode, Piece, TreeNode

logger = logging.getLogger(__name__)


def is_root_parent(parent_id: Optional[int]) -> bool:
    """True when the parent id marks a root (None and 0 are equivalent)."""
    return not parent_id


def group_pieces(pieces: Iterable[Piece]) -> Dict[int, List[Piece]]:
    """Index pieces by owning node id, keeping input order."""
    by_node: Dict[int, List[Piece]] = {}
    for piece in pieces:
        by_node.setdefault(piece.node_id, []).append(piece)
    return by_node


def build_tree(nodes: Sequence[DocumentNode], pieces: Iterable[Piece] = ()) -> List[TreeNode]:
    """
    Build the document forest from flat lists.

    Args:
        nodes: Document nodes in any order
        pieces: Pieces, each tagged with its owning node id

    Returns:
        Root TreeNodes; children keep the input order
    """
    by_node = group_pieces(pieces)
    views: Dict[int, TreeNode] = {
        n.id: TreeNode(node=n, pieces=list(by_node.get(n.id, []))) for n in nodes
    }

    roots: List[TreeNode] = []
    for n in nodes:
        if is_root_parent(n.parent_id):
            roots.append(views[n.id])
            continue
        parent = views.get(n.parent_id)
        if parent is not None:
            parent.children.append(views[n.id])
    return roots


@dataclass
class DocumentForest:
    """
    Arena representation of a document hierarchy.

    Every node gets an index in `nodes`; `parent_index[i]` is the index of its
    parent (None for roots and orphans) and `child_indices[i]` lists its
    children in input order.
    """

    nodes: List[DocumentNode] = field(default_factory=list)
    parent_index: List[Optional[int]] = field(default_factory=list)
    child_indices: List[List[int]] = field(default_factory=list)
    root_indices: List[int] = field(default_factory=list)
    pieces_by_node: Dict[int, List[Piece]] = field(default_factory=dict)
    orphans: List[DocumentNode] = field(default_factory=list)

    @classmethod
    def build(cls, nodes: Sequence[DocumentNode], pieces: Iterable[Piece] = ()) -> "DocumentForest":
        """
        Build and validate the forest.

        Raises:
            ValueError: two nodes share an id
            DocumentCycleError: the parent relation loops
        """
        forest = cls(nodes=list(nodes))
        index_of: Dict[int, int] = {}
        for i, n in enumerate(forest.nodes):
            if n.id in index_of:
                raise ValueError(f"Duplicate document node id {n.id}")
            index_of[n.id] = i

        forest.parent_index = [None] * len(forest.nodes)
        forest.child_indices = [[] for _ in forest.nodes]

        for i, n in enumerate(forest.nodes):
            if is_root_parent(n.parent_id):
                forest.root_indices.append(i)
            elif n.parent_id in index_of:
                parent = index_of[n.parent_id]
                forest.parent_index[i] = parent
                forest.child_indices[parent].append(i)
            else:
                forest.orphans.append(n)

        forest._check_cycles()

        if forest.orphans:
            logger.warning(
                f"Dropping {len(forest.orphans)} document node(s) with a missing parent: "
                f"{[n.id for n in forest.orphans]}"
            )

        owned = group_pieces(pieces)
        forest.pieces_by_node = {n.id: owned.get(n.id, []) for n in forest.nodes}
        return forest

    def _check_cycles(self) -> None:
        # Walk up from each node; colours: 0 unvisited, 1 on current path, 2 done
        state = [0] * len(self.nodes)
        for start in range(len(self.nodes)):
            path = []
            i = start
            while i is not None and state[i] == 0:
                state[i] = 1
                path.append(i)
                i = self.parent_index[i]
            if i is not None and state[i] == 1:
                loop = path[path.index(i):]
                raise DocumentCycleError(self.nodes[j].id for j in loop)
            for j in path:
                state[j] = 2

    def __len__(self) -> int:
        return len(self.nodes)

    def reachable_indices(self) -> List[int]:
        """Indices reachable from a root, depth-first in display order."""
        out: List[int] = []
        stack = list(reversed(self.root_indices))
        while stack:
            i = stack.pop()
            out.append(i)
            stack.extend(reversed(self.child_indices[i]))
        return out

    def roots(self) -> List[TreeNode]:
        """TreeNode views of the reachable part of the forest."""
        return [self._view(i) for i in self.root_indices]

    def _view(self, i: int) -> TreeNode:
        node = self.nodes[i]
        return TreeNode(
            node=node,
            children=[self._view(c) for c in self.child_indices[i]],
            pieces=list(self.pieces_by_node.get(node.id, [])),
        )

    def ancestors(self, node_id: int) -> List[DocumentNode]:
        """Ancestors of a node, nearest first."""
        index_of = {n.id: i for i, n in enumerate(self.nodes)}
        out = []
        i = self.parent_index[index_of[node_id]]
        while i is not None:
            out.append(self.nodes[i])
            i = self.parent_index[i]
        return out


def filter_tree(roots: List[TreeNode], query: str) -> List[TreeNode]:
    """
    Case-insensitive search over folder and piece names.

    A folder is kept when its name matches, when a descendant survives, or when
    one of its pieces matches; pieces are narrowed to the matching ones.
    """
    if not query or not query.strip():
        return roots
    needle = query.lower()

    def match(text: str) -> bool:
        return needle in (text or "").lower()

    def dfs(nodes: List[TreeNode]) -> List[TreeNode]:
        out = []
        for n in nodes:
            children = dfs(n.children)
            pieces = [p for p in n.pieces if match(p.name)]
            if match(n.name) or children or pieces:
                out.append(TreeNode(node=n.node, children=children, pieces=pieces))
        return out

    return dfs(roots)


def count_pieces(node: TreeNode) -> int:
    """Total pieces in a folder and all its sub-folders."""
    return len(node.pieces) + sum(count_pieces(c) for c in node.children)


def iter_nodes(roots: List[TreeNode]) -> Iterator[TreeNode]:
    """Depth-first walk over every reachable TreeNode."""
    for root in roots:
        yield root
        yield from iter_nodes(root.children)


def iter_paths(roots: List[TreeNode]) -> Iterator[List[TreeNode]]:
    """Every root-to-leaf path of the forest."""
    for root in roots:
        if not root.children:
            yield [root]
            continue
        for tail in iter_paths(root.children):
            yield [root] + tail


def find_node(roots: List[TreeNode], node_id: int) -> Optional[TreeNode]:
    for n in iter_nodes(roots):
        if n.id == node_id:
            return n
    return None
