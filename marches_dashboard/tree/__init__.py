"""Document tree construction and traversal."""

from marches_dashboard.tree.builder import (
    DocumentForest,
    build_tree,
    count_pieces,
    filter_tree,
    find_node,
    is_root_parent,
    iter_nodes,
    iter_paths,
)

__all__ = [
    "DocumentForest",
    "build_tree",
    "count_pieces",
    "filter_tree",
    "find_node",
    "is_root_parent",
    "iter_nodes",
    "iter_paths",
]
