import pytest

from marches_dashboard.errors import DocumentCycleError
from marches_dashboard.models import DocumentNode, Piece
from marches_dashboard.tree import (
    DocumentForest,
    build_tree,
    count_pieces,
    filter_tree,
    find_node,
    iter_nodes,
    iter_paths,
)


def ids(roots):
    return [n.id for n in roots]


def test_build_tree_roots_include_zero_parent(nodes, pieces):
    roots = build_tree(nodes, pieces)
    assert ids(roots) == [1, 4]


def test_build_tree_drops_orphans_and_their_descendants(nodes, pieces):
    roots = build_tree(nodes, pieces)
    reachable = {n.id for n in iter_nodes(roots)}
    assert reachable == {1, 2, 3, 4}


def test_build_tree_paths(nodes, pieces):
    paths = [[n.id for n in path] for path in iter_paths(build_tree(nodes, pieces))]
    assert paths == [[1, 2, 3], [4]]


def test_each_piece_appears_under_its_owner_only(nodes, pieces):
    roots = build_tree(nodes, pieces)
    placements = {}
    for node in iter_nodes(roots):
        for piece in node.pieces:
            placements.setdefault(piece.id, []).append(node.id)
    assert placements == {100: [2], 101: [3], 102: [4]}


def test_children_keep_input_order():
    nodes = [
        DocumentNode(1, "root"),
        DocumentNode(3, "second", parent_id=1),
        DocumentNode(2, "first", parent_id=1),
    ]
    roots = build_tree(nodes)
    assert ids(roots[0].children) == [3, 2]


def test_forest_matches_build_tree(nodes, pieces):
    forest = DocumentForest.build(nodes, pieces)
    assert [n.to_dict() for n in forest.roots()] == [n.to_dict() for n in build_tree(nodes, pieces)]


def test_forest_reports_orphans(nodes, pieces):
    forest = DocumentForest.build(nodes, pieces)
    assert [n.id for n in forest.orphans] == [5]
    reachable = {forest.nodes[i].id for i in forest.reachable_indices()}
    assert reachable == {1, 2, 3, 4}


def test_forest_ancestors(nodes):
    forest = DocumentForest.build(nodes)
    assert [a.id for a in forest.ancestors(3)] == [2, 1]
    assert forest.ancestors(1) == []


def test_forest_rejects_cycles():
    nodes = [
        DocumentNode(1, "root"),
        DocumentNode(7, "a", parent_id=8),
        DocumentNode(8, "b", parent_id=7),
    ]
    with pytest.raises(DocumentCycleError) as exc:
        DocumentForest.build(nodes)
    assert set(exc.value.node_ids) == {7, 8}


def test_forest_rejects_self_parent():
    with pytest.raises(DocumentCycleError):
        DocumentForest.build([DocumentNode(9, "self", parent_id=9)])


def test_forest_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        DocumentForest.build([DocumentNode(1, "a"), DocumentNode(1, "b")])


def test_filter_tree_keeps_ancestors_of_matches(nodes, pieces):
    roots = filter_tree(build_tree(nodes, pieces), "grandchild")
    assert ids(roots) == [1]
    assert ids(roots[0].children) == [2]
    assert ids(roots[0].children[0].children) == [3]


def test_filter_tree_matches_piece_names_case_insensitively(nodes, pieces):
    roots = filter_tree(build_tree(nodes, pieces), "B.PDF")
    assert ids(roots) == [4]
    assert [p.id for p in roots[0].pieces] == [102]


def test_filter_tree_blank_query_returns_input(nodes, pieces):
    roots = build_tree(nodes, pieces)
    assert filter_tree(roots, "  ") is roots


def test_count_pieces_is_recursive(nodes, pieces):
    roots = build_tree(nodes, pieces)
    assert count_pieces(roots[0]) == 2
    assert count_pieces(find_node(roots, 4)) == 1


def test_piece_in_unknown_folder_is_not_shown():
    roots = build_tree([DocumentNode(1, "root")], [Piece(1, "x", node_id=42)])
    assert roots[0].pieces == []
