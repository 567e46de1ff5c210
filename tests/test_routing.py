"""
Tests for the static cell graph and the capped routing table.

Run with: pytest tests/test_routing.py -v
"""

import numpy as np
import pytest

from ghostcell.errors import UnreachablePath
from ghostcell.graph import NO_ROUTE, CellGraph, Neighbor, RoutingTable

CHAIN_LINKS = [(0, 1, 3), (1, 2, 3), (2, 3, 3), (3, 4, 3)]


def test_long_direct_link_is_routed_through_short_hops(triangle_graph):
    routing = RoutingTable(triangle_graph, cutoff=7)

    assert routing.next_hop(0, 1) == 2
    assert routing.next_hop(1, 0) == 2
    assert routing.shortest_distance(0, 1) == 10
    assert routing.path(0, 1) == [2, 1]


def test_routing_distances_are_symmetric():
    graph = CellGraph(5, CHAIN_LINKS + [(0, 4, 5), (1, 3, 7)])
    routing = RoutingTable(graph)

    table = np.array([[routing.shortest_distance(a, b) for b in range(5)] for a in range(5)])
    assert np.array_equal(table, table.T)
    assert all(table[i, i] == 0 for i in range(5))


def test_path_length_matches_shortest_distance():
    graph = CellGraph(5, CHAIN_LINKS)
    routing = RoutingTable(graph)

    path = routing.path(0, 4)
    assert path == [1, 2, 3, 4]

    hops = [0] + path
    walked = sum(graph.distance(a, b) for a, b in zip(hops, hops[1:]))
    assert walked == routing.shortest_distance(0, 4) == 12


def test_equal_distance_keeps_direct_link():
    graph = CellGraph(4, [(0, 1, 2), (1, 3, 2), (0, 2, 2), (2, 3, 2), (0, 3, 4)])
    routing = RoutingTable(graph)

    assert routing.next_hop(0, 3) == 3
    assert routing.shortest_distance(0, 3) == 4


def test_unreachable_cell():
    graph = CellGraph(3, [(0, 1, 3), (1, 2, 20)])
    routing = RoutingTable(graph, cutoff=7, no_edge=100)

    assert routing.next_hop(0, 2) == NO_ROUTE
    assert not routing.has_route(0, 2)
    assert routing.first_hop(0, 2) == 2
    assert routing.shortest_distance(0, 2) == 100
    with pytest.raises(UnreachablePath):
        routing.path(0, 2)


def test_no_route_to_self(triangle_graph):
    routing = RoutingTable(triangle_graph)
    assert routing.next_hop(1, 1) == NO_ROUTE
    assert routing.shortest_distance(1, 1) == 0


def test_neighbors_sorted_by_distance_then_id():
    graph = CellGraph(4, [(0, 1, 5), (0, 2, 3), (0, 3, 5)], unlinked_distance=100)

    assert graph.neighbors(0) == (Neighbor(3, 2), Neighbor(5, 1), Neighbor(5, 3))
    assert graph.neighbors(1)[0] == Neighbor(5, 0)
    assert graph.distance(1, 2) == 100


def test_closest_with_predicate(triangle_graph):
    assert triangle_graph.closest(0, lambda other: True) == Neighbor(4, 2)
    assert triangle_graph.closest(0, lambda other: other == 1) == Neighbor(10, 1)
    assert triangle_graph.closest(0, lambda other: False) is None


def test_distance_matrix_is_read_only(triangle_graph):
    with pytest.raises(ValueError):
        triangle_graph.distance_matrix[0, 1] = 1


@pytest.mark.parametrize("links", [
    [(0, 0, 3)],
    [(0, 5, 3)],
    [(0, 1, 0)],
])
def test_invalid_links_rejected(links):
    with pytest.raises(ValueError):
        CellGraph(3, links)


def test_self_distance_matches_graph():
    graph = CellGraph(3, [(0, 1, 3), (1, 2, 3)])
    routing = RoutingTable(graph)

    for cell_id in range(3):
        assert routing.shortest_distance(cell_id, cell_id) == graph.distance(cell_id, cell_id) == 0
    assert routing.shortest_distance(0, 2) == 6
