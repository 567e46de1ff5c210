"""Static cell graph and the capped all-pairs routing table built from it."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ghostcell.errors import UnreachablePath


Link = Tuple[int, int, int]

NO_ROUTE = -1


@dataclass(frozen=True, order=True)
class Neighbor:
    distance: int
    cell_id: int


class CellGraph:
    """
    Symmetric distance matrix over all cells plus each cell's neighbours ordered
    nearest first. Pairs without a link get ``unlinked_distance``.
    """

    def __init__(self, cell_count: int, links: Iterable[Link], unlinked_distance: int = 100):
        if cell_count <= 0:
            raise ValueError("graph needs at least one cell")

        self._count = cell_count
        self._distances = np.full((cell_count, cell_count), unlinked_distance, dtype=np.int64)
        np.fill_diagonal(self._distances, 0)

        for a, b, distance in links:
            if not (0 <= a < cell_count and 0 <= b < cell_count):
                raise ValueError(f"link ({a}, {b}) references an unknown cell")
            if a == b:
                raise ValueError(f"link ({a}, {b}) is a self loop")
            if distance <= 0:
                raise ValueError(f"link ({a}, {b}) has non-positive distance {distance}")
            self._distances[a, b] = distance
            self._distances[b, a] = distance

        self._distances.setflags(write=False)

        # stable sort: equal distances keep ascending cell id
        self._neighbors: List[Tuple[Neighbor, ...]] = []
        for cell_id in range(cell_count):
            row = self._distances[cell_id]
            self._neighbors.append(tuple(sorted(
                Neighbor(int(row[other]), other) for other in range(cell_count) if other != cell_id
            )))

    @property
    def cell_count(self) -> int:
        return self._count

    @property
    def distance_matrix(self) -> np.ndarray:
        return self._distances

    def distance(self, a: int, b: int) -> int:
        return int(self._distances[a, b])

    def neighbors(self, cell_id: int) -> Sequence[Neighbor]:
        return self._neighbors[cell_id]

    def closest(self, cell_id: int, predicate: Callable[[int], bool]) -> Optional[Neighbor]:
        for neighbor in self._neighbors[cell_id]:
            if predicate(neighbor.cell_id):
                return neighbor
        return None


class RoutingTable:
    """
    All-pairs shortest paths restricted to short links.

    Links longer than ``cutoff`` are not edges, which biases routes toward
    several short hops. Relaxation keeps the first path found on equal
    distance. Built once per match; read-only afterwards.
    """

    def __init__(self, graph: CellGraph, cutoff: int = 7, no_edge: int = 100):
        self.cutoff = cutoff
        self.no_edge = no_edge
        self._distances, self._hops = self._build(graph.distance_matrix, cutoff, no_edge)
        self._distances.setflags(write=False)
        self._hops.setflags(write=False)

    @staticmethod
    def _build(direct: np.ndarray, cutoff: int, no_edge: int) -> Tuple[np.ndarray, np.ndarray]:
        n = direct.shape[0]
        off_diagonal = ~np.eye(n, dtype=bool)
        is_edge = (direct <= cutoff) & off_diagonal

        table = np.where(is_edge, direct, no_edge).astype(np.int64)
        hops = np.where(is_edge, np.arange(n)[np.newaxis, :], NO_ROUTE).astype(np.int64)

        # Row and column k never change during pass k, so each pass can be
        # evaluated as one array operation without changing the result of the
        # sequential triple loop.
        for k in range(n):
            via = table[:, k, np.newaxis] + table[np.newaxis, k, :]
            better = (via < table) & off_diagonal
            better[k, :] = False
            better[:, k] = False
            table = np.where(better, via, table)
            hops = np.where(better, hops[:, k, np.newaxis], hops)

        np.fill_diagonal(table, 0)
        return table, hops

    def next_hop(self, origin: int, target: int) -> int:
        """First cell on the routed path, or NO_ROUTE when no route exists."""
        return int(self._hops[origin, target])

    def first_hop(self, origin: int, target: int) -> int:
        """Like next_hop, but falls back to a direct move when no route exists."""
        hop = self.next_hop(origin, target)
        return target if hop == NO_ROUTE else hop

    def has_route(self, origin: int, target: int) -> bool:
        return self.next_hop(origin, target) != NO_ROUTE

    def shortest_distance(self, origin: int, target: int) -> int:
        return int(self._distances[origin, target])

    def path(self, origin: int, target: int) -> List[int]:
        """
        Cells visited after ``origin`` up to and including ``target``.

        Raises:
            UnreachablePath: If no route exists under the cutoff.
        """
        hops: List[int] = []
        current = origin
        for _ in range(self._hops.shape[0]):
            nxt = self.next_hop(current, target)
            if nxt == NO_ROUTE:
                raise UnreachablePath(origin, target)
            hops.append(nxt)
            if nxt == target:
                return hops
            current = nxt
        raise UnreachablePath(origin, target)
