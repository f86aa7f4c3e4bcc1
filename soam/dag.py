"""A directed acyclic graph of gates whose indices are never reused."""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .gate import Gate, GateIndex, QubitIndex

_START = 0
_FINAL = 1


@dataclass
class GateNode:
    """A gate in the graph and its vector clock.

    The vector clock holds, for each qubit, the index of the last gate
    that acted on that qubit.
    """

    gate: Gate
    vector_clock: list[GateIndex] = field(default_factory=list)


@dataclass(frozen=True)
class _Edge:
    source: GateIndex
    target: GateIndex
    qubit: QubitIndex


def _is_terminal(gate_index: GateIndex) -> bool:
    return gate_index in (_START, _FINAL)


class DAG:
    """A multigraph of gates joined by qubit-labelled edges.

    Gate indices come from a counter that only grows, so an index stays
    meaningful after other gates are removed. Indices 0 and 1 are taken to
    be the start and final boundary nodes and are never marked unoptimized.
    """

    def __init__(self) -> None:
        self._nodes: dict[GateIndex, GateNode] = {}
        self._edges: dict[int, _Edge] = {}
        self._outgoing: dict[GateIndex, dict[int, None]] = {}
        self._incoming: dict[GateIndex, dict[int, None]] = {}
        self._next_gate_index: GateIndex = 0
        self._next_edge_id = 0
        self._unoptimized: set[GateIndex] = set()

    def _require(self, gate_index: GateIndex) -> GateNode:
        try:
            return self._nodes[gate_index]
        except KeyError:
            raise KeyError(f"no gate with index {gate_index}") from None

    def _out_edges(self, gate_index: GateIndex) -> Iterator[_Edge]:
        self._require(gate_index)
        # Most recently added edges come first.
        for edge_id in reversed(list(self._outgoing[gate_index])):
            yield self._edges[edge_id]

    def _in_edges(self, gate_index: GateIndex) -> Iterator[_Edge]:
        self._require(gate_index)
        for edge_id in reversed(list(self._incoming[gate_index])):
            yield self._edges[edge_id]

    def _drop_edge(self, edge_id: int) -> None:
        edge = self._edges.pop(edge_id)
        self._outgoing[edge.source].pop(edge_id, None)
        self._incoming[edge.target].pop(edge_id, None)

    def add_gate(self, node: GateNode) -> GateIndex:
        """Add a node and return its new index."""
        gate_index = self._next_gate_index
        self._next_gate_index += 1
        self._nodes[gate_index] = node
        self._outgoing[gate_index] = {}
        self._incoming[gate_index] = {}
        if not _is_terminal(gate_index):
            self._unoptimized.add(gate_index)
        return gate_index

    def remove_gate(self, gate_index: GateIndex) -> None:
        """Remove a node together with every edge touching it."""
        self._require(gate_index)
        for edge_id in list(self._outgoing[gate_index]) + list(self._incoming[gate_index]):
            if edge_id in self._edges:
                self._drop_edge(edge_id)
        del self._nodes[gate_index]
        del self._outgoing[gate_index]
        del self._incoming[gate_index]
        self._unoptimized.discard(gate_index)

    def invalidate_neighbors(self, gate_indices: Iterable[GateIndex], omega: int) -> None:
        """Mark as unoptimized every gate up to `omega` successor steps away."""
        frontier = set(gate_indices)
        visited = set(frontier)
        for _ in range(omega):
            reached = [edge.target for index in frontier for edge in self._out_edges(index)]
            frontier = set()
            for gate_index in reached:
                if _is_terminal(gate_index) or gate_index in visited:
                    continue
                visited.add(gate_index)
                frontier.add(gate_index)
                self._unoptimized.add(gate_index)

    def get_neighbors(self, gate_index: GateIndex, steps: int) -> list[GateIndex]:
        """The gate and all non-boundary gates within `steps` undirected steps."""
        self._require(gate_index)
        frontier = {gate_index}
        visited = {gate_index}
        for _ in range(steps):
            reached = [
                other
                for index in frontier
                for other in (
                    *(edge.target for edge in self._out_edges(index)),
                    *(edge.source for edge in self._in_edges(index)),
                )
                if other not in visited and not _is_terminal(other)
            ]
            frontier = set(reached)
            visited.update(reached)
        return sorted(visited)

    def next_unoptimized_gate(self) -> GateIndex | None:
        """Some gate still marked unoptimized, or None."""
        return min(self._unoptimized, default=None)

    def set_optimized(self, gate_index: GateIndex) -> None:
        self._unoptimized.discard(gate_index)

    def get_gate(self, gate_index: GateIndex) -> GateNode:
        """The node at an index; changes to it are seen by the graph."""
        return self._require(gate_index)

    def add_edge(self, source: GateIndex, target: GateIndex, qubit: QubitIndex) -> None:
        self._require(source)
        self._require(target)
        edge_id = self._next_edge_id
        self._next_edge_id += 1
        self._edges[edge_id] = _Edge(source, target, qubit)
        self._outgoing[source][edge_id] = None
        self._incoming[target][edge_id] = None

    def succ_neighbors(self, gate_index: GateIndex) -> list[tuple[QubitIndex, GateIndex]]:
        """(qubit, successor) for every outgoing edge."""
        return [(edge.qubit, edge.target) for edge in self._out_edges(gate_index)]

    def pred_neighbors(self, gate_index: GateIndex) -> list[tuple[QubitIndex, GateIndex]]:
        """(qubit, predecessor) for every incoming edge."""
        return [(edge.qubit, edge.source) for edge in self._in_edges(gate_index)]

    def succ_neighbor_qubit(self, gate_index: GateIndex, qubit: QubitIndex) -> GateIndex:
        for edge in self._out_edges(gate_index):
            if edge.qubit == qubit:
                return edge.target
        raise LookupError(f"No such edge: gate {gate_index} has no successor on qubit {qubit}")

    def pred_neighbor_qubit(self, gate_index: GateIndex, qubit: QubitIndex) -> GateIndex:
        for edge in self._in_edges(gate_index):
            if edge.qubit == qubit:
                return edge.source
        raise LookupError(f"No such edge: gate {gate_index} has no predecessor on qubit {qubit}")

    def remove_edge(self, source: GateIndex, target: GateIndex, qubit: QubitIndex) -> None:
        """Remove one edge from source to target on the qubit, if there is one."""
        self._require(target)
        for edge_id in reversed(list(self._outgoing[self._require(source) and source])):
            edge = self._edges[edge_id]
            if edge.target == target and edge.qubit == qubit:
                self._drop_edge(edge_id)
                return

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def node_weights(self) -> Iterator[GateNode]:
        return iter(self._nodes.values())

    def toposort(self) -> list[GateIndex]:
        """Gate indices in an order where every edge points forward."""
        in_degree = {index: len(incoming) for index, incoming in self._incoming.items()}
        ready = [index for index, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        order: list[GateIndex] = []
        while ready:
            index = heapq.heappop(ready)
            order.append(index)
            for edge_id in self._outgoing[index]:
                target = self._edges[edge_id].target
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    heapq.heappush(ready, target)
        if len(order) != len(self._nodes):
            raise ValueError("the gate graph has a cycle")
        return order

    def contains_edge(self, source: GateIndex, target: GateIndex) -> bool:
        self._require(target)
        return any(edge.target == target for edge in self._out_edges(source))

    def to_gate_vec(self) -> list[Gate]:
        """The gates in topological order, boundary markers left out."""
        gates = (self._nodes[index].gate for index in self.toposort())
        return [gate for gate in gates if not gate.is_boundary()]