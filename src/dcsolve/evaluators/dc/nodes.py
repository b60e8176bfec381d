"""Electrical node identification by wire contraction."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from dcsolve.circuits.model import TERMINAL_COUNT, Component, ComponentKind, Wire, terminal_id


logger = logging.getLogger(__name__)

NodeId = str


class TerminalUnionFind:
    """Disjoint-set forest over terminal ids with path compression."""

    def __init__(self) -> None:
        self._parent: Dict[str, str] = {}

    def __contains__(self, item: str) -> bool:
        return item in self._parent

    def add(self, item: str) -> None:
        self._parent.setdefault(item, item)

    def find(self, item: str) -> str:
        self.add(item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> str:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a
        return root_a


@dataclass(frozen=True)
class NodeMap:
    """
    Terminal-to-node assignment for one solve.

    Node ids are the union-find representative terminal ids. ``ground`` is
    never in ``node_to_index``; the other nodes are numbered in the order they
    are first seen while walking components and their terminals.
    """

    terminal_to_node: Dict[str, NodeId]
    ground: NodeId
    node_to_index: Dict[NodeId, int]
    index_to_node: List[NodeId]

    @property
    def size(self) -> int:
        return len(self.index_to_node)

    @property
    def nodes(self) -> List[NodeId]:
        return [self.ground] + list(self.index_to_node)

    def node_of(self, component_id: str, terminal: int) -> NodeId:
        return self.terminal_to_node[terminal_id(component_id, terminal)]

    def index_of(self, component_id: str, terminal: int) -> Optional[int]:
        """Matrix index of a terminal's node, or None when it sits on ground."""
        return self.node_to_index.get(self.node_of(component_id, terminal))


def choose_ground(components: Sequence[Component], uf: TerminalUnionFind) -> NodeId:
    """Pick the reference node: first source's negative terminal, else first component's terminal 0."""
    for comp in components:
        if comp.kind is ComponentKind.VOLTAGE_SOURCE:
            return uf.find(terminal_id(comp.cid, 0))
    return uf.find(terminal_id(components[0].cid, 0))


def identify_nodes(components: Iterable[Component], wires: Iterable[Wire]) -> Optional[NodeMap]:
    """Contract wire-connected terminals into nodes; return None for an empty circuit."""
    components = list(components)
    if not components:
        return None

    uf = TerminalUnionFind()
    for comp in components:
        for terminal in range(TERMINAL_COUNT):
            uf.add(terminal_id(comp.cid, terminal))
    for wire in wires:
        uf.union(wire.a.terminal_id, wire.b.terminal_id)

    ground = choose_ground(components, uf)
    terminal_to_node: Dict[str, NodeId] = {}
    node_to_index: Dict[NodeId, int] = {}
    index_to_node: List[NodeId] = []
    for comp in components:
        for terminal in range(TERMINAL_COUNT):
            tid = terminal_id(comp.cid, terminal)
            node = uf.find(tid)
            terminal_to_node[tid] = node
            if node != ground and node not in node_to_index:
                node_to_index[node] = len(index_to_node)
                index_to_node.append(node)

    logger.debug(
        "Identified %d nodes (ground %s) from %d components.",
        len(index_to_node) + 1,
        ground,
        len(components),
    )
    return NodeMap(
        terminal_to_node=terminal_to_node,
        ground=ground,
        node_to_index=node_to_index,
        index_to_node=index_to_node,
    )
