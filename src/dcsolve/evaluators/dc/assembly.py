"""Nodal system assembly with row substitution for grounded voltage sources."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from dcsolve.circuits.model import Component, ComponentKind
from dcsolve.errors import (
    CircuitValidationError,
    ConflictingVoltageConstraintError,
    InvalidComponentValueError,
    UnsolvableNetworkError,
    UnsupportedFloatingSourceError,
)
from dcsolve.evaluators.dc.nodes import NodeId, NodeMap


logger = logging.getLogger(__name__)


@dataclass
class LinearSystem:
    """
    Assembled nodal system ``G x = I`` over the non-ground nodes.

    ``fixed_rows`` maps rows replaced by a voltage-source identity row to the
    source id. ``open_nodes`` lists nodes touched only by open-circuit
    components; their rows and columns are empty and are left out of the solve.
    """

    G: np.ndarray
    I: np.ndarray
    node_map: NodeMap
    fixed_rows: Dict[int, str] = field(default_factory=dict)
    indeterminate: List[str] = field(default_factory=list)
    open_nodes: List[NodeId] = field(default_factory=list)

    @property
    def active_indices(self) -> np.ndarray:
        open_set = {self.node_map.node_to_index[node] for node in self.open_nodes}
        return np.array([idx for idx in range(self.node_map.size) if idx not in open_set], dtype=int)

    def reduced(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return ``(G, I, indices)`` restricted to the solved unknowns."""
        active = self.active_indices
        return self.G[np.ix_(active, active)], self.I[active], active


@dataclass
class _StampContext:
    G: np.ndarray
    I: np.ndarray
    node_map: NodeMap
    constraints: Dict[int, Tuple[str, float]] = field(default_factory=dict)
    indeterminate: List[str] = field(default_factory=list)
    driven: Set[int] = field(default_factory=set)
    shorted_nodes: Set[int] = field(default_factory=set)

    def touch(self, *indices: Optional[int]) -> None:
        self.driven.update(idx for idx in indices if idx is not None)


StampFn = Callable[[Component, _StampContext], None]


def stamp_conductance(G: np.ndarray, conductance: float, idx_a: Optional[int], idx_b: Optional[int]) -> None:
    """Two-terminal conductance stamp; ``None`` marks a ground terminal."""
    if idx_a is not None:
        G[idx_a, idx_a] += conductance
    if idx_b is not None:
        G[idx_b, idx_b] += conductance
    if idx_a is not None and idx_b is not None:
        G[idx_a, idx_b] -= conductance
        G[idx_b, idx_a] -= conductance


def _require_finite(comp: Component) -> None:
    if not math.isfinite(comp.value):
        raise InvalidComponentValueError(
            f"Component {comp.cid} has non-finite value {comp.value!r}.",
            {"component": comp.cid, "value": comp.value},
        )


def _stamp_resistor(comp: Component, ctx: _StampContext) -> None:
    _require_finite(comp)
    if comp.value <= 0:
        raise InvalidComponentValueError(
            f"Resistor {comp.cid} must have positive resistance, got {comp.value!r} ohm.",
            {"component": comp.cid, "value": comp.value},
        )
    idx_a = ctx.node_map.index_of(comp.cid, 0)
    idx_b = ctx.node_map.index_of(comp.cid, 1)
    if idx_a == idx_b:
        # Both terminals on one node: the resistor is shorted out.
        ctx.indeterminate.append(comp.cid)
        ctx.touch(idx_a)
        if idx_a is not None:
            ctx.shorted_nodes.add(idx_a)
        return
    ctx.touch(idx_a, idx_b)
    stamp_conductance(ctx.G, 1.0 / comp.value, idx_a, idx_b)


def _stamp_voltage_source(comp: Component, ctx: _StampContext) -> None:
    """
    Fix the non-ground terminal's node to the source value.

    Row substitution replaces the MNA branch-current unknown, so it only
    works for sources with one terminal on ground and one source per node.
    Terminal 1 is positive and terminal 0 negative.
    """
    _require_finite(comp)
    idx_neg = ctx.node_map.index_of(comp.cid, 0)
    idx_pos = ctx.node_map.index_of(comp.cid, 1)
    if idx_neg is not None and idx_pos is not None:
        raise UnsupportedFloatingSourceError(
            f"Voltage source {comp.cid} has neither terminal on ground; floating sources are not supported.",
            {"component": comp.cid},
        )
    if idx_neg is None and idx_pos is None:
        if comp.value != 0.0:
            raise ConflictingVoltageConstraintError(
                f"Voltage source {comp.cid} is shorted across ground but sets {comp.value!r} V.",
                {"component": comp.cid, "value": comp.value},
            )
        return

    if idx_pos is not None:
        row, rhs = idx_pos, comp.value
    else:
        row, rhs = idx_neg, -comp.value
    previous = ctx.constraints.get(row)
    if previous is not None:
        raise ConflictingVoltageConstraintError(
            f"Voltage sources {previous[0]} and {comp.cid} both fix node {ctx.node_map.index_to_node[row]}.",
            {"components": [previous[0], comp.cid], "node": ctx.node_map.index_to_node[row]},
        )
    ctx.constraints[row] = (comp.cid, rhs)
    ctx.touch(row)


def _stamp_open(comp: Component, ctx: _StampContext) -> None:
    return None


def _reject_instance(comp: Component, ctx: _StampContext) -> None:
    raise CircuitValidationError(
        f"Subcircuit instance {comp.cid} must be flattened before assembly.",
        {"component": comp.cid},
    )


STAMPS: Dict[ComponentKind, StampFn] = {
    ComponentKind.RESISTOR: _stamp_resistor,
    ComponentKind.VOLTAGE_SOURCE: _stamp_voltage_source,
    ComponentKind.CAPACITOR: _stamp_open,
    ComponentKind.INDUCTOR: _stamp_open,
    ComponentKind.DIODE: _stamp_open,
    ComponentKind.TRANSISTOR: _stamp_open,
    ComponentKind.BULB: _stamp_open,
    ComponentKind.LOGIC_GATE: _stamp_open,
    ComponentKind.SUBCIRCUIT: _reject_instance,
}


def assemble_system(components: Iterable[Component], node_map: NodeMap) -> LinearSystem:
    """Build ``G`` and ``I`` for a flattened circuit."""
    n_nodes = node_map.size
    ctx = _StampContext(
        G=np.zeros((n_nodes, n_nodes), dtype=float),
        I=np.zeros(n_nodes, dtype=float),
        node_map=node_map,
    )
    for comp in components:
        STAMPS[comp.kind](comp, ctx)

    # Source rows are substituted last so conductance stamps cannot leak into them.
    for row, (_, rhs) in ctx.constraints.items():
        ctx.G[row, :] = 0.0
        ctx.G[row, row] = 1.0
        ctx.I[row] = rhs

    for idx in sorted(ctx.shorted_nodes):
        if not ctx.G[idx].any():
            node = node_map.index_to_node[idx]
            shorted = [cid for cid in ctx.indeterminate if node_map.node_of(cid, 0) == node]
            raise UnsolvableNetworkError(
                f"Node {node} connects only to resistors shorted by their own wiring "
                f"({', '.join(shorted)}); it has no path to ground.",
                {"node": node, "components": shorted},
            )

    open_nodes = [node for idx, node in enumerate(node_map.index_to_node) if idx not in ctx.driven]
    if open_nodes:
        logger.debug("Nodes %s connect only to open-circuit components.", open_nodes)
    return LinearSystem(
        G=ctx.G,
        I=ctx.I,
        node_map=node_map,
        fixed_rows={row: cid for row, (cid, _) in ctx.constraints.items()},
        indeterminate=list(ctx.indeterminate),
        open_nodes=open_nodes,
    )
