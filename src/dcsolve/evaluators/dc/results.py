"""Back-computation of component currents and result assembly."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from dcsolve.circuits.model import Component, ComponentKind, FlatCircuit
from dcsolve.evaluators.dc.assembly import LinearSystem
from dcsolve.evaluators.dc.linear import LinearSolution
from dcsolve.evaluators.dc.nodes import NodeMap
from dcsolve.evaluators.types import SolveResult


CurrentFn = Callable[[Component, Mapping[str, float], NodeMap], float]


def _resistor_current(comp: Component, voltages: Mapping[str, float], node_map: NodeMap) -> float:
    """Current from terminal 0 to terminal 1."""
    v_a = voltages[node_map.node_of(comp.cid, 0)]
    v_b = voltages[node_map.node_of(comp.cid, 1)]
    return (v_a - v_b) / comp.value


def _zero_current(comp: Component, voltages: Mapping[str, float], node_map: NodeMap) -> float:
    return 0.0


CURRENTS: Dict[ComponentKind, CurrentFn] = {
    ComponentKind.RESISTOR: _resistor_current,
    # Row substitution has no branch-current unknown for sources.
    ComponentKind.VOLTAGE_SOURCE: _zero_current,
    ComponentKind.CAPACITOR: _zero_current,
    ComponentKind.INDUCTOR: _zero_current,
    ComponentKind.DIODE: _zero_current,
    ComponentKind.TRANSISTOR: _zero_current,
    ComponentKind.BULB: _zero_current,
    ComponentKind.LOGIC_GATE: _zero_current,
}


def _unresolved_warnings(flat: FlatCircuit) -> List[str]:
    return [
        f"UnresolvedSubcircuit: instance {ref.instance_id} references unknown subcircuit "
        f"{ref.subcircuit_ref}; it was dropped with {len(ref.dropped_wires)} wire(s)."
        for ref in flat.unresolved
    ]


def empty_result(flat: FlatCircuit, meta: Optional[Dict[str, Any]] = None) -> SolveResult:
    """Successful result for a circuit without components."""
    return SolveResult(status="ok", warnings=_unresolved_warnings(flat), meta=dict(meta or {}))


def compose_result(
    flat: FlatCircuit,
    system: LinearSystem,
    solution: LinearSolution,
    active: Sequence[int],
    meta: Optional[Dict[str, Any]] = None,
) -> SolveResult:
    node_map = system.node_map
    voltages: Dict[str, float] = {node_map.ground: 0.0}
    for position, index in enumerate(active):
        voltages[node_map.index_to_node[int(index)]] = float(solution.x[position])

    indeterminate = set(system.indeterminate)
    currents: Dict[str, float] = {}
    for comp in flat.components:
        if comp.cid in indeterminate:
            currents[comp.cid] = 0.0
            continue
        currents[comp.cid] = float(CURRENTS[comp.kind](comp, voltages, node_map))

    warnings = _unresolved_warnings(flat)
    for cid in system.indeterminate:
        warnings.append(f"Resistor {cid} is shorted by its own wiring; its current is indeterminate and reported as 0.")
    for comp in flat.components:
        if comp.kind is ComponentKind.VOLTAGE_SOURCE:
            warnings.append(f"Voltage source {comp.cid} current is not computed by this DC model; reported as 0.")
    for node in system.open_nodes:
        warnings.append(f"Node {node} connects only to open-circuit components; its voltage is undefined.")

    result_meta = dict(meta or {})
    result_meta.update(
        {
            "n_nodes": node_map.size + 1,
            "n_unknowns": int(len(active)),
            "method": solution.method,
        }
    )
    if solution.cond is not None:
        result_meta["cond"] = solution.cond
    return SolveResult(
        status="ok",
        node_voltages=voltages,
        component_currents=currents,
        ground=node_map.ground,
        terminal_nodes=dict(node_map.terminal_to_node),
        warnings=warnings,
        meta=result_meta,
    )
