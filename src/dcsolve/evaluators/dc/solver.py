"""DC solve pipeline: flatten, identify nodes, assemble, solve, compose."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from dcsolve.circuits.hierarchy import flatten_circuit
from dcsolve.circuits.model import CircuitSnapshot, Component, SubcircuitLibrary, Wire
from dcsolve.config import SolverOptions
from dcsolve.errors import DcSolveError
from dcsolve.evaluators.dc.assembly import assemble_system
from dcsolve.evaluators.dc.linear import solve_linear_system
from dcsolve.evaluators.dc.nodes import identify_nodes
from dcsolve.evaluators.dc.results import compose_result, empty_result
from dcsolve.evaluators.types import SolveResult, error_result


logger = logging.getLogger(__name__)


def solve(
    components: Iterable[Component],
    wires: Iterable[Wire],
    library: Optional[SubcircuitLibrary] = None,
    options: Optional[SolverOptions] = None,
) -> SolveResult:
    """
    Solve a DC circuit snapshot.

    Returns node voltages and component currents, or an error result whose
    ``error.code`` names the failed check. Failures never raise across this
    boundary; programming errors do.
    """
    options = options or SolverOptions()
    components = tuple(components)
    wires = tuple(wires)
    start = time.perf_counter()
    meta = {"n_components": len(components), "n_wires": len(wires)}

    try:
        flat = flatten_circuit(components, wires, library, max_depth=options.max_depth)
        meta.update({"n_flat_components": len(flat.components), "n_flat_wires": len(flat.wires)})
        node_map = identify_nodes(flat.components, flat.wires)
        if node_map is None:
            result = empty_result(flat, meta)
            result.timing_s["total"] = time.perf_counter() - start
            return result

        system = assemble_system(flat.components, node_map)
        G, I, active = system.reduced()
        solve_start = time.perf_counter()
        solution = solve_linear_system(G, I, options)
        solve_time = time.perf_counter() - solve_start
    except DcSolveError as exc:
        logger.info("DC solve failed with %s: %s", exc.code, exc.message)
        result = error_result(exc, meta)
        result.timing_s["total"] = time.perf_counter() - start
        return result

    result = compose_result(flat, system, solution, active, meta)
    result.timing_s.update({"total": time.perf_counter() - start, "solve": solve_time})
    return result


def solve_snapshot(snapshot: CircuitSnapshot, options: Optional[SolverOptions] = None) -> SolveResult:
    """Convenience wrapper around ``solve`` for a ``CircuitSnapshot``."""
    return solve(snapshot.components, snapshot.wires, snapshot.library, options)
