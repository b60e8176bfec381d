"""DC operating-point solver for schematic snapshots."""

from dcsolve.evaluators.dc.assembly import LinearSystem, assemble_system
from dcsolve.evaluators.dc.linear import LinearSolution, solve_linear_system
from dcsolve.evaluators.dc.nodes import NodeMap, TerminalUnionFind, identify_nodes
from dcsolve.evaluators.dc.results import compose_result
from dcsolve.evaluators.dc.solver import solve, solve_snapshot

__all__ = [
    "LinearSystem",
    "LinearSolution",
    "NodeMap",
    "TerminalUnionFind",
    "assemble_system",
    "compose_result",
    "identify_nodes",
    "solve",
    "solve_linear_system",
    "solve_snapshot",
]
