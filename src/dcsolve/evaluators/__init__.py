"""Evaluators and result contracts."""

from dcsolve.evaluators.dc import solve, solve_snapshot
from dcsolve.evaluators.types import SolveError, SolveResult

__all__ = ["SolveError", "SolveResult", "solve", "solve_snapshot"]
