"""dcsolve package initialization."""

from dcsolve.circuits import (
    CircuitSnapshot,
    Component,
    ComponentKind,
    Position,
    SubcircuitDefinition,
    Terminal,
    TerminalRef,
    Wire,
    flatten_circuit,
)
from dcsolve.config import SolverOptions, load_options
from dcsolve.errors import (
    CircuitValidationError,
    CircularSubcircuitReferenceError,
    ConflictingVoltageConstraintError,
    DcSolveError,
    InvalidComponentValueError,
    SolveStageError,
    UnresolvedSubcircuitError,
    UnsolvableNetworkError,
    UnsupportedFloatingSourceError,
)
from dcsolve.evaluators import SolveError, SolveResult, solve, solve_snapshot

__all__ = [
    "CircuitSnapshot",
    "Component",
    "ComponentKind",
    "Position",
    "SubcircuitDefinition",
    "Terminal",
    "TerminalRef",
    "Wire",
    "flatten_circuit",
    "SolverOptions",
    "load_options",
    "CircuitValidationError",
    "CircularSubcircuitReferenceError",
    "ConflictingVoltageConstraintError",
    "DcSolveError",
    "InvalidComponentValueError",
    "SolveStageError",
    "UnresolvedSubcircuitError",
    "UnsolvableNetworkError",
    "UnsupportedFloatingSourceError",
    "SolveError",
    "SolveResult",
    "solve",
    "solve_snapshot",
]
