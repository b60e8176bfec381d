"""Custom exceptions for circuit validation and DC solving."""

from __future__ import annotations

from typing import Any, Mapping, Optional


class DcSolveError(Exception):
    """Base class for failures that ``solve`` reports as an error result."""

    code = "SolveError"

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})


class CircuitValidationError(DcSolveError, ValueError):
    """Raised when a circuit, wire or subcircuit definition is invalid."""

    code = "InvalidCircuit"


class InvalidComponentValueError(CircuitValidationError):
    """Raised when a component value is outside its valid domain."""

    code = "InvalidComponentValue"


class UnresolvedSubcircuitError(CircuitValidationError):
    """Raised when an instance references a definition missing from the library."""

    code = "UnresolvedSubcircuit"


class CircularSubcircuitReferenceError(CircuitValidationError):
    """Raised when subcircuit definitions nest into a cycle."""

    code = "CircularSubcircuitReference"


class SolveStageError(DcSolveError, RuntimeError):
    """Base class for assembly and linear solve failures."""


class UnsupportedFloatingSourceError(SolveStageError):
    """Raised when a voltage source has neither terminal on the ground node."""

    code = "UnsupportedFloatingSource"


class ConflictingVoltageConstraintError(SolveStageError):
    """Raised when two voltage sources fix the same node."""

    code = "ConflictingVoltageConstraint"


class UnsolvableNetworkError(SolveStageError):
    """Raised when the nodal system is singular or disconnected from ground."""

    code = "UnsolvableNetwork"
