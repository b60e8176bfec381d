"""Typed result contracts for the DC solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional

from dcsolve.errors import DcSolveError


@dataclass(frozen=True)
class SolveError:
    """Structured solve failure."""

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: DcSolveError) -> "SolveError":
        return cls(code=exc.code, message=exc.message, details=dict(exc.details))

    def describe(self) -> str:
        return f"{self.code}: {self.message}"

    def to_json_dict(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


@dataclass
class SolveResult:
    """
    Outcome of one solve: node voltages and component currents, or an error.

    The two variants are exclusive. An error result never carries voltages,
    currents or a ground node. ``timing_s`` is excluded from equality so
    repeated solves compare equal.
    """

    status: Literal["ok", "error"]
    node_voltages: Dict[str, float] = field(default_factory=dict)
    component_currents: Dict[str, float] = field(default_factory=dict)
    ground: Optional[str] = None
    terminal_nodes: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    error: Optional[SolveError] = None
    timing_s: Dict[str, float] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.status not in ("ok", "error"):
            raise ValueError("status must be 'ok' or 'error'.")
        if self.status == "ok" and self.error is not None:
            raise ValueError("A successful result cannot carry an error.")
        if self.status == "error":
            if self.error is None:
                raise ValueError("An error result requires an error.")
            if self.node_voltages or self.component_currents or self.terminal_nodes or self.ground is not None:
                raise ValueError("An error result cannot carry voltages or currents.")

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def error_message(self) -> Optional[str]:
        return None if self.error is None else self.error.describe()

    def voltage(self, node: str) -> float:
        if node not in self.node_voltages:
            raise KeyError(f"Unknown node '{node}'.")
        return self.node_voltages[node]

    def node_of(self, component_id: str, terminal: int) -> str:
        key = f"{component_id}_{terminal}"
        if key not in self.terminal_nodes:
            raise KeyError(f"Unknown terminal '{key}'.")
        return self.terminal_nodes[key]

    def terminal_voltage(self, component_id: str, terminal: int) -> float:
        return self.voltage(self.node_of(component_id, terminal))

    def current(self, component_id: str) -> float:
        if component_id not in self.component_currents:
            raise KeyError(f"Component '{component_id}' not present in the result.")
        return self.component_currents[component_id]

    def to_json_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "node_voltages": {key: float(val) for key, val in self.node_voltages.items()},
            "component_currents": {key: float(val) for key, val in self.component_currents.items()},
            "ground": self.ground,
            "terminal_nodes": dict(self.terminal_nodes),
            "warnings": list(self.warnings),
            "meta": dict(self.meta),
            "error": None if self.error is None else self.error.to_json_dict(),
            "timing_s": {key: float(val) for key, val in self.timing_s.items()},
        }


def error_result(exc: DcSolveError, meta: Optional[Dict[str, Any]] = None) -> SolveResult:
    """Wrap a solve failure as the error variant."""
    return SolveResult(status="error", error=SolveError.from_exception(exc), meta=dict(meta or {}))


def summarize_warnings(warnings: Iterable[str]) -> str:
    """Create a compact summary string for warning lists."""
    return "; ".join(warnings)
