"""Immutable circuit snapshot types consumed by the DC solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from dcsolve.errors import CircuitValidationError


ComponentId = str
TERMINAL_COUNT = 2


class ComponentKind(str, Enum):
    """Closed set of component kinds placed by the schematic editor."""

    RESISTOR = "resistor"
    VOLTAGE_SOURCE = "voltage"
    CAPACITOR = "capacitor"
    INDUCTOR = "inductor"
    DIODE = "diode"
    TRANSISTOR = "transistor"
    BULB = "bulb"
    LOGIC_GATE = "logic-gate"
    SUBCIRCUIT = "subcircuit"


LOGIC_GATE_SUBTYPES = frozenset({"AND", "OR", "NOT", "NAND", "NOR", "XOR"})
TRANSISTOR_SUBTYPES = frozenset({"NPN", "PNP", "MOSFET"})

_SUBTYPES: Dict[ComponentKind, frozenset] = {
    ComponentKind.LOGIC_GATE: LOGIC_GATE_SUBTYPES,
    ComponentKind.TRANSISTOR: TRANSISTOR_SUBTYPES,
}


@dataclass(frozen=True)
class Position:
    """Placement of a component on the editor canvas."""

    x: float = 0.0
    y: float = 0.0

    def translated(self, offset: "Position") -> "Position":
        return Position(self.x + offset.x, self.y + offset.y)


@dataclass(frozen=True)
class TerminalRef:
    """One connection point: a component id plus terminal index."""

    component_id: ComponentId
    terminal: int

    def __post_init__(self) -> None:
        if not self.component_id:
            raise CircuitValidationError("Terminal reference needs a component id.")
        if isinstance(self.terminal, bool) or not isinstance(self.terminal, int) or self.terminal < 0:
            raise CircuitValidationError(
                f"Terminal index must be a non-negative integer, got {self.terminal!r}."
            )

    @property
    def terminal_id(self) -> str:
        return terminal_id(self.component_id, self.terminal)


def terminal_id(component_id: ComponentId, terminal: int) -> str:
    """Return the union-find key ``"<componentId>_<terminalIndex>"``."""
    return f"{component_id}_{terminal}"


@dataclass(frozen=True)
class Component:
    """
    A placed component.

    Leaf kinds have exactly two terminals (0 and 1). A component of kind
    ``SUBCIRCUIT`` names a library definition through ``subcircuit_ref``; its
    ``terminal_map`` binds exposed terminal ids to internal terminals and
    overrides the bindings stored on the definition.
    """

    cid: ComponentId
    kind: ComponentKind
    value: float = 0.0
    position: Position = field(default_factory=Position)
    subtype: Optional[str] = None
    rotation: float = 0.0
    subcircuit_ref: Optional[str] = None
    terminal_map: Mapping[str, TerminalRef] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.cid:
            raise CircuitValidationError("Component id must be non-empty.")
        try:
            kind = ComponentKind(self.kind)
        except ValueError as exc:
            raise CircuitValidationError(
                f"Unsupported component kind for {self.cid}: {self.kind!r}"
            ) from exc
        object.__setattr__(self, "kind", kind)

        allowed = _SUBTYPES.get(kind)
        if self.subtype is not None and (allowed is None or self.subtype not in allowed):
            raise CircuitValidationError(
                f"Component {self.cid} of kind {kind.value} cannot have subtype {self.subtype!r}."
            )
        if kind is ComponentKind.SUBCIRCUIT:
            if not self.subcircuit_ref:
                raise CircuitValidationError(
                    f"Subcircuit instance {self.cid} must reference a definition."
                )
        elif self.subcircuit_ref is not None or self.terminal_map:
            raise CircuitValidationError(
                f"Only subcircuit instances may carry a subcircuit reference ({self.cid})."
            )

    @property
    def is_instance(self) -> bool:
        return self.kind is ComponentKind.SUBCIRCUIT

    def terminal(self, index: int) -> TerminalRef:
        return TerminalRef(self.cid, index)


@dataclass(frozen=True)
class Wire:
    """Ideal short between two terminals; wires carry no current of their own."""

    wid: str
    a: TerminalRef
    b: TerminalRef

    def endpoints(self) -> Tuple[TerminalRef, TerminalRef]:
        return (self.a, self.b)

    def touches(self, component_id: ComponentId) -> bool:
        return self.a.component_id == component_id or self.b.component_id == component_id


@dataclass(frozen=True)
class Terminal:
    """Exposed pin of a subcircuit definition."""

    tid: str
    position: Position = field(default_factory=Position)
    name: str = ""
    target: Optional[TerminalRef] = None


@dataclass(frozen=True)
class SubcircuitDefinition:
    """Reusable circuit blueprint instantiated by ``SUBCIRCUIT`` components."""

    sid: str
    name: str
    internal_components: Tuple[Component, ...] = ()
    internal_wires: Tuple[Wire, ...] = ()
    inputs: Tuple[Terminal, ...] = ()
    outputs: Tuple[Terminal, ...] = ()
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self) -> None:
        if not self.sid:
            raise CircuitValidationError("Subcircuit definition id must be non-empty.")
        object.__setattr__(self, "internal_components", tuple(self.internal_components))
        object.__setattr__(self, "internal_wires", tuple(self.internal_wires))
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        tids = [term.tid for term in self.terminals]
        if len(set(tids)) != len(tids):
            raise CircuitValidationError(f"Subcircuit {self.sid} terminal ids must be unique.")

    @property
    def terminals(self) -> Tuple[Terminal, ...]:
        """Inputs followed by outputs; an instance's terminal index points into this."""
        return self.inputs + self.outputs


SubcircuitLibrary = Mapping[str, SubcircuitDefinition]


@dataclass(frozen=True)
class UnresolvedReference:
    """Instance dropped from a solve because its definition is missing."""

    instance_id: ComponentId
    subcircuit_ref: str
    dropped_wires: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FlatCircuit:
    """Hierarchy-free component and wire lists with globally unique ids."""

    components: Tuple[Component, ...]
    wires: Tuple[Wire, ...]
    unresolved: Tuple[UnresolvedReference, ...] = ()


@dataclass(frozen=True)
class CircuitSnapshot:
    """Everything one solve reads: components, wires and the subcircuit library."""

    components: Tuple[Component, ...] = ()
    wires: Tuple[Wire, ...] = ()
    library: Mapping[str, SubcircuitDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "wires", tuple(self.wires))
        object.__setattr__(self, "library", dict(self.library))
