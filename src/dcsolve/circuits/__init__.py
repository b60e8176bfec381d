"""Circuit snapshot types, hierarchy flattening and the snapshot codec."""

from dcsolve.circuits.model import (
    CircuitSnapshot,
    Component,
    ComponentKind,
    FlatCircuit,
    Position,
    SubcircuitDefinition,
    Terminal,
    TerminalRef,
    UnresolvedReference,
    Wire,
)
from dcsolve.circuits.hierarchy import flatten_circuit
from dcsolve.circuits.io import (
    load_snapshot,
    snapshot_from_dict,
    snapshot_from_json,
    snapshot_to_dict,
    snapshot_to_json,
)

__all__ = [
    "CircuitSnapshot",
    "Component",
    "ComponentKind",
    "FlatCircuit",
    "Position",
    "SubcircuitDefinition",
    "Terminal",
    "TerminalRef",
    "UnresolvedReference",
    "Wire",
    "flatten_circuit",
    "load_snapshot",
    "snapshot_from_dict",
    "snapshot_from_json",
    "snapshot_to_dict",
    "snapshot_to_json",
]
