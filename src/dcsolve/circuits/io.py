"""JSON/YAML codec for circuit snapshots handed to the solver."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from dcsolve.circuits.model import (
    CircuitSnapshot,
    Component,
    Position,
    SubcircuitDefinition,
    Terminal,
    TerminalRef,
    Wire,
)
from dcsolve.errors import CircuitValidationError


def snapshot_to_json(snapshot: CircuitSnapshot) -> str:
    """Serialize a snapshot to deterministic JSON."""
    return json.dumps(snapshot_to_dict(snapshot), sort_keys=True, separators=(",", ":"))


def snapshot_from_json(text: str) -> CircuitSnapshot:
    """Deserialize a snapshot from JSON."""
    return snapshot_from_dict(json.loads(text))


def load_snapshot(path: Path) -> CircuitSnapshot:
    """Load a snapshot from a ``.json`` or ``.yaml``/``.yml`` file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"circuit file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    return snapshot_from_dict(data)


def snapshot_to_dict(snapshot: CircuitSnapshot) -> Dict[str, object]:
    return {
        "components": [_component_to_dict(comp) for comp in snapshot.components],
        "wires": [_wire_to_dict(wire) for wire in snapshot.wires],
        "library": {key: _definition_to_dict(defn) for key, defn in snapshot.library.items()},
    }


def snapshot_from_dict(data: Mapping[str, Any]) -> CircuitSnapshot:
    """
    Build a snapshot from plain data.

    Besides the native layout written by ``snapshot_to_dict``, components
    accept the editor's ``type``/``x``/``y``/``subcircuitId``/``terminalMap``
    keys and wires accept ``fromComponentId``/``fromNode``/``toComponentId``/
    ``toNode``.
    """
    if not isinstance(data, Mapping):
        raise CircuitValidationError("Circuit payload must be a mapping.")
    raw_components = _expect(data.get("components") or [], list, "components")
    raw_wires = _expect(data.get("wires") or [], list, "wires")
    raw_library = _expect(data.get("library") or data.get("subcircuits") or {}, Mapping, "library")
    try:
        components = [_component_from_dict(_expect(item, Mapping, "component")) for item in raw_components]
        wires = [_wire_from_dict(_expect(item, Mapping, "wire"), idx) for idx, item in enumerate(raw_wires)]
        library = {
            str(key): _definition_from_dict(_expect(value, Mapping, "subcircuit"), str(key))
            for key, value in raw_library.items()
        }
    except CircuitValidationError:
        raise
    except (TypeError, AttributeError, ValueError) as exc:
        raise CircuitValidationError(f"Malformed circuit payload: {exc}") from exc
    return CircuitSnapshot(components=components, wires=wires, library=library)


def _expect(value: Any, kind: type, what: str) -> Any:
    if not isinstance(value, kind):
        raise CircuitValidationError(
            f"Expected {what} to be a {'list' if kind is list else 'mapping'}, got {type(value).__name__}."
        )
    return value


def _require(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    raise CircuitValidationError(f"Missing field {keys[0]!r} in {dict(data)!r}.")


def _ref_to_dict(ref: TerminalRef) -> Dict[str, object]:
    return {"component": ref.component_id, "terminal": ref.terminal}


def _ref_from_dict(data: Mapping[str, Any]) -> TerminalRef:
    return TerminalRef(
        component_id=str(_require(data, "component", "componentId")),
        terminal=int(_require(data, "terminal")),
    )


def _position_to_dict(position: Position) -> Dict[str, float]:
    return {"x": position.x, "y": position.y}


def _position_from_dict(data: Mapping[str, Any]) -> Position:
    raw = data.get("position")
    if isinstance(raw, Mapping):
        return Position(float(raw.get("x", 0.0)), float(raw.get("y", 0.0)))
    return Position(float(data.get("x", 0.0)), float(data.get("y", 0.0)))


def _component_to_dict(comp: Component) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "id": comp.cid,
        "kind": comp.kind.value,
        "value": comp.value,
        "position": _position_to_dict(comp.position),
        "rotation": comp.rotation,
    }
    if comp.subtype is not None:
        payload["subtype"] = comp.subtype
    if comp.subcircuit_ref is not None:
        payload["subcircuit_ref"] = comp.subcircuit_ref
    if comp.terminal_map:
        payload["terminal_map"] = {key: _ref_to_dict(ref) for key, ref in comp.terminal_map.items()}
    return payload


def _component_from_dict(data: Mapping[str, Any]) -> Component:
    raw_map = data.get("terminal_map") or data.get("terminalMap") or {}
    subcircuit_ref: Optional[str] = data.get("subcircuit_ref", data.get("subcircuitId"))
    return Component(
        cid=str(_require(data, "id", "cid")),
        kind=_require(data, "kind", "type"),
        value=float(data.get("value", 0.0)),
        position=_position_from_dict(data),
        subtype=data.get("subtype"),
        rotation=float(data.get("rotation", 0.0) or 0.0),
        subcircuit_ref=str(subcircuit_ref) if subcircuit_ref is not None else None,
        terminal_map={str(key): _ref_from_dict(val) for key, val in raw_map.items()},
    )


def _wire_to_dict(wire: Wire) -> Dict[str, object]:
    return {"id": wire.wid, "a": _ref_to_dict(wire.a), "b": _ref_to_dict(wire.b)}


def _wire_from_dict(data: Mapping[str, Any], index: int) -> Wire:
    wid = str(data.get("id", f"W{index}"))
    if "fromComponentId" in data:
        return Wire(
            wid=wid,
            a=TerminalRef(str(data["fromComponentId"]), int(_require(data, "fromNode"))),
            b=TerminalRef(str(_require(data, "toComponentId")), int(_require(data, "toNode"))),
        )
    return Wire(
        wid=wid,
        a=_ref_from_dict(_require(data, "a", "from")),
        b=_ref_from_dict(_require(data, "b", "to")),
    )


def _terminal_to_dict(term: Terminal) -> Dict[str, object]:
    return {
        "id": term.tid,
        "name": term.name,
        "position": _position_to_dict(term.position),
        "target": _ref_to_dict(term.target) if term.target is not None else None,
    }


def _terminal_from_dict(data: Mapping[str, Any]) -> Terminal:
    target = data.get("target")
    return Terminal(
        tid=str(_require(data, "id", "tid")),
        position=_position_from_dict(data),
        name=str(data.get("name", "")),
        target=_ref_from_dict(target) if target is not None else None,
    )


def _definition_to_dict(defn: SubcircuitDefinition) -> Dict[str, object]:
    return {
        "id": defn.sid,
        "name": defn.name,
        "components": [_component_to_dict(comp) for comp in defn.internal_components],
        "wires": [_wire_to_dict(wire) for wire in defn.internal_wires],
        "inputs": [_terminal_to_dict(term) for term in defn.inputs],
        "outputs": [_terminal_to_dict(term) for term in defn.outputs],
        "width": defn.width,
        "height": defn.height,
    }


def _definition_from_dict(data: Mapping[str, Any], key: str) -> SubcircuitDefinition:
    components: List[Component] = [
        _component_from_dict(item)
        for item in data.get("components", data.get("internalComponents", []))
    ]
    wires = [
        _wire_from_dict(item, idx)
        for idx, item in enumerate(data.get("wires", data.get("internalWires", [])))
    ]
    return SubcircuitDefinition(
        sid=str(data.get("id", key)),
        name=str(data.get("name", key)),
        internal_components=tuple(components),
        internal_wires=tuple(wires),
        inputs=tuple(_terminal_from_dict(item) for item in data.get("inputs", [])),
        outputs=tuple(_terminal_from_dict(item) for item in data.get("outputs", [])),
        width=float(data.get("width", 0.0)),
        height=float(data.get("height", 0.0)),
    )
