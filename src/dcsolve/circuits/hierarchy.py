"""Flattening of hierarchical subcircuit instances."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from dcsolve.circuits.model import (
    TERMINAL_COUNT,
    Component,
    FlatCircuit,
    Position,
    SubcircuitLibrary,
    TerminalRef,
    UnresolvedReference,
    Wire,
)
from dcsolve.errors import (
    CircuitValidationError,
    CircularSubcircuitReferenceError,
    UnresolvedSubcircuitError,
)


logger = logging.getLogger(__name__)

INSTANCE_SEPARATOR = "."


def instance_prefix(parent_prefix: str, instance_id: str) -> str:
    """Prefix applied to every component and wire cloned out of an instance."""
    return f"{parent_prefix}{instance_id}{INSTANCE_SEPARATOR}"


def validate_level(
    components: Iterable[Component],
    wires: Iterable[Wire],
    library: SubcircuitLibrary,
    where: str = "top level",
) -> None:
    """Check id uniqueness and wire endpoints within one hierarchy level."""
    by_id: Dict[str, Component] = {}
    for comp in components:
        if comp.cid in by_id:
            raise CircuitValidationError(
                f"Duplicate component id {comp.cid} in {where}.",
                {"component": comp.cid},
            )
        by_id[comp.cid] = comp

    wire_ids: Set[str] = set()
    for wire in wires:
        if wire.wid in wire_ids:
            raise CircuitValidationError(f"Duplicate wire id {wire.wid} in {where}.", {"wire": wire.wid})
        wire_ids.add(wire.wid)
        for end in wire.endpoints():
            comp = by_id.get(end.component_id)
            if comp is None:
                raise CircuitValidationError(
                    f"Wire {wire.wid} references unknown component {end.component_id} in {where}.",
                    {"wire": wire.wid, "component": end.component_id},
                )
            if comp.is_instance:
                definition = library.get(comp.subcircuit_ref)
                # Missing definitions are reported by the flattener.
                if definition is not None and end.terminal >= len(definition.terminals):
                    raise CircuitValidationError(
                        f"Wire {wire.wid} uses terminal {end.terminal} of instance {comp.cid}, "
                        f"but subcircuit {comp.subcircuit_ref} exposes {len(definition.terminals)}.",
                        {"wire": wire.wid, "component": comp.cid, "terminal": end.terminal},
                    )
            elif end.terminal >= TERMINAL_COUNT:
                raise CircuitValidationError(
                    f"Wire {wire.wid} uses terminal {end.terminal} of two-terminal component {comp.cid}.",
                    {"wire": wire.wid, "component": comp.cid, "terminal": end.terminal},
                )


@dataclass
class _Scope:
    """Name resolution for one expanded hierarchy level."""

    prefix: str
    leaves: Dict[str, str] = field(default_factory=dict)
    aliases: Dict[Tuple[str, int], Optional[TerminalRef]] = field(default_factory=dict)
    dropped: Set[str] = field(default_factory=set)

    def resolve(self, ref: TerminalRef) -> Optional[TerminalRef]:
        """Map a local terminal to a global leaf terminal, or None if it was dropped."""
        if ref.component_id in self.dropped:
            return None
        if ref.component_id in self.leaves:
            if ref.terminal >= TERMINAL_COUNT:
                raise CircuitValidationError(
                    f"Terminal {ref.terminal} does not exist on {self.prefix}{ref.component_id}.",
                    {"component": f"{self.prefix}{ref.component_id}", "terminal": ref.terminal},
                )
            return TerminalRef(self.leaves[ref.component_id], ref.terminal)
        key = (ref.component_id, ref.terminal)
        if key in self.aliases:
            return self.aliases[key]
        raise CircuitValidationError(
            f"Cannot resolve terminal {ref.terminal} of {self.prefix}{ref.component_id}.",
            {"component": f"{self.prefix}{ref.component_id}", "terminal": ref.terminal},
        )


class _Flattener:
    def __init__(self, library: SubcircuitLibrary, max_depth: Optional[int], strict: bool) -> None:
        self.library = library
        self.max_depth = max_depth
        self.strict = strict
        self.components: List[Component] = []
        self.wires: List[Wire] = []
        self.unresolved: List[UnresolvedReference] = []

    def expand(
        self,
        components: Iterable[Component],
        wires: Iterable[Wire],
        prefix: str,
        offset: Position,
        chain: Tuple[str, ...],
    ) -> _Scope:
        components = list(components)
        wires = list(wires)
        where = f"subcircuit {chain[-1]}" if chain else "top level"
        validate_level(components, wires, self.library, where)

        scope = _Scope(prefix=prefix)
        for comp in components:
            if not comp.is_instance:
                global_id = f"{prefix}{comp.cid}"
                scope.leaves[comp.cid] = global_id
                self.components.append(
                    replace(comp, cid=global_id, position=comp.position.translated(offset))
                )
                continue

            ref = comp.subcircuit_ref
            definition = self.library.get(ref)
            if definition is None:
                self._drop(comp, wires, prefix)
                scope.dropped.add(comp.cid)
                continue
            if ref in chain:
                cycle = " -> ".join(chain + (ref,))
                raise CircularSubcircuitReferenceError(
                    f"Subcircuit {ref} contains itself: {cycle}.",
                    {"chain": list(chain + (ref,)), "instance": f"{prefix}{comp.cid}"},
                )
            if self.max_depth is not None and len(chain) >= self.max_depth:
                raise CircuitValidationError(
                    f"Subcircuit nesting exceeds max_depth={self.max_depth} at {prefix}{comp.cid}.",
                    {"instance": f"{prefix}{comp.cid}", "max_depth": self.max_depth},
                )

            pin_ids = {pin.tid for pin in definition.terminals}
            unknown = sorted(set(comp.terminal_map) - pin_ids)
            if unknown:
                raise CircuitValidationError(
                    f"Instance {prefix}{comp.cid} maps unknown terminals {unknown} of subcircuit {ref}.",
                    {"instance": f"{prefix}{comp.cid}", "terminals": unknown},
                )

            inner = self.expand(
                definition.internal_components,
                definition.internal_wires,
                prefix=instance_prefix(prefix, comp.cid),
                offset=comp.position.translated(offset),
                chain=chain + (ref,),
            )
            for index, pin in enumerate(definition.terminals):
                target = comp.terminal_map.get(pin.tid, pin.target)
                if target is None:
                    raise CircuitValidationError(
                        f"Terminal {pin.tid} of subcircuit {ref} is not bound to an internal "
                        f"terminal (instance {prefix}{comp.cid}).",
                        {"instance": f"{prefix}{comp.cid}", "terminal": pin.tid},
                    )
                scope.aliases[(comp.cid, index)] = inner.resolve(target)

        for wire in wires:
            end_a = scope.resolve(wire.a)
            end_b = scope.resolve(wire.b)
            if end_a is None or end_b is None:
                logger.debug("Dropping wire %s%s attached to an unresolved subcircuit.", prefix, wire.wid)
                continue
            self.wires.append(Wire(wid=f"{prefix}{wire.wid}", a=end_a, b=end_b))
        return scope

    def _drop(self, comp: Component, wires: List[Wire], prefix: str) -> None:
        instance_id = f"{prefix}{comp.cid}"
        if self.strict:
            raise UnresolvedSubcircuitError(
                f"Instance {instance_id} references unknown subcircuit {comp.subcircuit_ref}.",
                {"instance": instance_id, "subcircuit": comp.subcircuit_ref},
            )
        dropped = tuple(f"{prefix}{wire.wid}" for wire in wires if wire.touches(comp.cid))
        logger.warning(
            "Instance %s references unknown subcircuit %s; dropping it and %d wire(s).",
            instance_id,
            comp.subcircuit_ref,
            len(dropped),
        )
        self.unresolved.append(
            UnresolvedReference(
                instance_id=instance_id,
                subcircuit_ref=comp.subcircuit_ref,
                dropped_wires=dropped,
            )
        )


def flatten_circuit(
    components: Iterable[Component],
    wires: Iterable[Wire],
    library: Optional[SubcircuitLibrary] = None,
    max_depth: Optional[int] = None,
    strict: bool = False,
) -> FlatCircuit:
    """
    Expand subcircuit instances into one flat component/wire list.

    Internal ids are prefixed with ``"<instanceId>."`` per level and internal
    positions are translated by the instance placement. Wires attached to an
    instance terminal are rewired to the internal leaf terminal bound to it,
    following nested instances down to a leaf.

    Instances whose definition is missing are dropped with their wires and
    listed in ``FlatCircuit.unresolved``; with ``strict=True`` they raise
    ``UnresolvedSubcircuitError`` instead.
    """
    if max_depth is not None and max_depth < 0:
        raise CircuitValidationError("max_depth must be non-negative.")
    flattener = _Flattener(library or {}, max_depth=max_depth, strict=strict)
    flattener.expand(components, wires, prefix="", offset=Position(), chain=())

    seen: Set[str] = set()
    for comp in flattener.components:
        if comp.cid in seen:
            raise CircuitValidationError(
                f"Component id {comp.cid} is not unique after flattening.",
                {"component": comp.cid},
            )
        seen.add(comp.cid)
    seen.clear()
    for wire in flattener.wires:
        if wire.wid in seen:
            raise CircuitValidationError(
                f"Wire id {wire.wid} is not unique after flattening.",
                {"wire": wire.wid},
            )
        seen.add(wire.wid)

    logger.debug(
        "Flattened circuit into %d components and %d wires (%d unresolved instances).",
        len(flattener.components),
        len(flattener.wires),
        len(flattener.unresolved),
    )
    return FlatCircuit(
        components=tuple(flattener.components),
        wires=tuple(flattener.wires),
        unresolved=tuple(flattener.unresolved),
    )
