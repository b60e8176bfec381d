import numpy as np
import pytest

from dcsolve import (
    Component,
    ComponentKind,
    SubcircuitDefinition,
    Terminal,
    TerminalRef,
    Wire,
    solve,
)


def _r(cid: str, ohms: float) -> Component:
    return Component(cid, ComponentKind.RESISTOR, ohms)


def _v(cid: str, volts: float) -> Component:
    return Component(cid, ComponentKind.VOLTAGE_SOURCE, volts)


def _w(wid: str, a: str, ta: int, b: str, tb: int) -> Wire:
    return Wire(wid, TerminalRef(a, ta), TerminalRef(b, tb))


def _series_divider():
    components = [_v("V1", 10.0), _r("R1", 100.0), _r("R2", 100.0)]
    wires = [
        _w("W1", "V1", 1, "R1", 0),
        _w("W2", "R1", 1, "R2", 0),
        _w("W3", "R2", 1, "V1", 0),
    ]
    return components, wires


def test_series_resistors_split_voltage() -> None:
    components, wires = _series_divider()
    result = solve(components, wires)

    assert result.ok
    assert result.terminal_voltage("R1", 1) == pytest.approx(5.0)
    assert result.terminal_voltage("V1", 1) == pytest.approx(10.0)
    assert result.current("R1") == pytest.approx(0.05)
    assert result.current("R2") == pytest.approx(0.05)
    assert result.current("V1") == 0.0


def test_parallel_resistors_share_current() -> None:
    components = [_v("V1", 10.0), _r("R1", 100.0), _r("R2", 100.0)]
    wires = [
        _w("W1", "V1", 1, "R1", 0),
        _w("W2", "V1", 1, "R2", 0),
        _w("W3", "R1", 1, "V1", 0),
        _w("W4", "R2", 1, "V1", 0),
    ]
    result = solve(components, wires)

    assert result.ok
    assert result.terminal_voltage("R1", 0) == pytest.approx(10.0)
    assert result.terminal_voltage("R2", 0) == pytest.approx(10.0)
    assert result.current("R1") == pytest.approx(0.05)
    assert result.current("R2") == pytest.approx(0.05)
    assert result.current("R1") + result.current("R2") == pytest.approx(0.1)
    assert len(result.node_voltages) == 2


def test_ground_is_exactly_zero() -> None:
    components, wires = _series_divider()
    result = solve(components, wires)

    assert result.ground in result.node_voltages
    assert result.node_voltages[result.ground] == 0.0
    assert result.node_of("V1", 0) == result.ground
    assert result.node_of("R2", 1) == result.ground


def test_repeated_solves_are_identical() -> None:
    components, wires = _series_divider()
    first = solve(components, wires)
    second = solve(components, wires)

    assert first == second
    assert first.node_voltages == second.node_voltages
    assert first.component_currents == second.component_currents


def test_empty_circuit_is_trivial_success() -> None:
    result = solve([], [])

    assert result.ok
    assert result.node_voltages == {}
    assert result.component_currents == {}
    assert result.error is None


def test_reversed_second_source_drives_negative_node() -> None:
    components = [_v("V1", 10.0), _r("R1", 100.0), _v("V2", 5.0), _r("R2", 100.0)]
    wires = [
        _w("W1", "V1", 1, "R1", 0),
        _w("W2", "R1", 1, "V1", 0),
        _w("W3", "V2", 1, "V1", 0),
        _w("W4", "V2", 0, "R2", 0),
        _w("W5", "R2", 1, "V1", 0),
    ]
    result = solve(components, wires)

    assert result.ok
    assert result.terminal_voltage("V2", 0) == pytest.approx(-5.0)
    assert result.current("R2") == pytest.approx(-0.05)
    assert result.current("R1") == pytest.approx(0.1)


def test_resistor_orientation_sets_current_sign() -> None:
    components = [_v("V1", 10.0), _r("R1", 50.0)]
    wires = [_w("W1", "V1", 1, "R1", 1), _w("W2", "R1", 0, "V1", 0)]
    result = solve(components, wires)

    assert result.current("R1") == pytest.approx(-0.2)


def test_resistors_without_source_settle_at_zero() -> None:
    components = [_r("R1", 100.0), _r("R2", 220.0)]
    wires = [_w("W1", "R1", 1, "R2", 0), _w("W2", "R2", 1, "R1", 0)]
    result = solve(components, wires)

    assert result.ok
    assert result.ground == result.node_of("R1", 0)
    assert all(value == pytest.approx(0.0) for value in result.node_voltages.values())
    assert result.current("R2") == pytest.approx(0.0)


def test_open_circuit_components_do_not_change_the_network() -> None:
    base_components, base_wires = _series_divider()
    base = solve(base_components, base_wires)

    components = base_components + [
        Component("C1", ComponentKind.CAPACITOR, 1e-6),
        Component("L1", ComponentKind.INDUCTOR, 1e-3),
        Component("D1", ComponentKind.DIODE, 0.7),
        Component("Q1", ComponentKind.TRANSISTOR, 100.0, subtype="NPN"),
        Component("G1", ComponentKind.LOGIC_GATE, 0.0, subtype="NAND"),
        Component("B1", ComponentKind.BULB, 10.0),
    ]
    wires = base_wires + [
        _w("W10", "C1", 0, "R1", 1),
        _w("W11", "C1", 1, "V1", 0),
        _w("W12", "L1", 0, "V1", 1),
        _w("W13", "D1", 1, "V1", 0),
        _w("W14", "B1", 0, "R1", 1),
        _w("W15", "B1", 1, "V1", 1),
    ]
    result = solve(components, wires)

    assert result.ok
    for cid in ("V1", "R1", "R2"):
        assert result.current(cid) == pytest.approx(base.current(cid))
    assert result.terminal_voltage("R1", 1) == pytest.approx(5.0)
    for cid in ("C1", "L1", "D1", "Q1", "G1", "B1"):
        assert result.current(cid) == 0.0


def test_nodes_touching_only_open_components_are_reported() -> None:
    components, wires = _series_divider()
    components = components + [Component("C1", ComponentKind.CAPACITOR, 1e-6)]
    wires = wires + [_w("W4", "C1", 0, "R1", 1)]
    result = solve(components, wires)

    assert result.ok
    floating = result.node_of("C1", 1)
    assert floating not in result.node_voltages
    assert any(floating in warning for warning in result.warnings)
    assert result.terminal_voltage("C1", 0) == pytest.approx(5.0)


def test_capacitor_blocks_dc_current() -> None:
    components = [_v("V1", 12.0), _r("R1", 1000.0), Component("C1", ComponentKind.CAPACITOR, 1e-6)]
    wires = [
        _w("W1", "V1", 1, "R1", 0),
        _w("W2", "R1", 1, "C1", 0),
        _w("W3", "C1", 1, "V1", 0),
    ]
    result = solve(components, wires)

    assert result.ok
    assert result.terminal_voltage("C1", 0) == pytest.approx(12.0)
    assert result.current("R1") == pytest.approx(0.0)


def test_source_current_limitation_is_reported() -> None:
    components, wires = _series_divider()
    result = solve(components, wires)

    assert any("V1" in warning and "not computed" in warning for warning in result.warnings)


def test_subcircuit_instance_matches_flat_circuit() -> None:
    flat_components, flat_wires = _series_divider()
    flat = solve(flat_components, flat_wires)

    divider = SubcircuitDefinition(
        sid="DIV",
        name="Divider",
        internal_components=(_r("R1", 100.0), _r("R2", 100.0)),
        internal_wires=(_w("Wi", "R1", 1, "R2", 0),),
        inputs=(Terminal("in", target=TerminalRef("R1", 0)),),
        outputs=(Terminal("out", target=TerminalRef("R2", 1)),),
    )
    components = [
        _v("V1", 10.0),
        Component("X1", ComponentKind.SUBCIRCUIT, subcircuit_ref="DIV"),
    ]
    wires = [_w("W1", "V1", 1, "X1", 0), _w("W2", "X1", 1, "V1", 0)]
    hier = solve(components, wires, {"DIV": divider})

    assert hier.ok
    assert hier.terminal_voltage("X1.R1", 1) == pytest.approx(flat.terminal_voltage("R1", 1))
    renamed = {cid.replace("X1.", ""): value for cid, value in hier.component_currents.items()}
    assert renamed.keys() == flat.component_currents.keys()
    for cid, value in flat.component_currents.items():
        assert renamed[cid] == pytest.approx(value)
    assert np.allclose(sorted(hier.node_voltages.values()), sorted(flat.node_voltages.values()))


def test_nested_subcircuits_resolve_transitively() -> None:
    leg = SubcircuitDefinition(
        sid="LEG",
        name="Leg",
        internal_components=(_r("R", 100.0),),
        inputs=(Terminal("a", target=TerminalRef("R", 0)),),
        outputs=(Terminal("b", target=TerminalRef("R", 1)),),
    )
    pair = SubcircuitDefinition(
        sid="PAIR",
        name="Pair",
        internal_components=(
            Component("I1", ComponentKind.SUBCIRCUIT, subcircuit_ref="LEG"),
            Component("I2", ComponentKind.SUBCIRCUIT, subcircuit_ref="LEG"),
        ),
        internal_wires=(_w("Wm", "I1", 1, "I2", 0),),
        inputs=(Terminal("in", target=TerminalRef("I1", 0)),),
        outputs=(Terminal("out", target=TerminalRef("I2", 1)),),
    )
    components = [_v("V1", 10.0), Component("X", ComponentKind.SUBCIRCUIT, subcircuit_ref="PAIR")]
    wires = [_w("W1", "V1", 1, "X", 0), _w("W2", "X", 1, "V1", 0)]
    result = solve(components, wires, {"LEG": leg, "PAIR": pair})

    assert result.ok
    assert set(result.component_currents) == {"V1", "X.I1.R", "X.I2.R"}
    assert result.terminal_voltage("X.I1.R", 1) == pytest.approx(5.0)
    assert result.current("X.I2.R") == pytest.approx(0.05)


def test_instance_terminal_map_overrides_definition_binding() -> None:
    divider = SubcircuitDefinition(
        sid="DIV",
        name="Divider",
        internal_components=(_r("R1", 100.0), _r("R2", 300.0)),
        internal_wires=(_w("Wi", "R1", 1, "R2", 0),),
        inputs=(Terminal("in", target=TerminalRef("R1", 0)),),
        outputs=(Terminal("out", target=TerminalRef("R2", 1)), Terminal("mid")),
    )
    components = [
        _v("V1", 8.0),
        Component(
            "X1",
            ComponentKind.SUBCIRCUIT,
            subcircuit_ref="DIV",
            terminal_map={"mid": TerminalRef("R1", 1), "in": TerminalRef("R1", 0)},
        ),
        _r("RL", 1e12),
    ]
    wires = [
        _w("W1", "V1", 1, "X1", 0),
        _w("W2", "X1", 1, "V1", 0),
        _w("W3", "X1", 2, "RL", 0),
        _w("W4", "RL", 1, "V1", 0),
    ]
    result = solve(components, wires, {"DIV": divider})

    assert result.ok
    assert result.terminal_voltage("RL", 0) == pytest.approx(6.0, rel=1e-6)
