import json

import pytest

from dcsolve import cli


def _divider(ohms: float = 100.0) -> dict:
    return {
        "components": [
            {"id": "V1", "kind": "voltage", "value": 10.0},
            {"id": "R1", "kind": "resistor", "value": ohms},
            {"id": "R2", "kind": "resistor", "value": 100.0},
        ],
        "wires": [
            {"id": "W1", "a": {"component": "V1", "terminal": 1}, "b": {"component": "R1", "terminal": 0}},
            {"id": "W2", "a": {"component": "R1", "terminal": 1}, "b": {"component": "R2", "terminal": 0}},
            {"id": "W3", "a": {"component": "R2", "terminal": 1}, "b": {"component": "V1", "terminal": 0}},
        ],
    }


def test_cli_writes_result_file(tmp_path) -> None:
    circuit = tmp_path / "divider.json"
    circuit.write_text(json.dumps(_divider()), encoding="utf-8")
    output = tmp_path / "out" / "result.json"

    assert cli.main([str(circuit), "--output", str(output)]) == cli.EXIT_OK

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["status"] == "ok"
    mid = payload["terminal_nodes"]["R1_1"]
    assert abs(payload["node_voltages"][mid] - 5.0) < 1e-9
    assert abs(payload["component_currents"]["R2"] - 0.05) < 1e-9
    assert payload["node_voltages"][payload["ground"]] == 0.0


def test_cli_prints_to_stdout(tmp_path, capsys) -> None:
    circuit = tmp_path / "divider.json"
    circuit.write_text(json.dumps(_divider()), encoding="utf-8")

    assert cli.main([str(circuit)]) == cli.EXIT_OK

    payload = json.loads(capsys.readouterr().out)
    assert payload["error"] is None


def test_cli_reports_solve_errors(tmp_path) -> None:
    circuit = tmp_path / "bad.json"
    circuit.write_text(json.dumps(_divider(ohms=-1.0)), encoding="utf-8")
    output = tmp_path / "result.json"

    assert cli.main([str(circuit), "--output", str(output)]) == cli.EXIT_SOLVE_ERROR

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["status"] == "error"
    assert payload["error"]["code"] == "InvalidComponentValue"


def test_cli_applies_options_file(tmp_path) -> None:
    circuit = tmp_path / "divider.json"
    circuit.write_text(json.dumps(_divider()), encoding="utf-8")
    options = tmp_path / "options.yaml"
    options.write_text("solver:\n  method: sparse\n", encoding="utf-8")
    output = tmp_path / "result.json"

    assert cli.main([str(circuit), "--options", str(options), "--output", str(output)]) == cli.EXIT_OK
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["meta"]["method"] == "sparse"


def test_cli_rejects_unreadable_input(tmp_path) -> None:
    assert cli.main([str(tmp_path / "missing.json")]) == cli.EXIT_BAD_INPUT

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert cli.main([str(broken)]) == cli.EXIT_BAD_INPUT

    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"components": [{"id": "R1"}]}), encoding="utf-8")
    assert cli.main([str(invalid)]) == cli.EXIT_BAD_INPUT


@pytest.mark.parametrize(
    "payload",
    [
        {"components": [{"id": "R1", "kind": "resistor", "value": None}]},
        {"components": [{"id": "R1", "kind": "resistor", "value": "ten"}]},
        {"components": [], "subcircuits": [{"id": "S"}]},
        {"components": ["R1"]},
        {"components": {"R1": {"kind": "resistor"}}},
        {"components": [{"id": "R1", "kind": "resistor", "value": 1.0}], "wires": [["R1", 0, "R1", 1]]},
        {"components": [{"id": "X1", "kind": "subcircuit", "subcircuit_ref": "S", "terminal_map": ["a"]}]},
        {"components": [], "library": {"S": {"components": [{"id": "R", "kind": "resistor", "value": []}]}}},
    ],
)
def test_cli_rejects_malformed_payloads(tmp_path, payload) -> None:
    circuit = tmp_path / "malformed.json"
    circuit.write_text(json.dumps(payload), encoding="utf-8")

    assert cli.main([str(circuit)]) == cli.EXIT_BAD_INPUT


def test_cli_rejects_unknown_options(tmp_path) -> None:
    circuit = tmp_path / "divider.json"
    circuit.write_text(json.dumps(_divider()), encoding="utf-8")
    options = tmp_path / "options.yaml"
    options.write_text("solver:\n  turbo: true\n", encoding="utf-8")

    assert cli.main([str(circuit), "--options", str(options)]) == cli.EXIT_BAD_INPUT
