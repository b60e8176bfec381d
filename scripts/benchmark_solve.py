#!/usr/bin/env python3
"""Quick micro-benchmark for the dense and sparse DC solve paths."""

from __future__ import annotations

import argparse
import time

from dcsolve import Component, ComponentKind, SolverOptions, TerminalRef, Wire, solve


def resistor_ladder(stages: int, r_series: float = 50.0, r_shunt: float = 1e3):
    """Series/shunt ladder of ``stages`` sections driven by a 1 V source."""
    components = [Component("V1", ComponentKind.VOLTAGE_SOURCE, 1.0)]
    wires = []
    for idx in range(stages):
        components.append(Component(f"S{idx}", ComponentKind.RESISTOR, r_series))
        components.append(Component(f"H{idx}", ComponentKind.RESISTOR, r_shunt))
        upstream = TerminalRef("V1", 1) if idx == 0 else TerminalRef(f"S{idx - 1}", 1)
        wires.append(Wire(f"WS{idx}", upstream, TerminalRef(f"S{idx}", 0)))
        wires.append(Wire(f"WH{idx}", TerminalRef(f"S{idx}", 1), TerminalRef(f"H{idx}", 0)))
        wires.append(Wire(f"WG{idx}", TerminalRef(f"H{idx}", 1), TerminalRef("V1", 0)))
    return components, wires


def _bench(stages: int, method: str) -> float:
    components, wires = resistor_ladder(stages)
    options = SolverOptions(method=method, enable_diagnostics=False)
    start = time.perf_counter()
    result = solve(components, wires, options=options)
    elapsed = time.perf_counter() - start
    if not result.ok:
        raise RuntimeError(f"benchmark solve failed: {result.error_message}")
    return elapsed


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark dense/sparse DC solves.")
    parser.add_argument("--stages", type=int, nargs="+", default=[50, 200, 800])
    parser.add_argument("--dense", action="store_true", help="Include the dense LU path.")
    args = parser.parse_args()

    print("Sparse benchmark:")
    for stages in args.stages:
        elapsed = _bench(stages, "sparse")
        print(f"  stages={stages} -> {elapsed:.4f}s")

    if args.dense:
        print("Dense benchmark:")
        for stages in args.stages:
            elapsed = _bench(stages, "dense")
            print(f"  stages={stages} -> {elapsed:.4f}s")


if __name__ == "__main__":
    main()
