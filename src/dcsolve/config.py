"""Solver configuration and YAML loading."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import yaml


@dataclass(frozen=True)
class SolverOptions:
    """Configuration for the DC solve pipeline."""

    method: Literal["auto", "dense", "sparse"] = "auto"
    sparse_threshold: int = 200
    permc_spec: str = "COLAMD"
    pivot_tolerance: float = 1e-12
    cond_threshold: float = 1e12
    enable_diagnostics: bool = True
    diagnostics_max_size: int = 200
    max_depth: Optional[int] = None

    def __post_init__(self) -> None:
        if self.method not in ("auto", "dense", "sparse"):
            raise ValueError("method must be 'auto', 'dense' or 'sparse'.")
        if self.sparse_threshold < 0:
            raise ValueError("sparse_threshold must be non-negative.")
        if self.pivot_tolerance <= 0.0:
            raise ValueError("pivot_tolerance must be positive.")
        if self.cond_threshold <= 1.0:
            raise ValueError("cond_threshold must exceed 1.")
        if self.diagnostics_max_size < 0:
            raise ValueError("diagnostics_max_size must be non-negative.")
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("max_depth must be non-negative.")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SolverOptions":
        """Build options from a mapping, rejecting unknown keys."""
        data = dict(data or {})
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown solver options: {unknown}")
        return cls(**data)

    def to_json_dict(self) -> Dict[str, object]:
        return asdict(self)


def load_options(path: Path, section: Optional[str] = "solver") -> SolverOptions:
    """Load solver options from YAML, optionally from a named top-level section."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"options file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Options file {path} must contain a mapping.")
    if section is not None and section in data:
        data = data[section] or {}
    return SolverOptions.from_mapping(data)
