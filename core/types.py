"""
Strongly typed containers for phases, phase pairs and case configuration.

Global shape and sign conventions (law of the land):
- Nc: number of cells; every field is a float64 array with shape (Nc,)
- Tf: interface temperature field [K], one value per cell
- Phase 1 of a pair is "this side" (whose interface composition is modelled),
  phase 2 is "the other side" it exchanges mass with
- Mass fractions Y are dimensionless; enthalpies ha are mass-specific [J/kg]
- dmdtL > 0 means a positive latent-heat-weighted transfer from phase 1 to phase 2

Collaborator lifetime: a PhasePair and its thermo objects are owned by the
caller (solver context). Closure models hold references to them and must not
outlive them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Tuple

import numpy as np
from numpy.typing import NDArray

FloatArray = NDArray[np.float64]


class CompositionLike(Protocol):
    """Multi-species composition view of a phase."""

    @property
    def species(self) -> Tuple[str, ...]: ...

    def contains(self, name: str) -> bool: ...

    def Y(self, name: str) -> FloatArray: ...

    def X(self, name: str) -> FloatArray: ...

    def W(self, name: str) -> float: ...

    def W_mix(self) -> FloatArray: ...

    def ha(self, name: str, T: FloatArray) -> FloatArray: ...


class ThermoLike(Protocol):
    """Phase-level thermodynamic model."""

    name: str
    p: FloatArray
    T: FloatArray
    rho: FloatArray
    alpha: FloatArray

    @property
    def has_composition(self) -> bool: ...

    @property
    def composition(self) -> CompositionLike: ...

    def W(self) -> FloatArray: ...

    def ha(self, T: FloatArray) -> FloatArray: ...


@dataclass(slots=True, frozen=True)
class Phase:
    """A named phase and its thermodynamic model."""

    name: str
    thermo: ThermoLike

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Phase name must be provided.")


@dataclass(slots=True, frozen=True)
class PhasePair:
    """Ordered pair of phases: phase1 is this side, phase2 the other side."""

    phase1: Phase
    phase2: Phase

    def __post_init__(self) -> None:
        if self.phase1.name == self.phase2.name:
            raise ValueError(f"Phase pair requires two distinct phases, got '{self.phase1.name}' twice.")

    @property
    def name(self) -> str:
        return f"{self.phase1.name}_{self.phase2.name}"

    @property
    def phases(self) -> Tuple[Phase, Phase]:
        return (self.phase1, self.phase2)

    def other(self, phase: Phase | str) -> Phase:
        """Return the phase on the other side of the interface from `phase`."""
        name = phase if isinstance(phase, str) else phase.name
        if name == self.phase1.name:
            return self.phase2
        if name == self.phase2.name:
            return self.phase1
        raise ValueError(f"Phase '{name}' is not part of pair '{self.name}'.")


@dataclass(slots=True)
class CaseMeta:
    """Metadata for the case block."""

    id: str
    title: str = ""
    version: int = 1
    notes: Optional[str] = None


@dataclass(slots=True)
class CaseSweep:
    """Interface temperature sweep (YAML sweep block)."""

    T_min: float
    T_max: float
    n_points: int = 11

    def __post_init__(self) -> None:
        if not np.isfinite(self.T_min) or self.T_min <= 0.0:
            raise ValueError(f"Invalid sweep T_min={self.T_min} (must be finite and > 0)")
        if not np.isfinite(self.T_max) or self.T_max < self.T_min:
            raise ValueError(f"Invalid sweep T_max={self.T_max} (must be >= T_min={self.T_min})")
        if self.n_points < 1:
            raise ValueError(f"Invalid sweep n_points={self.n_points} (must be >= 1)")

    def temperatures(self) -> FloatArray:
        return np.linspace(self.T_min, self.T_max, self.n_points)


@dataclass(slots=True)
class CasePair:
    """One phase pair entry: phase names, transfer coefficient and composition record."""

    phase1: str
    phase2: str
    K: float
    composition: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if "type" not in self.composition:
            raise ValueError(
                f"Pair ({self.phase1}, {self.phase2}) composition block requires a 'type' key."
            )
        if not np.isfinite(self.K) or self.K < 0.0:
            raise ValueError(f"Invalid mass-transfer coefficient K={self.K} for pair ({self.phase1}, {self.phase2})")


@dataclass(slots=True)
class CaseConfig:
    """Top-level case configuration for interface composition runs."""

    case: CaseMeta
    n_cells: int
    phases: Mapping[str, Mapping[str, Any]]
    pairs: List[CasePair]
    sweep: CaseSweep
    output: Optional[Path] = None
    base_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self) -> None:
        if self.n_cells < 1:
            raise ValueError(f"n_cells must be >= 1, got {self.n_cells}")
        missing = sorted(
            {p for pair in self.pairs for p in (pair.phase1, pair.phase2)} - set(self.phases)
        )
        if missing:
            raise ValueError(f"Pairs reference undefined phases: {missing}. Defined: {sorted(self.phases)}")


def as_field(value: Any, n_cells: int, name: str = "field") -> FloatArray:
    """Broadcast a scalar or sequence to a float64 field of length n_cells."""
    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim == 0:
        return np.full(n_cells, float(arr), dtype=np.float64)
    arr = arr.reshape(-1)
    if arr.size != n_cells:
        raise ValueError(f"{name} has {arr.size} values, expected {n_cells}")
    return arr.copy()
