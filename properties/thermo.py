"""
Phase thermodynamic models consumed by interface composition closures.

Responsibilities:
- SpecieThermoData: constant-cp species data (molar mass, cp, reference enthalpy).
- SpecieMixture: multi-species composition view (Y/X fields, W, species enthalpy).
- PhaseThermo: phase-level fields (p, T, rho, thermal diffusivity alpha) plus an
  optional SpecieMixture; pure phases carry their own W/cp.
- build_phase_thermo: construct a PhaseThermo from a YAML phase block.

Enthalpies are mass-specific sensible+formation enthalpies [J/kg]:
    ha(T) = h_ref + cp * (T - T_ref)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from core.errors import NoCompositionAvailableError, UnknownSpeciesError
from core.types import FloatArray, as_field

logger = logging.getLogger(__name__)

EPS = 1e-30
T_REF = 298.15


@dataclass(slots=True, frozen=True)
class SpecieThermoData:
    """Constant-cp thermo data for a single species."""

    name: str
    W: float  # kg/mol
    cp: float  # J/(kg K)
    h_ref: float = 0.0  # J/kg at T_ref
    T_ref: float = T_REF  # K

    def __post_init__(self) -> None:
        if not np.isfinite(self.W) or self.W <= 0.0:
            raise ValueError(f"Invalid molar mass W={self.W} for {self.name}")
        if not np.isfinite(self.cp) or self.cp <= 0.0:
            raise ValueError(f"Invalid cp={self.cp} for {self.name}")
        if not np.isfinite(self.h_ref):
            raise ValueError(f"Invalid h_ref={self.h_ref} for {self.name}")
        if not np.isfinite(self.T_ref) or self.T_ref <= 0.0:
            raise ValueError(f"Invalid T_ref={self.T_ref} for {self.name}")

    def ha(self, T: Any) -> FloatArray:
        T = np.asarray(T, dtype=np.float64)
        return self.h_ref + self.cp * (T - self.T_ref)


class SpecieMixture:
    """
    Multi-species composition of a phase.

    Species order follows `species_data` and defines iteration order. Mass
    fraction fields are owned here; the outer solver refreshes them through
    set_Y between iterations.
    """

    def __init__(
        self,
        species_data: Sequence[SpecieThermoData],
        Y: Mapping[str, Any],
        n_cells: int,
        phase_name: str = "",
    ):
        names = [sp.name for sp in species_data]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate species in composition of phase '{phase_name}': {names}")
        if not names:
            raise ValueError(f"Composition of phase '{phase_name}' must declare at least one species")

        self.phase_name = phase_name
        self.n_cells = int(n_cells)
        self._data: Dict[str, SpecieThermoData] = {sp.name: sp for sp in species_data}
        self._index: Dict[str, int] = {name: i for i, name in enumerate(names)}
        self._species: Tuple[str, ...] = tuple(names)

        unknown = sorted(set(Y) - set(names))
        if unknown:
            raise UnknownSpeciesError(unknown[0], names, where=self._where())
        self._Y: Dict[str, FloatArray] = {
            name: as_field(Y.get(name, 0.0), self.n_cells, name=f"Y[{name}]") for name in names
        }

    def _where(self) -> str:
        return f"composition of phase '{self.phase_name}'" if self.phase_name else "composition"

    @property
    def species(self) -> Tuple[str, ...]:
        return self._species

    def contains(self, name: str) -> bool:
        return name in self._index

    def index(self, name: str) -> int:
        if name not in self._index:
            raise UnknownSpeciesError(name, self._species, where=self._where())
        return self._index[name]

    def Y(self, name: str) -> FloatArray:
        self.index(name)
        return self._Y[name]

    def set_Y(self, name: str, values: Any) -> None:
        self.index(name)
        self._Y[name] = as_field(values, self.n_cells, name=f"Y[{name}]")

    def W(self, name: str) -> float:
        self.index(name)
        return self._data[name].W

    def W_mix(self) -> FloatArray:
        """Mixture molar mass [kg/mol]: 1 / sum(Y_i / W_i)."""
        inv = np.zeros(self.n_cells, dtype=np.float64)
        for name in self._species:
            inv += self._Y[name] / self._data[name].W
        return 1.0 / np.maximum(inv, EPS)

    def X(self, name: str) -> FloatArray:
        """Mole fraction of `name`: Y_i * W_mix / W_i."""
        return self.Y(name) * self.W_mix() / self.W(name)

    def ha(self, name: str, T: Any) -> FloatArray:
        self.index(name)
        return self._data[name].ha(T)

    def ha_mix(self, T: Any) -> FloatArray:
        h = np.zeros(self.n_cells, dtype=np.float64)
        for name in self._species:
            h = h + self._Y[name] * self._data[name].ha(T)
        return h


class PhaseThermo:
    """
    Thermodynamic state of one phase.

    Attributes
    ----------
    p, T, rho : FloatArray
        Pressure [Pa], temperature [K] and density [kg/m^3] fields.
    alpha : FloatArray
        Thermal diffusivity k / (rho cp) [m^2/s].
    """

    def __init__(
        self,
        name: str,
        *,
        n_cells: int,
        p: Any,
        T: Any,
        rho: Any,
        alpha: Any,
        composition: Optional[SpecieMixture] = None,
        W: Optional[float] = None,
        cp: Optional[float] = None,
        h_ref: float = 0.0,
        T_ref: float = T_REF,
    ):
        self.name = name
        self.n_cells = int(n_cells)
        self.p = as_field(p, self.n_cells, name=f"{name}.p")
        self.T = as_field(T, self.n_cells, name=f"{name}.T")
        self.rho = as_field(rho, self.n_cells, name=f"{name}.rho")
        self.alpha = as_field(alpha, self.n_cells, name=f"{name}.alpha")
        self._composition = composition

        if composition is not None:
            if composition.n_cells != self.n_cells:
                raise ValueError(
                    f"Composition of phase '{name}' has {composition.n_cells} cells, expected {self.n_cells}"
                )
            self._pure = None
        else:
            if W is None or cp is None:
                raise ValueError(f"Phase '{name}' without composition requires 'W' and 'cp'")
            self._pure = SpecieThermoData(name=name, W=float(W), cp=float(cp), h_ref=float(h_ref), T_ref=float(T_ref))

        if np.any(self.p <= 0.0) or np.any(self.rho <= 0.0):
            raise ValueError(f"Phase '{name}' requires positive p and rho fields")

    @property
    def has_composition(self) -> bool:
        return self._composition is not None

    @property
    def composition(self) -> SpecieMixture:
        if self._composition is None:
            raise NoCompositionAvailableError(self.name)
        return self._composition

    def W(self) -> FloatArray:
        if self._composition is not None:
            return self._composition.W_mix()
        return np.full(self.n_cells, self._pure.W, dtype=np.float64)

    def ha(self, T: Any) -> FloatArray:
        if self._composition is not None:
            return self._composition.ha_mix(T)
        return self._pure.ha(T) * np.ones(self.n_cells, dtype=np.float64)


def _species_data(name: str, raw: Mapping[str, Any]) -> SpecieThermoData:
    for key in ("W", "cp"):
        if key not in raw:
            raise ValueError(f"Missing required field '{key}' for species '{name}'")
    return SpecieThermoData(
        name=name,
        W=float(raw["W"]),
        cp=float(raw["cp"]),
        h_ref=float(raw.get("h_ref", 0.0)),
        T_ref=float(raw.get("T_ref", T_REF)),
    )


def build_phase_thermo(name: str, raw: Mapping[str, Any], n_cells: int) -> PhaseThermo:
    """
    Build a PhaseThermo from a YAML phase block.

    Expected keys: p, T, rho, alpha; either `species` (mapping name -> {W, cp,
    h_ref, T_ref}) with `Y` (mapping name -> mass fraction), or pure-phase
    `W`, `cp`, `h_ref`, `T_ref`.
    """
    for key in ("p", "T", "rho", "alpha"):
        if key not in raw:
            raise ValueError(f"Missing required field '{key}' for phase '{name}'")

    composition = None
    species_raw = raw.get("species")
    if species_raw:
        if not isinstance(species_raw, Mapping):
            raise ValueError(f"Invalid 'species' for phase '{name}': expected mapping, got {type(species_raw)}")
        data = [_species_data(sp, vals) for sp, vals in species_raw.items()]
        composition = SpecieMixture(data, raw.get("Y", {}), n_cells, phase_name=name)
        logger.debug("Phase '%s': multi-species composition %s", name, composition.species)

    return PhaseThermo(
        name,
        n_cells=n_cells,
        p=raw["p"],
        T=raw["T"],
        rho=raw["rho"],
        alpha=raw["alpha"],
        composition=composition,
        W=raw.get("W"),
        cp=raw.get("cp"),
        h_ref=float(raw.get("h_ref", 0.0)),
        T_ref=float(raw.get("T_ref", T_REF)),
    )
