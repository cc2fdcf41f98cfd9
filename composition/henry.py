"""
Henry's law interface composition for dissolved species.

    Yf_i = k_i * Y2_i * rho_2 / rho_1

k_i is the (dimensionless, mass-concentration based) solubility of species i
given in the `k` list, aligned with `species`. The solubility is temperature
independent, so Yf_prime is zero. update caches the solvent fraction
YSolvent = 1 - sum_i Yf_i.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import numpy as np

from core.errors import InterfaceCompositionError, NoCompositionAvailableError
from core.types import FloatArray, PhasePair
from composition.base import InterfaceCompositionModel
from composition.registry import register_composition_model


@register_composition_model("Henry")
class Henry(InterfaceCompositionModel):
    def __init__(self, config: Mapping[str, Any], pair: PhasePair):
        super().__init__(config, pair)
        if not self.other_has_composition:
            raise NoCompositionAvailableError(pair.phase2.name)
        k = [float(v) for v in config.get("k", [])]
        if len(k) != len(self.species):
            raise ValueError(
                f"{self._label()}: differing number of species ({len(self.species)}) "
                f"and solubilities ({len(k)})"
            )
        if any(not np.isfinite(v) or v < 0.0 for v in k):
            raise ValueError(f"{self._label()}: solubilities must be finite and >= 0, got {k}")
        self.k: Dict[str, float] = dict(zip(self.species, k))
        for name in self.species:
            # the dissolved species must be carried by the other phase
            self.other_composition.Y(name)
        self._YSolvent: Optional[FloatArray] = None

    @property
    def YSolvent(self) -> FloatArray:
        """Interface mass fraction left for the non-dissolved (solvent) species."""
        if self._YSolvent is None:
            raise InterfaceCompositionError(f"{self._label()}: update(Tf) must be called before querying.")
        return self._YSolvent

    def update(self, Tf: Any) -> None:
        super().update(Tf)
        YSolvent = np.ones_like(self.thermo.rho)
        for name in self.species:
            YSolvent = YSolvent - self.Yf(name, Tf)
        self._YSolvent = YSolvent

    def Yf(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        self._as_temperature(Tf)
        return self.k[species] * self.other_composition.Y(species) * self.other_thermo.rho / self.thermo.rho

    def Yf_prime(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        return np.zeros(np.broadcast(Tf, self.thermo.rho).shape, dtype=np.float64)
