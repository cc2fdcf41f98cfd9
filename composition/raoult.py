"""
Raoult's law interface composition (ideal solution on the other side).

Each transferring species i has its own pure-component model (usually
`saturated`), configured in a sub-block named after the species:

    type: Raoult
    species: [H2O, C2H5OH]
    Le: 1.0
    H2O:     {type: saturated, pSat: {type: ArdenBuck}}
    C2H5OH:  {type: saturated, pSat: {type: antoine, A: ..., B: ..., C: ...}}

The interface mass fraction scales the pure-component value by the mole
fraction of i in the other (condensed) phase:

    Yf_i = X2_i * Yf_i^pure(Tf)
    Yf_prime_i = X2_i * Yf_prime_i^pure(Tf)

update refreshes every pure-component model and caches
YNonVapour = 1 - sum_i X2_i Yf_i^pure and its temperature derivative.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import numpy as np

from core.errors import NoCompositionAvailableError
from core.types import FloatArray, PhasePair
from composition.base import InterfaceCompositionModel
from composition.registry import construct, register_composition_model

logger = logging.getLogger(__name__)


def species_sub_config(config: Mapping[str, Any], name: str, Le: float, label: str) -> Dict[str, Any]:
    """Pure-component sub-block for `name`, inheriting the parent's Lewis number."""
    sub = config.get(name)
    if not isinstance(sub, Mapping):
        raise ValueError(f"{label}: missing pure-component model block for species '{name}'")
    merged: Dict[str, Any] = {"Le": Le}
    merged.update(sub)
    merged["species"] = [name]
    return merged


@register_composition_model("Raoult")
class Raoult(InterfaceCompositionModel):
    def __init__(self, config: Mapping[str, Any], pair: PhasePair):
        super().__init__(config, pair)
        if not self.other_has_composition:
            raise NoCompositionAvailableError(pair.phase2.name)
        self.species_models: Dict[str, InterfaceCompositionModel] = {}
        for name in self.species:
            # the condensed phase must carry the species
            self.other_composition.Y(name)
            sub_config = species_sub_config(config, name, self.Le, self._label())
            self.species_models[name] = construct(sub_config, pair)
        self._YNonVapour: Optional[FloatArray] = None
        self._YNonVapourPrime: Optional[FloatArray] = None

    @property
    def YNonVapour(self) -> FloatArray:
        self._require_ready()
        return self._YNonVapour

    @property
    def YNonVapourPrime(self) -> FloatArray:
        self._require_ready()
        return self._YNonVapourPrime

    def update(self, Tf: Any) -> None:
        super().update(Tf)
        Tf = self._as_temperature(Tf)
        YNonVapour = np.ones(np.broadcast(Tf, self.thermo.p).shape, dtype=np.float64)
        YNonVapourPrime = np.zeros_like(YNonVapour)
        for name, model in self.species_models.items():
            model.update(Tf)
            X2 = self.other_composition.X(name)
            YNonVapour = YNonVapour - X2 * model.Yf(name, Tf)
            YNonVapourPrime = YNonVapourPrime - X2 * model.Yf_prime(name, Tf)
        self._YNonVapour = YNonVapour
        self._YNonVapourPrime = YNonVapourPrime
        if np.any(YNonVapour < 0.0):
            logger.warning(
                "%s: vapour mass fractions exceed unity at Tf max=%.6g K (min YNonVapour=%.3e)",
                self._label(), float(np.max(Tf)), float(np.min(YNonVapour)),
            )

    def Yf(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        self._require_ready()
        return self.other_composition.X(species) * self.species_models[species].Yf(species, Tf)

    def Yf_prime(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        self._require_ready()
        return self.other_composition.X(species) * self.species_models[species].Yf_prime(species, Tf)
