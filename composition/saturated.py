"""
Saturated interface composition.

The single transferring species is at its saturation partial pressure at the
interface (pure condensed phase on the other side):

    Yf = W_i / (W * p) * psat(Tf)
    Yf_prime = W_i / (W * p) * dpsat/dT(Tf)

with W_i the species molar mass, W the phase-1 mixture molar mass and p the
phase-1 pressure. The saturation model is selected by the `pSat` block.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.types import FloatArray, PhasePair
from composition.base import InterfaceCompositionModel
from composition.registry import register_composition_model
from properties.saturation_models import create_saturation_model


@register_composition_model("saturated")
class Saturated(InterfaceCompositionModel):
    def __init__(self, config: Mapping[str, Any], pair: PhasePair):
        super().__init__(config, pair)
        if len(self.species) != 1:
            raise ValueError(
                f"{self._label()}: saturated model is suitable for one species only, got {list(self.species)}"
            )
        if "pSat" not in config:
            raise ValueError(f"{self._label()} requires a 'pSat' saturation model block.")
        self.saturated_name = self.species[0]
        self.saturation_model = create_saturation_model(config["pSat"])

    def w_ratio_by_p(self) -> FloatArray:
        """W_i / (W p) [1/Pa] for the saturated species."""
        return self.composition.W(self.saturated_name) / self.thermo.W() / self.thermo.p

    def update(self, Tf: Any) -> None:
        super().update(Tf)

    def Yf(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        return self.w_ratio_by_p() * self.saturation_model.pSat(Tf)

    def Yf_prime(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        return self.w_ratio_by_p() * self.saturation_model.pSatPrime(Tf)
