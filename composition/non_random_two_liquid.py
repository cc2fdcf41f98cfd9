"""
Non-random two-liquid (NRTL) interface composition for a binary mixture.

Each of the two species has a pure-component model in a sub-block named after
the species (as for Raoult). NRTL generalises Raoult's law with activity
coefficients evaluated from the other (condensed) phase mole fractions X1, X2
captured at update:

    tau_ij = a_ij + b_ij / T          G_ij = exp(-alpha * tau_ij)
    ln(gamma_1) = X2^2 [tau_21 G_21^2 / (X1 + X2 G_21)^2 + tau_12 G_12 / (X2 + X1 G_12)^2]
    ln(gamma_2) = X1^2 [tau_12 G_12^2 / (X2 + X1 G_12)^2 + tau_21 G_21 / (X1 + X2 G_21)^2]

    Yf_i = X_i * gamma_i(Tf) * Yf_i^pure(Tf)
    Yf_prime_i = X_i * gamma_i * (Yf_prime_i^pure + Yf_i^pure * d ln(gamma_i)/dT)

With all interaction parameters zero, gamma_i = 1 and the model reduces to Raoult.

The activity-coefficient derivative is analytic so Yf_prime stays consistent
with Yf.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from core.errors import NoCompositionAvailableError
from core.types import FloatArray, PhasePair
from composition.base import InterfaceCompositionModel
from composition.raoult import species_sub_config
from composition.registry import construct, register_composition_model

SMALL = 1e-15


def nrtl_ln_gamma(
    X1: FloatArray,
    X2: FloatArray,
    T: FloatArray,
    alpha: float,
    a12: float,
    a21: float,
    b12: float,
    b21: float,
) -> Tuple[FloatArray, FloatArray, FloatArray, FloatArray]:
    """
    Binary NRTL log activity coefficients and their temperature derivatives.

    Returns:
        (ln_gamma1, ln_gamma2, dln_gamma1_dT, dln_gamma2_dT)
    """
    tau12 = a12 + b12 / T
    tau21 = a21 + b21 / T
    dtau12 = -b12 / T**2
    dtau21 = -b21 / T**2
    G12 = np.exp(-alpha * tau12)
    G21 = np.exp(-alpha * tau21)
    dG12 = -alpha * G12 * dtau12
    dG21 = -alpha * G21 * dtau21

    A = np.maximum(X1 + X2 * G21, SMALL)
    B = np.maximum(X2 + X1 * G12, SMALL)
    dA = X2 * dG21
    dB = X1 * dG12

    t21_sq = tau21 * G21**2 / A**2
    t12_lin = tau12 * G12 / B**2
    t12_sq = tau12 * G12**2 / B**2
    t21_lin = tau21 * G21 / A**2

    dt21_sq = dtau21 * G21**2 / A**2 + 2.0 * tau21 * G21 * dG21 / A**2 - 2.0 * tau21 * G21**2 * dA / A**3
    dt12_lin = dtau12 * G12 / B**2 + tau12 * dG12 / B**2 - 2.0 * tau12 * G12 * dB / B**3
    dt12_sq = dtau12 * G12**2 / B**2 + 2.0 * tau12 * G12 * dG12 / B**2 - 2.0 * tau12 * G12**2 * dB / B**3
    dt21_lin = dtau21 * G21 / A**2 + tau21 * dG21 / A**2 - 2.0 * tau21 * G21 * dA / A**3

    ln_gamma1 = X2**2 * (t21_sq + t12_lin)
    ln_gamma2 = X1**2 * (t12_sq + t21_lin)
    dln_gamma1 = X2**2 * (dt21_sq + dt12_lin)
    dln_gamma2 = X1**2 * (dt12_sq + dt21_lin)
    return ln_gamma1, ln_gamma2, dln_gamma1, dln_gamma2


@register_composition_model("nonRandomTwoLiquid")
class NonRandomTwoLiquid(InterfaceCompositionModel):
    def __init__(self, config: Mapping[str, Any], pair: PhasePair):
        super().__init__(config, pair)
        if len(self.species) != 2:
            raise ValueError(
                f"{self._label()}: NRTL model is suitable for two species only, got {list(self.species)}"
            )
        if not self.other_has_composition:
            raise NoCompositionAvailableError(pair.phase2.name)
        for name in self.species:
            self.other_composition.Y(name)
        self.species1, self.species2 = self.species
        self.alpha = float(config.get("alpha", 0.3))
        self.a12 = float(config.get("a12", 0.0))
        self.a21 = float(config.get("a21", 0.0))
        self.b12 = float(config.get("b12", 0.0))
        self.b21 = float(config.get("b21", 0.0))
        if not np.isfinite(self.alpha) or self.alpha < 0.0:
            raise ValueError(f"{self._label()}: invalid non-randomness alpha={self.alpha}")

        self.species_models: Dict[str, InterfaceCompositionModel] = {
            name: construct(species_sub_config(config, name, self.Le, self._label()), pair)
            for name in self.species
        }
        self._X: Optional[Tuple[FloatArray, FloatArray]] = None
        self._gamma: Optional[Tuple[FloatArray, FloatArray]] = None

    def _ln_gamma(self, species: str, Tf: FloatArray) -> Tuple[FloatArray, FloatArray, FloatArray]:
        """(X_i, ln gamma_i, d ln gamma_i / dT) for `species` at Tf."""
        self._require_ready()
        X1, X2 = self._X
        lng1, lng2, dlng1, dlng2 = nrtl_ln_gamma(
            X1, X2, Tf, self.alpha, self.a12, self.a21, self.b12, self.b21
        )
        if species == self.species1:
            return X1, lng1, dlng1
        return X2, lng2, dlng2

    @property
    def gamma1(self) -> FloatArray:
        """Activity coefficient of species 1 at the last update temperature."""
        self._require_ready()
        return self._gamma[0]

    @property
    def gamma2(self) -> FloatArray:
        self._require_ready()
        return self._gamma[1]

    def update(self, Tf: Any) -> None:
        super().update(Tf)
        Tf = self._as_temperature(Tf)
        self._X = (self.other_composition.X(self.species1), self.other_composition.X(self.species2))
        for model in self.species_models.values():
            model.update(Tf)
        lng1, lng2, _, _ = nrtl_ln_gamma(
            self._X[0], self._X[1], Tf, self.alpha, self.a12, self.a21, self.b12, self.b21
        )
        self._gamma = (np.exp(lng1), np.exp(lng2))

    def Yf(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        X, ln_gamma, _ = self._ln_gamma(species, Tf)
        return X * np.exp(ln_gamma) * self.species_models[species].Yf(species, Tf)

    def Yf_prime(self, species: str, Tf: Any) -> FloatArray:
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        X, ln_gamma, dln_gamma = self._ln_gamma(species, Tf)
        model = self.species_models[species]
        return X * np.exp(ln_gamma) * (model.Yf_prime(species, Tf) + model.Yf(species, Tf) * dln_gamma)
