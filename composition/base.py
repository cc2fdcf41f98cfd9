"""
Interface composition model contract.

An interface composition model gives, for each transferring species, the mass
fraction phase 1 would have at the interface if it were in equilibrium with
phase 2 at the interface temperature Tf, plus the quantities an outer
nonlinear solver needs to linearise that equilibrium.

Lifecycle (per instance):
    Uninitialized --update(Tf)--> Ready --update(Tf')--> Ready ...

Concrete models implement the primitives Yf, Yf_prime and update. The derived
quantities dY, D, L and add_dmdtL have default algorithms:

    dY(i, Tf)   = Yf(i, Tf) - Y_i                      (bulk phase-1 mass fraction)
    D(i)        = alpha_1 / Le                          (thermal diffusivity / Lewis number)
    L(i, Tf)    = h_2,i(Tf) - h_1,i(Tf)                 (latent heat at the interface)
    add_dmdtL:    dmdtL       += K * dY(i, Tf) * L(i, Tf)
                  dmdtL_prime += K * Yf_prime(i, Tf) * L(i, Tf)

add_dmdtL linearises through Yf_prime only (first-order, one Newton step per
outer iteration); the temperature dependence of L is not linearised.

The pair and thermo objects are referenced, not owned: the instance must not
outlive the solver context that owns them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping, Tuple

import numpy as np

from core.errors import InterfaceCompositionError, NoCompositionAvailableError, UnknownSpeciesError
from core.types import CompositionLike, FloatArray, PhasePair, ThermoLike

logger = logging.getLogger(__name__)


class InterfaceCompositionModel(ABC):
    """Abstract interface composition model for one phase pair."""

    type_name: ClassVar[str] = ""

    def __init__(self, config: Mapping[str, Any], pair: PhasePair):
        self._pair = pair
        self._thermo = pair.phase1.thermo
        self._other_thermo = pair.phase2.thermo

        species = [str(s) for s in config.get("species", [])]
        if not species:
            raise ValueError(f"{self._label()} requires a non-empty 'species' list.")
        duplicates = sorted({s for s in species if species.count(s) > 1})
        if duplicates:
            raise ValueError(f"{self._label()}: duplicate species {duplicates}")
        self._species: Tuple[str, ...] = tuple(species)

        if "Le" not in config:
            raise ValueError(f"{self._label()} requires the Lewis number 'Le'.")
        Le = float(config["Le"])
        if not np.isfinite(Le) or Le <= 0.0:
            raise ValueError(f"{self._label()}: invalid Lewis number Le={Le} (must be finite and > 0)")
        self._Le = Le

        # raises NoCompositionAvailableError for a pure phase 1
        composition = self._thermo.composition
        for name in self._species:
            if not composition.contains(name):
                raise UnknownSpeciesError(
                    name, composition.species, where=f"composition of phase '{pair.phase1.name}'"
                )

        self._ready = False

    def _label(self) -> str:
        return f"Interface composition model '{self.type_name or type(self).__name__}' for pair '{self._pair.name}'"

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def pair(self) -> PhasePair:
        return self._pair

    @property
    def species(self) -> Tuple[str, ...]:
        """Transferring species names, in configuration order."""
        return self._species

    @property
    def Le(self) -> float:
        return self._Le

    @property
    def thermo(self) -> ThermoLike:
        return self._thermo

    @property
    def composition(self) -> CompositionLike:
        return self._thermo.composition

    @property
    def other_thermo(self) -> ThermoLike:
        return self._other_thermo

    @property
    def other_has_composition(self) -> bool:
        return self._other_thermo.has_composition

    @property
    def other_composition(self) -> CompositionLike:
        if not self._other_thermo.has_composition:
            raise NoCompositionAvailableError(self._pair.phase2.name)
        return self._other_thermo.composition

    @property
    def is_ready(self) -> bool:
        """True once update(Tf) has been called."""
        return self._ready

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_species(self, name: str) -> None:
        if name not in self._species:
            raise UnknownSpeciesError(name, self._species, where=self._label())

    def _require_ready(self) -> None:
        if not self._ready:
            raise InterfaceCompositionError(f"{self._label()}: update(Tf) must be called before querying.")

    @staticmethod
    def _as_temperature(Tf: Any) -> FloatArray:
        Tf = np.asarray(Tf, dtype=np.float64)
        if not np.all(np.isfinite(Tf)) or np.any(Tf <= 0.0):
            raise InterfaceCompositionError(
                f"Invalid interface temperature field Tf (must be finite and > 0): {Tf}"
            )
        return Tf

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    @abstractmethod
    def Yf(self, species: str, Tf: Any) -> FloatArray:
        """Interface mass fraction of `species` at interface temperature Tf."""

    @abstractmethod
    def Yf_prime(self, species: str, Tf: Any) -> FloatArray:
        """Derivative of the interface mass fraction w.r.t. temperature [1/K]."""

    def dY(self, species: str, Tf: Any) -> FloatArray:
        """Mass fraction difference between the interface and the bulk field."""
        self._check_species(species)
        return self.Yf(species, Tf) - self.composition.Y(species)

    def D(self, species: str) -> FloatArray:
        """Mass diffusivity [m^2/s]."""
        self._check_species(species)
        return self._thermo.alpha / self._Le

    def L(self, species: str, Tf: Any) -> FloatArray:
        """Latent heat [J/kg]: other-side minus this-side enthalpy of `species` at Tf."""
        self._check_species(species)
        Tf = self._as_temperature(Tf)
        if self.other_has_composition and self.other_composition.contains(species):
            h_other = self.other_composition.ha(species, Tf)
        else:
            h_other = self._other_thermo.ha(Tf)
        return h_other - self.composition.ha(species, Tf)

    def add_dmdtL(self, K: Any, Tf: Any, dmdtL: FloatArray, dmdtL_prime: FloatArray) -> None:
        """
        Add the latent heat flow rate of every transferring species to the totals.

        Accumulates in place: callers zero dmdtL and dmdtL_prime before the
        first model of a summation loop.
        """
        if not isinstance(dmdtL, np.ndarray) or not isinstance(dmdtL_prime, np.ndarray):
            raise TypeError("add_dmdtL accumulators must be numpy arrays (updated in place).")
        K = np.asarray(K, dtype=np.float64)
        for name in self._species:
            L = self.L(name, Tf)
            dmdtL += K * self.dY(name, Tf) * L
            dmdtL_prime += K * self.Yf_prime(name, Tf) * L

    @abstractmethod
    def update(self, Tf: Any) -> None:
        """
        Update cached state for the candidate interface temperature Tf.

        Concrete models call super().update(Tf) first, then refresh their cache.
        """
        self._as_temperature(Tf)
        self._ready = True
        logger.debug("%s: updated", self._label())
