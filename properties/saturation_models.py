"""
Saturation-pressure models psat(T) for interface composition closures.

All models act on temperature fields (numpy arrays) and provide:
- pSat(T): saturation pressure [Pa]
- pSatPrime(T): d pSat / dT [Pa/K]
- lnPSat(T): natural log of pSat
- Tsat(p): saturation temperature [K] for a pressure field

Models are selected by name through create_saturation_model(config), where
config is the `pSat` block of a composition model, e.g.

    pSat:
      type: antoine
      A: 23.2
      B: -3816.4
      C: -46.1

Available types: constant, antoine, antoineExtended, ArdenBuck, watsonClausius.

watsonClausius (Millán-Merino formulation):
1. Watson correlation: L(T) = Lb * [(Tc - T)/(Tc - Tb)]^n
2. Clausius integral: ln[psat(T)/patm] = ∫_{Tb}^{T} L(τ)/(R·τ²) dτ
It is continuous, smooth and enforces psat(Tb) = patm.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Type

import numpy as np
from scipy.integrate import quad

from core.errors import DuplicateModelTypeError, SaturationConvergenceError, UnknownModelTypeError
from core.types import FloatArray

logger = logging.getLogger(__name__)

# Gas constant [J/(mol·K)]
R_GAS = 8.314462618

# Minimum epsilon for numerical stability
EPS = 1e-30

_KIND = "saturation model"
_SATURATION_MODELS: Dict[str, Type["SaturationModel"]] = {}


def register_saturation_model(name: str) -> Callable[[Type["SaturationModel"]], Type["SaturationModel"]]:
    """Class decorator registering a saturation model under `name`."""

    def decorator(cls: Type["SaturationModel"]) -> Type["SaturationModel"]:
        if name in _SATURATION_MODELS:
            raise DuplicateModelTypeError(name, kind=_KIND)
        _SATURATION_MODELS[name] = cls
        cls.type_name = name
        return cls

    return decorator


def available_saturation_models() -> List[str]:
    return sorted(_SATURATION_MODELS)


def create_saturation_model(config: Mapping[str, Any]) -> "SaturationModel":
    """
    Factory to create a saturation model from its configuration block.

    Raises:
        ValueError: If the block has no 'type' key
        UnknownModelTypeError: If the type is not registered
    """
    if "type" not in config:
        raise ValueError(f"Saturation model config requires a 'type' key. Available: {available_saturation_models()}")
    model_type = str(config["type"])
    cls = _SATURATION_MODELS.get(model_type)
    if cls is None:
        raise UnknownModelTypeError(model_type, _SATURATION_MODELS, kind=_KIND)
    logger.debug("Creating saturation model '%s'", model_type)
    return cls(config)


def _as_temperature(T: Any) -> FloatArray:
    T = np.asarray(T, dtype=np.float64)
    if not np.all(np.isfinite(T)) or np.any(T <= 0.0):
        raise ValueError(f"Invalid temperature field for saturation model (must be finite and > 0): {T}")
    return T


def _as_pressure(p: Any) -> FloatArray:
    p = np.asarray(p, dtype=np.float64)
    if not np.all(np.isfinite(p)) or np.any(p <= 0.0):
        raise ValueError(f"Invalid pressure field for Tsat (must be finite and > 0): {p}")
    return p


def _require(config: Mapping[str, Any], names: List[str], model: str) -> List[float]:
    values = []
    for name in names:
        if name not in config:
            raise ValueError(f"Missing coeff '{name}' for saturation model '{model}'.")
        val = float(config[name])
        if not np.isfinite(val):
            raise ValueError(f"Non-finite coeff '{name}'={val} for saturation model '{model}'.")
        values.append(val)
    return values


class SaturationModel(ABC):
    """Base class for saturation-pressure models acting on temperature fields."""

    type_name = ""

    def __init__(self, config: Mapping[str, Any]):
        self.Tsat_guess = float(config.get("Tsat_guess", 373.15))
        self.max_iter = int(config.get("max_iter", 100))
        self.Tsat_tol = float(config.get("Tsat_tol", 1.0e-10))

    @abstractmethod
    def pSat(self, T: Any) -> FloatArray:
        """Saturation pressure [Pa]."""

    @abstractmethod
    def pSatPrime(self, T: Any) -> FloatArray:
        """Saturation pressure derivative w.r.t. temperature [Pa/K]."""

    def lnPSat(self, T: Any) -> FloatArray:
        return np.log(self.pSat(T))

    def T_upper(self) -> float:
        """Largest temperature at which the model may be evaluated [K]."""
        return np.inf

    def Tsat(self, p: Any) -> FloatArray:
        """
        Saturation temperature by Newton iteration on lnPSat(T) - ln(p).

        Iterates are kept positive and at or below T_upper().

        Raises:
            ValueError: If p is not finite and > 0
            SaturationConvergenceError: If any cell fails to converge in max_iter
        """
        p = _as_pressure(p)
        ln_p = np.log(p)
        T_max = self.T_upper()
        T = np.full_like(p, min(self.Tsat_guess, T_max))
        residual = np.full_like(p, np.inf)
        for _ in range(self.max_iter):
            ln_psat = self.lnPSat(T)
            residual = ln_psat - ln_p
            dln = self.pSatPrime(T) / np.maximum(self.pSat(T), EPS)
            step = residual / np.where(np.abs(dln) > EPS, dln, EPS)
            T = np.minimum(np.maximum(T - step, 0.5 * T), T_max)
            if np.all(np.abs(step) <= self.Tsat_tol * np.maximum(T, 1.0)):
                return T
        converged = np.abs(residual) <= self.Tsat_tol
        if np.all(converged):
            return T
        raise SaturationConvergenceError(
            self.type_name,
            iterations=self.max_iter,
            residual=float(np.max(np.abs(residual[~converged]))),
            n_failed=int(np.count_nonzero(~converged)),
        )


@register_saturation_model("constant")
class ConstantSaturationConditions(SaturationModel):
    """Fixed saturation pressure and temperature."""

    def __init__(self, config: Mapping[str, Any]):
        super().__init__(config)
        self.pSat0, self.Tsat0 = _require(config, ["pSat", "Tsat"], "constant")
        if self.pSat0 <= 0.0 or self.Tsat0 <= 0.0:
            raise ValueError(f"Invalid constant saturation conditions pSat={self.pSat0}, Tsat={self.Tsat0}")

    def pSat(self, T: Any) -> FloatArray:
        return np.full_like(_as_temperature(T), self.pSat0)

    def pSatPrime(self, T: Any) -> FloatArray:
        return np.zeros_like(_as_temperature(T))

    def lnPSat(self, T: Any) -> FloatArray:
        return np.full_like(_as_temperature(T), np.log(self.pSat0))

    def Tsat(self, p: Any) -> FloatArray:
        return np.full_like(_as_pressure(p), self.Tsat0)


@register_saturation_model("antoine")
class Antoine(SaturationModel):
    """Antoine equation in natural-log, Pa/K form: ln(p) = A + B/(C + T)."""

    def __init__(self, config: Mapping[str, Any]):
        super().__init__(config)
        self.A, self.B, self.C = _require(config, ["A", "B", "C"], "antoine")

    def lnPSat(self, T: Any) -> FloatArray:
        T = _as_temperature(T)
        return self.A + self.B / (self.C + T)

    def pSat(self, T: Any) -> FloatArray:
        return np.exp(self.lnPSat(T))

    def pSatPrime(self, T: Any) -> FloatArray:
        T = _as_temperature(T)
        return -self.pSat(T) * self.B / (self.C + T) ** 2

    def Tsat(self, p: Any) -> FloatArray:
        """
        Closed-form inverse T = B / (ln p - A) - C.

        Raises:
            ValueError: If p is not finite and > 0, or has no positive finite inverse
        """
        p = _as_pressure(p)
        denom = np.log(p) - self.A
        with np.errstate(divide="ignore", invalid="ignore"):
            T = self.B / denom - self.C
        bad = (denom == 0.0) | ~np.isfinite(T) | (T <= 0.0)
        if np.any(bad):
            raise ValueError(
                f"Antoine Tsat undefined for p={p[bad]} (A={self.A}, B={self.B}, C={self.C})"
            )
        return T


@register_saturation_model("antoineExtended")
class AntoineExtended(SaturationModel):
    """Extended Antoine equation: ln(p) = A + B/(C + T) + D ln(T) + F T^E."""

    def __init__(self, config: Mapping[str, Any]):
        super().__init__(config)
        self.A, self.B, self.C, self.D, self.F, self.E = _require(
            config, ["A", "B", "C", "D", "F", "E"], "antoineExtended"
        )

    def lnPSat(self, T: Any) -> FloatArray:
        T = _as_temperature(T)
        return self.A + self.B / (self.C + T) + self.D * np.log(T) + self.F * T**self.E

    def pSat(self, T: Any) -> FloatArray:
        return np.exp(self.lnPSat(T))

    def pSatPrime(self, T: Any) -> FloatArray:
        T = _as_temperature(T)
        dlnp = -self.B / (self.C + T) ** 2 + self.D / T + self.F * self.E * T ** (self.E - 1.0)
        return self.pSat(T) * dlnp


@register_saturation_model("ArdenBuck")
class ArdenBuck(SaturationModel):
    """
    Arden Buck equation for water vapour over liquid water.

    p = A exp((B - TC/C) TC / (D + TC)) with TC the temperature in Celsius.
    """

    A = 611.21  # Pa
    B = 18.678
    C = 234.5  # degC
    D = 257.14  # degC
    ZERO_C = 273.15

    def _x(self, TC: FloatArray) -> FloatArray:
        return (self.B - TC / self.C) * TC / (self.D + TC)

    def _dx(self, TC: FloatArray) -> FloatArray:
        return ((self.B - 2.0 * TC / self.C) * (self.D + TC) - (self.B - TC / self.C) * TC) / (self.D + TC) ** 2

    def lnPSat(self, T: Any) -> FloatArray:
        TC = _as_temperature(T) - self.ZERO_C
        return np.log(self.A) + self._x(TC)

    def pSat(self, T: Any) -> FloatArray:
        TC = _as_temperature(T) - self.ZERO_C
        return self.A * np.exp(self._x(TC))

    def pSatPrime(self, T: Any) -> FloatArray:
        TC = _as_temperature(T) - self.ZERO_C
        return self.A * np.exp(self._x(TC)) * self._dx(TC)


@dataclass(slots=True)
class LiquidSatParams:
    """
    Saturation parameters for a single liquid species.

    Required for the Watson/Clausius saturation model:
    - W: Molar mass [kg/mol]
    - Tb_patm: Normal boiling point at patm [K]
    - patm: Reference pressure [Pa]
    - Tc: Critical temperature [K]
    - Lb_Tb: Latent heat at Tb [J/mol]
    - watson_n: Watson correlation exponent (dimensionless)
    """

    canonical_name: str
    W: float  # kg/mol
    Tb_patm: float  # K
    patm: float  # Pa
    Tc: float  # K
    Lb_Tb: float  # J/mol
    watson_n: float  # dimensionless

    def __post_init__(self):
        """Validate parameters on construction."""
        if self.W <= 0:
            raise ValueError(f"Invalid molar mass W={self.W} for {self.canonical_name}")
        if self.Tc <= 0:
            raise ValueError(f"Invalid Tc={self.Tc} for {self.canonical_name}")
        if self.Tb_patm <= 0 or self.Tb_patm >= self.Tc:
            raise ValueError(
                f"Invalid Tb={self.Tb_patm} (must be 0 < Tb < Tc={self.Tc}) "
                f"for {self.canonical_name}"
            )
        if self.Lb_Tb <= 0:
            raise ValueError(f"Invalid Lb_Tb={self.Lb_Tb} for {self.canonical_name}")
        if self.watson_n <= 0 or self.watson_n > 1.0:
            raise ValueError(
                f"Invalid watson_n={self.watson_n} (should be ~0.38) "
                f"for {self.canonical_name}"
            )
        if self.patm <= 0:
            raise ValueError(f"Invalid patm={self.patm} for {self.canonical_name}")


_SAT_PARAM_FIELDS = ["W", "Tb_patm", "patm", "Tc", "Lb_Tb", "watson_n"]


@register_saturation_model("watsonClausius")
class WatsonClausius(SaturationModel):
    """
    Millán-Merino saturation model (Watson latent heat + Clausius integral).

    Parameters are given inline (W, Tb_patm, patm, Tc, Lb_Tb, watson_n) or
    looked up by `species` in a saturation database `params_file`.
    """

    def __init__(self, config: Mapping[str, Any]):
        super().__init__(config)
        if "params_file" in config:
            from properties.liquid_sat_db import load_liquid_sat_db

            if "species" not in config:
                raise ValueError("watsonClausius with 'params_file' requires 'species'")
            db = load_liquid_sat_db(config["params_file"])
            self.params = db.get_params(str(config["species"]))
        else:
            values = _require(config, _SAT_PARAM_FIELDS, "watsonClausius")
            self.params = LiquidSatParams(str(config.get("species", "inline")), *values)
        self.Tsat_guess = float(config.get("Tsat_guess", self.params.Tb_patm))

    def T_upper(self) -> float:
        # Watson latent heat vanishes at Tc
        return self.params.Tc * (1.0 - 1.0e-6)

    def _watson_hvap_molar(self, T: float) -> float:
        """
        Watson correlation for latent heat of vaporization.

        L(T) = Lb * [(Tc - T) / (Tc - Tb)]^n

        Raises:
            ValueError: If T is out of valid range (0 < T < Tc)
        """
        sp = self.params
        if not np.isfinite(T) or T <= 0.0:
            raise ValueError(
                f"Invalid temperature T={T} for Watson correlation (must be finite and > 0)"
            )
        if T >= sp.Tc:
            raise ValueError(
                f"Temperature T={T} exceeds critical temperature Tc={sp.Tc} "
                f"for {sp.canonical_name} (Watson correlation not valid)"
            )
        reduced_temp_factor = (sp.Tc - T) / (sp.Tc - sp.Tb_patm)
        return sp.Lb_Tb * (reduced_temp_factor ** sp.watson_n)

    def hvap(self, T: Any) -> FloatArray:
        """Latent heat of vaporization [J/kg] (mass-specific)."""
        T = _as_temperature(T)
        L_molar = np.vectorize(self._watson_hvap_molar, otypes=[np.float64])(T)
        return L_molar / self.params.W

    def _psat_single(self, T: float) -> float:
        sp = self.params
        if abs(T - sp.Tb_patm) < 1e-6:
            return sp.patm

        def integrand(tau: float) -> float:
            return self._watson_hvap_molar(tau) / (R_GAS * tau**2)

        self._watson_hvap_molar(T)
        integral_value, _ = quad(integrand, sp.Tb_patm, T, limit=100, epsabs=1e-10, epsrel=1e-8)
        psat_value = sp.patm * np.exp(integral_value)
        if not np.isfinite(psat_value) or psat_value <= 0:
            raise ValueError(
                f"psat calculation produced invalid result psat={psat_value} "
                f"at T={T} for {sp.canonical_name}"
            )
        return float(psat_value)

    def pSat(self, T: Any) -> FloatArray:
        T = _as_temperature(T)
        # one quadrature per distinct temperature (uniform fields are common)
        T_unique, inverse = np.unique(T, return_inverse=True)
        values = np.array([self._psat_single(float(t)) for t in T_unique.reshape(-1)], dtype=np.float64)
        return values[inverse].reshape(T.shape)

    def pSatPrime(self, T: Any) -> FloatArray:
        """Clausius: d ln(psat)/dT = L(T) / (R T^2)."""
        T = _as_temperature(T)
        L_molar = np.vectorize(self._watson_hvap_molar, otypes=[np.float64])(T)
        return self.pSat(T) * L_molar / (R_GAS * T**2)
