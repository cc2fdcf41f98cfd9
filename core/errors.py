"""
Error taxonomy for interface composition closures.

All errors are fail-fast: they are raised to the caller immediately and never
replaced by a default model, default species or stale value.
"""

from __future__ import annotations

from typing import Iterable, Optional


class InterfaceCompositionError(RuntimeError):
    """Base class for interface composition failures."""


class UnknownModelTypeError(InterfaceCompositionError):
    """Configuration requested a model type that is not registered."""

    def __init__(self, model_type: str, valid_types: Iterable[str], kind: str = "interface composition model"):
        self.model_type = model_type
        self.valid_types = sorted(valid_types)
        super().__init__(
            f"Unknown {kind} type '{model_type}'. "
            f"Valid types: {self.valid_types}"
        )


class DuplicateModelTypeError(InterfaceCompositionError):
    """Two implementations registered under the same type name."""

    def __init__(self, model_type: str, kind: str = "interface composition model"):
        self.model_type = model_type
        super().__init__(f"Duplicate {kind} type '{model_type}' registered.")


class UnknownSpeciesError(InterfaceCompositionError):
    """A species was requested that the model or composition does not carry."""

    def __init__(self, species: str, available: Iterable[str], where: str = ""):
        self.species = species
        self.available = list(available)
        location = f" in {where}" if where else ""
        super().__init__(
            f"Species '{species}' not found{location}. "
            f"Available species: {self.available}"
        )


class NoCompositionAvailableError(InterfaceCompositionError):
    """A multi-species composition was requested from a phase without one."""

    def __init__(self, phase_name: str):
        self.phase_name = phase_name
        super().__init__(
            f"Phase '{phase_name}' has no multi-species composition. "
            "Check other_has_composition before requesting it."
        )


class InconsistentLinearizationError(InterfaceCompositionError):
    """Analytical Yf derivative disagrees with the finite-difference derivative."""

    def __init__(self, species: str, max_rel_err: float, rel_tol: float, T_worst: Optional[float] = None):
        self.species = species
        self.max_rel_err = max_rel_err
        self.rel_tol = rel_tol
        at = f" at Tf={T_worst:.6g} K" if T_worst is not None else ""
        super().__init__(
            f"Yf_prime for '{species}' inconsistent with finite difference of Yf{at}: "
            f"rel_err={max_rel_err:.3e} > tol={rel_tol:.3e}"
        )


class SaturationConvergenceError(InterfaceCompositionError):
    """Saturation-temperature root find did not converge."""

    def __init__(self, model_name: str, iterations: int, residual: float, n_failed: int):
        self.model_name = model_name
        self.iterations = iterations
        self.residual = residual
        self.n_failed = n_failed
        super().__init__(
            f"Tsat iteration for saturation model '{model_name}' did not converge "
            f"after {iterations} iterations ({n_failed} cell(s), max |residual|={residual:.3e})"
        )
