"""
Shared fixtures: gas/liquid phase pairs built from the thermo reference models.

Phase 1 ("gas") carries H2O, C2H5OH, CO2 and N2. Phase 2 ("liquid") is either
pure water or an H2O/C2H5OH/CO2 solution.
"""

from __future__ import annotations

import pathlib

import pytest

from core.types import Phase, PhasePair
from properties.thermo import PhaseThermo, build_phase_thermo

SAT_DB_PATH = pathlib.Path(__file__).parent.parent / "mechanism" / "liquid_sat_params.yaml"

GAS_SPECIES = {
    "H2O": {"W": 0.018015, "cp": 1864.0, "h_ref": 2.5e6},
    "C2H5OH": {"W": 0.046069, "cp": 1420.0, "h_ref": 0.92e6},
    "CO2": {"W": 0.04401, "cp": 846.0, "h_ref": 0.0},
    "N2": {"W": 0.028014, "cp": 1040.0},
}

LIQUID_SPECIES = {
    "H2O": {"W": 0.018015, "cp": 4182.0},
    "C2H5OH": {"W": 0.046069, "cp": 2440.0},
    "CO2": {"W": 0.04401, "cp": 2000.0, "h_ref": -0.35e6},
}


def build_gas(n_cells: int = 1, Y=None, alpha=2.0e-5, p=101325.0) -> PhaseThermo:
    if Y is None:
        Y = {"H2O": 0.01, "C2H5OH": 0.002, "CO2": 0.0005, "N2": 0.9875}
    raw = {"p": p, "T": 300.0, "rho": 1.18, "alpha": alpha, "species": GAS_SPECIES, "Y": Y}
    return build_phase_thermo("gas", raw, n_cells)


def build_liquid(n_cells: int = 1, Y=None, pure: bool = False) -> PhaseThermo:
    raw = {"p": 101325.0, "T": 300.0, "rho": 990.0, "alpha": 1.4e-7}
    if pure:
        raw.update({"W": 0.018015, "cp": 4182.0})
    else:
        if Y is None:
            Y = {"H2O": 0.7, "C2H5OH": 0.28, "CO2": 0.02}
        raw.update({"species": LIQUID_SPECIES, "Y": Y})
    return build_phase_thermo("liquid", raw, n_cells)


@pytest.fixture
def make_pair():
    """Factory: make_pair(n_cells=1, gas_Y=None, liquid_Y=None, pure_liquid=False, alpha=2e-5)."""

    def _make(n_cells=1, gas_Y=None, liquid_Y=None, pure_liquid=False, alpha=2.0e-5):
        gas = build_gas(n_cells, Y=gas_Y, alpha=alpha)
        liquid = build_liquid(n_cells, Y=liquid_Y, pure=pure_liquid)
        return PhasePair(Phase("gas", gas), Phase("liquid", liquid))

    return _make


@pytest.fixture
def pure_water_pair(make_pair):
    return make_pair(pure_liquid=True)


@pytest.fixture
def solution_pair(make_pair):
    return make_pair()


@pytest.fixture
def sat_db_path():
    return SAT_DB_PATH


# ethanol, ln(p/Pa) = A + B/(C + T)
ETHANOL_ANTOINE = {"type": "antoine", "A": 23.7836, "B": -3782.9, "C": -42.85}


@pytest.fixture
def model_configs():
    """One valid configuration per registered model type (for solution_pair)."""
    water = {"type": "saturated", "pSat": {"type": "ArdenBuck"}}
    ethanol = {"type": "saturated", "pSat": dict(ETHANOL_ANTOINE)}
    return {
        "saturated": {"type": "saturated", "species": ["H2O"], "Le": 1.0, "pSat": {"type": "ArdenBuck"}},
        "Henry": {"type": "Henry", "species": ["CO2"], "Le": 1.2, "k": [1.0e-3]},
        "Raoult": {"type": "Raoult", "species": ["H2O", "C2H5OH"], "Le": 1.0, "H2O": water, "C2H5OH": ethanol},
        "nonRandomTwoLiquid": {
            "type": "nonRandomTwoLiquid",
            "species": ["H2O", "C2H5OH"],
            "Le": 1.0,
            "alpha": 0.3,
            "a12": 3.46,
            "a21": -0.80,
            "b12": -586.1,
            "b21": 246.2,
            "H2O": water,
            "C2H5OH": ethanol,
        },
    }
