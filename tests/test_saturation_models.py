"""
Saturation-pressure models and the liquid saturation parameter database.

Tests:
1. Parameter database loading and alias resolution
2. psat(T) monotonicity and derivative consistency for every model
3. Tsat(p) inverts psat (closed form and Newton)
4. Watson/Clausius anchoring psat(Tb) = patm and hvap(T) behaviour
5. Fail-fast on invalid inputs and non-converging Tsat
"""

from __future__ import annotations

import numpy as np
import pytest

from core.errors import DuplicateModelTypeError, SaturationConvergenceError, UnknownModelTypeError
from properties.liquid_sat_db import LiquidSatDB, load_liquid_sat_db
from properties.saturation_models import (
    SaturationModel,
    available_saturation_models,
    create_saturation_model,
    register_saturation_model,
)

WATER_ANTOINE = {"type": "antoine", "A": 23.4777, "B": -3984.9, "C": -39.724}

# ln(p) = A + B/(C+T) + D ln T + F T^E, water (DIPPR-101 form)
WATER_ANTOINE_EXT = {
    "type": "antoineExtended",
    "A": 73.649,
    "B": -7258.2,
    "C": 0.0,
    "D": -7.3037,
    "F": 4.1653e-6,
    "E": 2.0,
}

WATER_WATSON_INLINE = {
    "type": "watsonClausius",
    "W": 0.018015,
    "Tb_patm": 373.15,
    "patm": 101325.0,
    "Tc": 647.096,
    "Lb_Tb": 40657.0,
    "watson_n": 0.38,
}


# ============================================================================
# Test 1: Parameter database
# ============================================================================


def test_load_liquid_sat_db(sat_db_path):
    db = load_liquid_sat_db(sat_db_path)

    assert {"water", "n-Dodecane", "ethanol"} <= set(db.list_species())
    assert db.has_species("H2O")
    assert not db.has_species("mercury")


@pytest.mark.parametrize("alias", ["NC12H26", "n-Dodecane", "Dodecane", "nC12H26", "nc12h26", "n_dodecane"])
def test_alias_resolution_dodecane(sat_db_path, alias):
    db = load_liquid_sat_db(sat_db_path)
    assert db.get_params(alias).canonical_name == "n-Dodecane"


def test_get_params_nonexistent_species(sat_db_path):
    db = load_liquid_sat_db(sat_db_path)
    with pytest.raises(KeyError, match="not found in database"):
        db.get_params("Nonexistent")


def test_alias_collision_rejected():
    db = LiquidSatDB()
    water = dict(W=0.018015, Tb_patm=373.15, patm=101325.0, Tc=647.096, Lb_Tb=40657.0, watson_n=0.38)
    db.add_species("water", ["H2O"], **water)
    assert "h2o" in db and len(db) == 1
    with pytest.raises(ValueError, match="Alias collision"):
        db.add_species("heavy-water", ["h2o"], **dict(water, W=0.02003, Tc=643.85))


def test_missing_field_rejected(tmp_path):
    path = tmp_path / "sat.yaml"
    path.write_text("species:\n  water:\n    W: 0.018\n    Tb_patm: 373.15\n")
    with pytest.raises(ValueError, match="required field 'patm'"):
        load_liquid_sat_db(path)


def test_missing_file_rejected(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_liquid_sat_db(tmp_path / "absent.yaml")


# ============================================================================
# Test 2: Monotonicity and derivative consistency
# ============================================================================


SAT_CONFIGS = {
    "antoine": WATER_ANTOINE,
    "antoineExtended": WATER_ANTOINE_EXT,
    "ArdenBuck": {"type": "ArdenBuck"},
    "watsonClausius": WATER_WATSON_INLINE,
}


def test_available_saturation_models():
    assert available_saturation_models() == sorted(
        ["constant", "antoine", "antoineExtended", "ArdenBuck", "watsonClausius"]
    )


@pytest.mark.parametrize("name", sorted(SAT_CONFIGS))
def test_psat_increases_with_T(name):
    model = create_saturation_model(SAT_CONFIGS[name])
    T = np.linspace(290.0, 370.0, 9)
    psat = model.pSat(T)

    assert np.all(np.isfinite(psat))
    assert np.all(psat > 0.0)
    assert np.all(np.diff(psat) > 0.0)
    np.testing.assert_allclose(model.lnPSat(T), np.log(psat), rtol=1e-12)


@pytest.mark.parametrize("name", sorted(SAT_CONFIGS))
def test_pSatPrime_matches_centred_difference(name):
    model = create_saturation_model(SAT_CONFIGS[name])
    T = np.array([300.0, 330.0, 360.0])
    dT = 1e-2
    fd = (model.pSat(T + dT) - model.pSat(T - dT)) / (2.0 * dT)
    np.testing.assert_allclose(model.pSatPrime(T), fd, rtol=1e-5)


@pytest.mark.parametrize("name", sorted(SAT_CONFIGS))
def test_water_boils_near_373K(name):
    model = create_saturation_model(SAT_CONFIGS[name])
    assert model.pSat(np.array([373.15]))[0] == pytest.approx(101325.0, rel=0.01)


def test_constant_model():
    model = create_saturation_model({"type": "constant", "pSat": 3000.0, "Tsat": 297.0})
    T = np.array([280.0, 300.0])

    np.testing.assert_allclose(model.pSat(T), [3000.0, 3000.0])
    np.testing.assert_allclose(model.pSatPrime(T), [0.0, 0.0])
    np.testing.assert_allclose(model.Tsat(np.array([1e5, 2e5])), [297.0, 297.0])


# ============================================================================
# Test 3: Tsat inversion
# ============================================================================


@pytest.mark.parametrize("name", sorted(SAT_CONFIGS))
def test_Tsat_inverts_psat(name):
    model = create_saturation_model(SAT_CONFIGS[name])
    T = np.array([300.0, 340.0, 372.0])
    np.testing.assert_allclose(model.Tsat(model.pSat(T)), T, rtol=1e-8)


def test_antoine_closed_form_Tsat():
    model = create_saturation_model(WATER_ANTOINE)
    assert model.Tsat(np.array([101325.0]))[0] == pytest.approx(373.15, abs=0.05)


@pytest.mark.parametrize("p", [0.0, -1.0e5, np.nan, np.inf])
@pytest.mark.parametrize("name", sorted(SAT_CONFIGS) + ["constant"])
def test_Tsat_invalid_pressure_rejected(name, p):
    config = SAT_CONFIGS.get(name, {"type": "constant", "pSat": 3000.0, "Tsat": 297.0})
    model = create_saturation_model(config)
    with pytest.raises(ValueError, match="Invalid pressure"):
        model.Tsat(np.array([101325.0, p]))


def test_antoine_Tsat_without_positive_root_rejected():
    """Above p = exp(A) the closed form has no positive temperature."""
    model = create_saturation_model(WATER_ANTOINE)
    with pytest.raises(ValueError, match="Antoine Tsat undefined"):
        model.Tsat(np.array([101325.0, 10.0 * np.exp(WATER_ANTOINE["A"])]))


def test_antoine_Tsat_singular_pressure_rejected():
    model = create_saturation_model(dict(WATER_ANTOINE, A=float(np.log(np.array([1.0e5]))[0])))
    with pytest.raises(ValueError, match="Antoine Tsat undefined"):
        model.Tsat(np.array([1.0e5]))


# ============================================================================
# Test 4: Watson/Clausius
# ============================================================================


def test_watson_psat_at_Tb_equals_patm():
    model = create_saturation_model(WATER_WATSON_INLINE)
    assert model.pSat(np.array([373.15]))[0] == pytest.approx(101325.0, rel=1e-12)


def test_watson_from_params_file(sat_db_path):
    model = create_saturation_model({"type": "watsonClausius", "params_file": str(sat_db_path), "species": "NC12H26"})
    assert model.params.canonical_name == "n-Dodecane"
    assert model.pSat(np.array([model.params.Tb_patm]))[0] == pytest.approx(model.params.patm)
    assert model.Tsat_guess == pytest.approx(model.params.Tb_patm)


def test_watson_hvap_decreases_with_T():
    model = create_saturation_model(WATER_WATSON_INLINE)
    T = np.array([300.0, 373.15, 450.0, 600.0])
    hvap = model.hvap(T)

    assert np.all(np.diff(hvap) < 0.0)
    assert hvap[1] == pytest.approx(40657.0 / 0.018015)


def test_watson_uniform_field_shape():
    model = create_saturation_model(WATER_WATSON_INLINE)
    T = np.full(5, 350.0)
    psat = model.pSat(T)
    assert psat.shape == (5,)
    assert np.all(psat == psat[0])


def test_watson_above_critical_rejected():
    model = create_saturation_model(WATER_WATSON_INLINE)
    with pytest.raises(ValueError, match="critical temperature"):
        model.pSat(np.array([700.0]))


def test_watson_params_file_requires_species(sat_db_path):
    with pytest.raises(ValueError, match="requires 'species'"):
        create_saturation_model({"type": "watsonClausius", "params_file": str(sat_db_path)})


# ============================================================================
# Test 5: Fail-fast
# ============================================================================


def test_unknown_saturation_model():
    with pytest.raises(UnknownModelTypeError, match="ArdenBuck"):
        create_saturation_model({"type": "Clausius"})


def test_missing_type_rejected():
    with pytest.raises(ValueError, match="requires a 'type' key"):
        create_saturation_model({"A": 1.0})


def test_missing_coeff_rejected():
    with pytest.raises(ValueError, match="Missing coeff 'C'"):
        create_saturation_model({"type": "antoine", "A": 23.0, "B": -3800.0})


@pytest.mark.parametrize("T", [0.0, -10.0, np.nan])
def test_invalid_temperature_rejected(T):
    model = create_saturation_model({"type": "ArdenBuck"})
    with pytest.raises(ValueError, match="Invalid temperature"):
        model.pSat(np.array([T]))


def test_duplicate_saturation_model_rejected():
    with pytest.raises(DuplicateModelTypeError, match="saturation model"):

        @register_saturation_model("antoine")
        class _Again(SaturationModel):
            def pSat(self, T):
                return T

            def pSatPrime(self, T):
                return T


def test_Tsat_nonconvergence_raises():
    model = create_saturation_model({"type": "ArdenBuck", "max_iter": 2, "Tsat_tol": 1e-14})
    with pytest.raises(SaturationConvergenceError) as excinfo:
        model.Tsat(np.array([101325.0, 2000.0]))
    assert excinfo.value.iterations == 2
    assert excinfo.value.n_failed >= 1
    assert "ArdenBuck" in str(excinfo.value)


def test_watson_Tsat_above_critical_pressure_raises_convergence_error():
    """Newton iterates stay below Tc, so a supercritical pressure fails to converge."""
    model = create_saturation_model(dict(WATER_WATSON_INLINE, max_iter=20))
    assert model.T_upper() < model.params.Tc
    with pytest.raises(SaturationConvergenceError) as excinfo:
        model.Tsat(np.array([1.0e5, 1.0e9]))
    assert excinfo.value.iterations == 20
    assert excinfo.value.n_failed == 1
    assert "watsonClausius" in str(excinfo.value)
