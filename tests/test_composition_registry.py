"""
Run-time selection of interface composition models.

Tests:
1. Every registered type constructs and its accessors return the inputs unchanged
2. Unknown / missing types fail fast and list the valid types
3. Name clashes with a built-in are rejected at registration
"""

from __future__ import annotations

import sys

import numpy as np
import pytest

import composition.registry as registry
from core.errors import DuplicateModelTypeError, UnknownModelTypeError
from composition.base import InterfaceCompositionModel
from composition.registry import (
    available_models,
    construct,
    get_composition_model,
    register_composition_model,
)


# ============================================================================
# Test 1: Construction round-trip
# ============================================================================


def test_builtin_models_registered():
    assert available_models() == ["Henry", "Raoult", "nonRandomTwoLiquid", "saturated"]


@pytest.mark.parametrize("model_type", ["saturated", "Henry", "Raoult", "nonRandomTwoLiquid"])
def test_construct_roundtrip(model_type, model_configs, solution_pair):
    """construct(type) returns an instance holding the supplied pair and species."""
    config = model_configs[model_type]
    model = construct(config, solution_pair)

    assert isinstance(model, InterfaceCompositionModel)
    assert isinstance(model, get_composition_model(model_type))
    assert model.type_name == model_type
    assert model.pair is solution_pair
    assert model.species == tuple(config["species"])
    assert model.Le == pytest.approx(config["Le"])
    assert model.thermo is solution_pair.phase1.thermo
    assert model.other_thermo is solution_pair.phase2.thermo
    assert not model.is_ready


# ============================================================================
# Test 2: Fail-fast lookups
# ============================================================================


@pytest.mark.parametrize("model_type", ["raoult", "Saturated", "UNIFAC", ""])
def test_unknown_type_fails(model_type, solution_pair):
    config = {"type": model_type, "species": ["H2O"], "Le": 1.0}
    with pytest.raises(UnknownModelTypeError) as excinfo:
        construct(config, solution_pair)
    assert excinfo.value.model_type == model_type
    assert excinfo.value.valid_types == available_models()
    assert "nonRandomTwoLiquid" in str(excinfo.value)


def test_missing_type_key_fails(solution_pair):
    with pytest.raises(ValueError, match="requires a 'type' key"):
        construct({"species": ["H2O"], "Le": 1.0}, solution_pair)


def test_get_unknown_model_lists_valid_types():
    with pytest.raises(UnknownModelTypeError, match="Valid types"):
        get_composition_model("nope")


# ============================================================================
# Test 3: Registration
# ============================================================================

BUILTIN_MODULES = ("henry", "non_random_two_liquid", "raoult", "saturated", "models")


@pytest.fixture
def fresh_registry(monkeypatch):
    """Empty model table with the built-in modules unimported (restored afterwards)."""
    package = sys.modules["composition"]
    monkeypatch.setattr(registry, "_COMPOSITION_MODELS", {})
    monkeypatch.setattr(registry, "_BUILTINS_LOADED", False)
    monkeypatch.setattr(registry, "_BUILTINS_LOADING", False)
    for name in BUILTIN_MODULES:
        monkeypatch.delitem(sys.modules, f"composition.{name}", raising=False)
        monkeypatch.setattr(package, name, getattr(package, name, None), raising=False)
    return registry


class _ConstantYf(InterfaceCompositionModel):
    Y0 = 0.01

    def Yf(self, species, Tf):
        self._check_species(species)
        return np.full_like(self._as_temperature(Tf), self.Y0)

    def Yf_prime(self, species, Tf):
        self._check_species(species)
        return np.zeros_like(self._as_temperature(Tf))

    def update(self, Tf):
        super().update(Tf)


def test_builtin_name_clash_raised_at_decorator(fresh_registry, model_configs, solution_pair):
    with pytest.raises(DuplicateModelTypeError, match="Henry"):
        fresh_registry.register_composition_model("Henry")(_ConstantYf)

    # the table holds the built-ins only and selection still works
    assert fresh_registry.available_models() == ["Henry", "Raoult", "nonRandomTwoLiquid", "saturated"]
    assert fresh_registry.get_composition_model("Henry").__module__ == "composition.henry"
    model = fresh_registry.construct(model_configs["saturated"], solution_pair)
    assert model.type_name == "saturated"


def test_register_new_model_type(fresh_registry, solution_pair):
    @fresh_registry.register_composition_model("constantYf")
    class ConstantYf(_ConstantYf):
        pass

    assert ConstantYf.type_name == "constantYf"
    assert "constantYf" in fresh_registry.available_models()
    assert "saturated" in fresh_registry.available_models()

    model = fresh_registry.construct({"type": "constantYf", "species": ["H2O"], "Le": 1.0}, solution_pair)
    assert isinstance(model, ConstantYf)
    model.update(np.array([300.0]))
    assert model.Yf("H2O", np.array([300.0])) == pytest.approx([0.01])


def test_duplicate_registration_rejected():
    with pytest.raises(DuplicateModelTypeError, match="Raoult"):

        @register_composition_model("Raoult")
        class _Other(_ConstantYf):
            pass

    assert get_composition_model("Raoult").__name__ == "Raoult"
    assert available_models() == ["Henry", "Raoult", "nonRandomTwoLiquid", "saturated"]
