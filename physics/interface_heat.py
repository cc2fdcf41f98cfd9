"""
Interface heat/mass source assembly from interface composition models.

Responsibilities:
- update_models: refresh every model's cached state for a candidate Tf.
- total_dmdtL: zero the accumulators and sum the latent-heat-weighted mass
  transfer rate (and its Tf linearisation) over all models.
- species_mass_transfer: per-species mass transfer rate K * dY.

Sign convention: K >= 0; dY > 0 means the interface is richer in species i than
the bulk of phase 1, i.e. transfer from phase 2 into phase 1.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Tuple

import numpy as np

from core.types import FloatArray
from composition.base import InterfaceCompositionModel

logger = logging.getLogger(__name__)


def update_models(models: Iterable[InterfaceCompositionModel], Tf: Any) -> None:
    """Call update(Tf) on every model, in order."""
    for model in models:
        model.update(Tf)


def total_dmdtL(
    models: Iterable[InterfaceCompositionModel],
    K: Any,
    Tf: Any,
) -> Tuple[FloatArray, FloatArray]:
    """
    Sum add_dmdtL over `models` starting from zeroed accumulators.

    Models must already be updated for Tf.

    Returns:
        (dmdtL, dmdtL_prime) fields [W/m^3] and [W/m^3/K]
    """
    Tf = np.asarray(Tf, dtype=np.float64)
    dmdtL = np.zeros(Tf.shape, dtype=np.float64)
    dmdtL_prime = np.zeros(Tf.shape, dtype=np.float64)
    for model in models:
        model.add_dmdtL(K, Tf, dmdtL, dmdtL_prime)
    if not (np.all(np.isfinite(dmdtL)) and np.all(np.isfinite(dmdtL_prime))):
        logger.error("Non-finite latent heat source: dmdtL=%s dmdtL_prime=%s", dmdtL, dmdtL_prime)
        raise FloatingPointError("Non-finite latent heat source from interface composition models.")
    return dmdtL, dmdtL_prime


def species_mass_transfer(model: InterfaceCompositionModel, K: Any, Tf: Any) -> Dict[str, FloatArray]:
    """Per-species mass transfer rate K * dY(i, Tf) [kg/m^3/s]."""
    K = np.asarray(K, dtype=np.float64)
    return {name: K * model.dY(name, Tf) for name in model.species}
