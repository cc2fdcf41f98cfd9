"""
Consistency check between Yf and its analytical temperature derivative.

The outer solver linearises the interface equilibrium with Yf_prime, so every
model must keep Yf_prime consistent with Yf. check_linearization compares it
with the centred finite difference

    (Yf(Tf + dT) - Yf(Tf - dT)) / (2 dT)

and fails with InconsistentLinearizationError beyond the relative tolerance.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from core.errors import InconsistentLinearizationError
from composition.base import InterfaceCompositionModel

logger = logging.getLogger(__name__)


def check_linearization(
    model: InterfaceCompositionModel,
    species: str,
    Tf: Any,
    *,
    rel_tol: float = 1.0e-4,
    dT: float = 1.0e-3,
    abs_floor: float = 1.0e-12,
) -> float:
    """
    Compare Yf_prime with a centred difference of Yf at Tf.

    The model is updated at Tf first. The relative error is measured against
    max(|fd|, abs_floor) so that vanishing derivatives compare absolutely.

    Returns:
        Maximum relative error over the field.

    Raises:
        InconsistentLinearizationError: If the error exceeds rel_tol
    """
    Tf = np.asarray(Tf, dtype=np.float64)
    model.update(Tf)
    analytic = np.asarray(model.Yf_prime(species, Tf), dtype=np.float64)
    fd = (np.asarray(model.Yf(species, Tf + dT)) - np.asarray(model.Yf(species, Tf - dT))) / (2.0 * dT)
    rel_err = np.abs(analytic - fd) / np.maximum(np.abs(fd), abs_floor)
    max_rel_err = float(np.max(rel_err)) if rel_err.size else 0.0
    logger.debug("Linearization check '%s' species '%s': max rel_err=%.3e", model.type_name, species, max_rel_err)
    if max_rel_err > rel_tol:
        idx = int(np.argmax(rel_err))
        T_worst = float(np.broadcast_to(Tf, rel_err.shape).reshape(-1)[idx])
        raise InconsistentLinearizationError(species, max_rel_err, rel_tol, T_worst=T_worst)
    return max_rel_err
