"""
Run-time selection of interface composition models.

Concrete models register themselves by type name with the
register_composition_model decorator when their module is imported. The
built-in models are imported before the first registration or lookup, so a
user model reusing a built-in name fails inside its own decorator and the
table is only read once selection starts.

Usage:
    model = construct({"type": "saturated", "species": ["H2O"], "Le": 1.0,
                       "pSat": {"type": "ArdenBuck"}}, pair)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Type

from core.errors import DuplicateModelTypeError, UnknownModelTypeError
from core.types import PhasePair
from composition.base import InterfaceCompositionModel

logger = logging.getLogger(__name__)

ModelClass = Type[InterfaceCompositionModel]

_COMPOSITION_MODELS: Dict[str, ModelClass] = {}
_BUILTINS_LOADED = False
_BUILTINS_LOADING = False


def register_composition_model(name: str) -> Callable[[ModelClass], ModelClass]:
    """
    Class decorator registering an interface composition model under `name`.

    Raises:
        DuplicateModelTypeError: If `name` is already registered
    """

    def decorator(cls: ModelClass) -> ModelClass:
        # built-ins first, so a clash with one is raised here
        _load_builtin_models()
        if name in _COMPOSITION_MODELS:
            raise DuplicateModelTypeError(name)
        _COMPOSITION_MODELS[name] = cls
        cls.type_name = name
        logger.debug("Registered interface composition model '%s' (%s)", name, cls.__name__)
        return cls

    return decorator


def _load_builtin_models() -> None:
    """Import the built-in models once; re-entrant calls from their decorators return early."""
    global _BUILTINS_LOADED, _BUILTINS_LOADING
    if _BUILTINS_LOADED or _BUILTINS_LOADING:
        return
    _BUILTINS_LOADING = True
    try:
        # Import here to avoid circular dependency (models import this module)
        import composition.models  # noqa: F401
    finally:
        _BUILTINS_LOADING = False
    _BUILTINS_LOADED = True


def available_models() -> List[str]:
    """Sorted list of registered model type names."""
    _load_builtin_models()
    return sorted(_COMPOSITION_MODELS)


def get_composition_model(model_type: str) -> ModelClass:
    """
    Return the model class registered under `model_type`.

    Raises:
        UnknownModelTypeError: If no model is registered under that name
    """
    _load_builtin_models()
    cls = _COMPOSITION_MODELS.get(model_type)
    if cls is None:
        raise UnknownModelTypeError(model_type, _COMPOSITION_MODELS)
    return cls


def construct(config: Mapping[str, Any], pair: PhasePair) -> InterfaceCompositionModel:
    """
    Construct the interface composition model selected by config['type'].

    Model-specific keys are validated by the selected model's constructor.

    Raises:
        ValueError: If config has no 'type' key
        UnknownModelTypeError: If the type is not registered
    """
    if "type" not in config:
        raise ValueError(
            f"Interface composition config for pair '{pair.name}' requires a 'type' key. "
            f"Valid types: {available_models()}"
        )
    model_type = str(config["type"])
    cls = get_composition_model(model_type)
    logger.info("Selecting interface composition model '%s' for pair '%s'", model_type, pair.name)
    return cls(config, pair)
