"""
Watson/Clausius saturation parameters keyed by species name.

The YAML file (see mechanism/liquid_sat_params.yaml) lists canonical species
with optional aliases; lookups ignore case, hyphens, underscores and spaces,
so "NC12H26", "n-Dodecane" and "n_dodecane" resolve to the same entry.

Files are parsed once per resolved path: every watsonClausius sub-model of a
case shares the same database object.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from properties.saturation_models import LiquidSatParams

logger = logging.getLogger(__name__)

PARAM_KEYS = ("W", "Tb_patm", "patm", "Tc", "Lb_Tb", "watson_n")

_SEPARATORS = re.compile(r"[-_\s]+")


def lookup_key(name: str) -> str:
    """Case- and separator-insensitive key: 'n-Dodecane' -> 'ndodecane'."""
    return _SEPARATORS.sub("", str(name)).lower()


class LiquidSatDB:
    """In-memory table of LiquidSatParams with alias resolution."""

    def __init__(self, source: str = "<memory>"):
        self.source = source
        self._entries: Dict[str, LiquidSatParams] = {}
        self._keys: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return self.has_species(name)

    def add_species(self, canonical_name: str, aliases: Iterable[str], **values: float) -> LiquidSatParams:
        """
        Register one species under its canonical name and aliases.

        Raises:
            ValueError: On a repeated canonical name, an alias already owned by
                another species, or invalid parameter values
        """
        if canonical_name in self._entries:
            raise ValueError(f"Species '{canonical_name}' defined twice in {self.source}")
        params = LiquidSatParams(canonical_name, **{k: float(values[k]) for k in PARAM_KEYS})

        keys = {lookup_key(n): n for n in [canonical_name, *aliases]}
        for key, name in keys.items():
            owner = self._keys.get(key)
            if owner is not None and owner != canonical_name:
                raise ValueError(
                    f"Alias collision in {self.source}: '{name}' already refers to '{owner}', "
                    f"cannot also refer to '{canonical_name}'"
                )
        for key in keys:
            self._keys[key] = canonical_name
        self._entries[canonical_name] = params
        return params

    def has_species(self, name: str) -> bool:
        return lookup_key(name) in self._keys

    def get_params(self, name: str) -> LiquidSatParams:
        """
        Parameters for a canonical name or alias.

        Raises:
            KeyError: If the name is unknown
        """
        canonical = self._keys.get(lookup_key(name))
        if canonical is None:
            raise KeyError(f"Species '{name}' not found in database {self.source}. Available: {self.list_species()}")
        return self._entries[canonical]

    def list_species(self) -> List[str]:
        """Canonical names in file order."""
        return list(self._entries)


def _build_db(data: Any, source: str) -> LiquidSatDB:
    if not isinstance(data, Mapping) or not isinstance(data.get("species"), Mapping):
        raise ValueError(f"{source}: expected a top-level 'species' mapping")

    db = LiquidSatDB(source)
    for name, entry in data["species"].items():
        if not isinstance(entry, Mapping):
            raise ValueError(f"{source}: entry for '{name}' must be a mapping, got {type(entry).__name__}")
        missing = [k for k in PARAM_KEYS if k not in entry]
        if missing:
            raise ValueError(f"{source}: missing required field '{missing[0]}' for species '{name}'")
        aliases = entry.get("aliases", [])
        if not isinstance(aliases, list):
            raise ValueError(f"{source}: 'aliases' for '{name}' must be a list")
        db.add_species(str(name), [str(a) for a in aliases], **{k: entry[k] for k in PARAM_KEYS})
    return db


@lru_cache(maxsize=None)
def _load_cached(path: Path) -> LiquidSatDB:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    db = _build_db(data, str(path))
    logger.debug("Loaded %d saturation parameter sets from %s", len(db), path)
    return db


def load_liquid_sat_db(yaml_path: str | Path) -> LiquidSatDB:
    """
    Load (or reuse) the saturation database stored at yaml_path.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the structure or a parameter set is invalid
    """
    path = Path(yaml_path).expanduser().resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Liquid saturation params file not found: {path}")
    return _load_cached(path)
