"""
Driver to evaluate interface composition closures over a temperature sweep.

Responsibilities:
- Load CaseConfig from YAML (phases, phase pairs with composition blocks, sweep).
- Build phase thermo models and construct closures through the model registry.
- For each sweep temperature: update the closures with a uniform Tf field and
  evaluate Yf, Yf_prime, dY, D, L per species plus total dmdtL / dmdtL_prime.
- Log per-temperature summaries and optionally write a CSV table.

Example case:

    case: {id: water_air}
    n_cells: 1
    phases:
      air:
        p: 101325.0
        T: 300.0
        rho: 1.18
        alpha: 2.2e-5
        species:
          H2O: {W: 0.018015, cp: 1864.0, h_ref: 2.5e6}
          N2:  {W: 0.028014, cp: 1040.0}
        Y: {H2O: 0.01, N2: 0.99}
      water: {p: 101325.0, T: 300.0, rho: 997.0, alpha: 1.4e-7, W: 0.018015, cp: 4182.0}
    pairs:
      - phases: [air, water]
        K: 1.0e-2
        composition:
          type: saturated
          species: [H2O]
          Le: 1.0
          pSat: {type: ArdenBuck}
    sweep: {T_min: 280.0, T_max: 360.0, n_points: 9}
"""

from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import yaml

from core.logging_utils import get_log_level_from_env, parse_log_level, setup_logging
from core.types import CaseConfig, CaseMeta, CasePair, CaseSweep, Phase, PhasePair
from composition.base import InterfaceCompositionModel
from composition.registry import construct
from physics.interface_heat import total_dmdtL, update_models
from properties.thermo import PhaseThermo, build_phase_thermo

logger = logging.getLogger(__name__)


def _resolve_path(base: Path, value: str | Path) -> Path:
    """Resolve a possibly relative path against base."""
    path = Path(value)
    return path if path.is_absolute() else (base / path).resolve()


def _read_yaml_text(cfg_file: Path) -> str:
    try:
        return cfg_file.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        return cfg_file.read_text()


def _resolve_params_files(block: Any, base: Path) -> Any:
    """Resolve every nested 'params_file' entry relative to the case file."""
    if isinstance(block, Mapping):
        out = {}
        for key, value in block.items():
            if key == "params_file":
                out[key] = str(_resolve_path(base, value))
            else:
                out[key] = _resolve_params_files(value, base)
        return out
    if isinstance(block, list):
        return [_resolve_params_files(v, base) for v in block]
    return block


def load_case_config(cfg_path: str | Path) -> CaseConfig:
    """Load YAML file into CaseConfig."""
    cfg_file = Path(cfg_path).expanduser().resolve()
    raw = yaml.safe_load(_read_yaml_text(cfg_file)) or {}
    base = cfg_file.parent

    for key in ("case", "phases", "pairs", "sweep"):
        if key not in raw:
            raise ValueError(f"Missing required top-level key '{key}' in {cfg_file}")

    pairs: List[CasePair] = []
    for i, pair_raw in enumerate(raw["pairs"]):
        names = list(pair_raw.get("phases", []))
        if len(names) != 2:
            raise ValueError(f"pairs[{i}].phases must list exactly two phase names, got {names}")
        pairs.append(
            CasePair(
                phase1=str(names[0]),
                phase2=str(names[1]),
                K=float(pair_raw.get("K", 0.0)),
                composition=_resolve_params_files(dict(pair_raw.get("composition", {})), base),
            )
        )

    output = raw.get("output")
    return CaseConfig(
        case=CaseMeta(**raw["case"]),
        n_cells=int(raw.get("n_cells", 1)),
        phases=dict(raw["phases"]),
        pairs=pairs,
        sweep=CaseSweep(**raw["sweep"]),
        output=_resolve_path(base, output) if output else None,
        base_dir=base,
    )


def build_models(cfg: CaseConfig) -> Tuple[Dict[str, PhaseThermo], List[Tuple[InterfaceCompositionModel, float]]]:
    """Build phase thermo objects and one closure model per configured pair."""
    thermos = {name: build_phase_thermo(name, block, cfg.n_cells) for name, block in cfg.phases.items()}
    models: List[Tuple[InterfaceCompositionModel, float]] = []
    for pair_cfg in cfg.pairs:
        pair = PhasePair(
            Phase(pair_cfg.phase1, thermos[pair_cfg.phase1]),
            Phase(pair_cfg.phase2, thermos[pair_cfg.phase2]),
        )
        models.append((construct(pair_cfg.composition, pair), pair_cfg.K))
    return thermos, models


def evaluate_sweep(
    cfg: CaseConfig,
    models: Sequence[Tuple[InterfaceCompositionModel, float]],
    temperatures: Optional[np.ndarray] = None,
) -> List[Dict[str, Any]]:
    """
    Evaluate every closure at each sweep temperature (uniform Tf field).

    Returns one row per (temperature, pair, species) with cell-averaged values.
    """
    if temperatures is None:
        temperatures = cfg.sweep.temperatures()
    rows: List[Dict[str, Any]] = []
    for T in temperatures:
        Tf = np.full(cfg.n_cells, float(T), dtype=np.float64)
        update_models([m for m, _ in models], Tf)
        for model, K in models:
            dmdtL, dmdtL_prime = total_dmdtL([model], K, Tf)
            for name in model.species:
                rows.append(
                    {
                        "Tf": float(T),
                        "pair": model.pair.name,
                        "model": model.type_name,
                        "species": name,
                        "Yf": float(np.mean(model.Yf(name, Tf))),
                        "Yf_prime": float(np.mean(model.Yf_prime(name, Tf))),
                        "dY": float(np.mean(model.dY(name, Tf))),
                        "D": float(np.mean(model.D(name))),
                        "L": float(np.mean(model.L(name, Tf))),
                        "dmdtL": float(np.mean(dmdtL)),
                        "dmdtL_prime": float(np.mean(dmdtL_prime)),
                    }
                )
            logger.info(
                "Tf=%.3f K pair=%s model=%s dmdtL=%.6e dmdtL_prime=%.6e",
                T, model.pair.name, model.type_name, float(np.mean(dmdtL)), float(np.mean(dmdtL_prime)),
            )
    return rows


def write_rows_csv(rows: Sequence[Mapping[str, Any]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        logger.warning("No rows to write to %s", path)
        return
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    logger.info("Wrote %d rows to %s", len(rows), path)


def run_case(
    cfg_path: str | Path,
    *,
    output: Optional[str | Path] = None,
    n_points: Optional[int] = None,
    dry_run: bool = False,
) -> int:
    cfg = load_case_config(cfg_path)
    if n_points is not None:
        cfg.sweep = CaseSweep(T_min=cfg.sweep.T_min, T_max=cfg.sweep.T_max, n_points=int(n_points))
    logger.info("Case '%s': %d phase(s), %d pair(s), %d cell(s)", cfg.case.id, len(cfg.phases), len(cfg.pairs), cfg.n_cells)

    _, models = build_models(cfg)
    if dry_run:
        logger.info("Dry run: models constructed, skipping sweep.")
        return 0

    rows = evaluate_sweep(cfg, models)
    out_path = Path(output) if output is not None else cfg.output
    if out_path is not None:
        write_rows_csv(rows, out_path)
    return 0


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate interface composition closures over a Tf sweep.")
    parser.add_argument("case_yaml", help="Path to case YAML file.")
    parser.add_argument(
        "--output",
        default=None,
        help="CSV output path (default: use YAML 'output' or write nothing).",
    )
    parser.add_argument(
        "--n_points",
        type=int,
        default=None,
        help="Override sweep n_points (default: use YAML).",
    )
    parser.add_argument(
        "--dry_run",
        action="store_true",
        help="Load config and build models only; skip the sweep.",
    )
    parser.add_argument(
        "--log_level",
        default=None,
        help="Log level (default: INTERFACE_LOG_LEVEL env or INFO).",
    )
    parser.add_argument(
        "--log_file",
        default=None,
        help="Also write a DEBUG-level log to this file.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    if args.log_level:
        level = parse_log_level(args.log_level, logging.INFO)
    else:
        level = get_log_level_from_env("INFO")
    setup_logging(level, log_file=args.log_file)
    return run_case(args.case_yaml, output=args.output, n_points=args.n_points, dry_run=args.dry_run)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
