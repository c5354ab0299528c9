"""Simulation result data structures."""

from dataclasses import dataclass
from dataclasses import asdict
import csv
import json
from pathlib import Path
from typing import Any

import numpy as np

from .params import SimulationInputs

FIXED_COLUMNS = ["time_s", "membrane_potential_mv", "ghk_potential_mv"]


@dataclass(frozen=True, slots=True)
class SimulationOutputs:
    time_s: np.ndarray
    membrane_potential_mv: np.ndarray
    ghk_potential_mv: np.ndarray
    concentrations_mmol_l: dict[str, np.ndarray]
    metadata: dict[str, Any]

    def concentration(self, compartment: str, species: str) -> np.ndarray:
        return self.concentrations_mmol_l[f"{compartment}.{species}"]


def csv_columns(outputs: SimulationOutputs) -> list[str]:
    return FIXED_COLUMNS + [f"{key}_mmol_l" for key in sorted(outputs.concentrations_mmol_l)]


def export_csv(outputs: SimulationOutputs, path: str | Path) -> None:
    """Export simulation timeseries to CSV with deterministic column order."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    keys = sorted(outputs.concentrations_mmol_l)

    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(csv_columns(outputs))
        for idx in range(len(outputs.time_s)):
            row = [
                outputs.time_s[idx],
                outputs.membrane_potential_mv[idx],
                outputs.ghk_potential_mv[idx],
            ]
            row.extend(outputs.concentrations_mmol_l[key][idx] for key in keys)
            writer.writerow([f"{value:.12g}" for value in row])


def export_metadata_json(
    inputs: SimulationInputs,
    outputs: SimulationOutputs,
    path: str | Path,
) -> None:
    """Export simulation inputs/results metadata to JSON."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload: dict[str, Any] = {
        "inputs": asdict(inputs),
        "outputs_summary": {
            "n_samples": int(len(outputs.time_s)),
            "initial_membrane_potential_mv": float(outputs.membrane_potential_mv[0]),
            "final_membrane_potential_mv": float(outputs.membrane_potential_mv[-1]),
            "final_ghk_potential_mv": float(outputs.ghk_potential_mv[-1]),
            "final_cell_na_mmol_l": float(outputs.concentration("cell", "Na")[-1]),
            "final_cell_k_mmol_l": float(outputs.concentration("cell", "K")[-1]),
            "final_lumen_glucose_mmol_l": float(outputs.concentration("lumen", "glucose")[-1]),
        },
        "metadata": outputs.metadata,
    }

    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
