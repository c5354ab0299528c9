"""Input schema and validation for the tubule simulation."""

from dataclasses import dataclass

from .constants import MEMBRANE_CAPACITANCE_F, VM_MAX_MV, VM_MIN_MV


@dataclass(frozen=True, slots=True)
class SimulationInputs:
    t_end_s: float = 10.0
    dt_s: float = 1.0 / 60.0
    seed: int | None = 0
    lumen_volume_l: float = 5.0e-12
    cell_volume_l: float = 2.0e-12
    blood_volume_l: float = 5.0e-12
    lumen_na_mmol_l: float = 140.0
    lumen_glucose_mmol_l: float = 5.0
    cell_na_mmol_l: float = 12.0
    cell_k_mmol_l: float = 140.0
    cell_atp_mmol_l: float = 4.0
    blood_na_mmol_l: float = 140.0
    blood_k_mmol_l: float = 5.0
    n_nka_sites: int = 4
    n_sglt2_sites: int = 2
    n_nhe3_sites: int = 2
    nka_transport_count: float = 1.0e6
    sglt2_transport_count: float = 1.0e6
    nhe3_transport_count: float = 1.0e4
    nka_auto_activate: bool = True
    carbonic_anhydrase_count: float = 10.0
    carbonic_acid_kf_s_inv: float = 0.1
    membrane_capacitance_f: float = MEMBRANE_CAPACITANCE_F
    resting_potential_mv: float = -70.0
    debug_scale: float = 1.0e-6
    record_every: int = 1


def validate_inputs(inputs: SimulationInputs) -> None:
    """Validate simulation inputs and raise ValueError on failures."""

    errors: list[str] = []

    if inputs.t_end_s <= 0.0:
        errors.append("t_end_s must be > 0")
    if inputs.dt_s <= 0.0:
        errors.append("dt_s must be > 0")
    if inputs.dt_s > inputs.t_end_s:
        errors.append("dt_s must be <= t_end_s")
    if inputs.record_every < 1:
        errors.append("record_every must be >= 1")

    for name in ("lumen_volume_l", "cell_volume_l", "blood_volume_l"):
        if getattr(inputs, name) <= 0.0:
            errors.append(f"{name} must be > 0")

    for name in (
        "lumen_na_mmol_l",
        "lumen_glucose_mmol_l",
        "cell_na_mmol_l",
        "cell_k_mmol_l",
        "cell_atp_mmol_l",
        "blood_na_mmol_l",
        "blood_k_mmol_l",
    ):
        if getattr(inputs, name) < 0.0:
            errors.append(f"{name} must be >= 0")

    for name in ("n_nka_sites", "n_sglt2_sites", "n_nhe3_sites"):
        if getattr(inputs, name) < 0:
            errors.append(f"{name} must be >= 0")
    for name in ("nka_transport_count", "sglt2_transport_count", "nhe3_transport_count"):
        if getattr(inputs, name) <= 0.0:
            errors.append(f"{name} must be > 0")

    if inputs.carbonic_anhydrase_count < 0.0:
        errors.append("carbonic_anhydrase_count must be >= 0")
    if inputs.carbonic_acid_kf_s_inv < 0.0:
        errors.append("carbonic_acid_kf_s_inv must be >= 0")
    if inputs.membrane_capacitance_f <= 0.0:
        errors.append("membrane_capacitance_f must be > 0")
    if not (VM_MIN_MV <= inputs.resting_potential_mv <= VM_MAX_MV):
        errors.append(f"resting_potential_mv must be between {VM_MIN_MV:g} and {VM_MAX_MV:g}")
    if inputs.debug_scale <= 0.0:
        errors.append("debug_scale must be > 0")

    if errors:
        raise ValueError("; ".join(errors))
