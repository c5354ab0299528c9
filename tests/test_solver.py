from dataclasses import replace

import numpy as np
import pytest

from tubule.compartment import SPECIES
from tubule.nka import NaKATPase
from tubule.params import SimulationInputs
from tubule.sglt2 import SGLT2
from tubule.solver import ROLES, build_tubule, simulate


def _baseline_inputs() -> SimulationInputs:
    return SimulationInputs(
        t_end_s=2.0,
        dt_s=1.0 / 60.0,
        seed=3,
        n_nka_sites=4,
        n_sglt2_sites=2,
        n_nhe3_sites=2,
    )


def test_same_seed_gives_identical_trajectories() -> None:
    inputs = _baseline_inputs()
    first = simulate(inputs)
    second = simulate(inputs)
    assert np.array_equal(first.membrane_potential_mv, second.membrane_potential_mv)
    for key, values in first.concentrations_mmol_l.items():
        assert np.array_equal(values, second.concentrations_mmol_l[key])
    assert first.metadata["nka_completed_cycles"] == second.metadata["nka_completed_cycles"]


def test_concentrations_stay_non_negative() -> None:
    outputs = simulate(_baseline_inputs())
    for key, values in outputs.concentrations_mmol_l.items():
        assert np.all(values >= 0.0), key
    assert set(outputs.concentrations_mmol_l) == {
        f"{role}.{species}" for role in ROLES for species in SPECIES
    }


def test_transported_species_are_conserved() -> None:
    inputs = _baseline_inputs()
    tubule = build_tubule(inputs)
    before = {species: tubule.total_count(species) for species in ("Na", "K", "glucose")}
    for _ in range(120):
        tubule.advance(inputs.dt_s)
    for species, total in before.items():
        assert tubule.total_count(species) == pytest.approx(total, rel=1e-9)
    assert tubule.ticks == 120


def test_no_transporters_keeps_potential_constant() -> None:
    inputs = replace(_baseline_inputs(), n_nka_sites=0, n_sglt2_sites=0, n_nhe3_sites=0)
    outputs = simulate(inputs)
    assert np.all(outputs.membrane_potential_mv == -70.0)
    assert np.all(np.isfinite(outputs.ghk_potential_mv))


def test_no_atp_means_no_pumping() -> None:
    inputs = replace(_baseline_inputs(), cell_atp_mmol_l=0.0, n_sglt2_sites=0, n_nhe3_sites=0)
    outputs = simulate(inputs)
    meta = outputs.metadata
    assert np.all(outputs.membrane_potential_mv == -70.0)
    assert meta["nka_completed_cycles"] == 0
    assert meta["atp_consumed"] == 0.0
    assert meta["nka_aborted_cycles"] > 0
    cell_na = outputs.concentration("cell", "Na")
    assert cell_na[-1] == pytest.approx(cell_na[0], rel=1e-3)


def test_pump_alone_hyperpolarizes_the_cell() -> None:
    inputs = replace(_baseline_inputs(), n_sglt2_sites=0, n_nhe3_sites=0)
    outputs = simulate(inputs)
    meta = outputs.metadata
    assert meta["nka_completed_cycles"] > 0
    cycles = meta["nka_completed_cycles"]
    assert meta["k_pumped_to_cell"] == pytest.approx(cycles * 2.0e6)
    # Pumps caught mid-cycle have already spent ATP and released Na+.
    assert meta["na_pumped_to_blood"] >= cycles * 3.0e6 - 1.0
    assert meta["atp_consumed"] >= cycles * 1.0e6 - 1.0
    assert outputs.membrane_potential_mv[-1] < -70.0
    assert outputs.concentration("cell", "Na")[-1] < outputs.concentration("cell", "Na")[0]


def test_sglt2_alone_depolarizes_and_reabsorbs_glucose() -> None:
    inputs = replace(_baseline_inputs(), n_nka_sites=0, n_nhe3_sites=0)
    outputs = simulate(inputs)
    meta = outputs.metadata
    assert meta["sglt2_completed_cycles"] > 0
    assert meta["glucose_reabsorbed"] > 0.0
    assert outputs.membrane_potential_mv[-1] > -70.0
    lumen_glucose = outputs.concentration("lumen", "glucose")
    assert lumen_glucose[-1] < lumen_glucose[0]


def test_recording_interval_keeps_first_and_last_sample() -> None:
    inputs = SimulationInputs(t_end_s=2.0, dt_s=0.25, seed=1, record_every=3)
    outputs = simulate(inputs)
    assert outputs.metadata["n_ticks"] == 8
    assert outputs.time_s.tolist() == [0.0, 0.75, 1.5, 2.0]
    assert outputs.metadata["n_samples"] == 4
    assert len(outputs.membrane_potential_mv) == 4


def test_metadata_reports_counters_and_notifications() -> None:
    outputs = simulate(_baseline_inputs())
    meta = outputs.metadata
    for key in (
        "model",
        "tick_order",
        "n_ticks",
        "final_membrane_potential_mv",
        "final_ghk_potential_mv",
        "nka_completed_cycles",
        "sglt2_completed_cycles",
        "nhe3_completed_cycles",
        "protons_secreted",
        "na_absorbed_apical",
    ):
        assert key in meta
    assert meta["final_membrane_potential_mv"] == outputs.membrane_potential_mv[-1]
    for role in ROLES:
        assert 0 < meta["notifications"][role] <= meta["n_ticks"]


def test_build_wires_transporters_in_order() -> None:
    tubule = build_tubule(_baseline_inputs())
    kinds = [t.kind for t in tubule.transporters]
    assert kinds == ["Na/K-ATPase"] * 4 + ["SGLT2"] * 2 + ["NHE3"] * 2
    assert len(tubule.transporters_of(NaKATPase)) == 4
    assert all(s.membrane_field is tubule.cell_field for s in tubule.transporters_of(SGLT2))
    assert tubule.cell_field.reference is tubule.fields["blood"]
    assert tubule.registry.ids() == [
        "kidney.pct.blood",
        "kidney.pct.cell",
        "kidney.pct.lumen",
    ]


def test_tubules_do_not_share_registries() -> None:
    first = build_tubule(_baseline_inputs())
    second = build_tubule(_baseline_inputs())
    assert first.registry is not second.registry
    assert first.registry.get("kidney.pct.cell") is first.cell
    assert second.registry.get("kidney.pct.cell") is second.cell


def test_advance_rejects_non_positive_delta() -> None:
    tubule = build_tubule(_baseline_inputs())
    with pytest.raises(ValueError, match="delta must be > 0"):
        tubule.advance(0.0)


def test_simulate_validates_inputs() -> None:
    with pytest.raises(ValueError, match="dt_s must be <= t_end_s"):
        simulate(replace(_baseline_inputs(), dt_s=5.0))


def test_tick_count_survives_inexact_division() -> None:
    inputs = SimulationInputs(t_end_s=0.3, dt_s=0.1, seed=0, n_nka_sites=1, n_sglt2_sites=0, n_nhe3_sites=0)
    outputs = simulate(inputs)
    assert outputs.metadata["n_ticks"] == 3
    assert outputs.time_s[-1] == pytest.approx(0.3)
