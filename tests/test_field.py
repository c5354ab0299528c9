import math

import pytest

from tubule.compartment import Compartment
from tubule.constants import CONSTANTS, VM_MAX_MV, VM_MIN_MV
from tubule.field import ElectrochemicalField, goldman_hodgkin_katz, nernst_potential


def _canonical_fields() -> tuple[ElectrochemicalField, ElectrochemicalField, Compartment, Compartment]:
    inside = Compartment("cell", 2.0e-12, {"K": 140.0, "Na": 12.0, "Cl": 7.0})
    outside = Compartment("blood", 5.0e-12, {"K": 5.0, "Na": 140.0, "Cl": 110.0})
    outside_field = ElectrochemicalField(outside)
    inside_field = ElectrochemicalField(inside, reference=outside_field, membrane_potential_mv=-70.0)
    return inside_field, outside_field, inside, outside


def test_ghk_canonical_physiological_inputs() -> None:
    inside_field, outside_field, _, _ = _canonical_fields()
    assert goldman_hodgkin_katz(inside_field, outside_field) == pytest.approx(-70.1, abs=0.5)


def test_ghk_is_pure_function_of_concentrations() -> None:
    inside_field, outside_field, inside, _ = _canonical_fields()
    first = goldman_hodgkin_katz(inside_field, outside_field)
    inside_field.membrane_potential_mv = 30.0
    assert goldman_hodgkin_katz(inside_field, outside_field) == first
    inside.set_concentration("K", 100.0)
    assert goldman_hodgkin_katz(inside_field, outside_field) != first


def test_ghk_falls_back_on_empty_compartments() -> None:
    empty_in = ElectrochemicalField(Compartment("a", 1.0e-12))
    empty_out = ElectrochemicalField(Compartment("b", 1.0e-12))
    assert goldman_hodgkin_katz(empty_in, empty_out) == -70.0


def test_nernst_potassium() -> None:
    inside_field, outside_field, _, _ = _canonical_fields()
    expected = CONSTANTS.rt_j_mol / CONSTANTS.faraday_c_mol * math.log(5.0 / 140.0) * 1000.0
    assert nernst_potential("K", inside_field, outside_field) == pytest.approx(expected)
    assert nernst_potential("K", inside_field, outside_field) == pytest.approx(-89.0, abs=0.5)


def test_nernst_rejects_neutral_species() -> None:
    inside_field, outside_field, _, _ = _canonical_fields()
    with pytest.raises(ValueError):
        nernst_potential("glucose", inside_field, outside_field)


def test_zero_current_leaves_potential_unchanged() -> None:
    inside_field, _, _, _ = _canonical_fields()
    for _ in range(1000):
        inside_field.tick(0.016)
    assert inside_field.membrane_potential_mv == -70.0


def test_potential_drifts_away_from_ghk_without_current() -> None:
    inside_field, _, _, _ = _canonical_fields()
    inside_field.membrane_potential_mv = -20.0
    inside_field.tick(0.1)
    assert inside_field.membrane_potential_mv == -20.0
    assert inside_field.equilibrium_potential_mv == pytest.approx(-70.1, abs=0.5)


def test_current_integrates_over_capacitance() -> None:
    inside_field, _, _, _ = _canonical_fields()
    inside_field.add_transporter_current("pump", 1.0e9, 1.0)
    expected_current = 1.0e9 * CONSTANTS.elementary_charge_c
    assert inside_field.total_current_a == pytest.approx(expected_current)

    inside_field.tick(0.01)
    expected_dv = expected_current / inside_field.membrane_capacitance_f * 0.01 * 1000.0
    assert inside_field.membrane_potential_mv == pytest.approx(-70.0 + expected_dv)


def test_tick_resets_current_and_breakdown() -> None:
    inside_field, _, _, _ = _canonical_fields()
    inside_field.add_transporter_current("a", 1.0e8, 1.0)
    inside_field.add_transporter_current("b", 1.0e8, -1.0)
    inside_field.add_transporter_current("a", 1.0e8, 1.0)
    assert set(inside_field.transporter_currents) == {"a", "b"}
    assert inside_field.transporter_currents["a"] == pytest.approx(2.0e8 * CONSTANTS.elementary_charge_c)

    inside_field.tick(0.01)
    assert inside_field.total_current_a == 0.0
    assert inside_field.transporter_currents == {}
    assert set(inside_field.last_transporter_currents) == {"a", "b"}


def test_potential_is_clamped_to_safety_band() -> None:
    inside_field, _, _, _ = _canonical_fields()
    inside_field.add_transporter_current("huge", 1.0e15, 1.0)
    inside_field.tick(1.0)
    assert inside_field.membrane_potential_mv == VM_MAX_MV

    inside_field.add_transporter_current("huge", 1.0e15, -1.0)
    inside_field.tick(1.0)
    assert inside_field.membrane_potential_mv == VM_MIN_MV


def test_non_finite_potential_is_reset_to_fallback() -> None:
    inside_field, _, _, _ = _canonical_fields()
    inside_field.membrane_potential_mv = math.nan
    inside_field.tick(0.01)
    assert inside_field.membrane_potential_mv == -70.0


def test_non_finite_current_is_dropped() -> None:
    inside_field, _, _, _ = _canonical_fields()
    assert inside_field.add_transporter_current("bad", math.inf, 1.0) == 0.0
    assert inside_field.total_current_a == 0.0


def test_zero_volume_field_is_inert() -> None:
    field = ElectrochemicalField(Compartment("broken", 0.0, {"Na": 140.0}))
    assert field.inert
    assert field.ion_concentration("Na") == 0.0
    assert field.total_charge_c() == 0.0


def test_missing_compartment_field_is_inert() -> None:
    field = ElectrochemicalField(None)
    assert field.inert
    assert field.osmolality() == 0.0


def test_osmolality_sums_solutes_without_water() -> None:
    c = Compartment("test", 1.0e-12, {"Na": 100.0, "Cl": 100.0, "water": 55500.0})
    assert ElectrochemicalField(c).osmolality() == pytest.approx(200.0)


def test_total_charge() -> None:
    neutral = Compartment("n", 1.0e-12, {"Na": 100.0, "Cl": 100.0})
    assert ElectrochemicalField(neutral).total_charge_c() == pytest.approx(0.0, abs=1e-15)

    cationic = Compartment("c", 1.0e-12, {"Na": 10.0})
    expected = cationic.actual("Na") * CONSTANTS.elementary_charge_c
    assert ElectrochemicalField(cationic).total_charge_c() == pytest.approx(expected)


def test_inert_field_ignores_transporter_current() -> None:
    field = ElectrochemicalField(Compartment("broken", 0.0))
    assert field.add_transporter_current("pump", 1.0e9, 1.0) == 0.0
    assert field.total_current_a == 0.0
    assert field.transporter_currents == {}
    field.tick(0.01)
    assert field.membrane_potential_mv == 0.0
