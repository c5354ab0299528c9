import math

import numpy as np
import pytest

from tubule.constants import CONSTANTS
from tubule.kinetics import (
    TransportTerm,
    binding_probability,
    michaelis_menten_saturation,
    transition_state_rates,
    transport_free_energy,
)


def test_saturation_is_half_at_km() -> None:
    assert michaelis_menten_saturation(2.0, 2.0) == 0.5
    assert michaelis_menten_saturation(0.2, 0.2) == 0.5


def test_saturation_limits() -> None:
    assert michaelis_menten_saturation(0.0, 12.0) == 0.0
    assert michaelis_menten_saturation(1.0e-12, 12.0) < 1.0e-12
    assert michaelis_menten_saturation(1.0e12, 12.0) > 1.0 - 1.0e-9
    assert michaelis_menten_saturation(math.inf, 12.0) == 1.0


def test_saturation_ignores_negative_concentration() -> None:
    assert michaelis_menten_saturation(-3.0, 1.0) == 0.0


def test_binding_probability_is_clipped() -> None:
    assert binding_probability(1000.0, 1.0, 1.0e6, 1.0) == 1.0
    p = binding_probability(12.0, 12.0, 50.0, 0.01)
    assert p == pytest.approx(0.25)


@pytest.mark.parametrize("delta_g_j_mol", np.linspace(-50_000.0, 50_000.0, 21))
def test_unclamped_rates_obey_detailed_balance(delta_g_j_mol: float) -> None:
    k_fwd, k_bwd = transition_state_rates(delta_g_j_mol, barrier_j_mol=68_000.0)
    assert k_fwd / k_bwd == pytest.approx(math.exp(-delta_g_j_mol / CONSTANTS.rt_j_mol), rel=1e-9)


def test_zero_free_energy_gives_equal_rates() -> None:
    k_fwd, k_bwd = transition_state_rates(0.0, barrier_j_mol=68_000.0)
    assert k_fwd == pytest.approx(k_bwd)
    assert k_fwd == pytest.approx(CONSTANTS.tst_prefactor_s_inv * math.exp(-68_000.0 / CONSTANTS.rt_j_mol))


def test_rates_are_clamped_under_extreme_gradients() -> None:
    k_fwd, k_bwd = transition_state_rates(
        -200_000.0, barrier_j_mol=68_000.0, min_rate_s_inv=1.0e-3, max_rate_s_inv=1.0e3
    )
    assert k_fwd == 1.0e3
    assert k_bwd == 1.0e-3


def test_rates_do_not_overflow() -> None:
    k_fwd, k_bwd = transition_state_rates(1.0e9, barrier_j_mol=68_000.0)
    assert math.isfinite(k_bwd)
    assert k_fwd >= 0.0


def test_downhill_symport_is_favorable() -> None:
    sodium = TransportTerm(1.0, 1, 140.0, 12.0, 0.0, -70.0)
    glucose = TransportTerm(1.0, 0, 5.0, 5.0, 0.0, -70.0)
    delta_g = transport_free_energy([sodium, glucose])
    rt = CONSTANTS.rt_j_mol
    expected = rt * math.log(12.0 / 140.0) + CONSTANTS.faraday_c_mol * -0.070
    assert delta_g == pytest.approx(expected)
    assert delta_g < 0.0


def test_antiport_electrical_terms_cancel() -> None:
    sodium_in = TransportTerm(1.0, 1, 140.0, 12.0, 0.0, -70.0)
    proton_out = TransportTerm(1.0, 1, 6.3e-5, 4.0e-5, -70.0, 0.0)
    rt = CONSTANTS.rt_j_mol
    expected = rt * math.log(12.0 / 140.0) + rt * math.log(4.0e-5 / 6.3e-5)
    assert transport_free_energy([sodium_in, proton_out]) == pytest.approx(expected)


def test_empty_pools_do_not_produce_nan() -> None:
    term = TransportTerm(1.0, 0, 0.0, 5.0, 0.0, 0.0)
    assert math.isfinite(transport_free_energy([term]))
