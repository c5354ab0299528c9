"""Binding saturation, transport thermodynamics and transition-state rates."""

from collections.abc import Iterable
from dataclasses import dataclass
import math

from .constants import CONSTANTS

# Floor applied to concentrations inside logarithms (mM).
CONCENTRATION_FLOOR_MMOL_L = 1e-12

# Largest exponent passed to math.exp before overflow.
_MAX_EXPONENT = 600.0


def _safe_exp(x: float) -> float:
    return math.exp(max(-_MAX_EXPONENT, min(_MAX_EXPONENT, x)))


def michaelis_menten_saturation(concentration_mmol_l: float, km_mmol_l: float) -> float:
    """Fractional occupancy [S]/(Km+[S]) of a binding site."""

    concentration_mmol_l = max(0.0, concentration_mmol_l)
    if math.isinf(concentration_mmol_l):
        return 1.0
    denominator = km_mmol_l + concentration_mmol_l
    if denominator <= 0.0:
        return 0.0
    return concentration_mmol_l / denominator


def binding_probability(
    concentration_mmol_l: float,
    km_mmol_l: float,
    binding_rate_s_inv: float,
    delta_s: float,
) -> float:
    """Probability that a site binds its substrate within one tick."""

    p = michaelis_menten_saturation(concentration_mmol_l, km_mmol_l) * binding_rate_s_inv * delta_s
    return max(0.0, min(1.0, p))


@dataclass(frozen=True, slots=True)
class TransportTerm:
    """One co-transported species moving from a source to a destination side."""

    coefficient: float
    valence: int
    source_mmol_l: float
    destination_mmol_l: float
    source_potential_mv: float
    destination_potential_mv: float


def transport_term_free_energy(term: TransportTerm, rt_j_mol: float | None = None) -> float:
    """Chemical plus electrical free energy (J/mol) of moving one term."""

    rt = CONSTANTS.rt_j_mol if rt_j_mol is None else rt_j_mol
    c_src = max(term.source_mmol_l, CONCENTRATION_FLOOR_MMOL_L)
    c_dst = max(term.destination_mmol_l, CONCENTRATION_FLOOR_MMOL_L)
    chemical = rt * math.log(c_dst / c_src)
    delta_v = (term.destination_potential_mv - term.source_potential_mv) / 1000.0
    electrical = term.valence * CONSTANTS.faraday_c_mol * delta_v
    return term.coefficient * (chemical + electrical)


def transport_free_energy(terms: Iterable[TransportTerm], rt_j_mol: float | None = None) -> float:
    """Total free energy of transport (J/mol); negative means spontaneous."""

    return sum(transport_term_free_energy(term, rt_j_mol) for term in terms)


def transition_state_rates(
    delta_g_j_mol: float,
    barrier_j_mol: float,
    prefactor_s_inv: float | None = None,
    min_rate_s_inv: float | None = None,
    max_rate_s_inv: float | None = None,
    rt_j_mol: float | None = None,
) -> tuple[float, float]:
    """Forward/backward rates from a barrier split symmetrically by delta G.

    Unclamped, k_fwd/k_bwd == exp(-delta_g/RT). Clamping to [min, max] keeps
    extreme gradients numerically stable at the cost of that ratio.
    """

    rt = CONSTANTS.rt_j_mol if rt_j_mol is None else rt_j_mol
    k0 = CONSTANTS.tst_prefactor_s_inv if prefactor_s_inv is None else prefactor_s_inv
    half = delta_g_j_mol / 2.0
    k_fwd = k0 * _safe_exp(-(barrier_j_mol + half) / rt)
    k_bwd = k0 * _safe_exp(-(barrier_j_mol - half) / rt)
    if min_rate_s_inv is not None:
        k_fwd = max(min_rate_s_inv, k_fwd)
        k_bwd = max(min_rate_s_inv, k_bwd)
    if max_rate_s_inv is not None:
        k_fwd = min(max_rate_s_inv, k_fwd)
        k_bwd = min(max_rate_s_inv, k_bwd)
    return k_fwd, k_bwd
