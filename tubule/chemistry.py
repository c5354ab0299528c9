"""Intra-compartment carbonic acid chemistry."""

import logging

from .compartment import CompartmentLike
from .constants import CONSTANTS

logger = logging.getLogger(__name__)

CARBONIC_ACID_PKA = 3.6


def _inert(compartment: CompartmentLike | None, what: str) -> bool:
    if compartment is None or compartment.volume_l <= 0.0:
        logger.warning("%s is inert (missing compartment or non-positive volume)", what)
        return True
    return False


def _mmol_l_to_count(compartment: CompartmentLike, mmol_l: float) -> float:
    return mmol_l * 1e-3 * compartment.volume_l * CONSTANTS.avogadro_mol_inv


class CarbonicAcidEquilibrium:
    """H2CO3 <=> H+ + HCO3- advanced with explicit mass-action steps.

    k_b = k_f / K_eq keeps detailed balance at K_eq = 10**-pKa M. Explicit
    stepping needs k_b * [HCO3-] * delta well below 1, which bounds k_f.
    """

    def __init__(
        self,
        compartment: CompartmentLike | None,
        kf_s_inv: float = 0.1,
        pka: float = CARBONIC_ACID_PKA,
    ) -> None:
        self.compartment = compartment
        self.kf_s_inv = kf_s_inv
        self.pka = pka
        self.inert = _inert(compartment, "Carbonic acid equilibrium")

    @property
    def keq_mmol_l(self) -> float:
        return 10.0 ** (-self.pka) * 1000.0

    @property
    def kb_per_mmol_l_s(self) -> float:
        return self.kf_s_inv / self.keq_mmol_l

    def tick(self, delta: float) -> tuple[float, float]:
        """Advance one tick; return (dissociated, recombined) molecule counts."""

        if self.inert or delta <= 0.0:
            return 0.0, 0.0
        c = self.compartment
        h2co3_mm = c.get_concentration("H2CO3")
        h_mm = c.get_concentration("H")
        hco3_mm = c.get_concentration("HCO3")

        forward = _mmol_l_to_count(c, self.kf_s_inv * h2co3_mm * delta)
        forward = min(forward, c.actual("H2CO3"))
        backward = _mmol_l_to_count(c, self.kb_per_mmol_l_s * h_mm * hco3_mm * delta)
        backward = min(backward, c.actual("H"), c.actual("HCO3"))

        # Both debits are bounded by pre-update counts, so they cannot starve each other.
        if forward > 0.0 and c.withdraw("H2CO3", forward):
            c.deposit("H", forward)
            c.deposit("HCO3", forward)
        else:
            forward = 0.0
        if backward > 0.0 and c.withdraw("H", backward):
            if c.withdraw("HCO3", backward):
                c.deposit("H2CO3", backward)
            else:
                c.deposit("H", backward)
                backward = 0.0
        else:
            backward = 0.0
        return forward, backward


class CarbonicAnhydrase:
    """Michaelis-Menten catalysis of CO2 + H2O <=> H2CO3."""

    def __init__(
        self,
        compartment: CompartmentLike | None,
        enzyme_count: float,
        kcat_forward_s_inv: float = 1.0e6,
        kcat_reverse_s_inv: float = 1.0e6,
        km_co2_mmol_l: float = 10.0,
    ) -> None:
        self.compartment = compartment
        self.enzyme_count = enzyme_count
        self.kcat_forward_s_inv = kcat_forward_s_inv
        self.kcat_reverse_s_inv = kcat_reverse_s_inv
        self.km_co2_mmol_l = km_co2_mmol_l
        self.inert = _inert(compartment, "Carbonic anhydrase")

    def forward_velocity(self) -> float:
        """Hydration velocity in molecules/s."""

        if self.inert:
            return 0.0
        co2 = self.compartment.get_concentration("CO2")
        return self.kcat_forward_s_inv * self.enzyme_count * co2 / (self.km_co2_mmol_l + co2)

    def reverse_velocity(self) -> float:
        """Dehydration velocity in molecules/s."""

        if self.inert:
            return 0.0
        return self.kcat_reverse_s_inv * self.enzyme_count * self.compartment.get_concentration("H2CO3")

    def tick(self, delta: float) -> float:
        """Advance one tick; return the net H2CO3 produced (molecules).

        A net of ~0 once CO2 is exhausted is the expected steady state.
        """

        if self.inert or delta <= 0.0 or self.enzyme_count <= 0.0:
            return 0.0
        c = self.compartment
        hydrated = min(self.forward_velocity() * delta, c.actual("CO2"), c.actual("water"))
        dehydrated = min(self.reverse_velocity() * delta, c.actual("H2CO3"))

        if hydrated > 0.0 and c.withdraw("CO2", hydrated):
            if c.withdraw("water", hydrated):
                c.deposit("H2CO3", hydrated)
            else:
                c.deposit("CO2", hydrated)
                hydrated = 0.0
        else:
            hydrated = 0.0
        if dehydrated > 0.0 and c.withdraw("H2CO3", dehydrated):
            c.deposit("CO2", dehydrated)
            c.deposit("water", dehydrated)
        else:
            dehydrated = 0.0
        return hydrated - dehydrated
