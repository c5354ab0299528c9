"""Electrochemical field of a compartment and its dynamic membrane potential."""

from __future__ import annotations

import logging
import math

from .compartment import SPECIES, CompartmentLike
from .constants import (
    CONSTANTS,
    GHK_SLOPE_MV,
    MEMBRANE_CAPACITANCE_F,
    PERMEABILITY_CL,
    PERMEABILITY_K,
    PERMEABILITY_NA,
    VALENCES,
    VM_FALLBACK_MV,
    VM_MAX_MV,
    VM_MIN_MV,
)

logger = logging.getLogger(__name__)


def _finite_or(value: float, fallback: float) -> float:
    return value if math.isfinite(value) else fallback


def goldman_hodgkin_katz(inside: ElectrochemicalField, outside: ElectrochemicalField) -> float:
    """Equilibrium reference voltage (mV) across the membrane between two fields.

    Cl- is anionic, so its inside/outside terms are swapped relative to the cations.
    """

    numerator = (
        PERMEABILITY_K * outside.ion_concentration("K")
        + PERMEABILITY_NA * outside.ion_concentration("Na")
        + PERMEABILITY_CL * inside.ion_concentration("Cl")
    )
    denominator = (
        PERMEABILITY_K * inside.ion_concentration("K")
        + PERMEABILITY_NA * inside.ion_concentration("Na")
        + PERMEABILITY_CL * outside.ion_concentration("Cl")
    )
    if numerator <= 0.0 or denominator <= 0.0:
        logger.debug("GHK undefined for %s/%s, using fallback", inside.name, outside.name)
        return VM_FALLBACK_MV
    return _finite_or(GHK_SLOPE_MV * math.log10(numerator / denominator), VM_FALLBACK_MV)


def nernst_potential(species: str, inside: ElectrochemicalField, outside: ElectrochemicalField) -> float:
    """Nernst reversal potential (mV) of a single charged species."""

    z = VALENCES.get(species, 0)
    if z == 0:
        raise ValueError(f"Nernst potential undefined for uncharged species: {species}")
    c_in = inside.ion_concentration(species)
    c_out = outside.ion_concentration(species)
    if c_in <= 0.0 or c_out <= 0.0:
        return math.nan
    rt_over_zf = CONSTANTS.rt_j_mol / (z * CONSTANTS.faraday_c_mol)
    return rt_over_zf * math.log(c_out / c_in) * 1000.0


class ElectrochemicalField:
    """Concentration, charge and membrane-potential state of one compartment.

    The membrane potential is a capacitor charged by the net transporter
    current each tick. It is not pulled toward the GHK value; with no current
    it stays where it is.

    ``transporter_currents`` maps each transporter id to its net current (A)
    for the current tick; an electroneutral exchanger nets to zero.
    """

    def __init__(
        self,
        compartment: CompartmentLike | None,
        reference: ElectrochemicalField | None = None,
        membrane_potential_mv: float = 0.0,
        membrane_capacitance_f: float = MEMBRANE_CAPACITANCE_F,
    ) -> None:
        self.compartment = compartment
        self.reference = reference
        self.membrane_capacitance_f = membrane_capacitance_f
        self.membrane_potential_mv = membrane_potential_mv
        self.equilibrium_potential_mv: float | None = None
        self.total_current_a = 0.0
        self.transporter_currents: dict[str, float] = {}
        self.last_tick_current_a = 0.0
        self.last_transporter_currents: dict[str, float] = {}

        self.inert = compartment is None or compartment.volume_l <= 0.0
        if self.inert:
            logger.warning(
                "Electrochemical field for %s is inert (missing compartment or non-positive volume)",
                getattr(compartment, "name", None),
            )

    @property
    def name(self) -> str:
        return self.compartment.name if self.compartment is not None else "<none>"

    @property
    def volume_l(self) -> float:
        return self.compartment.volume_l if self.compartment is not None else 0.0

    def ion_concentration(self, species: str) -> float:
        if self.inert:
            return 0.0
        return _finite_or(self.compartment.get_concentration(species), 0.0)

    def total_charge_c(self) -> float:
        """Net charge of all ions in the compartment in coulombs."""

        if self.inert:
            return 0.0
        charge = sum(
            VALENCES[species] * self.compartment.actual(species)
            for species in SPECIES
            if VALENCES[species] != 0
        )
        return charge * CONSTANTS.elementary_charge_c

    def osmolality(self) -> float:
        """Sum of solute concentrations (mOsm/L), water excluded."""

        return sum(self.ion_concentration(species) for species in SPECIES if species != "water")

    def ghk_potential(self) -> float | None:
        if self.reference is None or self.inert:
            return None
        return goldman_hodgkin_katz(self, self.reference)

    def add_transporter_current(
        self,
        transporter_id: str,
        ion_flux_per_s: float,
        charge_per_ion: float,
    ) -> float:
        """Accumulate a transporter's current (A) for this tick.

        Positive current is net positive charge entering this compartment.
        """

        if self.inert:
            return 0.0
        current = ion_flux_per_s * charge_per_ion * CONSTANTS.elementary_charge_c
        if not math.isfinite(current):
            logger.debug("Dropping non-finite current from %s", transporter_id)
            return 0.0
        self.total_current_a += current
        self.transporter_currents[transporter_id] = (
            self.transporter_currents.get(transporter_id, 0.0) + current
        )
        return current

    def tick(self, delta: float) -> None:
        """Integrate this tick's net current into the membrane potential."""

        v_eq = self.ghk_potential()
        if v_eq is not None and not math.isfinite(v_eq):
            logger.debug("Non-finite GHK potential on %s, using fallback", self.name)
            v_eq = VM_FALLBACK_MV
        self.equilibrium_potential_mv = v_eq

        if not math.isfinite(self.membrane_potential_mv):
            logger.debug("Non-finite membrane potential on %s, resetting", self.name)
            self.membrane_potential_mv = VM_FALLBACK_MV

        if self.membrane_capacitance_f > 0.0 and delta > 0.0:
            dv_mv = (self.total_current_a / self.membrane_capacitance_f) * delta * 1000.0
            if math.isfinite(dv_mv):
                self.membrane_potential_mv += dv_mv

        self.membrane_potential_mv = max(VM_MIN_MV, min(VM_MAX_MV, self.membrane_potential_mv))

        self.last_tick_current_a = self.total_current_a
        self.last_transporter_currents = self.transporter_currents
        self.total_current_a = 0.0
        self.transporter_currents = {}
