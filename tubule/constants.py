"""Physical constants and fixed membrane parameters."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PhysicalConstants:
    faraday_c_mol: float = 96485.33212
    gas_constant_j_mol_k: float = 8.314462618
    body_temperature_k: float = 310.15
    elementary_charge_c: float = 1.602176634e-19
    avogadro_mol_inv: float = 6.02214076e23
    boltzmann_j_k: float = 1.380649e-23
    planck_j_s: float = 6.62607015e-34

    @property
    def rt_j_mol(self) -> float:
        return self.gas_constant_j_mol_k * self.body_temperature_k

    @property
    def tst_prefactor_s_inv(self) -> float:
        """Eyring prefactor kB*T/h at body temperature."""

        return self.boltzmann_j_k * self.body_temperature_k / self.planck_j_s


CONSTANTS = PhysicalConstants()

# GHK slope in mV per decade at body temperature.
GHK_SLOPE_MV = 61.5

# Relative membrane permeabilities used by the GHK reference voltage.
PERMEABILITY_K = 1.0
PERMEABILITY_NA = 0.04
PERMEABILITY_CL = 0.45

# Membrane capacitance of the simulated patch (F).
MEMBRANE_CAPACITANCE_F = 10.0e-9

# Physiological safety band for the dynamic membrane potential (mV).
VM_MIN_MV = -200.0
VM_MAX_MV = 100.0
VM_FALLBACK_MV = -70.0

VALENCES = {
    "Na": 1,
    "K": 1,
    "Cl": -1,
    "glucose": 0,
    "amino_acids": 0,
    "water": 0,
    "HCO3": -1,
    "H": 1,
    "CO2": 0,
    "H2CO3": 0,
    "ATP": 0,
}
