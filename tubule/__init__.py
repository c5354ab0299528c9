"""Emergent ion-transport simulation of a proximal-tubule epithelial patch."""

from .chemistry import CarbonicAcidEquilibrium, CarbonicAnhydrase
from .compartment import (
    SPECIES,
    Blood,
    Cell,
    Compartment,
    CompartmentLike,
    Lumen,
)
from .constants import CONSTANTS, PhysicalConstants
from .field import ElectrochemicalField, goldman_hodgkin_katz, nernst_potential
from .kinetics import (
    TransportTerm,
    michaelis_menten_saturation,
    transition_state_rates,
    transport_free_energy,
)
from .nhe3 import NHE3
from .nka import NaKATPase, PumpKinetics, PumpState
from .params import SimulationInputs, validate_inputs
from .registry import CompartmentRegistry
from .results import SimulationOutputs, export_csv, export_metadata_json
from .sglt2 import SGLT2
from .solver import Tubule, build_tubule, simulate
from .transporter import (
    ActivationResult,
    Cotransporter,
    CotransporterKinetics,
    CotransporterState,
    SubstrateSite,
    Transporter,
)

__all__ = [
    "SPECIES",
    "CONSTANTS",
    "PhysicalConstants",
    "Compartment",
    "CompartmentLike",
    "Lumen",
    "Cell",
    "Blood",
    "CompartmentRegistry",
    "ElectrochemicalField",
    "goldman_hodgkin_katz",
    "nernst_potential",
    "CarbonicAcidEquilibrium",
    "CarbonicAnhydrase",
    "TransportTerm",
    "michaelis_menten_saturation",
    "transport_free_energy",
    "transition_state_rates",
    "Transporter",
    "Cotransporter",
    "CotransporterKinetics",
    "CotransporterState",
    "SubstrateSite",
    "ActivationResult",
    "NaKATPase",
    "PumpKinetics",
    "PumpState",
    "SGLT2",
    "NHE3",
    "SimulationInputs",
    "validate_inputs",
    "SimulationOutputs",
    "export_csv",
    "export_metadata_json",
    "Tubule",
    "build_tubule",
    "simulate",
]
