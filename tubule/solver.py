"""Tick driver for one proximal-tubule epithelial patch.

Each tick runs, in this order: carbonic anhydrase, carbonic acid
equilibrium (both per compartment), transporters in construction order
(Na/K-ATPase, SGLT2, NHE3), membrane-potential integration, and finally one
change notification per compartment that was touched.
"""

from dataclasses import dataclass, field
import logging
import math

import numpy as np

from .chemistry import CarbonicAcidEquilibrium, CarbonicAnhydrase
from .compartment import SPECIES, Blood, Cell, Compartment, Lumen
from .field import ElectrochemicalField
from .nhe3 import NHE3
from .nka import NaKATPase
from .params import SimulationInputs, validate_inputs
from .registry import CompartmentRegistry
from .results import SimulationOutputs
from .sglt2 import SGLT2
from .transporter import Transporter

logger = logging.getLogger(__name__)

ROLES = ("lumen", "cell", "blood")


@dataclass
class Tubule:
    """An isolated simulation instance: its own registry, pools and machines."""

    registry: CompartmentRegistry
    compartments: dict[str, Compartment]
    fields: dict[str, ElectrochemicalField]
    anhydrases: list[CarbonicAnhydrase]
    equilibria: list[CarbonicAcidEquilibrium]
    transporters: list[Transporter]
    time_s: float = 0.0
    ticks: int = 0
    notifications: dict[str, int] = field(default_factory=dict)

    @property
    def lumen(self) -> Compartment:
        return self.compartments["lumen"]

    @property
    def cell(self) -> Compartment:
        return self.compartments["cell"]

    @property
    def blood(self) -> Compartment:
        return self.compartments["blood"]

    @property
    def cell_field(self) -> ElectrochemicalField:
        return self.fields["cell"]

    def transporters_of(self, cls: type) -> list:
        return [t for t in self.transporters if isinstance(t, cls)]

    def total_count(self, species: str) -> float:
        """Particles of a species in all pools plus those held by transporters."""

        pooled = sum(c.actual(species) for c in self.compartments.values())
        held = sum(t.bound_amount(species) for t in self.transporters)
        return pooled + held

    def advance(self, delta: float) -> None:
        if delta <= 0.0:
            raise ValueError("delta must be > 0")
        for enzyme in self.anhydrases:
            enzyme.tick(delta)
        for reaction in self.equilibria:
            reaction.tick(delta)
        for transporter in self.transporters:
            transporter.advance(delta)
        for role in ROLES:
            self.fields[role].tick(delta)
        for role, compartment in self.compartments.items():
            if compartment.flush_changes():
                self.notifications[role] = self.notifications.get(role, 0) + 1
        self.time_s += delta
        self.ticks += 1


def build_tubule(
    inputs: SimulationInputs,
    rng: np.random.Generator | None = None,
    namespace: str = "kidney.pct",
) -> Tubule:
    """Wire compartments, fields, chemistry and transporters from inputs."""

    rng = rng if rng is not None else np.random.default_rng(inputs.seed)
    registry = CompartmentRegistry()
    compartments: dict[str, Compartment] = {
        "lumen": Lumen(
            f"{namespace}.lumen",
            inputs.lumen_volume_l,
            {"Na": inputs.lumen_na_mmol_l, "glucose": inputs.lumen_glucose_mmol_l},
            debug_scale=inputs.debug_scale,
        ),
        "cell": Cell(
            f"{namespace}.cell",
            inputs.cell_volume_l,
            {"Na": inputs.cell_na_mmol_l, "K": inputs.cell_k_mmol_l, "ATP": inputs.cell_atp_mmol_l},
            debug_scale=inputs.debug_scale,
        ),
        "blood": Blood(
            f"{namespace}.blood",
            inputs.blood_volume_l,
            {"Na": inputs.blood_na_mmol_l, "K": inputs.blood_k_mmol_l},
            debug_scale=inputs.debug_scale,
        ),
    }
    for compartment in compartments.values():
        registry.register(compartment.name, compartment)

    blood_field = ElectrochemicalField(compartments["blood"])
    lumen_field = ElectrochemicalField(compartments["lumen"])
    cell_field = ElectrochemicalField(
        compartments["cell"],
        reference=blood_field,
        membrane_potential_mv=inputs.resting_potential_mv,
        membrane_capacitance_f=inputs.membrane_capacitance_f,
    )
    fields = {"lumen": lumen_field, "cell": cell_field, "blood": blood_field}

    anhydrases = [
        CarbonicAnhydrase(compartments[role], inputs.carbonic_anhydrase_count) for role in ROLES
    ]
    equilibria = [
        CarbonicAcidEquilibrium(compartments[role], kf_s_inv=inputs.carbonic_acid_kf_s_inv)
        for role in ROLES
    ]

    lumen_id = compartments["lumen"].name
    cell_id = compartments["cell"].name
    blood_id = compartments["blood"].name
    transporters: list[Transporter] = []
    for idx in range(inputs.n_nka_sites):
        transporters.append(
            NaKATPase(
                f"{namespace}.nka.{idx}",
                registry,
                cell_id,
                blood_id,
                transport_count=inputs.nka_transport_count,
                rng=rng,
                membrane_field=cell_field,
                auto_activate=inputs.nka_auto_activate,
            )
        )
    for idx in range(inputs.n_sglt2_sites):
        transporters.append(
            SGLT2(
                f"{namespace}.sglt2.{idx}",
                registry,
                lumen_id,
                cell_id,
                transport_count=inputs.sglt2_transport_count,
                rng=rng,
                source_field=lumen_field,
                destination_field=cell_field,
            )
        )
    for idx in range(inputs.n_nhe3_sites):
        transporters.append(
            NHE3(
                f"{namespace}.nhe3.{idx}",
                registry,
                lumen_id,
                cell_id,
                transport_count=inputs.nhe3_transport_count,
                rng=rng,
                source_field=lumen_field,
                destination_field=cell_field,
            )
        )

    return Tubule(
        registry=registry,
        compartments=compartments,
        fields=fields,
        anhydrases=anhydrases,
        equilibria=equilibria,
        transporters=transporters,
    )


def _summarize(tubule: Tubule) -> dict[str, float | int]:
    pumps = tubule.transporters_of(NaKATPase)
    symporters = tubule.transporters_of(SGLT2)
    exchangers = tubule.transporters_of(NHE3)
    return {
        "nka_completed_cycles": sum(p.completed_cycles for p in pumps),
        "nka_aborted_cycles": sum(p.aborted_cycles for p in pumps),
        "atp_consumed": sum(p.atp_consumed for p in pumps),
        "na_pumped_to_blood": sum(p.transported.get("Na", 0.0) for p in pumps),
        "k_pumped_to_cell": sum(p.transported.get("K", 0.0) for p in pumps),
        "sglt2_completed_cycles": sum(s.completed_cycles for s in symporters),
        "sglt2_backward_transitions": sum(s.backward_transitions for s in symporters),
        "glucose_reabsorbed": sum(s.transported.get("glucose", 0.0) for s in symporters),
        "nhe3_completed_cycles": sum(e.completed_cycles for e in exchangers),
        "nhe3_backward_transitions": sum(e.backward_transitions for e in exchangers),
        "protons_secreted": sum(e.protons_secreted for e in exchangers),
        "na_absorbed_apical": sum(s.transported.get("Na", 0.0) for s in symporters + exchangers),
    }


def simulate(inputs: SimulationInputs, rng: np.random.Generator | None = None) -> SimulationOutputs:
    """Run the tubule patch for ``t_end_s`` and record its trajectory."""

    validate_inputs(inputs)
    tubule = build_tubule(inputs, rng=rng)
    # Tolerate t_end_s / dt_s landing just below a whole number.
    n_ticks = math.floor(inputs.t_end_s / inputs.dt_s + 1e-9)
    logger.info(
        "Simulating %d ticks of %.4g s (%d NKA, %d SGLT2, %d NHE3 sites)",
        n_ticks,
        inputs.dt_s,
        inputs.n_nka_sites,
        inputs.n_sglt2_sites,
        inputs.n_nhe3_sites,
    )

    time_s: list[float] = []
    vm_mv: list[float] = []
    ghk_mv: list[float] = []
    series: dict[str, list[float]] = {
        f"{role}.{species}": [] for role in ROLES for species in SPECIES
    }

    def record() -> None:
        cell_field = tubule.cell_field
        ghk = cell_field.ghk_potential()
        time_s.append(tubule.time_s)
        vm_mv.append(cell_field.membrane_potential_mv)
        ghk_mv.append(ghk if ghk is not None else math.nan)
        for role, compartment in tubule.compartments.items():
            for species in SPECIES:
                series[f"{role}.{species}"].append(compartment.get_concentration(species))

    record()
    for tick in range(1, n_ticks + 1):
        tubule.advance(inputs.dt_s)
        if tick % inputs.record_every == 0 or tick == n_ticks:
            record()

    summary = _summarize(tubule)
    metadata = {
        "model": "pct_epithelial_patch_stochastic_transport",
        "tick_order": "anhydrase,carbonic_acid,nka,sglt2,nhe3,field,notify",
        "n_ticks": n_ticks,
        "n_samples": len(time_s),
        "dt_s": inputs.dt_s,
        "t_end_s": inputs.t_end_s,
        "seed": inputs.seed,
        "final_membrane_potential_mv": vm_mv[-1],
        "final_ghk_potential_mv": ghk_mv[-1],
        "notifications": dict(tubule.notifications),
        **summary,
    }
    logger.info(
        "Finished: Vm=%.2f mV, GHK=%.2f mV, %d pump cycles",
        vm_mv[-1],
        ghk_mv[-1],
        summary["nka_completed_cycles"],
    )

    return SimulationOutputs(
        time_s=np.asarray(time_s, dtype=float),
        membrane_potential_mv=np.asarray(vm_mv, dtype=float),
        ghk_potential_mv=np.asarray(ghk_mv, dtype=float),
        concentrations_mmol_l={key: np.asarray(values, dtype=float) for key, values in series.items()},
        metadata=metadata,
    )
