"""Shared machinery for transporter state machines.

Each transporter instance stands for a batch of ``transport_count`` real
molecules. Substrate bound to a transporter is withdrawn from its compartment
on binding and held in ``bound`` until it is released, either to the target
side on a completed cycle or back to where it came from on an abort.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import logging

import numpy as np

from .compartment import CompartmentLike
from .constants import VALENCES
from .field import ElectrochemicalField
from .kinetics import (
    TransportTerm,
    binding_probability,
    transition_state_rates,
    transport_free_energy,
)
from .registry import CompartmentRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubstrateSite:
    """A binding site: ``coefficient`` ions of ``species`` per cycle.

    Sites move substrate source -> destination unless ``outward`` is set, in
    which case they carry it destination -> source (antiport partner).
    """

    species: str
    coefficient: float
    km_mmol_l: float
    outward: bool = False


@dataclass(frozen=True, slots=True)
class ActivationResult:
    ok: bool
    reason: str = ""


class Transporter(ABC):
    """Base class for a discrete, stochastic transporter state machine."""

    kind = "transporter"

    def __init__(
        self,
        transporter_id: str,
        registry: CompartmentRegistry,
        source_id: str,
        destination_id: str,
        transport_count: float,
        rng: np.random.Generator | None = None,
        membrane_field: ElectrochemicalField | None = None,
    ) -> None:
        self.transporter_id = transporter_id
        self.transport_count = float(transport_count)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.source = registry.get(source_id)
        self.destination = registry.get(destination_id)
        self.membrane_field = membrane_field

        self.bound: dict[str, float] = {}
        self.transported: dict[str, float] = {}
        self.state_timer = 0.0
        self.cycling = False
        self.completed_cycles = 0
        self.aborted_cycles = 0
        # Current (A) of the most recent release of each charged species.
        self.species_currents_a: dict[str, float] = {}

        problems = []
        for label, cid, compartment in (
            ("source", source_id, self.source),
            ("destination", destination_id, self.destination),
        ):
            if compartment is None:
                problems.append(f"{label} {cid!r} not registered")
            elif compartment.volume_l <= 0.0:
                problems.append(f"{label} {cid!r} has non-positive volume")
        if self.transport_count <= 0.0:
            problems.append("transport_count must be > 0")
        self.inert = bool(problems)
        if self.inert:
            logger.warning("%s %s is inert: %s", self.kind, transporter_id, "; ".join(problems))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.transporter_id!r}, state={self.state.name})"

    @property
    @abstractmethod
    def state(self) -> Enum:
        """Current conformational state."""

    @abstractmethod
    def _step(self, delta: float) -> None:
        """Advance the state machine by one tick."""

    def advance(self, delta: float) -> None:
        """Advance simulated time by ``delta`` seconds."""

        if self.inert or delta <= 0.0:
            return
        self.state_timer += delta
        self._step(delta)

    def activate(self) -> ActivationResult:
        """External trigger; only transporters with a gated step support it."""

        if self.inert:
            return ActivationResult(False, "inert")
        return ActivationResult(False, "not_supported")

    def batch(self, coefficient: float) -> float:
        return coefficient * self.transport_count

    def bound_amount(self, species: str) -> float:
        return self.bound.get(species, 0.0)

    def _reset_timer(self) -> None:
        self.state_timer = 0.0

    def _try_bind(
        self,
        species: str,
        compartment: CompartmentLike,
        coefficient: float,
        km_mmol_l: float,
        binding_rate_s_inv: float,
        delta: float,
    ) -> bool:
        """One stochastic binding attempt; sequesters the batch on success."""

        amount = self.batch(coefficient)
        p = binding_probability(
            compartment.get_concentration(species), km_mmol_l, binding_rate_s_inv, delta
        )
        if self.rng.random() >= p:
            return False
        if compartment.actual(species) < amount or not compartment.withdraw(species, amount):
            return False
        self.bound[species] = self.bound.get(species, 0.0) + amount
        return True

    def _release(self, species: str, compartment: CompartmentLike) -> float:
        amount = self.bound.pop(species, 0.0)
        if amount > 0.0:
            compartment.deposit(species, amount)
        return amount

    def _record_transport(self, species: str, amount: float) -> None:
        self.transported[species] = self.transported.get(species, 0.0) + amount

    def _report_current(
        self,
        species: str,
        amount: float,
        origin: CompartmentLike,
        target: CompartmentLike,
        duration_s: float,
    ) -> float:
        """Report the release of ``amount`` ions as a current on the membrane field."""

        field = self.membrane_field
        z = VALENCES.get(species, 0)
        if field is None or field.inert or z == 0 or duration_s <= 0.0:
            return 0.0
        if target is field.compartment:
            charge = z
        elif origin is field.compartment:
            charge = -z
        else:
            return 0.0
        current = field.add_transporter_current(self.transporter_id, amount / duration_s, charge)
        self.species_currents_a[species] = current
        return current


class CotransporterState(Enum):
    OUTWARD_OPEN = "outward_open"
    PARTIALLY_BOUND = "partially_bound"
    OCCLUDED = "occluded"
    INWARD_OPEN = "inward_open"


@dataclass(frozen=True, slots=True)
class CotransporterKinetics:
    binding_rate_s_inv: float = 50.0
    barrier_j_mol: float = 68000.0
    min_rate_s_inv: float = 1.0e-3
    max_rate_s_inv: float = 1.0e3
    release_duration_s: float = 0.001
    prefactor_s_inv: float | None = None


class Cotransporter(Transporter):
    """Secondary-active transporter gated by the free energy of transport.

    OUTWARD_OPEN -> PARTIALLY_BOUND -> OCCLUDED; from OCCLUDED a forward
    transition leads to INWARD_OPEN and release on the far side, a backward
    transition returns all substrate to its origin and reopens the site.
    """

    kind = "cotransporter"
    SITES: tuple[SubstrateSite, ...] = ()
    KINETICS = CotransporterKinetics()

    def __init__(
        self,
        transporter_id: str,
        registry: CompartmentRegistry,
        source_id: str,
        destination_id: str,
        transport_count: float,
        rng: np.random.Generator | None = None,
        membrane_field: ElectrochemicalField | None = None,
        source_field: ElectrochemicalField | None = None,
        destination_field: ElectrochemicalField | None = None,
        kinetics: CotransporterKinetics | None = None,
        sites: tuple[SubstrateSite, ...] | None = None,
    ) -> None:
        super().__init__(
            transporter_id,
            registry,
            source_id,
            destination_id,
            transport_count,
            rng=rng,
            membrane_field=membrane_field if membrane_field is not None else destination_field,
        )
        self.source_field = source_field
        self.destination_field = destination_field
        self.kinetics = kinetics if kinetics is not None else self.KINETICS
        self.sites = sites if sites is not None else self.SITES
        self._state = CotransporterState.OUTWARD_OPEN
        self.forward_transitions = 0
        self.backward_transitions = 0
        self.last_free_energy_j_mol: float | None = None
        self.last_rates_s_inv: tuple[float, float] | None = None

    @property
    def state(self) -> CotransporterState:
        return self._state

    def _enter(self, state: CotransporterState) -> None:
        self._state = state
        self._reset_timer()

    def _origin(self, site: SubstrateSite) -> CompartmentLike:
        return self.destination if site.outward else self.source

    def _target(self, site: SubstrateSite) -> CompartmentLike:
        return self.source if site.outward else self.destination

    def _potential(self, compartment: CompartmentLike) -> float:
        for field in (self.source_field, self.destination_field):
            if field is not None and field.compartment is compartment:
                return field.membrane_potential_mv
        return 0.0

    def fully_bound(self) -> bool:
        return all(self.bound_amount(site.species) > 0.0 for site in self.sites)

    def net_charge_per_cycle(self) -> float:
        """Elementary charges carried source -> destination per cycle."""

        return sum(
            VALENCES[site.species] * site.coefficient * (-1.0 if site.outward else 1.0)
            for site in self.sites
        )

    def transport_terms(self) -> list[tuple[str, TransportTerm]]:
        if self.inert:
            return []
        terms = []
        for site in self.sites:
            origin = self._origin(site)
            target = self._target(site)
            terms.append(
                (
                    site.species,
                    TransportTerm(
                        coefficient=site.coefficient,
                        valence=VALENCES[site.species],
                        source_mmol_l=origin.get_concentration(site.species),
                        destination_mmol_l=target.get_concentration(site.species),
                        source_potential_mv=self._potential(origin),
                        destination_potential_mv=self._potential(target),
                    ),
                )
            )
        return terms

    def free_energy(self) -> float:
        """Free energy (J/mol) of one forward cycle under current conditions."""

        if self.inert:
            return 0.0
        return transport_free_energy(term for _, term in self.transport_terms())

    def transition_rates(self, delta_g_j_mol: float) -> tuple[float, float]:
        k = self.kinetics
        return transition_state_rates(
            delta_g_j_mol,
            k.barrier_j_mol,
            prefactor_s_inv=k.prefactor_s_inv,
            min_rate_s_inv=k.min_rate_s_inv,
            max_rate_s_inv=k.max_rate_s_inv,
        )

    def _gate(self, k_fwd: float, k_bwd: float, delta: float) -> str | None:
        """Forward is tried first; at most one transition fires per tick."""

        if self.rng.random() < min(1.0, k_fwd * delta):
            return "forward"
        if self.rng.random() < min(1.0, k_bwd * delta):
            return "backward"
        return None

    def _step(self, delta: float) -> None:
        if self._state in (CotransporterState.OUTWARD_OPEN, CotransporterState.PARTIALLY_BOUND):
            self._bind_missing(delta)
        elif self._state is CotransporterState.OCCLUDED:
            self._attempt_transition(delta)
        elif self._state is CotransporterState.INWARD_OPEN:
            if self.state_timer >= self.kinetics.release_duration_s:
                self._complete_cycle()

    def _bind_missing(self, delta: float) -> None:
        for site in self.sites:
            if self.bound_amount(site.species) > 0.0:
                continue
            self._try_bind(
                site.species,
                self._origin(site),
                site.coefficient,
                site.km_mmol_l,
                self.kinetics.binding_rate_s_inv,
                delta,
            )
        if self.fully_bound():
            self._enter(CotransporterState.OCCLUDED)
        elif self.bound:
            self._state = CotransporterState.PARTIALLY_BOUND

    def _attempt_transition(self, delta: float) -> None:
        delta_g = self.free_energy()
        k_fwd, k_bwd = self.transition_rates(delta_g)
        self.last_free_energy_j_mol = delta_g
        self.last_rates_s_inv = (k_fwd, k_bwd)

        outcome = self._gate(k_fwd, k_bwd, delta)
        if outcome == "forward":
            self.forward_transitions += 1
            self.cycling = True
            self._enter(CotransporterState.INWARD_OPEN)
        elif outcome == "backward":
            self.backward_transitions += 1
            for site in self.sites:
                self._release(site.species, self._origin(site))
            self.aborted_cycles += 1
            logger.debug(
                "%s %s slipped back (dG=%.1f J/mol)", self.kind, self.transporter_id, delta_g
            )
            self._enter(CotransporterState.OUTWARD_OPEN)

    def _complete_cycle(self) -> None:
        for site in self.sites:
            origin = self._origin(site)
            target = self._target(site)
            amount = self._release(site.species, target)
            self._record_transport(site.species, amount)
            self._report_current(
                site.species, amount, origin, target, self.kinetics.release_duration_s
            )
        self.completed_cycles += 1
        self.cycling = False
        self._enter(CotransporterState.OUTWARD_OPEN)
