"""Na+/K+-ATPase: the primary active pump on the basolateral membrane.

The pump follows the Post-Albers cycle with fixed physiological timings:

    E1        inward-facing, empty; binds 3 Na+ from the cell
    E1_NA3    3 Na+ bound, waiting for phosphorylation (ATP)
    E1P_NA3   phosphorylated, Na+ occluded; committed to the cycle
    E2P       outward-facing after Na+ release to blood; binds 2 K+
    E2_K2     dephosphorylated, K+ occluded; releases K+ into the cell

Phosphorylation either happens autonomously (``auto_activate``) or only when
``activate()`` is called. A failed ``activate()`` changes nothing. An
autonomous attempt without enough ATP aborts the cycle and returns the bound
Na+ to the cell. Past phosphorylation nothing is refunded.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

import numpy as np

from .field import ElectrochemicalField
from .registry import CompartmentRegistry
from .transporter import ActivationResult, Transporter

logger = logging.getLogger(__name__)


class PumpState(Enum):
    E1 = "E1"
    E1_NA3 = "E1.3Na"
    E1P_NA3 = "E1P(3Na)"
    E2P = "E2P"
    E2_K2 = "E2(2K)"


@dataclass(frozen=True, slots=True)
class PumpKinetics:
    na_per_cycle: float = 3.0
    k_per_cycle: float = 2.0
    atp_per_cycle: float = 1.0
    km_na_mmol_l: float = 12.0
    km_k_mmol_l: float = 0.2
    binding_rate_s_inv: float = 50.0
    na_occlusion_s: float = 0.002
    na_release_s: float = 0.001
    k_occlusion_s: float = 0.002
    k_release_s: float = 0.001


class NaKATPase(Transporter):
    """Sodium-potassium pump moving Na+ cell -> blood and K+ blood -> cell."""

    kind = "Na/K-ATPase"

    def __init__(
        self,
        transporter_id: str,
        registry: CompartmentRegistry,
        cell_id: str,
        blood_id: str,
        transport_count: float = 1.0e6,
        rng: np.random.Generator | None = None,
        membrane_field: ElectrochemicalField | None = None,
        kinetics: PumpKinetics | None = None,
        auto_activate: bool = True,
    ) -> None:
        super().__init__(
            transporter_id,
            registry,
            cell_id,
            blood_id,
            transport_count,
            rng=rng,
            membrane_field=membrane_field,
        )
        self.kinetics = kinetics if kinetics is not None else PumpKinetics()
        self.auto_activate = auto_activate
        self._state = PumpState.E1
        self.atp_consumed = 0.0

    @property
    def state(self) -> PumpState:
        return self._state

    @property
    def cell(self):
        return self.source

    @property
    def blood(self):
        return self.destination

    @property
    def atp_required(self) -> float:
        return self.batch(self.kinetics.atp_per_cycle)

    def _enter(self, state: PumpState) -> None:
        self._state = state
        self._reset_timer()

    def activate(self) -> ActivationResult:
        """Phosphorylate the pump, committing it to the transport cycle.

        Requires the E1_NA3 state and enough ATP in the cell; otherwise
        returns a failed result and leaves every state unchanged.
        """

        if self.inert:
            return ActivationResult(False, "inert")
        if self._state is not PumpState.E1_NA3:
            return ActivationResult(False, "not_ready")
        if self.cell.actual("ATP") < self.atp_required:
            return ActivationResult(False, "insufficient_atp")
        if not self.cell.withdraw("ATP", self.atp_required):
            return ActivationResult(False, "insufficient_atp")
        self.atp_consumed += self.atp_required
        self.cycling = True
        self._enter(PumpState.E1P_NA3)
        return ActivationResult(True)

    def abort(self) -> bool:
        """Abandon an uncommitted cycle, returning bound Na+ to the cell."""

        if self.inert or self.cycling or self._state is not PumpState.E1_NA3:
            return False
        self._release("Na", self.cell)
        self.aborted_cycles += 1
        self._enter(PumpState.E1)
        return True

    def _step(self, delta: float) -> None:
        k = self.kinetics
        if self._state is PumpState.E1:
            if self._try_bind(
                "Na", self.cell, k.na_per_cycle, k.km_na_mmol_l, k.binding_rate_s_inv, delta
            ):
                self._enter(PumpState.E1_NA3)

        elif self._state is PumpState.E1_NA3:
            if self.auto_activate:
                result = self.activate()
                if not result.ok:
                    logger.debug(
                        "%s %s aborted before phosphorylation: %s",
                        self.kind,
                        self.transporter_id,
                        result.reason,
                    )
                    self.abort()

        elif self._state is PumpState.E1P_NA3:
            if self.state_timer >= k.na_occlusion_s:
                amount = self._release("Na", self.blood)
                self._record_transport("Na", amount)
                self._report_current("Na", amount, self.cell, self.blood, k.na_release_s)
                self._enter(PumpState.E2P)

        elif self._state is PumpState.E2P:
            if self._try_bind(
                "K", self.blood, k.k_per_cycle, k.km_k_mmol_l, k.binding_rate_s_inv, delta
            ):
                self._enter(PumpState.E2_K2)

        elif self._state is PumpState.E2_K2:
            if self.state_timer >= k.k_occlusion_s:
                amount = self._release("K", self.cell)
                self._record_transport("K", amount)
                self._report_current("K", amount, self.blood, self.cell, k.k_release_s)
                self.completed_cycles += 1
                self.cycling = False
                self._enter(PumpState.E1)
