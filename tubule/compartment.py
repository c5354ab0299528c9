"""Compartments holding per-species particle counts.

A compartment is a passive pool: it stores the true (unscaled) particle count
of every tracked species, converts between counts and mM concentrations, and
tells subscribers when its contents changed. Transporters and reactions move
particles with ``withdraw``/``deposit``; ``withdraw`` refuses any debit that
would drive a count negative.
"""

from collections.abc import Callable
import math
from typing import Protocol, runtime_checkable

from .constants import CONSTANTS

SPECIES = (
    "Na",
    "K",
    "Cl",
    "glucose",
    "amino_acids",
    "water",
    "HCO3",
    "H",
    "CO2",
    "H2CO3",
    "ATP",
)

# Initial concentrations in mmol/L. Lumen is early proximal filtrate (plasma-like),
# cell is PCT cytosol at pH ~7.2, blood is peritubular plasma at pH 7.4.
# H2CO3 starts at equilibrium with H+ and HCO3- for pKa 3.6.
LUMEN_DEFAULTS_MMOL_L = {
    "Na": 140.0,
    "K": 4.0,
    "Cl": 110.0,
    "glucose": 5.0,
    "amino_acids": 2.5,
    "water": 55500.0,
    "HCO3": 24.0,
    "H": 4.0e-5,
    "CO2": 1.2,
    "H2CO3": 3.8e-3,
    "ATP": 0.0,
}
CELL_DEFAULTS_MMOL_L = {
    "Na": 12.0,
    "K": 140.0,
    "Cl": 7.0,
    "glucose": 5.0,
    "amino_acids": 5.0,
    "water": 55500.0,
    "HCO3": 12.0,
    "H": 6.3e-5,
    "CO2": 1.2,
    "H2CO3": 3.0e-3,
    "ATP": 4.0,
}
BLOOD_DEFAULTS_MMOL_L = {
    "Na": 140.0,
    "K": 5.0,
    "Cl": 110.0,
    "glucose": 5.0,
    "amino_acids": 2.5,
    "water": 55500.0,
    "HCO3": 24.0,
    "H": 4.0e-5,
    "CO2": 1.2,
    "H2CO3": 3.8e-3,
    "ATP": 0.0,
}

ChangeListener = Callable[[], None]


def _check_species(species: str) -> None:
    if species not in SPECIES:
        raise ValueError(f"Unsupported species: {species}")


@runtime_checkable
class CompartmentLike(Protocol):
    """What transporters, fields and reactions require of a compartment."""

    name: str
    volume_l: float

    def actual(self, species: str) -> float: ...

    def get_concentration(self, species: str) -> float: ...

    def set_concentration(self, species: str, mmol_l: float) -> None: ...

    def withdraw(self, species: str, amount: float) -> bool: ...

    def deposit(self, species: str, amount: float) -> None: ...

    def subscribe(self, listener: ChangeListener) -> None: ...


class Compartment:
    """Bounded pool of particle counts with a fixed volume."""

    defaults_mmol_l: dict[str, float] = {}

    def __init__(
        self,
        name: str,
        volume_l: float,
        concentrations_mmol_l: dict[str, float] | None = None,
        debug_scale: float = 1.0e-6,
    ) -> None:
        self.name = name
        self.volume_l = float(volume_l)
        self.debug_scale = debug_scale
        self._actual = {species: 0.0 for species in SPECIES}
        self._listeners: list[ChangeListener] = []
        self._dirty = False

        initial = dict(self.defaults_mmol_l)
        if concentrations_mmol_l:
            initial.update(concentrations_mmol_l)
        for species, mmol_l in initial.items():
            self.set_concentration(species, mmol_l)
        self._dirty = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, volume_l={self.volume_l:g})"

    def actual(self, species: str) -> float:
        """True particle count of a species."""

        _check_species(species)
        return self._actual[species]

    def display_count(self, species: str) -> int:
        """Presentation-only scaled count; never used by the physics."""

        return int(self.actual(species) * self.debug_scale)

    def counts(self) -> dict[str, float]:
        return dict(self._actual)

    def mmol_l_to_count(self, mmol_l: float) -> float:
        return mmol_l * 1e-3 * self.volume_l * CONSTANTS.avogadro_mol_inv

    def set_concentration(self, species: str, mmol_l: float) -> None:
        """Overwrite a species' count from a concentration in mM.

        No notification is emitted; call ``notify()`` after a batch of sets.
        """

        _check_species(species)
        if self.volume_l <= 0.0 or not math.isfinite(mmol_l):
            self._actual[species] = 0.0
        else:
            self._actual[species] = max(0.0, self.mmol_l_to_count(mmol_l))
        self._dirty = True

    def get_concentration(self, species: str) -> float:
        """Concentration in mM derived from the particle count."""

        count = max(0.0, self.actual(species))
        if self.volume_l <= 0.0:
            return 0.0
        mmol_l = (count / CONSTANTS.avogadro_mol_inv) / self.volume_l * 1000.0
        if not math.isfinite(mmol_l):
            return 0.0
        return mmol_l

    def withdraw(self, species: str, amount: float) -> bool:
        """Remove ``amount`` particles if available; return False otherwise."""

        _check_species(species)
        if amount < 0.0 or self._actual[species] < amount:
            return False
        self._actual[species] -= amount
        self._dirty = True
        return True

    def deposit(self, species: str, amount: float) -> None:
        _check_species(species)
        if amount < 0.0:
            raise ValueError("deposit amount must be >= 0")
        self._actual[species] += amount
        self._dirty = True

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self) -> None:
        """Fire a payload-free change notification to every subscriber."""

        self._dirty = False
        for listener in list(self._listeners):
            listener()

    def flush_changes(self) -> bool:
        """Notify once if anything changed since the last notification."""

        if not self._dirty:
            return False
        self.notify()
        return True


class Lumen(Compartment):
    defaults_mmol_l = LUMEN_DEFAULTS_MMOL_L


class Cell(Compartment):
    defaults_mmol_l = CELL_DEFAULTS_MMOL_L


class Blood(Compartment):
    defaults_mmol_l = BLOOD_DEFAULTS_MMOL_L
