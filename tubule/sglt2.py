"""SGLT2: apical Na+/glucose symporter (1 Na+ : 1 glucose)."""

from .kinetics import transport_term_free_energy
from .transporter import Cotransporter, CotransporterKinetics, SubstrateSite


class SGLT2(Cotransporter):
    """Moves Na+ and glucose together from the lumen into the cell.

    Glucose is carried uphill on the energy of the inward Na+ electrochemical
    gradient; the forward/backward split follows the total free energy.
    """

    kind = "SGLT2"
    SITES = (
        SubstrateSite("Na", 1.0, km_mmol_l=25.0),
        SubstrateSite("glucose", 1.0, km_mmol_l=2.0),
    )
    KINETICS = CotransporterKinetics()

    def free_energy_breakdown(self) -> dict[str, float]:
        """Per-species contribution (J/mol) to the free energy of one cycle."""

        if self.inert:
            return {site.species: 0.0 for site in self.sites}
        return {species: transport_term_free_energy(term) for species, term in self.transport_terms()}

    def sodium_driving_force(self) -> float:
        """Energy released by the Na+ leg (J/mol); negative when Na+ runs downhill."""

        return self.free_energy_breakdown()["Na"]

    def glucose_work(self) -> float:
        """Work done moving glucose (J/mol); positive when moved against its gradient."""

        return self.free_energy_breakdown()["glucose"]
