"""NHE3: apical Na+/H+ exchanger."""

from .transporter import Cotransporter, CotransporterKinetics, SubstrateSite

# Half-saturation for cytosolic H+ at an apparent pK of 7.0 (1e-7 M).
KM_H_MMOL_L = 1.0e-4


class NHE3(Cotransporter):
    """Exchanges one luminal Na+ for one cytosolic H+.

    Na+ travels lumen -> cell and H+ travels cell -> lumen, so the electrical
    terms of the two legs carry opposite signs and cancel: the exchange is
    electroneutral and is driven by the chemical gradients alone.
    """

    kind = "NHE3"
    SITES = (
        SubstrateSite("Na", 1.0, km_mmol_l=10.0),
        SubstrateSite("H", 1.0, km_mmol_l=KM_H_MMOL_L, outward=True),
    )
    KINETICS = CotransporterKinetics(binding_rate_s_inv=40.0)

    @property
    def protons_secreted(self) -> float:
        return self.transported.get("H", 0.0)

    @property
    def sodium_absorbed(self) -> float:
        return self.transported.get("Na", 0.0)
