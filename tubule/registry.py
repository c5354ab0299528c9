"""Scoped lookup of compartments by namespaced identifier."""

import logging
import weakref

from .compartment import CompartmentLike

logger = logging.getLogger(__name__)


class CompartmentRegistry:
    """Maps ids such as ``kidney.pct.cell`` to compartments.

    One registry per simulation instance. Entries are weak references, so the
    registry never keeps a compartment alive.
    """

    def __init__(self) -> None:
        self._entries: dict[str, weakref.ReferenceType] = {}

    def register(self, compartment_id: str, compartment: CompartmentLike) -> None:
        if not compartment_id:
            raise ValueError("compartment_id must be a non-empty string")
        if self.exists(compartment_id):
            raise ValueError(f"Compartment id already registered: {compartment_id}")
        self._entries[compartment_id] = weakref.ref(compartment)
        logger.debug("Registered compartment %s", compartment_id)

    def unregister(self, compartment_id: str) -> bool:
        return self._entries.pop(compartment_id, None) is not None

    def get(self, compartment_id: str) -> CompartmentLike | None:
        ref = self._entries.get(compartment_id)
        if ref is None:
            return None
        compartment = ref()
        if compartment is None:
            del self._entries[compartment_id]
        return compartment

    def exists(self, compartment_id: str) -> bool:
        return self.get(compartment_id) is not None

    def ids(self) -> list[str]:
        return sorted(cid for cid in list(self._entries) if self.exists(cid))

    def __len__(self) -> int:
        return len(self.ids())

    def __contains__(self, compartment_id: object) -> bool:
        return isinstance(compartment_id, str) and self.exists(compartment_id)
