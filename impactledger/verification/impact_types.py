# -*- coding: utf-8 -*-
"""
Impact Type Registry

Maps an impact type name to its conversion factor and active flag. The
conversion is applied once, when a claim is verified; deactivating a type
never changes totals already credited.

Example:
    >>> registry = ImpactTypeRegistry()
    >>> registry.register("co2_tonnes", 1000, "t", actor="admin")
    >>> registry.normalize("co2_tonnes", 3)
    3000

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from impactledger.exceptions import InvalidAmount, InvalidImpactType, NotFoundError
from impactledger.verification.authorization import ensure_admin
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.models import ImpactType, content_hash
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class ImpactTypeRegistry:
    """Admin-managed catalogue of impact types.

    Attributes:
        config: ImpactVerificationConfig instance.
        clock: Logical clock stamping registrations.
        provenance: ProvenanceTracker instance.
        _types: Impact types by name.
    """

    def __init__(
        self,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.clock = clock or LogicalClock(self.config.genesis_time)
        self.provenance = provenance or ProvenanceTracker()
        self._types: Dict[str, ImpactType] = {}
        logger.info("ImpactTypeRegistry initialized")

    def register(
        self,
        name: str,
        conversion_factor: int,
        unit: str = "",
        actor: str = "",
    ) -> ImpactType:
        """Create or replace an impact type and mark it active.

        Args:
            name: Type name.
            conversion_factor: Non-negative multiplier to normalized units.
            unit: Unit of claimed quantities.
            actor: Calling identity (must be the admin).

        Returns:
            The stored ImpactType.

        Raises:
            NotAuthorized: If actor is not the admin.
            InvalidImpactType: If name is empty.
            InvalidAmount: If conversion_factor is negative.
        """
        ensure_admin(self.config, actor, "register_impact_type")
        if not name:
            raise InvalidImpactType(
                "Impact type name must be non-empty", field="name", value=name,
            )
        if conversion_factor < 0:
            raise InvalidAmount(
                f"Conversion factor must be non-negative, got {conversion_factor}",
                field="conversion_factor", value=conversion_factor,
            )

        impact_type = ImpactType(
            name=name,
            conversion_factor=conversion_factor,
            unit=unit,
            active=True,
            registered_at=self.clock.now(),
        )
        self._types[name] = impact_type
        self._record(impact_type, "register", actor)
        logger.info(
            "Registered impact type %s (factor=%d, unit=%s)",
            name, conversion_factor, unit,
        )
        return impact_type

    def deactivate(self, name: str, actor: str = "") -> ImpactType:
        """Stop accepting new claims of a type.

        Deactivating an inactive type is a no-op on state.

        Raises:
            NotAuthorized: If actor is not the admin.
            NotFoundError: If the type is unknown.
        """
        ensure_admin(self.config, actor, "deactivate_impact_type")
        impact_type = self._types.get(name)
        if impact_type is None:
            raise NotFoundError(
                f"Impact type {name} not found",
                entity_type="impact_type", entity_id=name,
            )
        if not impact_type.active:
            return impact_type

        impact_type.active = False
        self._record(impact_type, "deactivate", actor)
        logger.info("Deactivated impact type %s", name)
        return impact_type

    def get(self, name: str) -> Optional[ImpactType]:
        return self._types.get(name)

    def is_active(self, name: str) -> bool:
        impact_type = self._types.get(name)
        return impact_type is not None and impact_type.active

    def normalize(self, name: str, amount: int) -> int:
        """Convert ``amount`` to normalized impact.

        Returns ``amount * conversion_factor`` for an active type and 0 for
        an inactive or unknown one.
        """
        impact_type = self._types.get(name)
        if impact_type is None:
            return 0
        return impact_type.normalize(amount)

    def list_types(self, active_only: bool = False) -> List[ImpactType]:
        types = sorted(self._types.values(), key=lambda t: t.name)
        if active_only:
            types = [t for t in types if t.active]
        return types

    @property
    def count(self) -> int:
        return len(self._types)

    def _record(self, impact_type: ImpactType, action: str, actor: str) -> None:
        if not self.config.enable_provenance:
            return
        self.provenance.record(
            entity_type="impact_type",
            entity_id=impact_type.name,
            action=action,
            data_hash=content_hash(impact_type),
            actor=actor,
            logical_time=self.clock.now(),
        )


__all__ = ["ImpactTypeRegistry"]
