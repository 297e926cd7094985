"""Shared data types for dealdedupe.

Domain-specific types live closer to their consumers:
- Match types → dealdedupe.matching.models
- Decision types → dealdedupe.decision.models
- Cluster types → dealdedupe.clustering.models
"""

from dealdedupe.models.records import REJECTED_STATUS, ContactRecord, DealRecord, EntityType

__all__ = [
    "REJECTED_STATUS",
    "ContactRecord",
    "DealRecord",
    "EntityType",
]
