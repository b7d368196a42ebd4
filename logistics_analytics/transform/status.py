"""
Movement status enumeration and source label mapping.
"""

import unicodedata
from enum import Enum
from typing import Any, Optional

import pandas as pd


class MovementStatus(str, Enum):
    """Lifecycle state of a movement. Declaration order is the report order."""
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    # Only produced under UnknownStatusPolicy.OTHER
    OTHER = "other"

    @classmethod
    def categories(cls) -> list[str]:
        return [member.value for member in cls]


class UnknownStatusPolicy(Enum):
    """What the cleaner does with a status label it does not recognize."""
    REJECT = "reject"
    OTHER = "other"


# Normalized source label -> status
STATUS_LABELS = {
    "em transito": MovementStatus.IN_TRANSIT,
    "in transit": MovementStatus.IN_TRANSIT,
    "in-transit": MovementStatus.IN_TRANSIT,
    "in_transit": MovementStatus.IN_TRANSIT,
    "entregue": MovementStatus.DELIVERED,
    "delivered": MovementStatus.DELIVERED,
    "atrasado": MovementStatus.DELAYED,
    "delayed": MovementStatus.DELAYED,
    "cancelado": MovementStatus.CANCELLED,
    "cancelled": MovementStatus.CANCELLED,
    "canceled": MovementStatus.CANCELLED,
}


def normalize_label(label: str) -> str:
    """Casefold, strip accents and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.casefold().split())


def parse_status(
    label: Any,
    policy: UnknownStatusPolicy = UnknownStatusPolicy.REJECT
) -> Optional[MovementStatus]:
    """
    Map a source status label onto MovementStatus.

    Returns None for missing labels, and for unrecognized labels
    when the policy is REJECT.
    """
    if label is None or (not isinstance(label, str) and pd.isna(label)):
        return None

    key = normalize_label(str(label))
    if not key:
        return None

    status = STATUS_LABELS.get(key)
    if status is None and policy is UnknownStatusPolicy.OTHER:
        return MovementStatus.OTHER
    return status
