"""Static tier table shared by the pool builder and the draw engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class TierSpec:
    """Definition of a single rarity tier.

    Attributes
    ----------
    tier : int
        Ordinal rank; ``1`` is the rarest tier.
    label : str
        Machine friendly label used as the item id prefix.
    display_name : str
        Human readable tier name used when generating item names.
    probability : float
        Nominal "display probability" in percent. This is the value stored
        on every generated item as its ``weight``.
    """

    tier: int
    label: str
    display_name: str
    probability: float

    @property
    def count_key(self) -> str:
        """Key used for this tier in per-tier count mappings."""
        return f"tier{self.tier}"


TIER_SPECS: Tuple[TierSpec, ...] = (
    TierSpec(tier=1, label="legendary", display_name="Legendary", probability=0.5),
    TierSpec(tier=2, label="epic", display_name="Epic", probability=2.5),
    TierSpec(tier=3, label="rare", display_name="Rare", probability=10.0),
    TierSpec(tier=4, label="uncommon", display_name="Uncommon", probability=25.0),
    TierSpec(tier=5, label="common", display_name="Common", probability=62.0),
)

TIERS_BY_NUMBER: Dict[int, TierSpec] = {spec.tier: spec for spec in TIER_SPECS}

MIN_TIER = TIER_SPECS[0].tier
MAX_TIER = TIER_SPECS[-1].tier


def get_tier(tier: int) -> TierSpec:
    """Return the :class:`TierSpec` for ``tier``.

    Raises
    ------
    ValueError
        If ``tier`` is not one of the known tiers.
    """
    try:
        return TIERS_BY_NUMBER[tier]
    except (KeyError, TypeError) as exc:
        raise ValueError(
            f"tier must be between {MIN_TIER} and {MAX_TIER}, got {tier!r}"
        ) from exc


__all__ = [
    "MAX_TIER",
    "MIN_TIER",
    "TIER_SPECS",
    "TIERS_BY_NUMBER",
    "TierSpec",
    "get_tier",
]
