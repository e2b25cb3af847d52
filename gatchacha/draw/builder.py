"""Construction of prize pools from per-tier item counts."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .pool import PrizeItem, PrizePool
from .tiers import TIER_SPECS, TierSpec

DEFAULT_ITEM_LABEL = "Item"

TierCounts = Mapping[Any, int]


def _count_for(counts: TierCounts, spec: TierSpec) -> int:
    """Look up the count of ``spec`` under ``"tierN"`` or the bare ordinal."""
    if spec.count_key in counts:
        value = counts[spec.count_key]
    else:
        value = counts.get(spec.tier, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{spec.count_key} count must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{spec.count_key} count must be non-negative, got {value}")
    return value


def normalize_counts(counts: Optional[TierCounts]) -> Dict[str, int]:
    """Return a ``{"tier1": n, ..., "tier5": n}`` mapping with defaults filled in.

    Raises
    ------
    ValueError
        If a count is negative or not an integer.
    """
    counts = counts or {}
    return {spec.count_key: _count_for(counts, spec) for spec in TIER_SPECS}


def build_pool(
    counts: Optional[TierCounts] = None,
    *,
    item_label: str = DEFAULT_ITEM_LABEL,
) -> List[PrizeItem]:
    """Generate the prize items of a pool from per-tier counts.

    Parameters
    ----------
    counts : Optional[Mapping], default: None
        Number of items per tier keyed by ``"tier1"`` .. ``"tier5"`` (the
        bare ordinals ``1`` .. ``5`` are accepted too). Missing tiers default
        to zero.
    item_label : str, default: "Item"
        Noun used in generated item names, e.g. ``"Legendary Item #1"``.

    Returns
    -------
    list[PrizeItem]
        Items ordered from the rarest tier to the most common one, each tier
        numbered from 1. Every item starts undrawn and carries its tier's
        nominal percent as ``weight``.
    """
    normalized = normalize_counts(counts)
    items: List[PrizeItem] = []
    for spec in TIER_SPECS:
        for n in range(1, normalized[spec.count_key] + 1):
            items.append(
                PrizeItem(
                    id=f"{spec.label}-{n}",
                    name=f"{spec.display_name} {item_label} #{n}",
                    tier=spec.tier,
                    weight=spec.probability,
                    drawn=False,
                )
            )
    return items


def build_prize_pool(
    pool_id: str,
    name: str,
    theme: str,
    counts: Optional[TierCounts] = None,
    *,
    item_label: str = DEFAULT_ITEM_LABEL,
) -> PrizePool:
    """Wrap :func:`build_pool` into a :class:`PrizePool` with display metadata."""
    return PrizePool(
        id=pool_id,
        name=name,
        theme=theme,
        items=build_pool(counts, item_label=item_label),
    )


__all__ = [
    "DEFAULT_ITEM_LABEL",
    "TierCounts",
    "build_pool",
    "build_prize_pool",
    "normalize_counts",
]
