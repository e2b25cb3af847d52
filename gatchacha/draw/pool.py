"""Value objects describing a prize pool and the outcome of a draw."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .tiers import TIER_SPECS, get_tier


@dataclass
class PrizeItem:
    """A single prize inside a pool.

    Attributes
    ----------
    id : str
        Identifier, unique within its pool.
    name : str
        Display label.
    tier : int
        Rarity tier (``1`` rarest, ``5`` most common).
    weight : float
        Nominal per-tier percent assigned by the pool builder.
    drawn : bool
        Whether the item has already been drawn from its pool.
    """

    id: str
    name: str
    tier: int
    weight: float
    drawn: bool = False

    def __post_init__(self) -> None:
        get_tier(self.tier)
        if not self.id:
            raise ValueError("PrizeItem.id must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tier": self.tier,
            "weight": self.weight,
            "drawn": self.drawn,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrizeItem":
        """Build an item from its JSON snapshot.

        ``probability`` is accepted as an alias of ``weight`` so that blobs
        written by older clients can still be read.

        Raises
        ------
        ValueError
            If required keys are missing or hold values of the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a mapping, got {type(data).__name__}")
        try:
            item_id = data["id"]
            name = data["name"]
            tier = data["tier"]
            weight = data["weight"] if "weight" in data else data["probability"]
        except KeyError as exc:
            raise ValueError(f"prize item snapshot is missing {exc}") from exc
        drawn = data.get("drawn", False)
        if not isinstance(item_id, str) or not isinstance(name, str):
            raise ValueError("prize item id and name must be strings")
        if isinstance(tier, bool) or not isinstance(tier, int):
            raise ValueError("prize item tier must be an integer")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValueError("prize item weight must be a number")
        if not isinstance(drawn, bool):
            raise ValueError("prize item drawn flag must be a boolean")
        return cls(id=item_id, name=name, tier=tier, weight=weight, drawn=drawn)

    def copy(self) -> "PrizeItem":
        return replace(self)


@dataclass
class PrizePool:
    """The fixed set of prize items of one template instance.

    The engine never adds or removes items; it only flips ``drawn``.
    """

    id: str
    name: str
    theme: str
    items: List[PrizeItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"duplicate prize item id '{item.id}' in pool '{self.id}'")
            seen.add(item.id)

    @property
    def available(self) -> List[PrizeItem]:
        """Undrawn items in pool order."""
        return [item for item in self.items if not item.drawn]

    @property
    def is_exhausted(self) -> bool:
        return all(item.drawn for item in self.items)

    def get_item(self, item_id: str) -> Optional[PrizeItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def copy(self) -> "PrizePool":
        """Return a deep copy whose items can be mutated independently."""
        return PrizePool(
            id=self.id,
            name=self.name,
            theme=self.theme,
            items=[item.copy() for item in self.items],
        )


@dataclass(frozen=True)
class DrawResult:
    """Outcome of a single draw.

    ``item`` is ``None`` exactly when the pool was exhausted. A result is
    truthy only when something was drawn.
    """

    item: Optional[PrizeItem]

    @property
    def exhausted(self) -> bool:
        return self.item is None

    def __bool__(self) -> bool:
        return self.item is not None


EXHAUSTED = DrawResult(item=None)


@dataclass(frozen=True)
class PoolStats:
    """Progress summary of a pool.

    Attributes
    ----------
    total : int
        Number of items in the pool.
    drawn : int
        Number of items already drawn.
    remaining : int
        Number of undrawn items.
    progress : float
        Percentage of drawn items (``0.0`` for an empty pool).
    by_tier : Dict[int, Tuple[int, int]]
        Per-tier ``(drawn, total)`` counts for every known tier.
    """

    total: int
    drawn: int
    remaining: int
    progress: float
    by_tier: Dict[int, Tuple[int, int]]


def pool_stats(pool: PrizePool) -> PoolStats:
    """Summarize drawn/remaining counts for ``pool``."""
    by_tier = {spec.tier: [0, 0] for spec in TIER_SPECS}
    for item in pool.items:
        counts = by_tier[item.tier]
        counts[1] += 1
        if item.drawn:
            counts[0] += 1
    total = len(pool.items)
    drawn = sum(counts[0] for counts in by_tier.values())
    progress = (drawn / total) * 100 if total else 0.0
    return PoolStats(
        total=total,
        drawn=drawn,
        remaining=total - drawn,
        progress=progress,
        by_tier={tier: (c[0], c[1]) for tier, c in by_tier.items()},
    )


__all__ = [
    "DrawResult",
    "EXHAUSTED",
    "PoolStats",
    "PrizeItem",
    "PrizePool",
    "pool_stats",
]
