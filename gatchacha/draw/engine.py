"""Weighted draw-without-replacement over a prize pool."""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Protocol

from .pool import EXHAUSTED, DrawResult, PrizeItem, PrizePool
from .weighting import DEFAULT_WEIGHTING_REGISTRY, INVERTED_PERCENT, WeightingRegistry

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float:
        ...


class GachaDrawEngine:
    """Engine that samples undrawn items and marks them drawn."""

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        *,
        weighting: str = INVERTED_PERCENT,
        registry: Optional[WeightingRegistry] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        rng : Optional[RandomSource], default: None
            Source of uniform floats in ``[0, 1)``. Defaults to a fresh
            :class:`random.Random`. Tests pass a scripted source to pin the
            sequence of draws.
        weighting : str, default: "inverted_percent"
            Key of the sampling-weight transform to use.
        registry : Optional[WeightingRegistry], default: None
            Custom registry holding the transform. Typically omitted, in
            which case the default registry is used.
        """

        self._rng = rng or random.Random()
        self._registry = registry or DEFAULT_WEIGHTING_REGISTRY
        self._transform = self._registry.get(weighting)

    @property
    def weighting(self) -> str:
        return self._transform.key

    def sampling_weight(self, item: PrizeItem) -> float:
        """Return the weight ``item`` contributes to a draw."""
        return self._transform.sampling_weight(item.weight)

    def select(self, candidates: List[PrizeItem]) -> PrizeItem:
        """Pick one item from a non-empty list of ``candidates``.

        The uniform value is scaled to the total weight and consumed by a
        linear scan in list order; the first item that brings the running
        value to zero or below wins, so ties go to the earlier item. If
        rounding leaves a positive residue after the scan, the last
        candidate is selected.

        Raises
        ------
        ValueError
            If ``candidates`` is empty.
        """
        if not candidates:
            raise ValueError("cannot select from an empty candidate list")

        weights = [self.sampling_weight(item) for item in candidates]
        total_weight = sum(weights)
        remaining = self._rng.random() * total_weight

        for item, weight in zip(candidates, weights):
            remaining -= weight
            if remaining <= 0:
                return item

        logger.debug(
            f"Weighted scan left residue {remaining!r}; falling back to last candidate"
        )
        return candidates[-1]

    def draw(self, pool: PrizePool) -> DrawResult:
        """Draw one undrawn item from ``pool`` and mark it drawn.

        Parameters
        ----------
        pool : PrizePool
            Pool to draw from. It is mutated in place: exactly one item's
            ``drawn`` flag flips on success.

        Returns
        -------
        DrawResult
            The drawn item, or the exhaustion result when every item has
            already been drawn. Exhaustion leaves the pool untouched.
        """
        candidates = pool.available
        if not candidates:
            logger.info(f"Pool '{pool.id}' is exhausted; nothing to draw")
            return EXHAUSTED

        item = self.select(candidates)
        item.drawn = True
        logger.debug(
            f"Drew '{item.id}' (tier {item.tier}) from pool '{pool.id}', "
            f"{len(candidates) - 1} remaining"
        )
        return DrawResult(item=item)

    def draw_many(self, pool: PrizePool, count: int) -> List[PrizeItem]:
        """Draw up to ``count`` items, stopping early when the pool runs out."""
        if count < 0:
            raise ValueError("count must be non-negative")
        drawn: List[PrizeItem] = []
        for _ in range(count):
            result = self.draw(pool)
            if result.item is None:
                break
            drawn.append(result.item)
        return drawn

    def reset(self, pool: PrizePool) -> PrizePool:
        return reset_pool(pool)


def reset_pool(pool: PrizePool) -> PrizePool:
    """Clear every ``drawn`` flag of ``pool`` in place and return it.

    Items are neither added, removed nor renamed; tier and weight are left
    untouched. Resetting an already reset pool changes nothing.
    """
    for item in pool.items:
        item.drawn = False
    logger.debug(f"Pool '{pool.id}' reset ({len(pool.items)} items available)")
    return pool


def draw(pool: PrizePool, rng: Optional[RandomSource] = None) -> DrawResult:
    """Draw from ``pool`` with a default :class:`GachaDrawEngine`."""
    return GachaDrawEngine(rng).draw(pool)


__all__ = [
    "GachaDrawEngine",
    "RandomSource",
    "draw",
    "reset_pool",
]
