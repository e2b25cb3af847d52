"""Prize pools and the weighted draw engine."""

from .builder import build_pool, build_prize_pool, normalize_counts
from .engine import GachaDrawEngine, draw, reset_pool
from .pool import EXHAUSTED, DrawResult, PoolStats, PrizeItem, PrizePool, pool_stats
from .session_state import SessionState, deserialize, deserialize_history, serialize
from .tiers import TIER_SPECS, TierSpec, get_tier
from .weighting import (
    DEFAULT_WEIGHTING_REGISTRY,
    INVERTED_PERCENT,
    NOMINAL_PERCENT,
    WeightingRegistry,
    WeightTransform,
)

__all__ = [
    "DEFAULT_WEIGHTING_REGISTRY",
    "DrawResult",
    "EXHAUSTED",
    "GachaDrawEngine",
    "INVERTED_PERCENT",
    "NOMINAL_PERCENT",
    "PoolStats",
    "PrizeItem",
    "PrizePool",
    "SessionState",
    "TIER_SPECS",
    "TierSpec",
    "WeightTransform",
    "WeightingRegistry",
    "build_pool",
    "build_prize_pool",
    "deserialize",
    "deserialize_history",
    "draw",
    "get_tier",
    "normalize_counts",
    "pool_stats",
    "reset_pool",
    "serialize",
]
