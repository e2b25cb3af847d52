"""Sampling-weight transforms used by the draw engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

INVERTED_PERCENT = "inverted_percent"
NOMINAL_PERCENT = "nominal_percent"


@dataclass(frozen=True)
class WeightTransform:
    """Definition of a sampling-weight transform.

    Attributes
    ----------
    key : str
        Registry key used to identify the transform. This is used by
        :class:`WeightingRegistry` to map to the transform definition.
    transform : Callable[[float], float]
        Callable that takes an item's nominal percent and returns the
        weight used for sampling.
    description : Optional[str]
        Human-readable summary of the transform.
    """

    key: str
    transform: Callable[[float], float]
    description: Optional[str] = None

    def sampling_weight(self, nominal: float) -> float:
        """Return the sampling weight for an item with ``nominal`` percent.

        Raises
        ------
        ValueError
            If the transform yields a negative weight.
        """
        weight = float(self.transform(nominal))
        if weight < 0:
            raise ValueError(
                f"transform '{self.key}' produced a negative weight for {nominal}"
            )
        return weight


class WeightingRegistry:
    """Mutable registry mapping transform keys to definitions."""

    def __init__(self) -> None:
        self._transforms: Dict[str, WeightTransform] = {}

    def register(self, transform: WeightTransform, *, replace: bool = False) -> None:
        """Register a transform under its key.

        Parameters
        ----------
        transform : WeightTransform
            Transform to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and transform.key in self._transforms:
            raise ValueError(f"Weight transform '{transform.key}' is already registered")
        self._transforms[transform.key] = transform

    def get(self, key: str) -> WeightTransform:
        """Return the transform registered under ``key``."""
        try:
            return self._transforms[key]
        except KeyError as exc:
            raise KeyError(f"Unknown weight transform '{key}'") from exc

    def sampling_weight(self, key: str, nominal: float) -> float:
        """Apply the transform referenced by ``key`` to ``nominal``."""
        return self.get(key).sampling_weight(nominal)

    def available_transforms(self) -> Dict[str, WeightTransform]:
        """Return a copy of the registered transforms keyed by identifier."""
        return dict(self._transforms)


def _inverted_percent(nominal: float) -> float:
    return 100 - nominal + 1


def _nominal_percent(nominal: float) -> float:
    return nominal


DEFAULT_WEIGHTING_REGISTRY = WeightingRegistry()
DEFAULT_WEIGHTING_REGISTRY.register(
    WeightTransform(
        key=INVERTED_PERCENT,
        transform=_inverted_percent,
        description=(
            "Sampling weight is 100 - percent + 1. Rarer tiers (smaller "
            "percent) end up with the larger weight; kept for compatibility "
            "with saved sessions and existing draw statistics."
        ),
    )
)
DEFAULT_WEIGHTING_REGISTRY.register(
    WeightTransform(
        key=NOMINAL_PERCENT,
        transform=_nominal_percent,
        description=(
            "Sampling weight equals the nominal percent, so each tier is "
            "drawn in proportion to its advertised rate."
        ),
    )
)

__all__ = [
    "DEFAULT_WEIGHTING_REGISTRY",
    "INVERTED_PERCENT",
    "NOMINAL_PERCENT",
    "WeightTransform",
    "WeightingRegistry",
]
