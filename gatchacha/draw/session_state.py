"""Snapshot format used to persist a pool's progress between sessions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .pool import PrizeItem, PrizePool

logger = logging.getLogger(__name__)

# Older blobs stored the history list under this key.
LEGACY_HISTORY_KEY = "drawnItems"


@dataclass
class SessionState:
    """JSON-shaped snapshot of a pool and its draw history.

    Attributes
    ----------
    items : list[dict]
        Item snapshots (see :meth:`PrizeItem.to_dict`) carrying drawn flags.
    history : list[dict]
        Items drawn so far in this session, oldest first.
    """

    items: List[Dict[str, Any]] = field(default_factory=list)
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"items": list(self.items), "history": list(self.history)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["SessionState"]:
        """Validate a raw blob; return ``None`` when it is not usable."""
        if not isinstance(data, Mapping):
            return None
        items = data.get("items")
        history = data.get("history")
        if history is None:
            history = data.get(LEGACY_HISTORY_KEY, [])
        if not isinstance(items, list) or not isinstance(history, list):
            return None
        if not all(isinstance(entry, Mapping) for entry in items + history):
            return None
        return cls(items=[dict(e) for e in items], history=[dict(e) for e in history])

    @classmethod
    def from_json(cls, text: Union[str, bytes, None]) -> Optional["SessionState"]:
        if not text:
            return None
        try:
            data = json.loads(text)
        except ValueError:
            logger.warning("Ignoring session state that is not valid JSON")
            return None
        return cls.from_dict(data)


def serialize(pool: PrizePool, history: Iterable[PrizeItem] = ()) -> SessionState:
    """Snapshot ``pool`` and ``history`` for storage."""
    return SessionState(
        items=[item.to_dict() for item in pool.items],
        history=[item.to_dict() for item in history],
    )


def _coerce_state(state: Union[SessionState, Mapping[str, Any], None]) -> Optional[SessionState]:
    if state is None or isinstance(state, SessionState):
        return state
    return SessionState.from_dict(state)


def deserialize(
    state: Union[SessionState, Mapping[str, Any], None],
    template_defaults: PrizePool,
) -> PrizePool:
    """Rehydrate a pool from ``state``.

    The returned pool is a fresh copy of ``template_defaults`` with the drawn
    flags recorded in ``state`` applied. When ``state`` is missing, malformed,
    or describes a different item set than the template (the template changed
    since the state was saved), the template defaults are returned unchanged.
    This function never raises.
    """
    pool = template_defaults.copy()
    snapshot = _coerce_state(state)
    if snapshot is None:
        return pool

    try:
        saved = [PrizeItem.from_dict(entry) for entry in snapshot.items]
    except ValueError as exc:
        logger.warning(f"Discarding malformed session state for '{pool.id}': {exc}")
        return pool

    drawn_by_id = {item.id: item.drawn for item in saved}
    if len(drawn_by_id) != len(saved) or set(drawn_by_id) != {i.id for i in pool.items}:
        logger.warning(
            f"Discarding session state for '{pool.id}': item set does not match the template"
        )
        return pool

    for item in pool.items:
        item.drawn = drawn_by_id[item.id]
    return pool


def deserialize_history(state: Union[SessionState, Mapping[str, Any], None]) -> List[PrizeItem]:
    """Return the history recorded in ``state`` (empty when unusable)."""
    snapshot = _coerce_state(state)
    if snapshot is None:
        return []
    try:
        return [PrizeItem.from_dict(entry) for entry in snapshot.history]
    except ValueError as exc:
        logger.warning(f"Discarding malformed draw history: {exc}")
        return []


__all__ = [
    "LEGACY_HISTORY_KEY",
    "SessionState",
    "deserialize",
    "deserialize_history",
    "serialize",
]
