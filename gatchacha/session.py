"""Single-player gacha session: the active pool, its history and persistence."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from typing import Callable, List, Optional

from .draw.engine import GachaDrawEngine, reset_pool
from .draw.pool import DrawResult, PoolStats, PrizeItem, PrizePool, pool_stats
from .draw.session_state import deserialize, deserialize_history, serialize
from .store import MemoryStateStore, SessionStateStore
from .templates import TemplateDefinition, TemplateRegistry

logger = logging.getLogger(__name__)

ResultHook = Callable[[str, str, PrizeItem], None]


class GachaSession:
    """Owns the active pool and keeps the store in sync with it.

    A session holds at most one pool at a time and is not safe for
    concurrent draws; callers serialize access (e.g. by disabling the draw
    trigger while a draw is running).
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        store: Optional[SessionStateStore] = None,
        *,
        engine: Optional[GachaDrawEngine] = None,
        result_hook: Optional[ResultHook] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        """Create a session.

        Parameters
        ----------
        registry : TemplateRegistry
            Templates the player may select.
        store : Optional[SessionStateStore], default: None
            Where pool progress is persisted. Defaults to an in-memory store.
        engine : Optional[GachaDrawEngine], default: None
            Draw engine; a default engine is created when omitted.
        result_hook : Optional[ResultHook], default: None
            Called with ``(template_id, template_name, item)`` after every
            successful draw. Failures are logged and never affect the draw.
        executor : Optional[Executor], default: None
            When given, the result hook is submitted to it instead of being
            called inline. Hooks bound to a SQLAlchemy session (see
            :func:`~gatchacha.workflows.make_database_result_hook`) must run
            inline, so leave this unset for them.
        """
        self.registry = registry
        self.store = store or MemoryStateStore()
        self.engine = engine or GachaDrawEngine()
        self.result_hook = result_hook
        self.executor = executor
        self.template: Optional[TemplateDefinition] = None
        self.pool: Optional[PrizePool] = None
        self.history: List[PrizeItem] = []
        self.last_item: Optional[PrizeItem] = None

    def select_template(self, template_id: str) -> PrizePool:
        """Make ``template_id`` the active template and restore its progress.

        Raises
        ------
        KeyError
            If the registry has no such template.
        """
        template = self.registry[template_id]
        state = self.store.load(template_id)
        self.template = template
        self.pool = deserialize(state, template.build_pool())
        self.history = deserialize_history(state)
        self.last_item = None
        logger.debug(
            f"Selected template '{template_id}' "
            f"({len(self.pool.available)}/{len(self.pool.items)} available)"
        )
        return self.pool

    def _require_pool(self) -> PrizePool:
        if self.pool is None or self.template is None:
            raise RuntimeError("No template selected")
        return self.pool

    def draw(self) -> DrawResult:
        """Draw one item from the active pool.

        On success the item is appended to the history, the state is saved
        and the result hook is notified. Storage and hook failures are
        logged; the draw itself stays final. Exhaustion touches neither the
        store nor the hook.
        """
        pool = self._require_pool()
        result = self.engine.draw(pool)
        if result.item is None:
            return result

        self.history.append(result.item.copy())
        self.last_item = result.item
        try:
            self.save()
        except Exception:
            logger.exception(f"Failed to save session state for '{pool.id}'")
        self._notify(result.item)
        return result

    def _notify(self, item: PrizeItem) -> None:
        if self.result_hook is None or self.template is None:
            return
        args = (self.template.id, self.template.name, item.copy())
        if self.executor is None:
            try:
                self.result_hook(*args)
            except Exception:
                logger.exception(f"Error saving gacha result for '{item.id}'")
            return

        future = self.executor.submit(self.result_hook, *args)
        future.add_done_callback(_log_hook_failure)

    def save(self) -> None:
        """Persist the active pool and history."""
        pool = self._require_pool()
        self.store.save(pool.id, serialize(pool, self.history))

    def reset(self) -> PrizePool:
        """Return every item to the pool, clear history and stored state."""
        pool = self._require_pool()
        reset_pool(pool)
        self.history = []
        self.last_item = None
        self.store.clear(pool.id)
        logger.info(f"Reset template '{pool.id}'")
        return pool

    def stats(self) -> PoolStats:
        return pool_stats(self._require_pool())

    @property
    def recent_results(self) -> List[PrizeItem]:
        """History, most recent draw first."""
        return list(reversed(self.history))


def _log_hook_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Error saving gacha result", exc_info=exc)


__all__ = ["GachaSession", "ResultHook"]
