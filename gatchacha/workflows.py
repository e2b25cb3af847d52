import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .draw.builder import TierCounts, normalize_counts
from .draw.pool import PrizeItem
from .models import GachaResult, GachaTemplate
from .templates import SYSTEM_TEMPLATES, TemplateDefinition, TemplateRegistry

if TYPE_CHECKING:
    from .models import User

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


def load_templates(session: Session, user: Optional["User"] = None) -> TemplateRegistry:
    """Return the templates a player can choose from.

    Anonymous players get the built-in catalogue. Signed-in players get the
    system, public and own templates stored in the database, newest first.
    When the database holds none of those, or cannot be queried, the built-in
    catalogue is returned instead.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    user : Optional[User], default: None
        Signed-in player, if any.

    Returns
    -------
    TemplateRegistry
        Registry ready to be handed to :class:`~gatchacha.session.GachaSession`.
    """
    if user is None:
        return TemplateRegistry.system()

    try:
        records = GachaTemplate.visible_to(session, user.id)
    except SQLAlchemyError:
        logger.exception("Error loading templates; using built-in catalogue")
        return TemplateRegistry.system()

    if not records:
        return TemplateRegistry.system()
    return TemplateRegistry.from_records(records)


def create_template(
    session: Session,
    user: "User",
    name: str,
    theme: str,
    counts: TierCounts,
    *,
    item_label: Optional[str] = None,
    is_public: bool = False,
) -> TemplateDefinition:
    """Persist a user-defined template and return its definition.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session used for persistence.
    user : User
        Owner of the new template. Must be persisted.
    name : str
        Display name; must not be blank.
    theme : str
        Display category tag.
    counts : Mapping
        Per-tier counts keyed by ``"tier1"`` .. ``"tier5"``.
    item_label : Optional[str], default: None
        Noun used in generated item names.
    is_public : bool, default: False
        Whether other players may draw from the template.

    Raises
    ------
    ValueError
        If the user is not persisted, the name is blank or a count is
        negative.
    """
    if user.id is None:
        raise ValueError("User must be persisted before creating a template")

    template = GachaTemplate(
        name=name,
        theme=theme,
        counts=normalize_counts(counts),
        is_public=is_public,
        is_system=False,
        user_id=user.id,
        **({"item_label": item_label} if item_label else {}),
    )
    session.add(template)
    session.flush()
    logger.info(f"Created template '{template.id}' for user {user.id}")
    return template.to_definition()


def save_gacha_result(
    session: Session,
    user: Optional["User"],
    template_id: str,
    template_name: str,
    item: PrizeItem,
) -> Optional[GachaResult]:
    """Record a drawn item for ``user``.

    Anonymous draws are not recorded and ``None`` is returned.
    """
    if user is None:
        return None
    if user.id is None:
        raise ValueError("User must be persisted before saving results")

    result = GachaResult(
        user_id=user.id,
        template_id=template_id,
        template_name=template_name,
        item_id=item.id,
        item_name=item.name,
        tier=item.tier,
    )
    session.add(result)
    session.flush()
    return result


def get_gacha_history(
    session: Session, user: Optional["User"], limit: int = HISTORY_LIMIT
) -> list[GachaResult]:
    """Return ``user``'s most recent results, newest first (empty when anonymous)."""
    if user is None or user.id is None:
        return []
    if limit < 0:
        raise ValueError("limit must be non-negative")
    return GachaResult.recent_for_user(session, user.id, limit=limit)


def make_database_result_hook(session: Session, user: Optional["User"]):
    """Build a result hook that records draws through :func:`save_gacha_result`.

    The hook uses ``session`` directly, and a SQLAlchemy ``Session`` must not
    be shared across threads. Pass it to a
    :class:`~gatchacha.session.GachaSession` without an ``executor`` so it
    runs inline on the drawing thread.
    """

    def _hook(template_id: str, template_name: str, item: PrizeItem) -> None:
        save_gacha_result(session, user, template_id, template_name, item)

    return _hook


def seed_system_templates(session: Session) -> list[GachaTemplate]:
    """Insert the built-in templates that are not stored yet.

    Returns
    -------
    list[GachaTemplate]
        Rows created by this call (empty when everything was already seeded).
    """
    created: list[GachaTemplate] = []
    for definition in SYSTEM_TEMPLATES:
        if session.get(GachaTemplate, definition.id) is not None:
            continue
        template = GachaTemplate(
            id=definition.id,
            name=definition.name,
            theme=definition.theme,
            counts=definition.counts,
            item_label=definition.item_label,
            is_system=True,
        )
        session.add(template)
        created.append(template)
    session.flush()
    return created


__all__ = [
    "HISTORY_LIMIT",
    "create_template",
    "get_gacha_history",
    "load_templates",
    "make_database_result_hook",
    "save_gacha_result",
    "seed_system_templates",
]
