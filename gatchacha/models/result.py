"""Database model for saved draw results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import dt_iso
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .user import User


class GachaResult(Base):
    """Append-only record of one item drawn by a signed-in user."""

    __tablename__ = "gacha_results"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Surrogate primary key."""

    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """User who performed the draw."""

    template_id: Mapped[str] = mapped_column(String(64), nullable=False)
    """Template the item was drawn from. Not a foreign key: built-in templates
    need not exist in the database."""

    template_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Template display name at draw time."""

    item_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    """Pool-local item id."""

    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Item display name at draw time."""

    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    """Tier of the drawn item."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp of the draw."""

    user: Mapped["User"] = relationship(back_populates="results")

    __table_args__ = (Index("ix_gacha_results_user_drawn_at", "user_id", "drawn_at"),)

    def __init__(
        self,
        *,
        template_id: str,
        template_name: str,
        item_name: str,
        tier: int,
        item_id: Optional[str] = None,
        user: Optional["User"] = None,
        user_id: Optional[int] = None,
        drawn_at: Optional[datetime] = None,
    ) -> None:
        self.template_id = template_id
        self.template_name = template_name
        self.item_name = item_name
        self.tier = tier
        self.item_id = item_id
        if user is not None:
            self.user = user
        if user_id is not None:
            self.user_id = user_id
        if drawn_at is not None:
            self.drawn_at = drawn_at

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "template_id": self.template_id,
            "template_name": self.template_name,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "tier": self.tier,
            "drawn_at": dt_iso(self.drawn_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<GachaResult(id={id}, user_id={user_id}, template_id={tpl}, item_name={item}, tier={tier})>".format(
            id=self.id,
            user_id=self.user_id,
            tpl=self.template_id,
            item=self.item_name,
            tier=self.tier,
        )

    @classmethod
    def recent_for_user(
        cls, session: Session, user_id: int, limit: int = 100
    ) -> list["GachaResult"]:
        """Return up to ``limit`` results of ``user_id``, newest first."""

        stmt = (
            select(cls)
            .where(cls.user_id == user_id)
            .order_by(cls.drawn_at.desc(), cls.id.desc())
            .limit(limit)
        )
        return list(session.scalars(stmt).all())


__all__ = ["GachaResult"]
