"""Database model for draw templates."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    or_,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..draw.builder import DEFAULT_ITEM_LABEL, TierCounts, normalize_counts
from ..draw.tiers import TIER_SPECS
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from ..templates import TemplateDefinition
    from .user import User


def _new_template_id() -> str:
    return uuid.uuid4().hex


class GachaTemplate(Base):
    """A stored template: display metadata plus per-tier item counts."""

    __tablename__ = "gacha_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_template_id)
    """Template identifier. System templates use readable ids such as ``"default"``."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name."""

    theme: Mapped[str] = mapped_column(String(50), nullable=False, default="classic")
    """Display category tag; not used by the draw engine."""

    item_label: Mapped[str] = mapped_column(
        String(50), nullable=False, default=DEFAULT_ITEM_LABEL
    )
    """Noun used in generated item names."""

    tier1_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier2_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier3_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier4_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tier5_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Built-in templates shared by every user."""

    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """User templates other users may draw from."""

    user_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    """Owner of a user-defined template; ``None`` for system templates."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    owner: Mapped[Optional["User"]] = relationship(back_populates="templates")

    __table_args__ = tuple(
        CheckConstraint(f"tier{spec.tier}_count >= 0", name=f"tier{spec.tier}_count_non_negative")
        for spec in TIER_SPECS
    )

    def __init__(
        self,
        *,
        name: str,
        theme: str = "classic",
        counts: Optional[TierCounts] = None,
        item_label: str = DEFAULT_ITEM_LABEL,
        is_system: bool = False,
        is_public: bool = False,
        owner: Optional["User"] = None,
        user_id: Optional[int] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        if not name or not name.strip():
            raise ValueError("template name must not be empty")
        self.name = name.strip()
        self.theme = theme
        self.item_label = item_label
        self.is_system = is_system
        self.is_public = is_public
        self.counts = normalize_counts(counts)
        if owner is not None:
            self.owner = owner
        if user_id is not None:
            self.user_id = user_id
        self.id = id or _new_template_id()
        if created_at is not None:
            self.created_at = created_at

    @property
    def counts(self) -> dict[str, int]:
        """Per-tier counts keyed by ``"tier1"`` .. ``"tier5"``."""
        return {
            spec.count_key: getattr(self, f"{spec.count_key}_count") or 0
            for spec in TIER_SPECS
        }

    @counts.setter
    def counts(self, value: TierCounts) -> None:
        for key, count in normalize_counts(value).items():
            setattr(self, f"{key}_count", count)

    def to_definition(self) -> "TemplateDefinition":
        """Return the registry definition used to build pools from this row."""
        from ..templates import TemplateDefinition

        return TemplateDefinition.create(
            id=self.id,
            name=self.name,
            theme=self.theme,
            counts=self.counts,
            item_label=self.item_label or DEFAULT_ITEM_LABEL,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "theme": self.theme,
            "item_label": self.item_label,
            **{f"{key}_count": count for key, count in self.counts.items()},
            "is_system": self.is_system,
            "is_public": self.is_public,
            "user_id": self.user_id,
        }

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<GachaTemplate(id={id}, name={name}, theme={theme})>".format(
            id=self.id,
            name=self.name,
            theme=self.theme,
        )

    @classmethod
    def visible_to(cls, session: Session, user_id: Optional[int]) -> list["GachaTemplate"]:
        """Return system, public and owned templates, newest first."""

        conditions = [cls.is_system.is_(True), cls.is_public.is_(True)]
        if user_id is not None:
            conditions.append(cls.user_id == user_id)
        stmt = (
            select(cls)
            .where(or_(*conditions))
            .order_by(cls.created_at.desc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())


__all__ = ["GachaTemplate"]
