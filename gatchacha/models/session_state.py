"""Database model for persisted pool progress."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..draw.session_state import SessionState
from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .user import User


class SessionStateRecord(Base):
    """Stored :class:`~gatchacha.draw.session_state.SessionState` for one template."""

    __tablename__ = "session_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    template_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    """Template the state belongs to."""

    user_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    """Owner of the state; ``None`` for anonymous sessions."""

    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped[Optional["User"]] = relationship(back_populates="session_states")

    __table_args__ = (
        UniqueConstraint("template_id", "user_id", name="uq_session_state_template_user"),
    )

    def __init__(
        self,
        *,
        template_id: str,
        state: Optional[SessionState] = None,
        user_id: Optional[int] = None,
    ) -> None:
        self.template_id = template_id
        self.user_id = user_id
        self.apply(state or SessionState())

    def apply(self, state: SessionState) -> None:
        """Overwrite the stored snapshot with ``state``."""
        # Assign new lists so the JSON columns are flagged as modified.
        self.items = list(state.items)
        self.history = list(state.history)

    def to_state(self) -> Optional[SessionState]:
        """Return the stored snapshot, or ``None`` when the row holds garbage."""
        return SessionState.from_dict({"items": self.items, "history": self.history})

    @classmethod
    def get_for(
        cls, session: Session, template_id: str, user_id: Optional[int] = None
    ) -> Optional["SessionStateRecord"]:
        """Return the record keyed by ``(template_id, user_id)`` if it exists."""

        user_clause = cls.user_id.is_(None) if user_id is None else cls.user_id == user_id
        return session.scalar(
            select(cls).where(cls.template_id == template_id, user_clause)
        )


__all__ = ["SessionStateRecord"]
