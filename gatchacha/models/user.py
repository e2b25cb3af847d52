from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .result import GachaResult
    from .session_state import SessionStateRecord
    from .template import GachaTemplate


class User(Base):
    """A signed-in player whose templates and draw results are stored remotely."""

    def __init__(
        self,
        email: str,
        display_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        """Create a new :class:`User` record.

        Parameters
        ----------
        email : str
            Login email address; normalized to lower case.
        display_name : str, optional
            Name shown next to the user's history.
        created_at : datetime, optional
            Explicit creation timestamp.
        updated_at : datetime, optional
            Explicit last update timestamp.
        """

        self.email = email
        self.display_name = display_name
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # relationships
    templates: Mapped[list["GachaTemplate"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )
    results: Mapped[list["GachaResult"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    session_states: Mapped[list["SessionStateRecord"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    @validates("email")
    def _normalize_email(self, _key: str, value: str) -> str:
        normalized = (value or "").strip().lower()
        if not normalized:
            raise ValueError("email must not be empty")
        return normalized

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, email='{self.email}', "
            f"display_name='{self.display_name}')>"
        )

    @classmethod
    def get_by_email(cls, session: Session, email: str) -> Optional["User"]:
        """Retrieve a user by their email address."""

        return session.scalar(select(cls).where(cls.email == email.strip().lower()))
