from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .template import GachaTemplate  # noqa: F401
from .result import GachaResult  # noqa: F401
from .session_state import SessionStateRecord  # noqa: F401

__all__ = [
    "Base",
    "User",
    "GachaTemplate",
    "GachaResult",
    "SessionStateRecord",
]
