from sqlalchemy.orm import DeclarativeBase
from gatchacha.db.metadata import metadata_obj


class Base(DeclarativeBase):
    metadata = metadata_obj
