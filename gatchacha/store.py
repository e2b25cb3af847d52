"""Session state stores keyed by template id."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from .draw.session_state import SessionState
from .models import SessionStateRecord

logger = logging.getLogger(__name__)

load_dotenv()
DEFAULT_STATE_PATH = os.getenv("GATCHACHA_STATE_PATH", "gatchacha_state.json")


class SessionStateStore:
    """Load/save contract between a gacha session and its storage medium."""

    def load(self, template_id: str) -> Optional[SessionState]:
        """Return the stored state for ``template_id`` or ``None``."""
        raise NotImplementedError

    def save(self, template_id: str, state: SessionState) -> None:
        raise NotImplementedError

    def clear(self, template_id: str) -> None:
        """Forget any state stored for ``template_id``."""
        raise NotImplementedError


class MemoryStateStore(SessionStateStore):
    """Keeps states in a dict; nothing survives the process."""

    def __init__(self) -> None:
        self._states: Dict[str, Dict[str, Any]] = {}

    def load(self, template_id: str) -> Optional[SessionState]:
        raw = self._states.get(template_id)
        return SessionState.from_dict(raw) if raw is not None else None

    def save(self, template_id: str, state: SessionState) -> None:
        self._states[template_id] = state.to_dict()

    def clear(self, template_id: str) -> None:
        self._states.pop(template_id, None)


class JsonFileStateStore(SessionStateStore):
    """Stores every template's state in one JSON document on disk.

    The document maps template ids to ``{"items": [...], "history": [...]}``
    records. A document that cannot be read is logged and treated as empty;
    it is replaced on the next save.
    """

    def __init__(self, path: Union[str, Path, None] = None) -> None:
        self.path = Path(path or DEFAULT_STATE_PATH)

    def _read_document(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not read session state file {self.path}: {exc}")
            return {}
        try:
            document = json.loads(text) if text.strip() else {}
        except ValueError:
            logger.warning(f"Session state file {self.path} is not valid JSON; ignoring it")
            return {}
        if not isinstance(document, dict):
            logger.warning(f"Session state file {self.path} does not hold a mapping; ignoring it")
            return {}
        return document

    def _write_document(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self, template_id: str) -> Optional[SessionState]:
        raw = self._read_document().get(template_id)
        if raw is None:
            return None
        state = SessionState.from_dict(raw)
        if state is None:
            logger.warning(f"Ignoring malformed session state for template '{template_id}'")
        return state

    def save(self, template_id: str, state: SessionState) -> None:
        document = self._read_document()
        document[template_id] = state.to_dict()
        self._write_document(document)

    def clear(self, template_id: str) -> None:
        document = self._read_document()
        if document.pop(template_id, None) is not None:
            self._write_document(document)


class DatabaseStateStore(SessionStateStore):
    """Stores states as :class:`SessionStateRecord` rows.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session. The store flushes but never commits; the
        caller owns the transaction.
    user_id : Optional[int], default: None
        Owner of the stored states; ``None`` for anonymous sessions.
    """

    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self._session = session
        self._user_id = user_id

    def load(self, template_id: str) -> Optional[SessionState]:
        record = SessionStateRecord.get_for(self._session, template_id, self._user_id)
        if record is None:
            return None
        state = record.to_state()
        if state is None:
            logger.warning(f"Ignoring malformed session state row for template '{template_id}'")
        return state

    def save(self, template_id: str, state: SessionState) -> None:
        record = SessionStateRecord.get_for(self._session, template_id, self._user_id)
        if record is None:
            record = SessionStateRecord(
                template_id=template_id, state=state, user_id=self._user_id
            )
            self._session.add(record)
        else:
            record.apply(state)
        self._session.flush()

    def clear(self, template_id: str) -> None:
        record = SessionStateRecord.get_for(self._session, template_id, self._user_id)
        if record is not None:
            self._session.delete(record)
            self._session.flush()


__all__ = [
    "DEFAULT_STATE_PATH",
    "DatabaseStateStore",
    "JsonFileStateStore",
    "MemoryStateStore",
    "SessionStateStore",
]
