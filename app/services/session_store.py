# file: app/services/session_store.py
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from app.config import get_settings
from app.schema import Lead, SearchQuery, StoredSession

log = logging.getLogger("session")


class SessionStore:
    """
    The last result set and the query that produced it, as one JSON document.
    Local counterpart of the browser's local-storage key; a single user, a single file.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or get_settings().session_file)

    def load(self) -> Optional[StoredSession]:
        """Read once at startup. A corrupt file counts as no session and is removed."""
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            session = StoredSession.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            log.warning("discarding unreadable session %s: %s", self.path, e)
            self.clear()
            return None
        log.info("restored session leads=%d from %s", len(session.leads), self.path)
        return session

    def save(self, leads: Iterable[Lead], query: SearchQuery) -> bool:
        """Best effort; a failed write is logged and reported as False."""
        session = StoredSession(leads=list(leads), query=query)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(session.to_wire(), ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            log.error("could not save session to %s: %s", self.path, e)
            return False
        log.debug("saved session leads=%d", len(session.leads))
        return True

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            log.error("could not remove session %s: %s", self.path, e)
