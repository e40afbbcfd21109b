"""
Session context: the user's selected role, professional mode and theme.

The context is an explicit value passed to whoever needs it. Persistence is
injected through a SessionStore; nothing here is process-global.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

import structlog
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from medi_assist.config.settings import get_settings
from medi_assist.models.base import WireModel

logger = structlog.get_logger(__name__)


class UserRole(str, Enum):
    PRO = "pro"
    MEDICO = "medico"
    DIAGNOSIS = "diagnosis"


class SessionContext(WireModel):
    """Per-user UI state. Selecting the pro role turns pro mode on."""

    role: Optional[UserRole] = Field(default=None, description="Selected user role")
    pro_mode: bool = Field(default=False, description="Professional tools enabled")
    theme: str = Field(default="light", description="UI theme ('light' or 'dark')")

    def with_role(self, role: Optional[UserRole]) -> "SessionContext":
        return self.model_copy(update={"role": role, "pro_mode": role == UserRole.PRO})

    def toggle_pro_mode(self) -> "SessionContext":
        return self.model_copy(update={"pro_mode": not self.pro_mode})


@runtime_checkable
class SessionStore(Protocol):
    def load(self, session_id: str) -> SessionContext: ...

    def save(self, session_id: str, context: SessionContext) -> None: ...


class InMemorySessionStore:
    """Keeps contexts in a dict; unknown sessions load as the default context."""

    def __init__(self) -> None:
        self._contexts: Dict[str, SessionContext] = {}

    def load(self, session_id: str) -> SessionContext:
        return self._contexts.get(session_id, SessionContext())

    def save(self, session_id: str, context: SessionContext) -> None:
        self._contexts[session_id] = context


class JsonFileSessionStore:
    """
    Stores every session in one JSON object keyed by session id.

    An unreadable or malformed entry loads as the default context and is
    logged; the file is rewritten on every save.
    """

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path or get_settings().session.store_path)

    def _read_all(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("session_store_unreadable", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, session_id: str) -> SessionContext:
        raw = self._read_all().get(session_id)
        if raw is None:
            return SessionContext()
        try:
            return SessionContext.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning("session_context_invalid", session_id=session_id, error=str(e))
            return SessionContext()

    def save(self, session_id: str, context: SessionContext) -> None:
        data = self._read_all()
        data[session_id] = context.model_dump(mode="json", by_alias=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug("session_saved", session_id=session_id, path=str(self.path))
