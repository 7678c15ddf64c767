# hms_billing/core/session.py
"""
Process-wide auth session used when calling the upstream billing API.

Lifecycle is explicit: `init_session()` on application start,
`login_session()` after a successful login, `clear_session()` on logout.
Shutdown leaves a persisted session in place for the next start. Nothing
else mutates the session.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from hms_billing.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    token: Optional[str] = None
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


_session = AuthSession()


def _session_path() -> Optional[Path]:
    if not settings.SESSION_FILE:
        return None
    return Path(settings.SESSION_FILE)


def get_session() -> AuthSession:
    return _session


def init_session() -> AuthSession:
    global _session
    path = _session_path()
    if path is not None and path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            _session = AuthSession(token=raw.get("token") or None,
                                   user=raw.get("user") or {})
            logger.info("session restored from %s", path)
            return _session
        except (ValueError, AttributeError, OSError):
            # unreadable stored auth is discarded, never half-applied
            logger.warning("discarding unreadable session file %s", path)
            clear_session()

    _session = AuthSession(token=settings.BILLING_API_TOKEN)
    return _session


def login_session(token: str, user: Optional[Dict[str, Any]] = None) -> AuthSession:
    global _session
    _session = AuthSession(token=token, user=dict(user or {}))
    path = _session_path()
    if path is not None:
        payload = {"token": _session.token, "user": _session.user}
        path.write_text(json.dumps(payload), encoding="utf-8")
    return _session


def clear_session() -> None:
    global _session
    _session = AuthSession()
    path = _session_path()
    if path is not None and path.exists():
        path.unlink()
