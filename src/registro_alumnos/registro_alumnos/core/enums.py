from __future__ import annotations

from enum import Enum


class SessionEvent(str, Enum):
    """Cambios de sesión notificados a los listeners del SessionContext."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    RESTORED = "RESTORED"
