from __future__ import annotations

import logging
from typing import Callable, Optional

from ..core.enums import SessionEvent
from .model import AuthSession

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionEvent, Optional[AuthSession]], None]


class SessionContext:
    """Estado de sesión explícito de una petición (o de un script).

    Se crea uno por petición y se pasa a AuthService; nunca es global. Los listeners
    reciben (evento, sesión) en cada cambio.
    """

    def __init__(self) -> None:
        self._session: Optional[AuthSession] = None
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def begin(self, session: AuthSession, event: SessionEvent = SessionEvent.SIGNED_IN) -> None:
        self._session = session
        self._emit(event)

    def refresh(self, session: AuthSession) -> None:
        self._session = session
        self._emit(SessionEvent.TOKEN_REFRESHED)

    def end(self) -> None:
        self._session = None
        self._emit(SessionEvent.SIGNED_OUT)
        self._listeners.clear()

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self._session)
            except Exception:
                logger.exception("Session listener failed on %s", event.value)
