"""
Admin session gate

ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED, back to ANONYMOUS on failure,
sign-out, expiry or an out-of-band session change reported by the store.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional
import hmac
import logging

from studio.core.exceptions import (
    AuthorizationError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)
from studio.services.remote_store import AuthChangeEvent, Session, StoreAuth

logger = logging.getLogger(__name__)

ACCESS_DENIED = "Access denied"
SERVICE_UNAVAILABLE = "Service unavailable"


class GateState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


GateListener = Callable[["AdminSessionGate"], None]


class AdminSessionGate:
    def __init__(self, auth: StoreAuth, access_key: Optional[str] = None):
        self.auth = auth
        self._access_key = access_key
        self.state = GateState.ANONYMOUS
        self.session: Optional[Session] = None
        self.mode: Optional[str] = None  # "password" | "key"
        self.error: Optional[str] = None
        self._listeners: List[GateListener] = []
        self._unsubscribe = auth.on_auth_state_change(self._on_auth_event)

    @property
    def authenticated(self) -> bool:
        return self.state == GateState.AUTHENTICATED and self.session is not None

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    def on_change(self, callback: GateListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def close(self) -> None:
        """Stop following store session changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def _transition(self, state: GateState, session: Optional[Session] = None, error: Optional[str] = None) -> None:
        self.state = state
        self.session = session
        self.error = error
        if state == GateState.ANONYMOUS:
            self.mode = None
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("[gate] listener failed")

    def _reset(self, error: Optional[str] = None) -> None:
        self._transition(GateState.ANONYMOUS, None, error)

    def _on_auth_event(self, event: AuthChangeEvent, session: Session) -> None:
        if self.session is None or session.session_id != self.session.session_id:
            return
        if event == AuthChangeEvent.SIGNED_OUT:
            logger.info(f"[gate] session {session.session_id[:8]} signed out")
            self._reset()
        elif event == AuthChangeEvent.TOKEN_REFRESHED:
            self._transition(GateState.AUTHENTICATED, session)

    async def unlock_with_key(self, key: str) -> Optional[Session]:
        """Legacy shared admin key, compared case-sensitively."""
        if self.state == GateState.AUTHENTICATING:
            logger.info("[gate] unlock ignored, sign-in already in progress")
            return None
        self._transition(GateState.AUTHENTICATING)
        expected = self._access_key or ""
        if not expected or not hmac.compare_digest((key or "").encode("utf-8"), expected.encode("utf-8")):
            self._reset(ACCESS_DENIED)
            raise InvalidCredentialsError(ACCESS_DENIED)
        try:
            session = self.auth.issue_service_session()
        except Exception as e:
            logger.exception("[gate] could not issue a service session")
            self._reset(SERVICE_UNAVAILABLE)
            raise ServiceUnavailableError(SERVICE_UNAVAILABLE) from e
        self.mode = "key"
        self._transition(GateState.AUTHENTICATED, session)
        return session

    async def sign_in(self, email: str, password: str) -> Optional[Session]:
        if self.state == GateState.AUTHENTICATING:
            logger.info("[gate] sign-in ignored, another one is in progress")
            return None
        self._transition(GateState.AUTHENTICATING)
        try:
            result = await self.auth.sign_in_with_password(email, password)
        except Exception as e:
            logger.exception("[gate] sign-in call failed")
            self._reset(SERVICE_UNAVAILABLE)
            raise ServiceUnavailableError(SERVICE_UNAVAILABLE) from e

        if result.error is not None:
            if result.error.kind == "authorization":
                self._reset(ACCESS_DENIED)
                raise InvalidCredentialsError(ACCESS_DENIED)
            logger.warning(f"[gate] auth service unavailable: {result.error.message}")
            self._reset(SERVICE_UNAVAILABLE)
            raise ServiceUnavailableError(SERVICE_UNAVAILABLE)

        self.mode = "password"
        self._transition(GateState.AUTHENTICATED, result.session)
        return result.session

    async def verify(self) -> bool:
        """Re-check the held session with the store."""
        if self.session is None:
            return False
        current = await self.auth.get_session(self.session.access_token)
        if current is None:
            logger.info("[gate] held session expired or revoked")
            self._reset()
            return False
        return True

    async def refresh(self) -> Session:
        self.require_authenticated()
        result = await self.auth.refresh_session(self.session.access_token)
        if result.error is not None:
            self._reset()
            raise AuthorizationError(result.error.message)
        # TOKEN_REFRESHED already swapped the session in
        return self.session

    async def sign_out(self, scope: str = "local") -> None:
        if self.session is not None:
            result = await self.auth.sign_out(self.session.access_token, scope=scope)
            if not result.ok:
                logger.info(f"[gate] sign-out on store: {result.error.message}")
        if self.state != GateState.ANONYMOUS:
            self._reset()

    def require_authenticated(self) -> Session:
        if not self.authenticated:
            raise AuthorizationError("Admin session required")
        return self.session
