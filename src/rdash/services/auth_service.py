from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import re
import secrets
from typing import Optional

from rdash.domain.errors import AuthenticationError
from rdash.domain.models import Session
from rdash.repositories.contracts import AuthGateway

log = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


@dataclass(frozen=True)
class LoginPolicy:
    max_failed_attempts: int = 5
    lockout_seconds: int = 60
    session_seconds: int = 3600


class LocalAuthGateway:
    """Email/password sign-in against the users table of a SqliteStore."""

    def __init__(self, repo, policy: LoginPolicy | None = None):
        self.repo = repo
        self.policy = policy or LoginPolicy()
        self._refresh_tokens: dict[str, dict] = {}

    def _issue(self, user: dict) -> Session:
        refresh_token = secrets.token_urlsafe(32)
        self._refresh_tokens[refresh_token] = user
        return Session(
            access_token=secrets.token_urlsafe(32),
            refresh_token=refresh_token,
            user_id=str(user["id"]),
            email=str(user["email"]),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.policy.session_seconds),
        )

    def sign_in(self, email: str, password: str) -> Session:
        state = self.repo.get_user_security_state(email)
        if state:
            _attempts, locked_until = state
            if locked_until:
                until = datetime.fromisoformat(locked_until)
                now = datetime.now(timezone.utc)
                if now < until:
                    remaining = int((until - now).total_seconds())
                    raise AuthenticationError(f"Account is temporarily locked. Retry in {remaining}s.")

        user = self.repo.authenticate_user(email, password)
        if not user:
            attempts, locked_until = self.repo.record_login_failure(
                email,
                self.policy.max_failed_attempts,
                self.policy.lockout_seconds,
            )
            if locked_until is not None:
                raise AuthenticationError("Too many failed attempts. Account is temporarily locked.")
            raise AuthenticationError("Invalid email or password.")
        return self._issue(user)

    def refresh(self, session: Session) -> Session:
        user = self._refresh_tokens.pop(session.refresh_token or "", None)
        if user is None:
            raise AuthenticationError("Session expired. Please sign in again.")
        return self._issue(user)

    def sign_out(self, session: Session) -> None:
        self._refresh_tokens.pop(session.refresh_token or "", None)


class AuthService:
    """Holds the signed-in session and guards access to the dashboard."""

    def __init__(self, gateway: AuthGateway):
        self.gateway = gateway
        self.session: Optional[Session] = None

    def login(self, email: str, password: str) -> Session:
        email_clean = (email or "").strip()
        if not email_clean or not password:
            raise AuthenticationError("Email and password are required.")
        if not EMAIL_RE.match(email_clean):
            raise AuthenticationError("Enter a valid email address.")

        try:
            self.session = self.gateway.sign_in(email_clean, password)
        except AuthenticationError:
            log.warning("login_failed email=%s", email_clean)
            raise
        log.info("login_ok email=%s", email_clean)
        return self.session

    def logout(self) -> None:
        session, self.session = self.session, None
        if session is None:
            return
        try:
            self.gateway.sign_out(session)
        except Exception:
            # The local session is gone either way; the server token expires on its own.
            log.exception("logout_remote_failed email=%s", session.email)
        else:
            log.info("logout_ok email=%s", session.email)

    def is_authenticated(self, now: datetime | None = None) -> bool:
        return self.session is not None and not self.session.is_expired(now)

    def require_session(self, now: datetime | None = None) -> Session:
        """Return a live session, refreshing an expired one when possible."""
        if self.session is None:
            raise AuthenticationError("Please sign in.")
        if not self.session.is_expired(now):
            return self.session
        try:
            self.session = self.gateway.refresh(self.session)
        except AuthenticationError:
            self.session = None
            raise
        log.info("session_refreshed email=%s", self.session.email)
        return self.session
