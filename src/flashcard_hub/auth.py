"""Identity provider: sign in, sign up, sign out and identity-change listeners."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass
class User:
    id: str
    email: str
    display_name: str = ""


@dataclass
class AuthResult:
    user: Optional[User] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


IdentityListener = Callable[[Optional[User]], None]


class IdentityProvider(ABC):
    """Base class holding the current identity and notifying listeners on change."""

    def __init__(self):
        self.current_user: Optional[User] = None
        self._listeners: list[IdentityListener] = []

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    def _set_user(self, user: Optional[User]) -> None:
        previous = self.current_user.id if self.current_user else None
        self.current_user = user
        if (user.id if user else None) == previous:
            return
        for listener in self._listeners:
            listener(user)

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthResult:
        """Start a session; listeners fire when the identity changes."""

    @abstractmethod
    def sign_up(self, email: str, password: str, display_name: str) -> AuthResult:
        """Register an account without starting a session."""

    @abstractmethod
    def sign_out(self) -> AuthResult:
        """End the session and clear the identity."""


class InMemoryAuth(IdentityProvider):
    """Accounts kept in a dict; used offline and in tests."""

    def __init__(self):
        super().__init__()
        self._accounts: dict[str, tuple[str, User]] = {}

    def sign_up(self, email, password, display_name):
        if email in self._accounts:
            return AuthResult(error="User already registered")
        if len(password) < 6:
            return AuthResult(error="Password should be at least 6 characters")
        user = User(id=f"user-{len(self._accounts) + 1}", email=email, display_name=display_name)
        self._accounts[email] = (password, user)
        return AuthResult(user=user)

    def sign_in(self, email, password):
        account = self._accounts.get(email)
        if account is None or account[0] != password:
            return AuthResult(error="Invalid login credentials")
        self._set_user(account[1])
        return AuthResult(user=account[1])

    def sign_out(self):
        self._set_user(None)
        return AuthResult()


class SupabaseAuth(IdentityProvider):
    """Identity provider backed by Supabase GoTrue."""

    def __init__(self, url: str, anon_key: str, session: Optional[requests.Session] = None,
                 timeout: float = 10.0):
        super().__init__()
        self.auth_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token: Optional[str] = None

    def _post(self, path: str, payload: Optional[dict] = None, params: Optional[dict] = None):
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        response = self.session.post(
            f"{self.auth_url}/{path}", json=payload, params=params,
            headers=headers, timeout=self.timeout,
        )
        body = response.json() if response.content else {}
        if not response.ok:
            message = body.get("error_description") or body.get("msg") or body.get("message") \
                or f"HTTP {response.status_code}"
            return None, message
        return body, None

    @staticmethod
    def _user_from(payload: dict) -> User:
        metadata = payload.get("user_metadata") or {}
        return User(id=payload["id"], email=payload.get("email", ""),
                    display_name=metadata.get("display_name", ""))

    def sign_in(self, email, password):
        try:
            body, error = self._post("token", {"email": email, "password": password},
                                     params={"grant_type": "password"})
        except requests.RequestException as exc:
            logger.error("Sign in request failed: %s", exc)
            return AuthResult(error="Could not reach the authentication service")
        if error:
            return AuthResult(error=error)
        self.access_token = body.get("access_token")
        user = self._user_from(body["user"])
        self._set_user(user)
        return AuthResult(user=user)

    def sign_up(self, email, password, display_name):
        try:
            body, error = self._post("signup", {
                "email": email, "password": password, "data": {"display_name": display_name},
            })
        except requests.RequestException as exc:
            logger.error("Sign up request failed: %s", exc)
            return AuthResult(error="Could not reach the authentication service")
        if error:
            return AuthResult(error=error)
        # Email confirmation projects return the user without a session
        user_payload = body.get("user") or body
        return AuthResult(user=self._user_from(user_payload))

    def sign_out(self):
        # The local session ends even if the server cannot be told
        if self.access_token:
            try:
                _, error = self._post("logout")
                if error:
                    logger.warning("Sign out rejected: %s", error)
            except requests.RequestException as exc:
                logger.warning("Sign out request failed: %s", exc)
        self.access_token = None
        self._set_user(None)
        return AuthResult()
