"""Account registration and per-client login binding.

A client id is bound to at most one username (``auth_username`` in the
client's state record). This is identification only; there is no
authorization model beyond the opaque client id.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
import secrets

from engine.errors import InvalidCredentials, NotAuthenticated, UsernameTaken, ValidationError
from engine.models import UserAccount

from dashboard.storage import ClientStateStore, UserStore

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

_PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: str | None = None) -> str:
    """Salted PBKDF2-SHA256 hash in ``salt$hex`` form."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    salt, _, _ = password_hash.partition("$")
    return hmac.compare_digest(hash_password(password, salt), password_hash)


def _check_credentials(username: str, password: str) -> None:
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AuthService:
    """Registers accounts and binds them to client ids."""

    def __init__(self, state_store: ClientStateStore, user_store: UserStore):
        self._state = state_store
        self._users = user_store

    async def register(self, client_id: str, username: str, password: str) -> UserAccount:
        """
        Create an account and bind it to the client.

        Raises:
            ValidationError: username/password too short
            UsernameTaken: the username already exists
        """
        _check_credentials(username, password)

        password_hash = await asyncio.to_thread(hash_password, password)
        user = await self._users.create(username, password_hash)
        if user is None:
            raise UsernameTaken(f"Username already exists: {username}")

        await self._state.update(client_id, "auth_username", user.username)
        logger.info(f"User registered: {user.username} (client={client_id})")
        return user

    async def login(self, client_id: str, username: str, password: str) -> UserAccount:
        """
        Verify credentials and bind the account to the client.

        Raises:
            InvalidCredentials: unknown user or wrong password
        """
        user = await self._users.get_by_username(username)
        if user is None or not await asyncio.to_thread(verify_password, password, user.password_hash):
            raise InvalidCredentials("Invalid credentials")

        await self._state.update(client_id, "auth_username", user.username)
        return user

    async def current_user(self, client_id: str) -> UserAccount:
        """
        Account bound to the client.

        Raises:
            NotAuthenticated: no binding, or the bound account no longer exists
        """
        state = await self._state.get(client_id)
        if not state.auth_username:
            raise NotAuthenticated("Not authenticated")

        user = await self._users.get_by_username(state.auth_username)
        if user is None:
            raise NotAuthenticated("Not authenticated")
        return user

    async def logout(self, client_id: str) -> None:
        await self._state.update(client_id, "auth_username", None)
