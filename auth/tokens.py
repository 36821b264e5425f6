"""
auth/tokens.py -- Session tokens, password hashing, and credential checks.

Security design decisions:
  JWT: python-jose with HS256. TokenService signs {sub, iat, exp, jti} with
       the server-wide SECRET_KEY. sub is the account id; jti is random so two
       tokens issued within the same second are still distinct. verify()
       raises InvalidTokenError on any failure (bad signature, malformed,
       expired, missing subject). It does NOT check that the account still
       exists or is active -- auth/dependencies.py does that on every request.
       There is no server-side session table; a token simply expires.

  Passwords: bcrypt used directly (no passlib wrapper). The cost factor comes
       from Settings.bcrypt_rounds and every hash gets its own random salt from
       bcrypt.gensalt(). The _DUMMY_HASH constant enables timing equalization
       in authenticate_user() so response time does not reveal whether an
       email is registered.

  Generated passwords: secrets.choice over a mixed alphabet. Returned to the
       admin exactly once; only the hash is stored.

Layer rule: no imports from api/, resources/, or interns/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import Settings

if TYPE_CHECKING:
    from auth.models import Account
    from auth.store import AccountStore


_ALGORITHM = "HS256"

_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()_+-="


class InvalidTokenError(Exception):
    """Raised by TokenService.verify() for any token that must not be trusted."""


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed, time-bounded session tokens.

    Stateless: the only inputs are the secret, the configured lifetime and the
    clock. One instance is built per application from Settings and kept on
    app.state.tokens.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.secret_key
        self._expire_seconds = settings.jwt_expire_seconds

    @property
    def expire_seconds(self) -> int:
        return self._expire_seconds

    def issue(self, account_id: int) -> str:
        """Encode a signed JWT whose subject is account_id."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(account_id),
            "iat": now,
            "exp": now + timedelta(seconds=self._expire_seconds),
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> int:
        """Return the account id carried by token.

        Raises InvalidTokenError if the signature is invalid, the token is
        malformed or expired, or the subject is not an account id.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError as exc:
            raise InvalidTokenError(str(exc)) from exc
        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.isdigit():
            raise InvalidTokenError("token subject is not an account id")
        return int(sub)


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are silently truncated by bcrypt. The API
    layer caps password fields at 128 characters, which keeps ordinary input
    well below that threshold.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def generate_password(length: int = 12) -> str:
    """Return a random password drawn from letters, digits and symbols.

    Guarantees at least one lowercase letter, one uppercase letter and one
    digit so the result satisfies the same policy a user-chosen password must.
    """
    if length < 3:
        raise ValueError("generated passwords need at least 3 characters")
    while True:
        candidate = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in candidate)
            and any(c.isupper() for c in candidate)
            and any(c.isdigit() for c in candidate)
        ):
            return candidate


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Always call verify_password() even when the
# email does not exist.
_DUMMY_HASH: str = hash_password("dashboard_timing_dummy")


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: AccountStore, email: str, password: str) -> Account | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the Account when the password matches -- including inactive
    accounts, because the login route must answer "deactivated" (403) rather
    than "invalid credentials" (401) in that case. Returns None otherwise.
    """
    account = store.get_by_email(email)
    if account is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, account.hashed_password):
        return None
    return account
