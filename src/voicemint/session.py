"""
Local accounts and the logged-in session.

Users live in a JSON file with salted PBKDF2 password hashes; the current
session is a separate JSON record holding only the user's email.
"""

import hashlib
import hmac
import json
import logging
import os
import secrets
from pathlib import Path

from .errors import AuthError, ValidationError
from .models import User

logger = logging.getLogger("voicemint")

PBKDF2_ITERATIONS = 310_000
SALT_BYTES = 16


def hash_password(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def _write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


class UserStore:
    """Registered users keyed by email."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> list[dict]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, list) else []

    @staticmethod
    def _validate(email: str, password: str) -> str:
        email = email.strip()
        if not email or not password.strip():
            raise ValidationError("Email and password cannot be empty.")
        return email

    def register(self, email: str, password: str) -> User:
        email = self._validate(email, password)
        users = self._load()
        if any(u.get("email") == email for u in users):
            raise AuthError("An account with this email already exists.")
        salt = secrets.token_bytes(SALT_BYTES)
        users.append(
            {
                "email": email,
                "salt": salt.hex(),
                "iterations": PBKDF2_ITERATIONS,
                "password_hash": hash_password(password, salt).hex(),
            }
        )
        _write_json(self.path, users)
        logger.info(f"Registered {email}")
        return User(email=email)

    def authenticate(self, email: str, password: str) -> User:
        email = self._validate(email, password)
        record = next((u for u in self._load() if u.get("email") == email), None)
        if record is None:
            raise AuthError("Invalid email or password.")
        try:
            salt = bytes.fromhex(record["salt"])
            expected = bytes.fromhex(record["password_hash"])
            iterations = int(record.get("iterations", PBKDF2_ITERATIONS))
        except (KeyError, ValueError, TypeError):
            logger.warning(f"Malformed user record for {email}")
            raise AuthError("Invalid email or password.") from None
        if not hmac.compare_digest(hash_password(password, salt, iterations), expected):
            raise AuthError("Invalid email or password.")
        return User(email=email)


class SessionContext:
    """The logged-in user for the lifetime of the application."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.user: User | None = None

    def load(self) -> User | None:
        """Load the persisted session, or None. Corrupt records are discarded."""
        self.user = None
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            self.user = User(email=str(data["email"]))
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse session record: {e}")
            self.path.unlink(missing_ok=True)
        return self.user

    def login(self, user: User) -> None:
        _write_json(self.path, {"email": user.email})
        self.user = user

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        self.user = None

    def require_user(self) -> User:
        if self.user is None:
            raise AuthError("Please log in first (voicemint login).")
        return self.user
