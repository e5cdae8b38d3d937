"""
Password hashing for editor accounts (bcrypt via passlib).
"""

from passlib.context import CryptContext


class PasswordHasher:
    """Hash and verify editor passwords."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """True when ``plain_password`` matches ``hashed_password``."""
        return self._context.verify(plain_password, hashed_password)

    def needs_rehash(self, hashed_password: str) -> bool:
        """True when the hash was made with outdated parameters."""
        return self._context.needs_update(hashed_password)


# Singleton instance
password_hasher = PasswordHasher()
