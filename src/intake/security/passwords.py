"""
Password hashing.

Services depend on the `Hasher` protocol so tests can inject a cheap instance
(`BcryptHasher(rounds=4)`) without touching the service code.
"""
from typing import Protocol

import bcrypt


class Hasher(Protocol):
    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, digest: str) -> bool: ...


class BcryptHasher:
    """One-way salted hashing with bcrypt."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # malformed stored digest
            return False
