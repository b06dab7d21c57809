import asyncio
import hashlib
import hmac
import secrets
from typing import Optional

DEFAULT_PASSWORD_LENGTH = 15
PBKDF2_ITERATIONS = 200_000

# U+0021 (!) through U+007E (~)
PASSWORD_ALPHABET = "".join(chr(c) for c in range(0x21, 0x7F))

_SCHEME = b"pbkdf2_sha256"


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """Hash a password with PBKDF2-SHA256 and a random salt.

    The result is opaque to callers: ``scheme$iterations$salt$digest``.
    """
    salt = secrets.token_hex(16).encode("ascii")
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return b"$".join((_SCHEME, str(iterations).encode("ascii"), salt, dk.hex().encode("ascii")))


def verify_password(password: str, hashed: bytes) -> bool:
    """Return True if ``password`` matches ``hashed``; unparseable hashes never match."""
    try:
        scheme, iterations, salt, digest = bytes(hashed).split(b"$")
        if scheme != _SCHEME:
            return False
        dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations))
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(dk.hex().encode("ascii"), digest)


async def hash_password_async(password: str) -> bytes:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, hash_password, password)


async def verify_password_async(password: str, hashed: bytes) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, verify_password, password, hashed)


def generate_password(length: Optional[int] = None) -> str:
    length = DEFAULT_PASSWORD_LENGTH if length is None else length
    if length < 1:
        raise ValueError("password length must be positive")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))

