"""Random codes, secret tokens and their one-way hashes."""

import hashlib
import secrets

# No 0/O or 1/I so codes survive being read aloud at the rink
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 8
TOKEN_BYTES = 32


def random_code(length: int = JOIN_CODE_LENGTH) -> str:
    """Generate a join code from the 32-symbol alphabet."""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def generate_token() -> str:
    """Generate a URL-safe single-use secret carrying TOKEN_BYTES of randomness."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token; only the digest is ever persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
