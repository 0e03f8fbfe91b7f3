"""Password hashing for the credential store (bcrypt via passlib)."""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MAX_BCRYPT_BYTES = 72
MIN_PASSWORD_LENGTH = 8


def truncate_password(password: str) -> str:
    """
    Truncate string so that UTF-8 encoded bytes <= 72.
    """
    encoded = password.encode("utf-8")
    if len(encoded) <= MAX_BCRYPT_BYTES:
        return password
    # Drop any multi-byte character cut in half by the byte slice
    return encoded[:MAX_BCRYPT_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(truncate_password(password))


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a password against its stored hash; a missing hash never matches."""
    if not hashed_password:
        return False
    return pwd_context.verify(truncate_password(plain_password), hashed_password)
