"""Password hashing helpers.

Plain passwords only ever live inside a single request; the database keeps a
salted bcrypt hash with a fixed work factor.

bcrypt only looks at the first 72 bytes of its input, so longer passwords are
refused outright instead of being silently truncated.
"""
from loguru import logger
from passlib.context import CryptContext

BCRYPT_ROUNDS = 10
MAX_PASSWORD_BYTES = 72

password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    if password_too_long(password):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash.

    A mismatch returns ``False``; so does a stored value that is not a hash
    this context understands, and a password bcrypt could not have hashed.
    """
    if password_too_long(password):
        return False
    try:
        return password_context.verify(password, password_hash)
    except ValueError:
        logger.warning("Stored password hash could not be identified")
        return False
