"""Password hashing and verification using bcrypt directly."""

import bcrypt

# Cost factor for new hashes; existing hashes carry their own.
BCRYPT_ROUNDS = 12

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt.

    bcrypt only looks at the first 72 bytes, so longer inputs are truncated
    explicitly rather than left to the library.
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8")[:72], salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if ``plain_password`` matches ``hashed_password``.

    A malformed stored hash verifies as False instead of raising.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


def is_valid_password(password: str) -> bool:
    return MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH
