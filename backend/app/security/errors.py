"""Error message sanitisation — keep internal details away from callers."""

from app.config import settings

# Messages that are stable, enumerated and safe to show in any environment.
SAFE_ERROR_MESSAGES: frozenset[str] = frozenset(
    {
        "Invalid credentials",
        "User not found",
        "Email already exists",
        "Invalid YouTube URL",
        "Video already exists in the library",
        "Video not found",
        "Unauthorized",
        "Active subscription required",
        "Admin access required",
        "User already has an active subscription",
        "Too many requests",
    }
)

GENERIC_ERROR_MESSAGE = "Internal server error"


def sanitize_error(error: BaseException) -> str:
    """Return a caller-facing message for ``error``.

    Development configurations get the raw message; otherwise only
    messages in :data:`SAFE_ERROR_MESSAGES` pass through.
    """
    message = str(error)
    if settings.is_development:
        return message or GENERIC_ERROR_MESSAGE
    if message in SAFE_ERROR_MESSAGES:
        return message
    return GENERIC_ERROR_MESSAGE


def sanitize_string(value: str, max_length: int = 255) -> str:
    """Strip null bytes and surrounding whitespace, enforcing ``max_length``.

    Raises:
        ValueError: If the cleaned value is longer than ``max_length``.
    """
    cleaned = value.replace("\0", "").strip()
    if len(cleaned) > max_length:
        raise ValueError(f"Input too long (max {max_length} characters)")
    return cleaned
