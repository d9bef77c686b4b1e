"""Join codes: short upper-case alphanumeric strings handed out to players."""

import secrets
import string

ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code(length: int = 6) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def normalize_join_code(code: str) -> str:
    """Codes are stored upper-case; lookups are case-insensitive."""
    return code.strip().upper()
