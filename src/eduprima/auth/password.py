"""Password hashing utilities.

Learn: users_universal.password_hash holds bcrypt hashes. Accounts
created by the old Node tooling carry "$2a$" / "$2y$" prefixes; the
bcrypt library verifies those as-is, so no upgrade path is needed.
Passwords are truncated to 72 bytes (bcrypt's limit).
"""

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (work factor 12)."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a stored bcrypt hash.

    Returns False for empty or unparsable hashes instead of raising.
    """
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
