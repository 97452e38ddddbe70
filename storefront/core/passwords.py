# storefront/core/passwords.py
import bcrypt

from storefront.core.config import get_settings


def hash_password(plain: str, rounds: int | None = None) -> str:
    """
    bcrypt-hash a password.

    rounds defaults to settings.BCRYPT_ROUNDS (12 unless overridden).
    """
    if rounds is None:
        rounds = get_settings().BCRYPT_ROUNDS
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """
    Check a password against a bcrypt hash.

    Returns False for a wrong password *and* for a malformed hash;
    never raises.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False
