from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from learnhub.models.user import UserProfile
from learnhub.repos.user_repo import UserRepo

# Argon2 hash strings encode parameters + salt
logger = logging.getLogger(__name__)

_ph = PasswordHasher()


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


# verify_password() must catch Argon2 exceptions and return False
def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


async def authenticate_user(
    repo: UserRepo, email: str, password: str
) -> UserProfile | None:
    """Check credentials held on the profile row.

    Profiles without a password hash (created through a hosted identity
    provider) never authenticate here.
    """
    user = await repo.get_by_email(email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None

    # Upgrade the stored hash when argon2 parameters changed since it was made.
    try:
        if _ph.check_needs_rehash(user.password_hash):  # type: ignore[arg-type]
            await repo.update_password_hash(user.id, _ph.hash(password))
            logger.info("Rehashed password for user=%s", user.id)
    except InvalidHash:
        return None

    return user
