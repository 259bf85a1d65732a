"""
Secret field masking.

The password of a user record is base64-encoded before it is stored or
returned, so it never appears in plaintext in responses or logs. This is a
reversible encoding, not cryptographic protection, and it is not idempotent:
masking twice double-encodes.
"""

import base64

import structlog

from ..models.user import User

logger = structlog.get_logger(__name__)


def mask_secret(value: str) -> str:
    """Encode a secret as base64 of its UTF-8 bytes."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def unmask_secret(value: str) -> str:
    """Decode a secret previously produced by mask_secret."""
    return base64.b64decode(value.encode("ascii")).decode("utf-8")


def mask_user(user: User) -> User:
    """
    Return a copy of the user with its password masked.

    Empty or missing passwords are left as they are. Apply exactly once per
    write, after validation.
    """
    if not user.password:
        logger.debug("Skipping masking of empty secret")
        return user.model_copy()

    masked = user.model_copy(update={"password": mask_secret(user.password)})
    logger.debug("Masked user secret", field="password")
    return masked
