"""Shared dependencies for Habitta web routes.

Caller identity is deliberately minimal: a trusted internal call presents the
shared secret, everyone else presents a user id and is scoped to their homes.
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from fastapi import Header, HTTPException

from habitta.config import get_config


@dataclass(frozen=True)
class Caller:
    user_id: str | None
    internal: bool = False


def get_caller(
    x_internal_secret: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
) -> Caller:
    """Resolve the calling identity from request headers.

    Raises:
        HTTPException: 401 if neither a valid internal secret nor a user id is present
    """
    secret = get_config().api.internal_secret
    if secret and x_internal_secret and hmac.compare_digest(secret, x_internal_secret):
        return Caller(user_id=None, internal=True)
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return Caller(user_id=x_user_id)
