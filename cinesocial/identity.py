"""
Caller identity for request handlers.

An upstream authenticator puts the caller's email in a trusted header
(``AUTH_USER_HEADER``, default ``X-User-Email``); handlers resolve it to a
User here.
"""

import os
from typing import Optional

from flask import request

from cinesocial.errors import Unauthenticated
from cinesocial.logging_config import get_logger
from cinesocial.logging_context import set_user_id
from cinesocial.models import User
from cinesocial.services import users

logger = get_logger(__name__)

AUTH_USER_HEADER = os.getenv("AUTH_USER_HEADER", "X-User-Email")


def caller_email() -> Optional[str]:
    value = request.headers.get(AUTH_USER_HEADER, "").strip()
    return value or None


def _resolve() -> Optional[User]:
    email = caller_email()
    if email is None:
        return None

    user = users.find_by_email(email)
    if user is None:
        # Authenticated upstream but missing here: a consistency fault
        logger.error("acting_user_missing", email=email, path=request.path)
        return None

    set_user_id(user.id)
    return user


def optional_user() -> Optional[User]:
    """The caller, or None for anonymous or unresolvable callers."""
    return _resolve()


def require_user() -> User:
    """
    The caller.

    Raises:
        Unauthenticated: no identity, or an identity with no matching user
    """
    if caller_email() is None:
        raise Unauthenticated()
    user = _resolve()
    if user is None:
        raise Unauthenticated("Unknown user")
    return user
