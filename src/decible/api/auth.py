"""
Bearer-token authentication.

Access tokens are HS256 JWTs issued by the backend's auth service and
signed with its JWT secret. The ``sub`` claim is the user id and the
audience is ``authenticated``.

    get_current_user  -> Optional[UserIdentity]  (None when no token)
    require_user      -> UserIdentity            (401 when no token)

A request without credentials is rejected before the JWT secret is even
consulted, so unauthenticated calls get 401 on any deployment.
"""
from __future__ import annotations

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from decible.api.dependencies import get_config
from decible.core.config import AppConfig, AuthConfig
from decible.core.logging import get_logger, verbose
from decible.services.errors import AuthRequiredError, ConfigurationError
from decible.services.models import UserIdentity

_LOG = get_logger("decible.auth")

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str, config: AuthConfig) -> UserIdentity:
    """
    Verify ``token`` and return the identity it carries.

    Raises:
        ConfigurationError: No JWT secret configured.
        AuthRequiredError: Token invalid, expired or without a subject.
    """
    if not config.jwt_secret:
        raise ConfigurationError(details={"missing": "auth.jwt_secret"})
    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
            audience=config.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        raise AuthRequiredError("Token has expired")
    except jwt.InvalidTokenError as exc:
        verbose(_LOG, "token_rejected", reason=type(exc).__name__)
        raise AuthRequiredError("Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise AuthRequiredError("Invalid token")
    return UserIdentity(id=str(sub), email=payload.get("email"))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    config: AppConfig = Depends(get_config),
) -> Optional[UserIdentity]:
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials, config.auth)


def require_user(user: Optional[UserIdentity] = Depends(get_current_user)) -> UserIdentity:
    if user is None:
        raise AuthRequiredError()
    return user
