"""FastAPI dependencies resolving the caller's identity.

The authenticator is read from ``app.state`` so applications (and tests)
choose it when they build the app.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from identity.auth import Authenticator, Identity
from ordering.exceptions import Forbidden, Unauthorized

bearer = HTTPBearer(auto_error=False)


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def optional_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Identity | None:
    """The caller's identity when a valid bearer token is sent, else None.

    Guests may use the cart with a session id, so a bad token is treated
    like no token here.
    """
    if credentials is None:
        return None
    try:
        return authenticator.authenticate(credentials.credentials)
    except Unauthorized:
        return None


def current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Identity:
    if credentials is None:
        raise Unauthorized("No token provided")
    return authenticator.authenticate(credentials.credentials)


def admin_identity(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_admin:
        raise Forbidden("Access denied. Admin only.")
    return identity
