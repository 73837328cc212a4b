"""Access token extraction for the subtitle API.

Tokens are issued and verified by the surrounding platform; this module only
locates the credential a request carries so it can be required and passed on.
"""

from abc import ABC, abstractmethod

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer

from shared.models import AuthorizationInfo

# Optional so that query-string api keys are accepted as well
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/token", auto_error=False)

API_KEY_QUERY_PARAM = "api_key"


class AuthorizationContext(ABC):
    @abstractmethod
    def get_authorization_info(self, request: Request) -> AuthorizationInfo:
        """Return the authorization details attached to a request."""


class RequestAuthorizationContext(AuthorizationContext):
    """Read the token from a bearer header or the ``api_key`` query parameter."""

    def get_authorization_info(self, request: Request) -> AuthorizationInfo:
        auth_header = request.headers.get("Authorization", "")
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return AuthorizationInfo(token=credentials.strip())

        for key, value in request.query_params.items():
            if key.lower() == API_KEY_QUERY_PARAM and value:
                return AuthorizationInfo(token=value)
        return AuthorizationInfo(token=None)


auth_context: AuthorizationContext = RequestAuthorizationContext()


async def require_access_token(
    request: Request, bearer: str | None = Depends(oauth2_scheme_optional)
) -> str:
    """Dependency returning the caller's token, 401 when none was presented."""
    info = auth_context.get_authorization_info(request)
    token = info.token or bearer
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token
