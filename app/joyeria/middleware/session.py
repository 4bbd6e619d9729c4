from jose import JWTError
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.joyeria.core.security import bearer_token, decode_staff_claims


class StaffSessionMiddleware(BaseHTTPMiddleware):
    """Puts the clerk behind the bearer token on request.state for request logs.

    Access control stays in the route dependencies; an unreadable token just leaves the fields empty.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.user_id = None
        request.state.username = None
        request.state.role = None

        token = bearer_token(request.headers.get("Authorization"))
        if token is not None:
            try:
                claims = decode_staff_claims(token)
            except (JWTError, ValidationError):
                claims = None
            if claims is not None:
                request.state.user_id = str(claims.sub)
                request.state.username = claims.username
                request.state.role = claims.role.value
        return await call_next(request)
