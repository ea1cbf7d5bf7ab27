"""Authentication middleware for admin JWT verification."""

import logging
from collections.abc import Callable

import jwt
from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..config import settings
from ..telemetry import TelemetryEvents, track_event

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware guarding admin endpoints with a bearer JWT.

    Tracking, event ingestion and health endpoints are public: they are hit
    by mail clients and browsers that carry no credentials.

    Sets on request.state:
    - user_id: Admin identifier from the JWT 'sub' claim (or 'dev-admin' in dev mode)
    """

    PROTECTED_PREFIX = "/admin"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request through authentication."""
        if not request.url.path.startswith(self.PROTECTED_PREFIX):
            return await call_next(request)

        # Skip auth if not required (dev mode)
        if not settings.auth_required:
            request.state.user_id = "dev-admin"
            logger.debug("Auth disabled - using dev credentials (user_id=dev-admin)")
            return await call_next(request)

        try:
            request.state.user_id = self._verify_jwt(request)
        except HTTPException as e:
            track_event(
                TelemetryEvents.AUTHENTICATION_FAILED,
                {"endpoint": request.url.path, "detail": e.detail},
            )
            return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        logger.info(f"Authenticated admin request: user_id={request.state.user_id}")
        return await call_next(request)

    def _verify_jwt(self, request: Request) -> str:
        """Verify JWT and return user_id.

        Args:
            request: FastAPI request

        Returns:
            user_id from JWT 'sub' claim

        Raises:
            HTTPException: If JWT missing, invalid, or expired
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            raise HTTPException(
                status_code=401,
                detail="Missing or invalid Authorization header (expected: Bearer <token>)",
            )

        token = auth_header.split(" ", 1)[1]

        try:
            payload = jwt.decode(
                token,
                settings.secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False},
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="JWT expired")
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid JWT")

        # Extract user_id from 'sub' claim
        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="JWT missing 'sub' claim (user_id)")

        # Verify issuer if configured
        if settings.jwt_issuer and payload.get("iss") != settings.jwt_issuer:
            raise HTTPException(status_code=401, detail="Invalid JWT issuer")

        # Verify audience if configured
        if settings.jwt_audience and payload.get("aud") != settings.jwt_audience:
            raise HTTPException(status_code=401, detail="Invalid JWT audience")

        return user_id
