"""
Bearer Token Authentication

Shoppers authenticate with HS256 JWTs issued by ``/api/v2/auth/login``.
Routes opt in through the ``require_user`` / ``optional_user`` dependencies.
"""

import os
import time
import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 3600


def get_jwt_secret() -> str:
    return os.getenv("MOCK_JWT_SECRET", "dev-secret-change-me-before-deploying")


@dataclass
class Shopper:
    """Authenticated shopper resolved from a bearer token"""
    user_id: str
    name: str = ""
    email: str = ""


def issue_token(
    user_id: str,
    name: str = "",
    email: str = "",
    expires_in: int = TOKEN_TTL_SECONDS,
) -> str:
    """Issue a signed shopper token"""
    now = int(time.time())
    payload = {
        "sub": user_id,
        "name": name,
        "email": email,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Shopper:
    """
    Verify a shopper token.

    Raises:
        jwt.InvalidTokenError: bad signature, malformed or expired token
    """
    claims = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    return Shopper(
        user_id=str(claims["sub"]),
        name=claims.get("name", ""),
        email=claims.get("email", ""),
    )


class BearerDependency:
    """
    FastAPI dependency resolving the shopper from the Authorization header.
    """

    def __init__(self, required: bool = True):
        """
        Args:
            required: If True, reject requests without a valid bearer token
        """
        self.required = required

    async def __call__(self, authorization: Optional[str] = Header(None)) -> Optional[Shopper]:
        if not authorization or not authorization.lower().startswith("bearer "):
            if self.required:
                raise HTTPException(status_code=401, detail="Authentication required")
            return None

        try:
            return decode_token(authorization[7:].strip())
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise HTTPException(status_code=401, detail="Invalid token")


# Dependency instances
require_user = BearerDependency(required=True)
optional_user = BearerDependency(required=False)
