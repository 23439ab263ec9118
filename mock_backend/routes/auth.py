"""Shopper login for the mock storefront"""

import uuid
from typing import Optional

from pydantic import BaseModel
from fastapi import APIRouter

from ..security.auth import issue_token
from .envelope import ok

router = APIRouter(prefix="/api/v2/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    """Passwordless login, the mock trusts the email"""
    email: str
    name: str = ""
    user_id: Optional[str] = None


@router.post("/login")
async def login(request: LoginRequest):
    """Issue a bearer token for a shopper"""
    user_id = request.user_id or f"user-{uuid.uuid5(uuid.NAMESPACE_URL, request.email).hex[:8]}"
    token = issue_token(user_id, name=request.name, email=request.email)
    return ok(
        {
            "token": token,
            "user": {"id": user_id, "name": request.name, "email": request.email},
        }
    )
