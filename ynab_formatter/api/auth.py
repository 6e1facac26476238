"""
Purpose:
- /api/auth: POST logs in (sets the signed session cookie), DELETE logs out.
"""

from typing import Optional

from fastapi import APIRouter, Request

from ..schemas import LoginRequest
from ..services.auth import verify_credentials
from .common import error_response

router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_KEY = "logged_in"


@router.post("")
def login(request: Request, payload: Optional[LoginRequest] = None):
    # sync route: bcrypt runs in FastAPI's threadpool, off the event loop
    if payload is None or not payload.username or not payload.password:
        return error_response(400, "Username and password are required")

    if not verify_credentials(payload.username, payload.password):
        return error_response(401, "Invalid username or password")

    request.session[SESSION_KEY] = True
    return {"ok": True}


@router.delete("")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}
