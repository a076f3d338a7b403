"""Login, logout and the session dependency every other router relies on."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Response, Cookie, Depends
from pydantic import BaseModel

from ..config import get_config
from ..services.auth import get_auth_service, Session


router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_COOKIE = "kibble_session"


class LoginRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    username: str
    email: str
    role: str
    is_admin: bool


def _user(session: Session) -> UserResponse:
    return UserResponse(
        username=session.username,
        email=session.email,
        role=session.role,
        is_admin=session.is_admin,
    )


async def get_current_session(
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE)
) -> Session:
    """Resolve the caller's session or fail with 401."""
    session = get_auth_service().get_session(session_id) if session_id else None
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session


@router.post("/login", response_model=UserResponse)
async def login(request: LoginRequest, response: Response):
    session = get_auth_service().authenticate(request.username, request.password)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    # No max_age: the cookie ends with the browser session
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.session_id,
        httponly=True,
        secure=get_config().session.secure_cookies,
        samesite="lax",
    )
    return _user(session)


@router.post("/logout")
async def logout(
    response: Response,
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
):
    if session_id:
        get_auth_service().invalidate_session(session_id)
    response.delete_cookie(key=SESSION_COOKIE)
    return {"success": True}


@router.get("/me", response_model=UserResponse)
async def me(session: Session = Depends(get_current_session)):
    return _user(session)
