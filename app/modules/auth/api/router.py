"""Authentication router for the admin panel session cookie"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.db.session import get_db
from app.deps import get_current_session, get_session_token, get_settings, get_token_registry
from app.modules.auth.schemas.auth import (
    AuthSession,
    LoginRequest,
    LoginResponse,
    LoginUser,
    LogoutResponse,
    SessionResponse,
)
from app.modules.auth.services.auth import login, logout

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login_user(
    *,
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token_registry=Depends(get_token_registry),
) -> Any:
    """Check admin credentials and set the session cookie"""
    user, session = login(
        db,
        credentials.email,
        credentials.password,
        settings,
        token_registry=token_registry,
        user_agent=request.headers.get("user-agent"),
        ip=request.client.host if request.client else None,
    )

    body = LoginResponse(user=LoginUser(id=user.id, email=user.email, name=user.name, role=user.role))
    response = JSONResponse(content=body.model_dump(mode="json"))
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=session.session_token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout", response_model=LogoutResponse)
def logout_user(
    *,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(get_session_token),
    settings: Settings = Depends(get_settings),
    token_registry=Depends(get_token_registry),
) -> Any:
    """Close the current session and clear the cookie"""
    logout(db, token, token_registry=token_registry)

    body = LogoutResponse(message="Logged out successfully")
    response = JSONResponse(content=body.model_dump())
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return response


@router.get("/session", response_model=SessionResponse)
def read_session(auth: AuthSession = Depends(get_current_session)) -> Any:
    """Return the user behind the current session"""
    return SessionResponse(user=auth.user)
