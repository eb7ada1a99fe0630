"""Registration and login routes (no credential required)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from shortener.core.container import ServiceContainer, get_container
from shortener.schemas.auth import LoginRequest, MessageResponse, RegisterRequest

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    """Create an account.

    Raises:
        EmailAlreadyRegisteredError: 409 if the email is already registered.
    """
    container.accounts.register(body.email, body.password, body.tier)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=MessageResponse)
def login(
    body: LoginRequest,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> MessageResponse:
    """Exchange email and password for a credential cookie.

    Raises:
        AuthenticationAppError: 401 for an unknown email or wrong password.
    """
    auth_settings = container.settings.auth
    credential = container.accounts.login(body.email, body.password)

    response.set_cookie(
        key=auth_settings.cookie_name,
        value=credential,
        httponly=True,
        secure=auth_settings.cookie_secure,
        samesite="lax",
        max_age=auth_settings.token_ttl_seconds,
    )
    return MessageResponse(message="Login successful")
