"""HTTP route definitions for the authentication service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, EmailStr, Field

from schemas import Account

from ..domain.contracts import RegistrationInput
from ..domain.outcomes import AuthResult
from ..domain.service import AuthenticationService
from ..domain.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class RegistrationRequest(BaseModel):
    """Payload accepted when signing up a new account."""

    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=1, repr=False)
    city: str = ""
    country: str = ""


class LoginRequest(BaseModel):
    username: str
    password: str = Field(..., repr=False)


class UniversalResponse(BaseModel):
    """Envelope returned by register and activate."""

    error: bool
    message: str


class LoginResponse(BaseModel):
    """Login envelope; ``token`` is ``null`` whenever ``error`` is true."""

    error: bool
    message: str
    token: str | None = None


def _account_from_domain(user: User) -> Account:
    return Account(
        username=user.username,
        email=user.email,
        city=user.address.city,
        country=user.address.country,
        created_at=user.created_at,
        enabled=user.enabled,
    )


def get_service(request: Request) -> AuthenticationService:
    """Resolve the `AuthenticationService` stored on the FastAPI application state."""
    service: AuthenticationService = request.app.state.auth_service
    return service


def _status_for(result: AuthResult) -> int:
    return status.HTTP_400_BAD_REQUEST if result.error else status.HTTP_200_OK


@router.post("/register", response_model=UniversalResponse)
def register(
    payload: RegistrationRequest,
    response: Response,
    service: AuthenticationService = Depends(get_service),
) -> UniversalResponse:
    """Register an account and e-mail its activation link."""
    result = service.register(
        RegistrationInput(
            username=payload.username,
            email=payload.email,
            password=payload.password,
            city=payload.city,
            country=payload.country,
        )
    )
    response.status_code = _status_for(result)
    return UniversalResponse(error=result.error, message=result.message)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    service: AuthenticationService = Depends(get_service),
) -> LoginResponse:
    """Exchange credentials for a bearer session token."""
    result = service.login(payload.username, payload.password)
    response.status_code = _status_for(result)
    return LoginResponse(error=result.error, message=result.message, token=result.token)


@router.get("/activate", response_model=UniversalResponse)
def activate(
    response: Response,
    token: str = Query(..., min_length=1),
    service: AuthenticationService = Depends(get_service),
) -> UniversalResponse:
    """Activate the account referenced by the e-mailed token."""
    result = service.activate(token)
    response.status_code = _status_for(result)
    return UniversalResponse(error=result.error, message=result.message)


def current_username(
    authorization: str | None = Header(default=None),
    service: AuthenticationService = Depends(get_service),
) -> str:
    username = service.authenticate_session(authorization)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid session token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return username


@router.get("/me", response_model=Account)
def me(
    username: str = Depends(current_username),
    service: AuthenticationService = Depends(get_service),
) -> Account:
    """Return the profile of the account holding the session token."""
    user = service.get_account(username)
    if user is None:
        logger.warning("session token for %s references a missing account", username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid session token")
    return _account_from_domain(user)
