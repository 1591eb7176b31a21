"""Authentication API routes."""

from fastapi import APIRouter, status

from server.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse
)
from server.schemas.common import ErrorResponse
from server.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def register(request: RegisterRequest):
    """
    Create an account and issue its first API key.

    Returns:
        - api_key: Bearer token prefixed with 'notes_'
        - user_id: UUID of the new account

    Raises:
        - 400: Username already taken
    """
    api_key, user_id = AuthService().register_user(request.username, request.password)
    return RegisterResponse(api_key=api_key, user_id=user_id)


@router.post("/login", response_model=LoginResponse, responses={401: {"model": ErrorResponse}})
async def login(request: LoginRequest):
    """
    Exchange credentials for a fresh API key. The previous key stops working.

    Raises:
        - 401: Unknown username or wrong password
    """
    api_key = AuthService().login_user(request.username, request.password)
    return LoginResponse(api_key=api_key)
