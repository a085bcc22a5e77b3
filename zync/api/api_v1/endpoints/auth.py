from fastapi import APIRouter, Depends, status
from typing import Any
from zync.core.auth import get_current_user
from zync.schemas.common import Message
from zync.schemas.user import UserCreate, UserLogin, UserResponse, TokenResponse, RegisterResponse
from zync.services.user_service import create_user, authenticate, issue_token, to_user_response

router = APIRouter()

@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate) -> Any:
    """
    Register a new account and log it in straight away
    """
    user = await create_user(user_in)
    return {
        "message": "Registration successful",
        "access_token": issue_token(user),
        "token_type": "bearer",
        "user": to_user_response(user),
    }

@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin) -> Any:
    user = await authenticate(credentials.email, credentials.password)
    return {
        "access_token": issue_token(user),
        "token_type": "bearer",
        "user": to_user_response(user),
    }

@router.get("/profile", response_model=UserResponse)
async def read_profile(current_user: dict = Depends(get_current_user)) -> Any:
    """
    Get the authenticated user
    """
    return to_user_response(current_user)

@router.post("/logout", response_model=Message)
async def logout(current_user: dict = Depends(get_current_user)) -> Any:
    # Tokens are stateless; the client drops its copy
    return {"message": "Logged out successfully"}
