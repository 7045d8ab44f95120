"""
用户认证API
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.db.database import get_db
from dataroom.schemas.user import SignupRequest, LoginRequest, AuthResponse, UserResponse
from dataroom.services.auth_service import AuthService, AuthError, DuplicateEmailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_data: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    用户注册
    """
    if not signup_data.name or not signup_data.email or not signup_data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name, email, and password are required"
        )

    if not AuthService.is_valid_email(signup_data.email.strip()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid email address"
        )

    try:
        user, token = await AuthService.signup(
            db,
            name=signup_data.name,
            email=signup_data.email,
            password=signup_data.password,
            age=signup_data.age
        )
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    return AuthResponse(
        message="User created successfully",
        user=UserResponse.from_model(user),
        token=token
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    用户登录
    """
    if not login_data.email or not login_data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required"
        )

    try:
        user, token = await AuthService.authenticate(db, login_data.email, login_data.password)
    except AuthError:
        logger.warning(f"Failed login attempt for {login_data.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    return AuthResponse(
        message="Login successful",
        user=UserResponse.from_model(user),
        token=token
    )
