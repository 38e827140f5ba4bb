from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from storefront.core.config import settings
from storefront.core.exceptions import EmailAlreadyExists, InvalidCredentials, UsernameAlreadyExists
from storefront.core.rate_limiter import limiter
from storefront.core.security import create_access_token, hash_password, verify_password
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.schemas.user import Token, UserCreate, UserLogin, UserResponse
from storefront.utils.response import success

router = APIRouter()
logger = structlog.get_logger()


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Register user account",
    description="""
Creates a new customer account.

Validation:
1. Username must be unique
2. Email must be unique
3. Password is hashed before persistence
""",
    responses={
        201: {"description": "Registration successful"},
        409: {"description": "Username or email already registered"},
        422: {"description": "Validation error"},
    },
)
@limiter.limit("5/minute")
def register(request: Request, user_in: UserCreate, db: Session = Depends(get_db)):
    existing_user = (
        db.query(User)
        .filter(or_(User.username == user_in.username, User.email == user_in.email))
        .first()
    )
    if existing_user:
        if existing_user.username == user_in.username:
            raise UsernameAlreadyExists()
        raise EmailAlreadyExists()

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=hash_password(user_in.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already registered",
        ) from exc
    db.refresh(user)

    logger.info("user_registered", user_id=user.id, username=user.username)
    return success(
        data=UserResponse.model_validate(user).model_dump(),
        message="Registration successful",
    )


@router.post(
    "/login",
    response_model=dict,
    summary="Login user",
    description="Authenticates a user and returns a bearer access token.",
    responses={
        200: {"description": "Login successful"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Account inactive"},
    },
)
@limiter.limit("10/minute")
def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == credentials.username).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("login_failed", username=credentials.username)
        raise InvalidCredentials()

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    access_token = create_access_token(user.id, user.role.value)
    token = Token(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    logger.info("user_logged_in", user_id=user.id)
    return success(data=token.model_dump(), message="Login successful")
