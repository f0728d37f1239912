"""
Accounts and bearer tokens.

Access tokens carry the user id and role. Endpoints depend on
``get_identity`` or ``require_role`` and receive the ``Identity`` the
reservation services consume; only the account endpoints here need the
``User`` row itself. Refresh tokens are single use: every refresh stores a
new one on the user, and logout clears it.
"""

from datetime import datetime, timedelta
from uuid import uuid4

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablebook.config import settings
from tablebook.database import get_db
from tablebook.errors import AuthenticationError, ForbiddenError, ValidationError
from tablebook.models.user import User, UserRole
from tablebook.schemas.auth import Token, RefreshRequest, UserCreate, UserResponse
from tablebook.services.lifecycle import Identity

router = APIRouter()

ACCESS = "access"
REFRESH = "refresh"

passwords = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def hash_password(password: str) -> str:
    return passwords.hash(password)


def _encode(user: User, kind: str, lifetime: timedelta) -> str:
    claims = {"sub": str(user.id), "type": kind, "exp": datetime.utcnow() + lifetime}
    if kind == ACCESS:
        claims["role"] = UserRole(user.role).value
    else:
        # Two refreshes within the same second must still differ
        claims["jti"] = uuid4().hex
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user: User) -> str:
    return _encode(user, ACCESS, timedelta(minutes=settings.access_token_expire_minutes))


def create_refresh_token(user: User) -> str:
    return _encode(user, REFRESH, timedelta(days=settings.refresh_token_expire_days))


def _user_id_from(token: str, kind: str) -> int:
    """Subject of a valid, unexpired token of the given kind"""
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise AuthenticationError(f"Invalid {kind} token")
    if claims.get("type") != kind or not claims.get("sub"):
        raise AuthenticationError(f"Invalid {kind} token")
    return int(claims["sub"])


async def _issue_tokens(db: AsyncSession, user: User) -> Token:
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    user.refresh_token = refresh_token
    await db.commit()

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


async def get_current_user(
    token: str = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, _user_id_from(token, ACCESS))
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid access token")
    return user


async def get_identity(user: User = Depends(get_current_user)) -> Identity:
    """Caller as the booking services see it"""
    return Identity(user_id=user.id, role=UserRole(user.role).value)


def require_role(role: UserRole):
    """Identity of a caller holding the role; admins pass every check"""
    async def check(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in (role.value, UserRole.ADMIN.value):
            raise ForbiddenError("Insufficient permissions")
        return identity
    return check


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """Register a customer or restaurant manager account"""
    if await db.scalar(select(User.id).where(User.email == user_data.email)):
        raise ValidationError("Email is already registered")

    user = User(
        **user_data.model_dump(exclude={"password", "role"}),
        hashed_password=hash_password(user_data.password),
        role=UserRole(user_data.role),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Exchange email and password for an access and refresh token pair"""
    user = await db.scalar(select(User).where(User.email == form_data.username))
    if user is None or not passwords.verify(form_data.password, user.hashed_password):
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    user.last_login = datetime.utcnow()
    return await _issue_tokens(db, user)


@router.post("/refresh", response_model=Token)
async def refresh(
    request: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Rotate the refresh token; the one presented stops working"""
    user = await db.get(User, _user_id_from(request.refresh_token, REFRESH))
    if user is None or not user.is_active or user.refresh_token != request.refresh_token:
        raise AuthenticationError("Invalid refresh token")

    return await _issue_tokens(db, user)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the stored refresh token"""
    user.refresh_token = None
    await db.commit()
    return {"message": "Successfully logged out"}
