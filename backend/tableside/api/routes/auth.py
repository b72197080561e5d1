"""Authentication routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from tableside.core.rate_limit import limiter
from tableside.core.rbac import CurrentUser, UserRole
from tableside.core.security import create_access_token, get_password_hash, verify_password
from tableside.db.session import DbSession
from tableside.models.user import User
from tableside.schemas.auth import LoginRequest, RegisterRequest, Token, UserResponse

logger = logging.getLogger("auth")

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, db: DbSession):
    """Register a merchant. The new owner account is its own tenant."""
    client_ip = request.client.host if request.client else "unknown"

    if db.query(User).filter(User.email == body.email).first():
        logger.warning(f"Registration attempt for existing email: {body.email} from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    user = User(
        email=body.email,
        password_hash=get_password_hash(body.password),
        name=body.name,
        business_name=body.business_name,
        role=UserRole.OWNER,
    )
    db.add(user)
    db.flush()
    user.tenant_id = user.id
    db.commit()
    db.refresh(user)
    logger.info(f"New merchant registered: {user.email} (ID: {user.id}) from IP: {client_ip}")
    return user


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
def login(request: Request, login_request: LoginRequest, db: DbSession):
    """Authenticate user and return JWT token."""
    client_ip = request.client.host if request.client else "unknown"
    user = db.query(User).filter(User.email == login_request.email).first()

    if not user or not verify_password(login_request.password, user.password_hash):
        logger.warning(f"Failed login attempt for email: {login_request.email} from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        logger.warning(f"Login attempt for inactive user: {login_request.email} (ID: {user.id}) from IP: {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is inactive",
        )

    logger.info(f"Successful login: {user.email} (ID: {user.id}, role: {user.role.value}) from IP: {client_ip}")
    token = create_access_token(
        data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "tenant_id": user.tenant_id or user.id,
        }
    )
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
@limiter.limit("60/minute")
def get_current_user_info(request: Request, current_user: CurrentUser, db: DbSession):
    """Get current authenticated user info."""
    user = db.query(User).filter(User.id == current_user.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
