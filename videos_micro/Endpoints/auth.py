from datetime import timedelta, datetime
from fastapi import APIRouter, Depends, status
from passlib.context import CryptContext
from jose import jwt
from sqlalchemy.exc import IntegrityError
import logging

from db.connection import db_dependency
from db.verify_token import current_user_dependency
from models.users_models import User, Role
from schemas.schemas import CreateUserRequest, UserLogin, AuthResponse, CurrentUserResponse
from schemas.return_schemas import ReturnUser
from utils.errors import APIError, BadRequest, Unauthorized, Conflict, Internal
from utils.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Password hashing
bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Same body for unknown email and wrong password
INVALID_CREDENTIALS = ("Authentication failed", "Invalid email or password")


def hash_password(password: str) -> str:
    return bcrypt_context.hash(password)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def authenticate_user(email: str, password: str, db):
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user:
        return False
    if not bcrypt_context.verify(password, user.password_hash):
        return False
    return user


# Token creation
def create_access_token(user: User, settings: Settings) -> str:
    encode = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
    }
    expires = datetime.utcnow() + timedelta(days=settings.token_expire_days)
    encode.update({"exp": expires})
    return jwt.encode(encode, settings.secret_key, algorithm=settings.algorithm)


def create_return_user(user: User) -> ReturnUser:
    return ReturnUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role.value,
        created_at=user.created_at,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_request: CreateUserRequest,
    db: db_dependency,
    settings: Settings = Depends(get_settings),
):
    """
    Register a new consumer account
    """
    name = (user_request.name or "").strip()
    if not name or not user_request.email or not user_request.password:
        raise BadRequest("Missing required fields", "Name, email, and password are required")

    email = normalize_email(user_request.email)

    try:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            raise Conflict("User already exists", "An account with this email already exists")

        # Role is never taken from the request
        new_user = User(
            name=name,
            email=email,
            password_hash=hash_password(user_request.password),
            role=Role.consumer,
        )
        db.add(new_user)
        db.commit()
        db.refresh(new_user)

        logger.info(f"✅ User registered: id={new_user.id} role={new_user.role.value}")

        return AuthResponse(
            message="User registered successfully",
            user=create_return_user(new_user),
            token=create_access_token(new_user, settings),
        )
    except APIError:
        raise
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        db.rollback()
        raise Conflict("User already exists", "An account with this email already exists")
    except Exception as e:
        db.rollback()
        logger.exception("❌ Registration error")
        raise Internal.from_exception("Registration failed", e)


@router.post("/login", response_model=AuthResponse)
async def login(
    user_login: UserLogin,
    db: db_dependency,
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate user and provide access token
    """
    if not user_login.email or not user_login.password:
        raise BadRequest("Missing credentials", "Email and password are required")

    try:
        user = authenticate_user(user_login.email, user_login.password, db)
        if not user:
            raise Unauthorized(*INVALID_CREDENTIALS)

        logger.info(f"User logged in: id={user.id} role={user.role.value}")

        return AuthResponse(
            message="Login successful",
            user=create_return_user(user),
            token=create_access_token(user, settings),
        )
    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Login error")
        raise Internal.from_exception("Login failed", e)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(current_user: current_user_dependency):
    """
    Get current user information
    """
    try:
        return CurrentUserResponse(user=create_return_user(current_user))
    except APIError:
        raise
    except Exception as e:
        logger.exception("❌ Get current user error")
        raise Internal.from_exception("Failed to retrieve user", e)
