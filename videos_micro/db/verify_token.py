from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from typing import Annotated, Optional
import logging

from db.connection import get_db
from models.users_models import User, Role
from utils.errors import Unauthorized, Forbidden
from utils.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# auto_error is off so a missing header gets our own 401 body
oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def verify_token(
    token: Annotated[Optional[str], Depends(oauth2_bearer)],
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Verify the bearer token and return the User it was issued for
    """
    if not token:
        raise Unauthorized("Access denied. No token provided.")

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise Unauthorized("Invalid or expired token.")

    user_id = payload.get("id")
    if user_id is None:
        raise Unauthorized("Invalid or expired token.")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("Invalid or expired token.", "User no longer exists")

    return user


current_user_dependency = Annotated[User, Depends(verify_token)]


def authorize_roles(*roles: Role):
    """
    Dependency factory: passes the authenticated user through when their
    role is one of `roles`, otherwise 403.
    """
    allowed = frozenset(roles)

    async def role_checker(current_user: current_user_dependency) -> User:
        if current_user.role not in allowed:
            logger.warning(
                f"⚠️ Role check failed: user={current_user.id} role={current_user.role.value} "
                f"allowed={sorted(r.value for r in allowed)}"
            )
            raise Forbidden("Access denied. Unauthorized role.")
        return current_user

    return role_checker


admin_dependency = Annotated[User, Depends(authorize_roles(Role.admin))]
consumer_dependency = Annotated[User, Depends(authorize_roles(Role.consumer))]
