from fastapi import Depends, HTTPException, Request, status

from rewards.core.config import Settings
from rewards.schemas.users import UserWithTokens


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(request: Request) -> UserWithTokens:
    """User loaded by SlackSessionMiddleware, 401 when there is none."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def require_admin(user: UserWithTokens = Depends(get_current_user)) -> UserWithTokens:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return user
