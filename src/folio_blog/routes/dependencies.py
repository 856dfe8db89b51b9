"""
Authentication dependency shared by every router.

Public reads take no dependency; every mutating route declares
`current_user: dict = Depends(get_current_user)`.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from folio_blog.managers.logging_manager import get_logger
from folio_blog.services.auth_service import auth_service
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Auth Dependency]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Resolve the bearer token to the public user projection.

    Raises:
        HTTPException(401): If the token is missing, malformed, expired or its user is gone.
    """
    try:
        return await auth_service.resolve_token(token)
    except BlogError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
