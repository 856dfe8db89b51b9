"""
# Auth Routes

| Method | Path                         | Auth | Purpose                      |
|--------|------------------------------|------|------------------------------|
| POST   | `/api/auth/login`            | -    | returns `{token, user}`      |
| GET    | `/api/auth/me`               | A    | current user projection      |
| PUT    | `/api/auth/change-password`  | A    | rotate the admin password    |
"""

from fastapi import APIRouter, Depends, HTTPException

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.auth_models import ChangePasswordRequest, LoginRequest, LoginResponse, UserProfile
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.auth_service import auth_service
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse, response_model_by_alias=True)
async def login(request: LoginRequest):
    """
    Exchange admin credentials for a bearer token valid for 7 days.

    Raises:
        HTTPException(400): If username or password is missing.
        HTTPException(401): If the credentials do not match.
    """
    try:
        return await auth_service.login(request.username, request.password)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Login failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to log in")


@router.get("/me", response_model=UserProfile)
async def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.put("/change-password")
async def change_password(request: ChangePasswordRequest, current_user: dict = Depends(get_current_user)):
    """
    Rotate the admin password after re-checking the current one.

    Tokens issued before the change stay valid until they expire.
    """
    try:
        await auth_service.change_password(current_user["id"], request.old_password, request.new_password)
        return {"message": "Password updated successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Password change failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to change password")
