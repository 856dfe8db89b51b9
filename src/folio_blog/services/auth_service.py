"""
# Auth Service

Single-admin authentication.

- **Passwords** are hashed with bcrypt through passlib's `CryptContext`; verification is
  a constant-time hash comparison.
- **Tokens** are HS256 JWTs (python-jose) carrying `userId` and `username`, valid for
  `ACCESS_TOKEN_EXPIRE_DAYS` (7 days). There is no revocation list: a token stays valid
  until it expires, even after a password change.
- **Projection**: user documents leave this module as `{id, username, avatar, role}`;
  the password hash is never returned.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from bson import ObjectId
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from folio_blog.config import settings
from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.services.resource_store import utcnow
from folio_blog.utils.errors import InvalidCredentials, Unauthorized, ValidationError

logger = get_logger(prefix="[AuthService]")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign `data` into a JWT with an `exp` claim."""
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY.get_secret_value(), algorithm=settings.ALGORITHM)


def decode_access_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Verify a token's signature and expiry.

    Raises:
        Unauthorized: If the token is missing, malformed, expired or forged.
    """
    if not token:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY.get_secret_value(), algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    if not payload.get("userId"):
        raise Unauthorized("Invalid token payload")
    return payload


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(user["_id"]),
        "username": user["username"],
        "avatar": user.get("avatar"),
        "role": user.get("role", "admin"),
    }


class AuthService:
    @property
    def users(self):
        return db_manager.get_collection("users")

    async def get_user(self, user_id: Any) -> Optional[Dict[str, Any]]:
        if not ObjectId.is_valid(str(user_id)):
            return None
        return await self.users.find_one({"_id": ObjectId(str(user_id))})

    async def login(self, username: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate the admin.

        Returns:
            `{token, user}` with the redacted user projection.

        Raises:
            ValidationError: If username or password is missing.
            InvalidCredentials: If the user does not exist or the password is wrong.
        """
        if not username or not password:
            raise ValidationError("Username and password are required")
        user = await self.users.find_one({"username": username})
        if user is None or not verify_password(password, user.get("password", "")):
            logger.warning("Failed login attempt for username %r", username)
            raise InvalidCredentials()
        token = create_access_token({"userId": str(user["_id"]), "username": user["username"]})
        logger.info("User %s logged in", user["username"])
        return {"token": token, "user": public_user(user)}

    async def resolve_token(self, token: Optional[str]) -> Dict[str, Any]:
        """Return the public projection of the user a token was issued to."""
        payload = decode_access_token(token)
        user = await self.get_user(payload["userId"])
        if user is None:
            raise Unauthorized("User no longer exists")
        return public_user(user)

    async def change_password(self, user_id: Any, old_password: Optional[str], new_password: Optional[str]):
        """
        Rotate the password after re-verifying the current one.

        Raises:
            ValidationError: If a field is missing or the new password is too short.
            InvalidCredentials: If `old_password` does not match.
        """
        if not old_password or not new_password:
            raise ValidationError("Old and new passwords are required")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
        user = await self.get_user(user_id)
        if user is None:
            raise Unauthorized("User no longer exists")
        if not verify_password(old_password, user.get("password", "")):
            raise InvalidCredentials("Current password is incorrect")
        await self.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password": get_password_hash(new_password), "updatedAt": utcnow()}},
        )
        logger.info("Password changed for user %s", user["username"])

    async def ensure_admin(self, username: str, password: str) -> bool:
        """Create the admin user if it does not exist; returns whether it was created."""
        if await self.users.find_one({"username": username}):
            logger.info("Admin user %s already exists", username)
            return False
        now = utcnow()
        try:
            await self.users.insert_one(
                {
                    "username": username,
                    "password": get_password_hash(password),
                    "avatar": None,
                    "role": "admin",
                    "createdAt": now,
                    "updatedAt": now,
                }
            )
        except DuplicateKeyError:
            return False
        logger.info("Created admin user %s", username)
        return True


auth_service = AuthService()
