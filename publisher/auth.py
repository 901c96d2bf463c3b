# publisher/auth.py
import jwt
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from fastapi import Depends, HTTPException, Request

from publisher.config import config
from publisher.errors import AuthenticationError, PermissionDeniedError
from publisher.models.entities import User
from publisher.repositories import UserRepository
from publisher.store import store

logger = logging.getLogger(__name__)

TOKEN_ISSUER = 'publisher-service'


class AuthService:
    """Registration, login and JWT handling on top of the dummy user store."""

    def __init__(
        self,
        users: UserRepository,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        token_ttl: Optional[timedelta] = None,
    ):
        self.users = users
        self.JWT_SECRET = secret or config.auth.jwt_secret
        self.JWT_ALGORITHM = algorithm or config.auth.jwt_algorithm
        self.JWT_EXP_DELTA = token_ttl or timedelta(seconds=config.auth.token_ttl_seconds)

    async def register(self, username: str, password: str, role: Optional[str]) -> User:
        user = await self.users.add_user(username, password, role)
        logger.info(f"Registered '{user.username}' as {user.role}")
        return user

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """사용자 로그인 및 JWT 토큰 발급"""
        user = await self.users.verify_user_credentials(username, password)
        if not user:
            logger.warning(f"Login failed for '{username}': Invalid credentials.")
            raise AuthenticationError("Invalid credentials")

        token = self.issue_token(user)
        logger.info(f"Login successful for '{username}'. JWT token created.")
        return {
            "token": token,
            "role": user.role,
            "user": {"id": user.id, "username": user.username},
        }

    def issue_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        jwt_payload = {
            'user_id': user.id,
            'username': user.username,
            'role': user.role,
            'exp': now + self.JWT_EXP_DELTA,
            'iat': now,
            'jti': str(uuid.uuid4()),
            'iss': TOKEN_ISSUER,
        }
        return jwt.encode(jwt_payload, self.JWT_SECRET, algorithm=self.JWT_ALGORITHM)

    def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.JWT_SECRET,
                algorithms=[self.JWT_ALGORITHM],
                issuer=TOKEN_ISSUER,
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token verification failed: Token has expired.")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token verification failed: Invalid token. Reason: {e}")
            raise AuthenticationError("Invalid token")

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to a stored user."""
        payload = self.verify_token(token)
        user = await self.users.get_by_id(payload.get('user_id', ''))
        if user is None:
            raise AuthenticationError("Invalid token payload")
        return user


auth_service = AuthService(store.users)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get('Authorization', '')
    parts = auth_header.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer' or not parts[1]:
        raise HTTPException(status_code=401, detail='Authorization header missing or invalid')
    return parts[1]


async def require_user(request: Request) -> User:
    """Resolve the caller from the Authorization header."""
    return await auth_service.authenticate(_bearer_token(request))


async def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        logger.warning(f"User '{user.username}' attempted an admin-only action")
        raise PermissionDeniedError('Forbidden: admin role required')
    return user
