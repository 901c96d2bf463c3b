# publisher/repositories/user_repository.py
import logging
from typing import Optional, Dict, Any
from werkzeug.security import generate_password_hash, check_password_hash
from publisher.errors import DuplicateNameError, ValidationError
from publisher.models.entities import User, new_id
from publisher.repositories.base import InMemoryRepository, reject_unknown_fields, require_text

logger = logging.getLogger(__name__)

ROLES = ("admin", "user")


class UserRepository(InMemoryRepository[User]):
    """Dummy in-memory user store with hashed passwords."""

    entity_name = "User"

    async def add_user(self, username: str, password: str, role: str,
                       entity_id: Optional[str] = None) -> User:
        """Add a new user with hashed password."""
        if not username or not password or not role:
            raise ValidationError("Missing required fields")
        username = require_text(username, "Username")
        role = role.strip().lower()
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")

        password_hash = generate_password_hash(password, method='pbkdf2:sha256:60000')

        async with self._lock:
            if self._find_by_username(username):
                logger.warning(f"User '{username}' already exists")
                raise DuplicateNameError("Username already exists")
            now = self._clock()
            user = User(
                id=entity_id or new_id(),
                username=username,
                role=role,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self._records[user.id] = user
        logger.info(f"User '{username}' added with ID {user.id} (role={role})")
        return user.model_copy()

    async def verify_user_credentials(self, username: str, password: str) -> Optional[User]:
        """Verify user credentials."""
        user = self._find_by_username(username)
        if user and check_password_hash(user.password_hash, password or ""):
            return user.model_copy()
        return None

    async def update(self, user_id: str, fields: Dict[str, Any]) -> User:
        reject_unknown_fields(fields, ("role",))
        async with self._lock:
            current = self._require(user_id)
            changes: Dict[str, Any] = {"updated_at": self._clock()}
            if "role" in fields:
                role = (fields["role"] or "").strip().lower()
                if role not in ROLES:
                    raise ValidationError(f"Role must be one of: {', '.join(ROLES)}")
                changes["role"] = role
            updated = current.model_copy(update=changes)
            self._records[user_id] = updated
        return updated.model_copy()

    def _find_by_username(self, username: str) -> Optional[User]:
        for record in self._records.values():
            if record.username == username:
                return record
        return None

    def _matches(self, user: User, text: str) -> bool:
        return text in user.username.lower()
