"""Identity resolver: access tokens and the current actor.

Tokens are HS256 JWTs whose `sub` claim is the user id. Anything that fails
to decode, has expired, or names an unknown user resolves to None.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from sqlalchemy.orm import Session, sessionmaker

from worksync.components.workspace.models import User
from worksync.db.database import get_db_session
from worksync.repositories import user_repository
from worksync.services.persistence import user_from_model
from worksync.settings import settings
from worksync.utils import get_logger, is_valid_id

logger = get_logger(__name__)


def trash_marker(actor: str, template: str | None = None) -> str:
    """Soft-delete provenance for an actor, e.g. "Deleted by ann@example.com"."""
    return (template or settings.trash_marker_template).format(actor=actor)


class IdentityResolver:
    """Issues and verifies access tokens and resolves them to users."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ):
        self._session_factory = session_factory
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.jwt_expire_minutes

    def create_access_token(self, user_id: str, expires_delta: timedelta | None = None) -> str:
        """Create a JWT access token.

        Args:
            user_id: Subject of the token
            expires_delta: Optional custom expiration time

        Returns:
            Encoded JWT token string
        """
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        payload = {"sub": user_id, "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str | None:
        """Verify a token and return its user id, or None if invalid."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None
        user_id = payload.get("sub")
        if not is_valid_id(user_id):
            logger.warning("JWT has no valid subject")
            return None
        return user_id

    def resolve(self, token: str) -> User | None:
        """Resolve a token to the authenticated user."""
        user_id = self.verify_token(token)
        if user_id is None:
            return None
        with get_db_session(self._session_factory) as db:
            user = user_repository.get_by_id(db, user_id)
            if user is None:
                logger.warning(f"Token subject {user_id} is not a known user")
                return None
            return user_from_model(user)
