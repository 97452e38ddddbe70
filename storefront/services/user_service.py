# storefront/services/user_service.py
import logging
from datetime import datetime, timezone

from sqlmodel import Session

from storefront.core import passwords
from storefront.core.errors import NotFound, Unauthorized
from storefront.models.user import User
from storefront.repositories.user_repo import UserStore
from storefront.schemas.user import Role, UserCreateData, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    User directory.

    Responsibilities:
      - hash credentials (bcrypt) and verify them
      - enforce email uniqueness (via the store)
      - single-field mutations with updated_at bump
      - map unknown ids to NotFound instead of silent False
    """

    def __init__(self, repo: UserStore):
        self.repo = repo

    # ----- Credentials -----

    @staticmethod
    def verify_password(plain: str, hashed: str) -> bool:
        """True iff `hashed` was produced from `plain`. Never raises."""
        return passwords.verify_password(plain, hashed)

    def create(self, session: Session, data: UserCreateData) -> User:
        """
        Register a new account.

        Raises:
            DuplicateEmail: if the email is already present.
        """
        email = data.email.lower()
        user = User(
            email=email,
            password_hash=passwords.hash_password(data.password),
            name=data.name or email.split("@", 1)[0],
            phone=data.phone,
            address=data.address,
            date_of_birth=data.date_of_birth,
            roles=data.roles,
        )
        user = self.repo.create(session, user)
        logger.info("Created user %s (%s)", user.id, user.roles)
        return user

    def authenticate(self, session: Session, email: str, password: str) -> User:
        """
        Raises:
            Unauthorized: unknown email or wrong password (same message).
        """
        user = self.repo.get_by_email(session, email.lower())
        if user is None or not self.verify_password(password, user.password_hash):
            raise Unauthorized("Incorrect email or password")
        return user

    # ----- Lookups -----

    def get_user(self, session: Session, user_id: int) -> User:
        """
        Raises:
            NotFound: if no user has this id.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def list_users(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        return self.repo.list_users(session, skip=skip, limit=limit)

    # ----- Mutations -----

    def _touch_and_save(self, session: Session, user: User) -> User:
        user.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, user)

    def change_password(self, session: Session, user_id: int, new_password: str) -> User:
        user = self.get_user(session, user_id)
        user.password_hash = passwords.hash_password(new_password)
        return self._touch_and_save(session, user)

    def change_own_password(
        self,
        session: Session,
        user: User,
        current_password: str,
        new_password: str,
    ) -> User:
        """
        Self-service password change; requires the current password.

        Raises:
            Unauthorized: if the current password is wrong.
        """
        if not self.verify_password(current_password, user.password_hash):
            raise Unauthorized("Current password is incorrect")
        return self.change_password(session, user.id, new_password)

    def update_role(self, session: Session, user_id: int, role: Role) -> User:
        user = self.get_user(session, user_id)
        user.roles = role
        return self._touch_and_save(session, user)

    def update_profile(self, session: Session, user: User, payload: UserUpdate) -> User:
        """Apply only the fields present in the payload."""
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        return self._touch_and_save(session, user)

    # ----- Bootstrap -----

    def ensure_default_admin(self, session: Session, email: str, password: str) -> User:
        """Create the seed admin account if it does not exist yet."""
        existing = self.repo.get_by_email(session, email.lower())
        if existing:
            return existing
        return self.create(
            session,
            UserCreateData(email=email, password=password, name="Admin User", roles="Admin"),
        )
