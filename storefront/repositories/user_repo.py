# storefront/repositories/user_repo.py
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.core.errors import DuplicateEmail
from storefront.models.user import User


class UserStore(Protocol):
    """
    Capabilities the user directory depends on.

    Any backend (SQL, in-memory for tests, ...) providing these can be
    injected into UserService.
    """

    def create(self, session: Session, user: User) -> User: ...

    def get_by_id(self, session: Session, user_id: int) -> User | None: ...

    def get_by_email(self, session: Session, email: str) -> User | None: ...

    def update(self, session: Session, user: User) -> User: ...

    def list_users(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]: ...


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - Email uniqueness (backed by the unique index)
      - No FastAPI routing, no business logic
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique email, or None if not found."""
        stmt = select(User).where(User.email == email)
        return session.exec(stmt).first()

    def list_users(self, session: Session, skip: int = 0, limit: int = 50) -> list[User]:
        """
        Paginated user listing, oldest first.

        Args:
            skip: offset rows (for paging)
            limit: max number of rows returned
        """
        stmt = select(User).order_by(User.id).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, user: User) -> User:
        """
        Insert a new User and return the persisted row.

        Raises:
            DuplicateEmail: if the email is already taken.
        """
        if self.get_by_email(session, user.email) is not None:
            raise DuplicateEmail(user.email)
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            # Lost a race with another insert of the same email
            session.rollback()
            raise DuplicateEmail(user.email)
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
