import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from backend.auth import passwords
from backend.core.errors import ConflictError, NotFoundError, ValidationError
from backend.database import Database, paginate
from backend.models.event import Event
from backend.models.rsvp import Rsvp
from backend.models.user import User

logger = logging.getLogger(__name__)

USER_NOT_FOUND = 'User not found'


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class ProfileChanges:
    name: str | None = None
    email: str | None = None

    def supplied(self) -> dict:
        return {field: value for field, value in vars(self).items() if value is not None}


class UserStore:
    """Registration, credentials and profile maintenance for users."""

    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.now):
        self.database = database
        self._clock = clock

    def register(self, email: str, password: str, name: str, role: str = 'user') -> User:
        email = normalize_email(email)
        now = self._clock()

        with self.database.session() as db:
            if db.query(User.id).filter(User.email == email).first() is not None:
                raise ConflictError('User with this email already exists')

            user = User(
                email=email,
                hashed_password=passwords.hash_password(password),
                name=name,
                role=role,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as error:
                db.rollback()
                raise ConflictError('User with this email already exists') from error
            db.refresh(user)

        logger.info('User %s registered with role %s', user.id, user.role)
        return user

    def authenticate(self, email: str, password: str) -> User | None:
        user = self.find_by_email(email)
        if user is None or not passwords.verify_password(password, user.hashed_password):
            return None
        return user

    def get(self, user_id: int) -> User:
        with self.database.session() as db:
            user = db.get(User, user_id)

        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    def find_by_email(self, email: str) -> User | None:
        with self.database.session() as db:
            return db.query(User).filter(User.email == normalize_email(email)).first()

    def update_profile(self, user_id: int, changes: ProfileChanges) -> User:
        supplied = changes.supplied()
        email = supplied.get('email')
        if email is not None:
            email = supplied['email'] = normalize_email(email)

        if not supplied:
            raise ValidationError('No fields to update')

        with self.database.session() as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError(USER_NOT_FOUND)

            if email is not None:
                taken = db.query(User.id).filter(User.email == email, User.id != user_id).first()
                if taken is not None:
                    raise ConflictError('Email is already taken')

            for field, value in supplied.items():
                setattr(user, field, value)
            user.updated_at = self._clock()

            try:
                db.commit()
            except IntegrityError as error:
                db.rollback()
                raise ConflictError('Email is already taken') from error
            db.refresh(user)

        return user

    def list_users(self, page: int = 1, limit: int | None = 50) -> list[User]:
        with self.database.session() as db:
            query = db.query(User).order_by(User.created_at.desc(), User.id.desc())
            return paginate(query, page, limit).all()

    def delete(self, user_id: int) -> None:
        """Remove a user, their RSVPs, and their authorship of events."""
        with self.database.session() as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError(USER_NOT_FOUND)

            db.query(Rsvp).filter(Rsvp.user_id == user_id).delete(synchronize_session=False)
            db.query(Event).filter(Event.created_by == user_id).update(
                {Event.created_by: None},
                synchronize_session=False,
            )
            db.delete(user)
            db.commit()

        logger.info('User %s deleted', user_id)
