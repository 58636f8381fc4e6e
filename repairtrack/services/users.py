from typing import Optional

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from repairtrack.models import User
from repairtrack.util.ids import new_id


class UserRepository:
    """Local mirror of identity-provider users, keyed by their opaque subject."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get_by_external_id(self, external_id: str) -> Optional[User]:
        with Session(self.engine) as session:
            return session.exec(select(User).where(User.external_id == external_id)).first()

    def sync_user(self, external_id: str, email: str = "", name: Optional[str] = None) -> User:
        """Create the local row on first sight, refresh email/name afterwards."""
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.external_id == external_id)).first()
            if user is None:
                user = User(id=new_id("usr_"), external_id=external_id, email=email, name=name)
                logger.info("Registered user {} for subject {}", user.id, external_id)
            elif (email and user.email != email) or (name and user.name != name):
                user.email = email or user.email
                user.name = name or user.name
            else:
                return user
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # another request registered the same subject first
                session.rollback()
                return session.exec(select(User).where(User.external_id == external_id)).one()
            session.refresh(user)
            return user
