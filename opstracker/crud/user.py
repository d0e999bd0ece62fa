from sqlalchemy.orm import Session
from typing import Optional

from opstracker.models.user import User, UserRole
from opstracker.utils.logger import logger


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def count_users(db: Session) -> int:
    return db.query(User).count()


def create_user(db: Session, user_id: str, name: str, email: Optional[str], role: UserRole) -> User:
    try:
        db_user = User(id=user_id, name=name, email=email, role=role)
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user
    except Exception as e:
        logger.error(f"Error creating user {user_id}: {e}")
        db.rollback()
        raise
