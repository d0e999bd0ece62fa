from sqlalchemy.orm import Session

from opstracker.config import settings
from opstracker.crud import user as user_crud
from opstracker.models.user import UserRole
from opstracker.services.attack_service import AttackService
from opstracker.utils.logger import logger


def ensure_initialized(db: Session, attack_json_path: str = None) -> None:
    """First-run setup: initial admin account and MITRE taxonomy"""
    if user_crud.count_users(db) == 0:
        logger.info(f"No users found, creating initial admin '{settings.initial_admin_id}'")
        user_crud.create_user(
            db,
            user_id=settings.initial_admin_id,
            name=settings.initial_admin_name,
            email=settings.initial_admin_email,
            role=UserRole.ADMIN,
        )

    AttackService(attack_json_path or settings.mitre_attack_path).seed(db)
