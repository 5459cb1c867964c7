from typing import Optional, TypeVar

from lexai.errors import AuthorizationError, NotFoundError
from lexai.models import User
from lexai.utils.logging import logger

T = TypeVar("T")


def require_owned(entity: Optional[T], user: User, noun: str, action: str = "access") -> T:
    """404 when the row is absent, 403 when another user owns it."""
    if entity is None:
        raise NotFoundError(f"{noun.capitalize()} not found")
    if entity.user_id != user.id:
        logger.warning(
            f"user_id={user.id} tried to {action} {noun} id={entity.id} "
            f"owned by user_id={entity.user_id}"
        )
        raise AuthorizationError(f"You are not authorized to {action} this {noun}")
    return entity
