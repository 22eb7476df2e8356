from fastapi import Depends
from app.dependencies.policy import Action, authorize
from app.models.user import User
from app.utils.token import get_current_user


def require_action(action: Action):
    """Dependency factory: the current user must be allowed ``action``."""
    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        authorize(current_user, action)
        return current_user
    return _dependency


require_admin = require_action(Action.MANAGE_CATALOG)
