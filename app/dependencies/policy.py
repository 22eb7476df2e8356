"""
Authorization policy.

Every role and ownership rule used by the routes lives here so the
endpoints cannot drift apart. ``is_allowed`` answers the question,
``authorize`` turns a refusal into the HTTP error for that action.
"""
from enum import Enum
from typing import Any, Optional

from fastapi import HTTPException, status

from app.models.user import User


class Action(str, Enum):
    PLACE_ORDER = "place_order"
    VIEW_ORDER = "view_order"
    CANCEL_ORDER = "cancel_order"
    PAY_ORDER = "pay_order"
    UPDATE_ORDER_STATUS = "update_order_status"
    MANAGE_CATALOG = "manage_catalog"
    VIEW_REPORTS = "view_reports"
    MODERATE_REVIEWS = "moderate_reviews"


ADMIN_ACTIONS = {
    Action.UPDATE_ORDER_STATUS,
    Action.MANAGE_CATALOG,
    Action.VIEW_REPORTS,
    Action.MODERATE_REVIEWS,
}

# actions on a resource that only its owner may perform
OWNER_ACTIONS = {
    Action.VIEW_ORDER,
    Action.CANCEL_ORDER,
    Action.PAY_ORDER,
}

ADMIN_CANNOT_ORDER = "Administrators cannot place orders. Please use a customer account."


def _owner_id(resource: Any) -> Optional[int]:
    return getattr(resource, "user_id", None)


def is_allowed(user: Optional[User], action: Action, resource: Any = None) -> bool:
    if user is None or not user.can_login:
        return False

    if action in ADMIN_ACTIONS:
        return user.is_admin

    if action == Action.PLACE_ORDER:
        # admin accounts are for catalog management only
        return not user.is_admin

    if action in OWNER_ACTIONS:
        if resource is None:
            return not user.is_admin
        return _owner_id(resource) == user.id

    return False


def authorize(user: Optional[User], action: Action, resource: Any = None) -> None:
    if is_allowed(user, action, resource):
        return

    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    if action == Action.PLACE_ORDER:
        raise HTTPException(status.HTTP_403_FORBIDDEN, ADMIN_CANNOT_ORDER)

    if action in ADMIN_ACTIONS:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Admin access required")

    raise HTTPException(status.HTTP_403_FORBIDDEN, "You do not have access to this order")
