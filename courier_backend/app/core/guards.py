"""
Security guards for role-based access control.
"""

from typing import List
from fastapi import Depends
from courier_backend.app.core.exceptions import InsufficientPermissionsError
from courier_backend.app.models.enums import UserRole
from courier_backend.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/rider/cashouts")
        async def request_cashout(current_user: dict = Depends(require_role([UserRole.RIDER]))):
            ...

    Raises:
        InsufficientPermissionsError (403) if the token role is missing,
        unknown or not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise InsufficientPermissionsError("Role information missing from token")

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise InsufficientPermissionsError("Invalid role in token")

        if user_role not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}",
                details={"role": user_role.value}
            )

        return current_user

    return role_checker


require_rider = require_role([UserRole.RIDER])
require_admin = require_role([UserRole.ADMIN])
