"""
Role guards for dispatch and billing endpoints.
"""

from typing import Iterable, List, Optional

from fastapi import Depends

from freight_dispatch.app.core.dependencies import get_current_user
from freight_dispatch.app.core.exceptions import InsufficientPermissionsError
from freight_dispatch.app.models.enums import UserRole

# Move loads; assign drivers, equipment and carriers
DISPATCH_ROLES = [UserRole.ADMIN, UserRole.DISPATCHER]

# Attach invoices
BILLING_ROLES = [UserRole.ADMIN, UserRole.ACCOUNTANT]


def _role_of(claims: dict) -> Optional[UserRole]:
    try:
        return UserRole(claims.get("role"))
    except ValueError:
        return None


def require_role(allowed_roles: Iterable[UserRole]):
    """
    Dependency factory: the caller's token must carry one of `allowed_roles`.

    Usage:
        current_user: dict = Depends(require_role(DISPATCH_ROLES))

    Raises:
        InsufficientPermissionsError: role missing, unknown or not allowed
    """
    allowed: List[UserRole] = list(allowed_roles)

    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if _role_of(current_user) not in allowed:
            raise InsufficientPermissionsError(
                f"Role {current_user.get('role')} may not perform this action",
                details={"required_roles": [role.value for role in allowed]},
            )
        return current_user

    return role_checker
