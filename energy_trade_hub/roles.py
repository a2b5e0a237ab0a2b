"""
Role Registry

Tracks which principals hold which roles and who may grant them.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Set

from .exceptions import Unauthorized
from .models import Role

# Role required of a caller granting each role
ROLE_ADMINS: Dict[Role, Role] = {
    Role.ADMIN: Role.ADMIN,
    Role.PROVIDER: Role.ADMIN,
    Role.CONSUMER: Role.ADMIN,
}


class RoleRegistry:
    """Principal to role membership table"""

    def __init__(self, admin: Optional[str] = None):
        """
        Initialize the registry.

        Args:
            admin: Bootstrap principal granted the Admin role
        """
        self.members_by_principal: Dict[str, Set[Role]] = defaultdict(set)
        if admin:
            self.members_by_principal[admin].add(Role.ADMIN)

    def has_role(self, role: Role, principal: str) -> bool:
        """Pure membership lookup"""
        return role in self.members_by_principal.get(principal, set())

    def check_role(self, principal: str, role: Role) -> None:
        """
        Capability check used at every guarded entry point.

        Raises:
            Unauthorized: If the principal does not hold the role
        """
        if not self.has_role(role, principal):
            raise Unauthorized(
                f"{principal} does not hold the {role} role",
                principal=principal,
                role=role.value,
            )

    def grant_role(self, role: Role, principal: str, caller: str) -> bool:
        """
        Grant a role to a principal.

        Any caller may grant itself the Consumer role. Every other grant
        requires the caller to hold the admin role for the granted role.

        Args:
            role: Role to grant
            principal: Receiving principal
            caller: Principal requesting the grant

        Returns:
            True if the role was newly granted, False if already held
        """
        self_registration = role == Role.CONSUMER and principal == caller
        if not self_registration:
            self.check_role(caller, ROLE_ADMINS[role])

        if self.has_role(role, principal):
            return False

        self.members_by_principal[principal].add(role)
        return True

    def snapshot(self) -> Dict[str, Set[Role]]:
        return {principal: set(roles) for principal, roles in self.members_by_principal.items()}

    def restore(self, snapshot: Dict[str, Set[Role]]) -> None:
        self.members_by_principal = defaultdict(set, snapshot)

    def roles_of(self, principal: str) -> List[Role]:
        return sorted(self.members_by_principal.get(principal, set()), key=lambda r: r.value)

    def members(self, role: Role) -> List[str]:
        return sorted(
            principal
            for principal, roles in self.members_by_principal.items()
            if role in roles
        )
