"""
Caller Authorization

Every state-changing booking operation receives an explicit AuthContext
and checks it before touching anything else. Admins may act on any
booking; everybody else only on their own.
"""

from dataclasses import dataclass
from typing import Any, Optional

from shared.domain.exceptions import ForbiddenError


@dataclass(frozen=True)
class AuthContext:
    """Who is calling, as established by the authentication layer"""
    caller_id: Optional[Any]
    is_admin: bool = False

    @classmethod
    def system(cls) -> 'AuthContext':
        """Context for scheduled jobs acting on behalf of the hotel"""
        return cls(caller_id=None, is_admin=True)

    def owns(self, user_id) -> bool:
        return self.caller_id is not None and str(self.caller_id) == str(user_id)

    def can_act_for(self, user_id) -> bool:
        return self.is_admin or self.owns(user_id)


def ensure_can_act_for(auth: AuthContext, user_id) -> None:
    if not auth.can_act_for(user_id):
        raise ForbiddenError("You do not have permission to access this booking")


def ensure_admin(auth: AuthContext) -> None:
    if not auth.is_admin:
        raise ForbiddenError("Only administrators can perform this action")
