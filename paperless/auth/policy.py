"""Role policy: one table mapping actions to the roles allowed to perform them.

Ownership is not decided here. Documents stay owner-scoped in the service
layer; the ``*_any_owner`` actions only say who may look past that scope.
"""

from fastapi import Depends

from paperless.auth.deps import get_current_user
from paperless.errors import Forbidden, Unauthenticated
from paperless.models.user import Role, User

BOSS_ONLY = frozenset({Role.BOSS.value})

POLICY: dict[str, frozenset[str]] = {
    "users:list": BOSS_ONLY,
    "documents:approve": BOSS_ONLY,
    "documents:list_any_owner": BOSS_ONLY,
    "documents:read_any_owner": BOSS_ONLY,
}


def authorize(identity: User | None, required_roles) -> User:
    if identity is None:
        raise Unauthenticated("Authentication required")
    if identity.role not in required_roles:
        raise Forbidden("Access denied")
    return identity


def permits(identity: User | None, action: str) -> bool:
    return identity is not None and identity.role in POLICY[action]


def require(action: str):
    """Route dependency enforcing ``POLICY[action]`` for the current user."""
    required = POLICY[action]

    def checker(user: User = Depends(get_current_user)) -> User:
        return authorize(user, required)

    return checker
