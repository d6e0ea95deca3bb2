# app/deps/security.py
from typing import Iterable

from fastapi import Depends, Request

from app.auth_token import Principal, get_current_principal
from app.errors import AuthorizationError

STAFF_ROLES = ("admin", "organizer")


def require_user(principal: Principal = Depends(get_current_principal)) -> Principal:
    """401 if not authenticated; returns the principal otherwise."""
    return principal


def require_roles(roles: Iterable[str], *, allow_same_user: bool = False, id_param: str = "id"):
    """403 unless the principal has one of ``roles``.

    With ``allow_same_user`` the principal whose uid equals the ``id_param``
    path parameter is also let through.
    """

    allowed = tuple(roles)

    def _dependency(
        request: Request,
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if principal.role in allowed:
            return principal
        if allow_same_user and request.path_params.get(id_param) == principal.uid:
            return principal
        raise AuthorizationError(
            f"Access denied. Required roles: {', '.join(allowed)}. Your role: {principal.role}"
        )

    return _dependency


require_staff = require_roles(STAFF_ROLES)
