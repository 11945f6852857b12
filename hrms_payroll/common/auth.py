# hrms_payroll/common/auth.py
from __future__ import annotations

from functools import wraps
from typing import Optional, Set

from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from hrms_payroll.common.http import fail


# ---------- helpers ----------

def _jwt_roles() -> Set[str]:
    claims = get_jwt() or {}
    return set(claims.get("roles") or [])


def is_admin() -> bool:
    return "admin" in _jwt_roles()


def own_employee_id() -> Optional[int]:
    """
    Employee row id bound to the token (claim 'employee_id'), or None.
    Tokens are issued by the identity service; this app only reads them.
    """
    claims = get_jwt() or {}
    raw = claims.get("employee_id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def can_view_employee(employee_id: int) -> bool:
    if is_admin():
        return True
    own = own_employee_id()
    return own is not None and own == int(employee_id)


# ---------- decorators ----------

def requires_roles(*codes: str):
    """
    Require that the current user has AT LEAST ONE of the given role codes.
    - Roles are read from the JWT 'roles' claim.
    - 'admin' role always passes.
    """
    def outer(fn):
        @wraps(fn)
        @jwt_required()
        def inner(*args, **kwargs):
            if get_jwt_identity() is None:
                return fail("Unauthorized", status=401)

            roles = _jwt_roles()
            if "admin" in roles:
                return fn(*args, **kwargs)

            if not any(r in roles for r in codes):
                return fail("Forbidden", status=403)

            return fn(*args, **kwargs)
        return inner
    return outer
