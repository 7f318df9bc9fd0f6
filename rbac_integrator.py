from typing import Any, Dict, List, Optional, Tuple

from api_client import get_client
from domain.errors import ApiError
from domain.models import Permission, Role, User

USERS = "/api/users"
RBAC = "/api/rbac"


# ---------------------------------------------------------------------------
# Users / auth
# ---------------------------------------------------------------------------

def login(email: str, password: str) -> Dict[str, Any]:
    """
    Exchange credentials for a bearer token.
    Returns the raw body: {"access_token": str, "user": {...}, ...}
    """
    return get_client().post(f"{USERS}/login", json={"email": email, "password": password})


def register(data: Dict[str, Any]) -> Dict[str, Any]:
    return get_client().post(f"{USERS}/register", json=data)


def me(token: str) -> User:
    return User.from_api(get_client().get(f"{USERS}/me", token=token))


def list_users(token: str) -> List[User]:
    return [User.from_api(row) for row in get_client().get(f"{USERS}/", token=token) or []]


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

def list_roles(token: Optional[str] = None) -> List[Role]:
    return [Role.from_api(row) for row in get_client().get(f"{RBAC}/roles", token=token) or []]


def create_role(data: Dict[str, Any], token: str) -> Role:
    """
    data: name, slug, level, color, optional description / permission_ids
    """
    return Role.from_api(get_client().post(f"{RBAC}/roles", token=token, json=data))


def update_role(role_id: str, data: Dict[str, Any], token: str) -> Role:
    return Role.from_api(get_client().put(f"{RBAC}/roles/{role_id}", token=token, json=data))


def delete_role(role_id: str, token: str, hard_delete: bool = False) -> None:
    get_client().delete(
        f"{RBAC}/roles/{role_id}",
        token=token,
        params={"hard_delete": str(hard_delete).lower()},
    )


def get_role_permissions(role_id: str, token: Optional[str] = None) -> List[Permission]:
    data = get_client().get(f"{RBAC}/roles/{role_id}/permissions", token=token) or []
    # some backend versions wrap the list in {"permissions": [...]}
    if isinstance(data, dict):
        data = data.get("permissions") or []
    return [Permission.from_api(row) for row in data]


def assign_permissions_to_role(role_id: str, permission_ids: List[str], token: str) -> Any:
    return get_client().put(
        f"{RBAC}/roles/{role_id}/permissions",
        token=token,
        json={"permission_ids": list(permission_ids)},
    )


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

def list_permissions(token: Optional[str] = None) -> List[Permission]:
    return [
        Permission.from_api(row)
        for row in get_client().get(f"{RBAC}/permissions", token=token) or []
    ]


def create_permission(data: Dict[str, Any], token: str) -> Permission:
    """
    data: name, codename, module, action, optional description
    """
    return Permission.from_api(get_client().post(f"{RBAC}/permissions", token=token, json=data))


def update_permission(permission_id: str, data: Dict[str, Any], token: str) -> Permission:
    return Permission.from_api(
        get_client().put(f"{RBAC}/permissions/{permission_id}", token=token, json=data)
    )


def delete_permission(permission_id: str, token: str, hard_delete: bool = False) -> None:
    get_client().delete(
        f"{RBAC}/permissions/{permission_id}",
        token=token,
        params={"hard_delete": str(hard_delete).lower()},
    )


# ---------------------------------------------------------------------------
# User roles
# ---------------------------------------------------------------------------

def assign_role_to_user(user_id: str, role_id: str, token: str) -> Any:
    return get_client().post(
        f"{RBAC}/user-roles",
        token=token,
        json={"user_id": user_id, "role_id": role_id},
    )


def bulk_assign_role_to_users(user_ids: List[str], role_id: str, token: str) -> Any:
    return get_client().post(
        f"{RBAC}/user-roles/bulk-assign-users",
        token=token,
        json={"user_ids": list(user_ids), "role_id": role_id},
    )


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

def get_rbac_stats(token: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns {"roles": ..., "permissions": ..., "user_roles": ...}
    """
    client = get_client()
    return {
        "roles": client.get(f"{RBAC}/stats/roles", token=token),
        "permissions": client.get(f"{RBAC}/stats/permissions", token=token),
        "user_roles": client.get(f"{RBAC}/stats/user-roles", token=token),
    }


# ---------------------------------------------------------------------------
# Form-style wrappers: (ok, message, data)
# ---------------------------------------------------------------------------

def save_role(
        data: Dict[str, Any],
        token: str,
        role_id: Optional[str] = None,
) -> Tuple[bool, str, Optional[Role]]:
    """
    Create or update a role. On create, `permission_ids` in data are assigned
    right after the role exists.
    """
    try:
        if role_id:
            return True, "Updated", update_role(role_id, data, token)

        permission_ids = data.get("permission_ids") or []
        role = create_role(data, token)
        if permission_ids:
            assign_permissions_to_role(role.id, permission_ids, token)
        return True, "Created", role
    except ApiError as e:
        return False, str(e), None


def remove_role(role_id: str, token: str) -> Tuple[bool, str]:
    try:
        delete_role(role_id, token)
        return True, "Deleted"
    except ApiError as e:
        return False, str(e)


def set_user_roles(user_id: str, role_ids: List[str], token: str) -> Tuple[bool, str]:
    """
    Assign every role in `role_ids` to the user, one call per role.
    Stops at the first failure; earlier assignments stay in place.
    """
    for role_id in role_ids:
        try:
            assign_role_to_user(user_id, role_id, token)
        except ApiError as e:
            return False, f"Role {role_id}: {e}"
    return True, "Assigned"


def save_permission(
        data: Dict[str, Any],
        token: str,
        permission_id: Optional[str] = None,
) -> Tuple[bool, str, Optional[Permission]]:
    try:
        if permission_id:
            return True, "Updated", update_permission(permission_id, data, token)
        return True, "Created", create_permission(data, token)
    except ApiError as e:
        return False, str(e), None


def remove_permission(permission_id: str, token: str) -> Tuple[bool, str]:
    try:
        delete_permission(permission_id, token)
        return True, "Deleted"
    except ApiError as e:
        return False, str(e)
