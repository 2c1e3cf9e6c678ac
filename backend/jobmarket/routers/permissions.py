"""Permission catalog router.

Endpoints:
    GET /api/permissions    Catalog entries with labels, plus role defaults
"""

from fastapi import APIRouter, Depends

from jobmarket.auth.deps import get_current_user
from jobmarket.auth.permissions import ROLES, defaults_for_role, list_all_permissions, permission_label
from jobmarket.models.user import User
from jobmarket.schemas.permission import PermissionCatalogOut, PermissionEntry

router = APIRouter()


@router.get("", response_model=PermissionCatalogOut)
async def get_catalog(_user: User = Depends(get_current_user)):
    return PermissionCatalogOut(
        permissions=[
            PermissionEntry(id=p, label=permission_label(p))
            for p in sorted(list_all_permissions())
        ],
        roles={role: sorted(defaults_for_role(role)) for role in ROLES},
    )
