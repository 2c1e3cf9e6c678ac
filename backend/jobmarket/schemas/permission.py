from pydantic import BaseModel


class PermissionEntry(BaseModel):
    id: str
    label: str


class PermissionCatalogOut(BaseModel):
    permissions: list[PermissionEntry]
    roles: dict[str, list[str]]
