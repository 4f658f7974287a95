"""Authenticated caller identity supplied by the upstream auth layer."""

from pydantic import BaseModel, ConfigDict

from .enums import UserRole


class Principal(BaseModel):
    """The tenant (or admin) making a request."""

    model_config = ConfigDict(strict=True)

    tenant_id: str
    role: UserRole = UserRole.TENANT
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_manage(self, owner_id: str) -> bool:
        """Owners manage their own bookings; admins manage all."""
        return self.is_admin or self.tenant_id == owner_id
