"""Scholaris Domain Tenancy Infrastructure -- PostgreSQL adapters and schema."""

from scholaris.domain.tenancy.infrastructure.provisioning_log import SqlProvisioningLog
from scholaris.domain.tenancy.infrastructure.schema import ensure_schema
from scholaris.domain.tenancy.infrastructure.tenant_store import SqlTenantStore

__all__ = [
    "SqlProvisioningLog",
    "SqlTenantStore",
    "ensure_schema",
]
