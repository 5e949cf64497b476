"""Identity mapping between remote CRM records and local rows.

Provides IdentityMappingModel (one row per remote record) and
IdentityMappingStore for first-write-wins lookups and writes.
"""

from src.crm_sync.mapping.models import DEFAULT_REMOTE_SYSTEM, IdentityMappingModel, RemoteType
from src.crm_sync.mapping.store import IdentityMappingStore

__all__ = [
    "DEFAULT_REMOTE_SYSTEM",
    "IdentityMappingModel",
    "IdentityMappingStore",
    "RemoteType",
]
