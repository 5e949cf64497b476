"""Remote CRM REST client (read-only, paginated)."""

from src.crm_sync.remote.client import ClientConfig, ConfigurationError, RemoteCRMClient

__all__ = ["ClientConfig", "ConfigurationError", "RemoteCRMClient"]
