"""Services layer - Business logic and orchestration."""

from src.services.credential_stores import (
    AccountTableOAuthStore,
    ConnectionTableOAuthStore,
    SQLApiKeyStore,
)
from src.services.workflow_credentials_service import WorkflowCredentialsService
from src.services.workflow_service import WorkflowService

__all__ = [
    "AccountTableOAuthStore",
    "ConnectionTableOAuthStore",
    "SQLApiKeyStore",
    "WorkflowCredentialsService",
    "WorkflowService",
]
