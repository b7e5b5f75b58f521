"""Data models - SQLModel entities and runtime models."""

from src.models.account import Account, OAuthConnection
from src.models.credential import (
    ApiKeyRecord,
    CredentialStatus,
    OAuthAccountRecord,
    RequiredCredential,
    UserCredential,
)
from src.models.user import User
from src.models.workflow import (
    Workflow,
    WorkflowConfig,
    WorkflowCreate,
    WorkflowRead,
    WorkflowStatus,
    WorkflowStepNode,
)

__all__ = [
    "Account",
    "ApiKeyRecord",
    "CredentialStatus",
    "OAuthAccountRecord",
    "OAuthConnection",
    "RequiredCredential",
    "User",
    "UserCredential",
    "Workflow",
    "WorkflowConfig",
    "WorkflowCreate",
    "WorkflowRead",
    "WorkflowStatus",
    "WorkflowStepNode",
]
