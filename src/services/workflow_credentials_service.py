"""Workflow credentials service.

Ties a stored workflow to the credential pipeline: load the user's
workflow, parse its config, extract the platforms it references and
resolve whether the user has each of them connected.
"""

import structlog

from src.config import settings
from src.core.credential_extractor import (
    ConfigParseError,
    analyze_workflow_credentials,
    extract_platforms,
    parse_workflow_config,
)
from src.core.credential_resolver import (
    ApiKeyLookup,
    CredentialStatusResolver,
    OAuthAccountLookup,
)
from src.models.credential import CredentialStatus, RequiredCredential
from src.models.workflow import Workflow, WorkflowConfig
from src.services.workflow_service import WorkflowService

logger = structlog.get_logger()


class WorkflowCredentialsService:
    """Reports the credentials a workflow needs and their connection status.

    Example usage:
        service = WorkflowCredentialsService(workflow_service, oauth_store, api_key_store)
        statuses = await service.get_credential_statuses("wf-1", user_id="user-123")
    """

    def __init__(
        self,
        workflow_service: WorkflowService,
        oauth_lookup: OAuthAccountLookup | None,
        api_key_lookup: ApiKeyLookup,
        max_depth: int | None = None,
    ) -> None:
        self._workflow_service = workflow_service
        self._resolver = CredentialStatusResolver(oauth_lookup, api_key_lookup)
        self._max_depth = settings.workflow_max_depth if max_depth is None else max_depth

    async def get_required_credentials(
        self,
        workflow_id: str,
        user_id: str,
    ) -> list[RequiredCredential]:
        """List the credentials a workflow references.

        Raises:
            WorkflowNotFoundError: If the workflow doesn't exist for this user
            ConfigParseError: If the stored config is not valid JSON
        """
        workflow = await self._workflow_service.get_owned(workflow_id, user_id)
        config = self._parse_config(workflow)
        return analyze_workflow_credentials(config, max_depth=self._max_depth)

    async def get_credential_statuses(
        self,
        workflow_id: str,
        user_id: str,
    ) -> list[CredentialStatus]:
        """Resolve the connection status of each credential a workflow needs.

        Args:
            workflow_id: Workflow ID
            user_id: Requesting (and owning) user ID

        Returns:
            One status per required platform

        Raises:
            WorkflowNotFoundError: If the workflow doesn't exist for this user
            ConfigParseError: If the stored config is not valid JSON
        """
        workflow = await self._workflow_service.get_owned(workflow_id, user_id)
        config = self._parse_config(workflow)
        platforms = extract_platforms(config, max_depth=self._max_depth)

        logger.info(
            "workflow_credentials_required",
            workflow_id=workflow_id,
            user_id=user_id,
            platforms=sorted(platforms),
        )

        return await self._resolver.resolve(sorted(platforms), user_id=user_id)

    def _parse_config(self, workflow: Workflow) -> WorkflowConfig:
        try:
            return parse_workflow_config(workflow.config)
        except ConfigParseError as e:
            logger.error(
                "workflow_config_parse_failed",
                workflow_id=workflow.id,
                error=str(e),
            )
            raise
