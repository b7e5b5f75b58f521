"""Workflow API endpoints.

Handles workflow storage and the credential requirements of a workflow.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, status

from src.api.deps import (
    CurrentUser,
    WorkflowCredentialsServiceDep,
    WorkflowServiceDep,
)
from src.core.credential_extractor import ConfigParseError
from src.models.credential import RequiredCredential, WorkflowCredentialsResponse
from src.models.workflow import WorkflowCreate, WorkflowRead, WorkflowStatus
from src.services.workflow_service import WorkflowNotFoundError

logger = structlog.get_logger()

router = APIRouter()

INVALID_CONFIG_DETAIL = "Invalid workflow configuration"


@router.get("", response_model=list[WorkflowRead])
async def list_workflows(
    user: CurrentUser,
    service: WorkflowServiceDep,
    status_filter: Annotated[WorkflowStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[WorkflowRead]:
    """List user's workflows.

    Args:
        user: Current authenticated user
        service: Workflow service
        status_filter: Filter by workflow status
        limit: Maximum number of results
        offset: Pagination offset

    Returns:
        List of workflows
    """
    return await service.list_all(
        user_id=user.id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=WorkflowRead, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    user: CurrentUser,
    service: WorkflowServiceDep,
    data: WorkflowCreate,
) -> WorkflowRead:
    """Create a new workflow."""
    return await service.create(user_id=user.id, data=data)


@router.get("/{workflow_id}", response_model=WorkflowRead)
async def get_workflow(
    workflow_id: str,
    user: CurrentUser,
    service: WorkflowServiceDep,
) -> WorkflowRead:
    """Get a workflow by ID."""
    try:
        return await service.get(workflow_id=workflow_id, user_id=user.id)
    except WorkflowNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: str,
    user: CurrentUser,
    service: WorkflowServiceDep,
) -> None:
    """Delete a workflow."""
    try:
        await service.delete(workflow_id=workflow_id, user_id=user.id)
    except WorkflowNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e


@router.get("/{workflow_id}/credentials", response_model=WorkflowCredentialsResponse)
async def get_workflow_credentials(
    workflow_id: str,
    user: CurrentUser,
    service: WorkflowCredentialsServiceDep,
) -> WorkflowCredentialsResponse:
    """Get the credentials a workflow needs and whether each is connected.

    A corrupted stored config is reported as a server error. Any other
    failure is logged and answered with an empty list so the UI keeps
    working.

    Args:
        workflow_id: Workflow identifier
        user: Current authenticated user
        service: Workflow credentials service

    Returns:
        Credential status per required platform
    """
    try:
        credentials = await service.get_credential_statuses(
            workflow_id=workflow_id,
            user_id=user.id,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow not found",
        ) from e
    except ConfigParseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INVALID_CONFIG_DETAIL,
        ) from e
    except Exception as e:
        logger.exception(
            "workflow_credentials_failed",
            workflow_id=workflow_id,
            user_id=user.id,
            error_type=type(e).__name__,
        )
        return WorkflowCredentialsResponse(credentials=[])

    return WorkflowCredentialsResponse(credentials=credentials)


@router.get("/{workflow_id}/credentials/required", response_model=list[RequiredCredential])
async def get_required_workflow_credentials(
    workflow_id: str,
    user: CurrentUser,
    service: WorkflowCredentialsServiceDep,
) -> list[RequiredCredential]:
    """List the credentials a workflow references, without checking the user's stores."""
    try:
        return await service.get_required_credentials(
            workflow_id=workflow_id,
            user_id=user.id,
        )
    except WorkflowNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Workflow not found",
        ) from e
    except ConfigParseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INVALID_CONFIG_DETAIL,
        ) from e
    except Exception as e:
        logger.exception(
            "workflow_required_credentials_failed",
            workflow_id=workflow_id,
            user_id=user.id,
            error_type=type(e).__name__,
        )
        return []
