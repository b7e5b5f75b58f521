"""Workflow service.

Handles storage and owner-scoped lookup of workflow definitions.
"""

import json

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.workflow import (
    Workflow,
    WorkflowCreate,
    WorkflowRead,
    WorkflowStatus,
)

logger = structlog.get_logger()


class WorkflowServiceError(Exception):
    """Error in workflow service operations."""

    pass


class WorkflowNotFoundError(WorkflowServiceError):
    """Workflow not found or not owned by the requesting user."""

    pass


class WorkflowService:
    """Service for managing workflows.

    Every lookup is scoped to the requesting user: a workflow owned by
    someone else is reported exactly like a missing one.

    Example usage:
        service = WorkflowService(session)

        workflow = await service.create(
            user_id="user-123",
            data=WorkflowCreate(
                name="Daily digest",
                config={"steps": [{"id": "s1", "module": "social.twitter.search"}]},
            ),
        )
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize workflow service.

        Args:
            session: Async database session
        """
        self._session = session

    async def create(
        self,
        user_id: str,
        data: WorkflowCreate,
    ) -> WorkflowRead:
        """Create a new workflow.

        Args:
            user_id: Owner user ID
            data: Workflow creation data

        Returns:
            Created workflow
        """
        workflow = Workflow(
            user_id=user_id,
            name=data.name,
            description=data.description,
            config=json.dumps(data.config),
            status=WorkflowStatus.DRAFT,
        )

        self._session.add(workflow)
        await self._session.commit()
        await self._session.refresh(workflow)

        logger.info(
            "workflow_created",
            workflow_id=workflow.id,
            user_id=user_id,
            step_count=len(data.config.get("steps", [])),
        )

        return WorkflowRead.model_validate(workflow)

    async def get(
        self,
        workflow_id: str,
        user_id: str,
    ) -> WorkflowRead:
        """Get a workflow.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist for this user
        """
        workflow = await self.get_owned(workflow_id, user_id)
        return WorkflowRead.model_validate(workflow)

    async def list_all(
        self,
        user_id: str,
        status: WorkflowStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WorkflowRead]:
        """List user's workflows.

        Args:
            user_id: User ID
            status: Filter by status
            limit: Maximum results
            offset: Pagination offset

        Returns:
            List of workflows
        """
        query = select(Workflow).where(Workflow.user_id == user_id)

        if status:
            query = query.where(Workflow.status == status)

        query = query.order_by(Workflow.updated_at.desc()).limit(limit).offset(offset)

        result = await self._session.execute(query)
        workflows = result.scalars().all()

        return [WorkflowRead.model_validate(w) for w in workflows]

    async def delete(
        self,
        workflow_id: str,
        user_id: str,
    ) -> None:
        """Delete a workflow.

        Raises:
            WorkflowNotFoundError: If workflow doesn't exist for this user
        """
        workflow = await self.get_owned(workflow_id, user_id)

        await self._session.delete(workflow)
        await self._session.commit()

        logger.info(
            "workflow_deleted",
            workflow_id=workflow_id,
            user_id=user_id,
        )

    async def get_owned(
        self,
        workflow_id: str,
        user_id: str,
    ) -> Workflow:
        """Get a workflow entity owned by the user.

        Args:
            workflow_id: Workflow ID
            user_id: Expected owner ID

        Returns:
            Workflow entity

        Raises:
            WorkflowNotFoundError: If not found or owned by another user
        """
        query = select(Workflow).where(
            Workflow.id == workflow_id,
            Workflow.user_id == user_id,
        )
        result = await self._session.execute(query)
        workflow = result.scalar_one_or_none()

        if workflow is None:
            raise WorkflowNotFoundError(f"Workflow '{workflow_id}' not found")

        return workflow
