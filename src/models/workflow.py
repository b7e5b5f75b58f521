"""Workflow entity model.

Defines the Workflow table for storing workflow definitions and the
runtime step tree the credential analysis walks.

Workflows are stored as a JSON document with a tree of steps:
{
    "steps": [
        {"id": str, "module": str, "inputs": {...}},
        {"id": str, "type": "condition", "then": [...], "else": [...]},
        {"id": str, "type": "loop", "steps": [...]}
    ]
}
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from pydantic import field_validator
from sqlmodel import Column, Field, Relationship, SQLModel, Text

if TYPE_CHECKING:
    from src.models.user import User


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def _step_items(value: Any) -> list[Any] | None:
    """Keep only mapping entries of a branch list; anything else is not a step."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        return None
    return [item for item in value if isinstance(item, (dict, BaseModel))]


class WorkflowStatus(str, Enum):
    """Workflow lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class StepKind(str, Enum):
    """Shape of a workflow step, derived from which branch lists it carries."""

    PLAIN = "plain"
    CONDITIONAL = "conditional"  # then / else branches
    SUBFLOW = "subflow"  # nested steps (loops, groups)
    CONDITIONAL_SUBFLOW = "conditional_subflow"


class WorkflowStepNode(BaseModel):
    """A single step of a workflow config tree.

    Only the fields used by credential analysis are typed; anything else
    a step carries (``type``, ``outputAs``, ...) is kept as extra data.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    module: str | None = None
    inputs: Any = None
    then: list["WorkflowStepNode"] | None = None
    else_: list["WorkflowStepNode"] | None = PydanticField(default=None, alias="else")
    steps: list["WorkflowStepNode"] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("module", mode="before")
    @classmethod
    def ignore_non_string_module(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("then", "else_", "steps", mode="before")
    @classmethod
    def filter_branch(cls, v: Any) -> list[Any] | None:
        return _step_items(v)

    @property
    def kind(self) -> StepKind:
        """Tag describing which branch lists this step carries."""
        conditional = self.then is not None or self.else_ is not None
        subflow = self.steps is not None
        if conditional and subflow:
            return StepKind.CONDITIONAL_SUBFLOW
        if conditional:
            return StepKind.CONDITIONAL
        if subflow:
            return StepKind.SUBFLOW
        return StepKind.PLAIN

    def children(self) -> Iterator["WorkflowStepNode"]:
        """Iterate over the direct child steps of every branch."""
        for branch in (self.then, self.else_, self.steps):
            if branch:
                yield from branch


class WorkflowConfig(BaseModel):
    """Top-level workflow configuration document."""

    model_config = ConfigDict(extra="allow")

    steps: list[WorkflowStepNode] = PydanticField(default_factory=list)

    @field_validator("steps", mode="before")
    @classmethod
    def filter_steps(cls, v: Any) -> list[Any]:
        return _step_items(v) or []


class WorkflowBase(SQLModel):
    """Base workflow fields shared across models."""

    name: str = Field(
        max_length=255,
        min_length=1,
        description="Workflow name",
    )
    description: str | None = Field(
        default=None,
        max_length=2000,
        description="Workflow description",
    )


class Workflow(WorkflowBase, table=True):
    """Workflow database entity.

    The config is persisted as JSON text and parsed on demand, so a
    corrupted row surfaces as a parse error when it is analyzed.
    """

    __tablename__ = "workflow"

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique workflow identifier (UUID)",
    )
    user_id: str = Field(
        foreign_key="user.id",
        index=True,
        description="Owner user ID",
    )
    config: str = Field(
        sa_column=Column(Text, nullable=False),
        description="JSON workflow configuration",
    )
    status: WorkflowStatus = Field(
        default=WorkflowStatus.DRAFT,
        description="Workflow lifecycle status",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={"onupdate": utc_now},
        description="Last update timestamp (UTC)",
    )

    # Relationships
    user: "User" = Relationship(back_populates="workflows")


class WorkflowCreate(WorkflowBase):
    """Schema for creating a new workflow."""

    config: dict[str, Any] = Field(
        default_factory=lambda: {"steps": []},
        description="Workflow configuration with a 'steps' list",
    )

    @field_validator("config")
    @classmethod
    def validate_config(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Require a list of steps."""
        if not isinstance(v.get("steps", []), list):
            raise ValueError("'steps' must be a list")
        return v


class WorkflowRead(WorkflowBase):
    """Schema for reading workflow data."""

    id: str
    user_id: str
    config: dict[str, Any]
    status: WorkflowStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("config", mode="before")
    @classmethod
    def parse_config(cls, v: Any) -> Any:
        """Parse config from JSON string or dict."""
        if isinstance(v, str):
            return json.loads(v)
        return v
