"""Workflow credential extraction.

Finds the external platforms a workflow needs credentials for. Two rules
apply at every step of the config tree:

1. Module keywords: a module path mentioning a known platform
   (``social.twitter.postTweet``) requires that platform.
2. Template references: any ``{{user.<platform>}}`` inside the step inputs,
   at any nesting depth, requires ``<platform>`` verbatim.

Conditional branches (``then`` / ``else``) and nested ``steps`` are walked
with the same rules. The result is the union of both rules over the tree.
"""

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from src.core.platforms import get_credential_type
from src.models.credential import RequiredCredential
from src.models.workflow import WorkflowConfig, WorkflowStepNode

logger = structlog.get_logger()

DEFAULT_MAX_DEPTH = 64

USER_VARIABLE_PATTERN = re.compile(r"\{\{user\.([a-zA-Z0-9_-]+)\}\}")

# Substring of a lower-cased module path -> platform it requires.
MODULE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("twitter", "twitter"),
    ("openai", "openai"),
    ("anthropic", "anthropic"),
    ("claude", "anthropic"),
    ("youtube", "youtube"),
    ("discord", "discord"),
    ("telegram", "telegram"),
    ("instagram", "instagram"),
    ("reddit", "reddit"),
    ("github", "github"),
    ("slack", "slack"),
    ("rapidapi", "rapidapi"),
)


class CredentialAnalysisError(Exception):
    """Error analyzing a workflow's credential requirements."""

    pass


class ConfigParseError(CredentialAnalysisError):
    """Persisted workflow config is not valid JSON."""

    pass


class WorkflowConfigError(CredentialAnalysisError):
    """Workflow config does not have the shape of a step tree."""

    pass


class WorkflowTooDeepError(CredentialAnalysisError):
    """Workflow steps are nested deeper than the analysis allows."""

    def __init__(self, max_depth: int) -> None:
        super().__init__(f"Workflow steps are nested deeper than {max_depth} levels")
        self.max_depth = max_depth


def parse_workflow_config(raw: str | bytes | Mapping[str, Any] | WorkflowConfig) -> WorkflowConfig:
    """Parse a persisted workflow config into a step tree.

    Args:
        raw: JSON text (e.g. from a TEXT column) or already decoded data

    Returns:
        Parsed workflow config

    Raises:
        ConfigParseError: If the text is not valid JSON
        WorkflowConfigError: If the document is not a workflow config
    """
    if isinstance(raw, WorkflowConfig):
        return raw

    data: Any = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Invalid workflow configuration: {e.msg}") from e
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"Invalid workflow configuration: {e.reason}") from e

    if not isinstance(data, Mapping):
        raise WorkflowConfigError(
            f"Workflow configuration must be an object, got {type(data).__name__}"
        )

    try:
        return WorkflowConfig.model_validate(dict(data))
    except ValidationError as e:
        raise WorkflowConfigError(f"Invalid workflow configuration: {e}") from e


def platforms_from_module(module: str) -> set[str]:
    """Get the platforms a module path refers to.

    A path may mention several platforms, e.g. ``ai.anthropic.claude`` or
    ``bridge.slack_to_discord``.
    """
    path = module.lower()
    return {platform for keyword, platform in MODULE_KEYWORDS if keyword in path}


def platforms_from_inputs(value: Any) -> set[str]:
    """Collect ``{{user.<platform>}}`` references from an inputs value.

    Strings are scanned, lists and mappings are walked, any other value
    (numbers, booleans, None) contributes nothing.
    """
    found: set[str] = set()
    pending: list[Any] = [value]

    while pending:
        match pending.pop():
            case str() as text:
                found.update(USER_VARIABLE_PATTERN.findall(text))
            case list() | tuple() as items:
                pending.extend(items)
            case Mapping() as mapping:
                pending.extend(mapping.values())
            case _:
                pass

    return found


def extract_platforms(
    config: WorkflowConfig | Iterable[WorkflowStepNode],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> set[str]:
    """Extract every platform token a workflow references.

    Args:
        config: Parsed workflow config or a sequence of top-level steps
        max_depth: Maximum step nesting depth (top-level steps are depth 1)

    Returns:
        Deduplicated set of platform tokens

    Raises:
        WorkflowTooDeepError: If steps are nested deeper than max_depth
    """
    steps = config.steps if isinstance(config, WorkflowConfig) else list(config)
    platforms: set[str] = set()
    pending: list[tuple[WorkflowStepNode, int]] = [(step, 1) for step in steps]

    while pending:
        step, depth = pending.pop()
        if depth > max_depth:
            raise WorkflowTooDeepError(max_depth)

        if step.module:
            platforms |= platforms_from_module(step.module)
        if step.inputs is not None:
            platforms |= platforms_from_inputs(step.inputs)

        pending.extend((child, depth + 1) for child in step.children())

    return platforms


def analyze_workflow_credentials(
    config: WorkflowConfig | str | bytes | Mapping[str, Any],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[RequiredCredential]:
    """Get the credentials a workflow requires, sorted by platform.

    Args:
        config: Workflow config, parsed or persisted form
        max_depth: Maximum step nesting depth

    Returns:
        Required credentials with their type and template variable
    """
    parsed = parse_workflow_config(config)
    platforms = extract_platforms(parsed, max_depth=max_depth)

    logger.debug(
        "workflow_credentials_extracted",
        step_count=len(parsed.steps),
        platforms=sorted(platforms),
    )

    return [
        RequiredCredential(
            platform=platform,
            type=get_credential_type(platform),
            variable=f"user.{platform}",
        )
        for platform in sorted(platforms)
    ]
