#!/usr/bin/env python3
"""
Workflow credential checker.
Shows which platform credentials a workflow needs and whether they are connected.
"""

import asyncio
import json
import sys
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()


async def fetch_workflow_credentials(
    workflow_id: str,
    auth_token: str,
    api_url: str = "http://localhost:8000/api/v1",
) -> list[dict[str, Any]]:
    """Fetch credential statuses for a workflow.

    Args:
        workflow_id: Workflow ID
        auth_token: JWT token for the workflow owner
        api_url: Service API URL

    Returns:
        Credential status per required platform
    """
    async with httpx.AsyncClient(timeout=30.0) as client:
        headers = {"Authorization": f"Bearer {auth_token}"}

        logger.info("fetching_workflow_credentials", workflow_id=workflow_id)
        response = await client.get(
            f"{api_url}/workflows/{workflow_id}/credentials",
            headers=headers,
        )
        response.raise_for_status()
        credentials = response.json()["credentials"]

        logger.info(
            "workflow_credentials_fetched",
            count=len(credentials),
            missing=[c["platform"] for c in credentials if not c["connected"]],
        )
        return credentials


def format_status(credential: dict[str, Any]) -> str:
    """Render one credential status as a line of text."""
    mark = "✓" if credential["connected"] else "✗"
    line = f"{mark} {credential['display_name']} ({credential['type']})"

    if credential["type"] == "oauth":
        labels = [
            f"{a['label']} [expired]" if a["is_expired"] else a["label"]
            for a in credential["oauth_accounts"]
        ]
    else:
        labels = [k["name"] for k in credential["api_keys"]]

    if labels:
        line += ": " + ", ".join(labels)
    return line


async def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Check which credentials a workflow needs and whether they are connected"
    )
    parser.add_argument("workflow_id", help="Workflow ID")
    parser.add_argument("--token", required=True, help="Auth token")
    parser.add_argument(
        "--api-url",
        default="http://localhost:8000/api/v1",
        help="API URL",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON")

    args = parser.parse_args()

    try:
        credentials = await fetch_workflow_credentials(
            workflow_id=args.workflow_id,
            auth_token=args.token,
            api_url=args.api_url,
        )
    except Exception as e:
        logger.exception("credential_check_failed", error=str(e))
        print(f"\n✗ Error: {e}\n")
        sys.exit(1)

    if args.json:
        print(json.dumps(credentials, indent=2, ensure_ascii=False))
    else:
        print(f"\n{'=' * 60}")
        print(f"Workflow: {args.workflow_id}")
        print(f"{'=' * 60}")
        if not credentials:
            print("No credentials required")
        for credential in credentials:
            print(format_status(credential))
        print()

    sys.exit(0 if all(c["connected"] for c in credentials) else 1)


if __name__ == "__main__":
    asyncio.run(main())
