"""Tests for platform catalog endpoints."""

import pytest
from httpx import AsyncClient


class TestPlatformEndpoints:
    """Tests for the platform registry API."""

    @pytest.mark.asyncio
    async def test_list_platforms(self, client: AsyncClient):
        response = await client.get("/api/v1/platforms")

        assert response.status_code == 200
        platforms = {p["platform"]: p for p in response.json()}
        assert len(platforms) >= 100
        assert platforms["twitter"]["type"] == "oauth"
        assert platforms["openai"]["type"] == "api_key"

    @pytest.mark.asyncio
    async def test_get_known_platform(self, client: AsyncClient):
        response = await client.get("/api/v1/platforms/github")

        assert response.status_code == 200
        assert response.json() == {
            "platform": "github",
            "type": "oauth",
            "display_name": "GitHub",
            "icon": "Github",
        }

    @pytest.mark.asyncio
    async def test_get_unknown_platform(self, client: AsyncClient):
        """Test that unknown slugs fall back to an API key with a generic icon."""
        response = await client.get("/api/v1/platforms/acme")

        assert response.status_code == 200
        assert response.json() == {
            "platform": "acme",
            "type": "api_key",
            "display_name": "Acme",
            "icon": "Key",
        }
