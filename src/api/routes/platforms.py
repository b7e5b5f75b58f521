"""Platform catalog endpoints.

Exposes the platform registry so clients can render credential prompts
(type, display name, icon) for any platform slug.
"""

from fastapi import APIRouter

from src.core.platforms import PlatformClassification, classify, list_known_platforms
from src.models.credential import PlatformInfo

router = APIRouter()


def _to_info(classification: PlatformClassification) -> PlatformInfo:
    return PlatformInfo(
        platform=classification.platform,
        type=classification.type,
        display_name=classification.display_name,
        icon=classification.icon,
    )


@router.get("", response_model=list[PlatformInfo])
async def list_platforms() -> list[PlatformInfo]:
    """List every platform known to the registry."""
    return [_to_info(c) for c in list_known_platforms()]


@router.get("/{platform}", response_model=PlatformInfo)
async def get_platform(platform: str) -> PlatformInfo:
    """Classify a platform slug.

    Unknown slugs are still answered, using the registry fallbacks.
    """
    return _to_info(classify(platform))
