"""Core layer - Pure business logic and algorithms.

Extraction and resolution live in ``src.core.credential_extractor`` and
``src.core.credential_resolver``; they depend on ``src.models`` and are
imported from there directly.
"""

from src.core.platforms import CredentialType, PlatformClassification, classify

__all__ = [
    "CredentialType",
    "PlatformClassification",
    "classify",
]
