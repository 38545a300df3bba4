"""Shared clients for external services."""

from .vercel import FileRef, VercelAPIError, VercelClient, VercelDeploymentFailed

__all__ = [
    "FileRef",
    "VercelAPIError",
    "VercelClient",
    "VercelDeploymentFailed",
]
