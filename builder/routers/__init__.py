"""Routers package."""

from . import builds, deploy, health, preview, projects, publish

__all__ = [
    "builds",
    "deploy",
    "health",
    "preview",
    "projects",
    "publish",
]
