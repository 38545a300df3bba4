"""Deploying builds to Vercel: published sites and private previews."""

from .deployer import Deployment, deploy_files, vercel_framework
from .previewer import PreviewManager, PreviewSettings
from .publisher import PublishManager, PublishSettings
from .slugs import is_valid_slug, slugify, unique_slug

__all__ = [
    "Deployment",
    "PreviewManager",
    "PreviewSettings",
    "PublishManager",
    "PublishSettings",
    "deploy_files",
    "is_valid_slug",
    "slugify",
    "unique_slug",
    "vercel_framework",
]
