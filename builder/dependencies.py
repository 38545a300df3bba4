"""FastAPI dependencies wiring settings into services."""

from collections.abc import AsyncGenerator
from functools import lru_cache
import shlex

from fastapi import Depends
import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.clients import VercelClient

from .config import Settings, get_settings
from .database import get_async_session, get_session_maker
from .generation import BuildPipeline, BuildStore, BuildVerifier, UsageMeter
from .llm import CodeModel
from .publishing import PreviewManager, PreviewSettings, PublishManager, PublishSettings


@lru_cache
def _redis_client(redis_url: str) -> redis.Redis:
    return redis.from_url(redis_url, decode_responses=True)


def get_redis(settings: Settings = Depends(get_settings)) -> redis.Redis:
    return _redis_client(settings.redis_url)


def get_code_model(settings: Settings = Depends(get_settings)) -> CodeModel:
    """Chat models for generation and repair.

    Raises KeyError if the provider API key is not configured.
    """
    return CodeModel.from_settings(settings)


def get_verifier(settings: Settings = Depends(get_settings)) -> BuildVerifier:
    return BuildVerifier(
        install_command=shlex.split(settings.install_command),
        build_command=shlex.split(settings.build_command),
        install_timeout=settings.install_timeout_seconds,
        build_timeout=settings.build_timeout_seconds,
        max_diagnostics=settings.diagnostics_max_chars,
        workdir_root=settings.sandbox_root,
    )


def get_build_store(
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> BuildStore:
    return BuildStore(session_maker)


def get_pipeline(
    store: BuildStore = Depends(get_build_store),
    model: CodeModel = Depends(get_code_model),
    verifier: BuildVerifier = Depends(get_verifier),
    client: redis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> BuildPipeline:
    return BuildPipeline(
        store=store,
        model=model,
        verifier=verifier,
        usage=UsageMeter(client),
        budget=settings.build_budget_seconds,
        margin=settings.build_margin_seconds,
        max_fix_iterations=settings.max_fix_iterations,
        event_diagnostics_chars=settings.diagnostics_event_chars,
    )


async def get_vercel_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[VercelClient | None, None]:
    """Platform Vercel client, or None when publishing is not configured."""
    if not settings.vercel_publish_token:
        yield None
        return
    client = VercelClient(
        token=settings.vercel_publish_token,
        team_id=settings.vercel_team_id,
        base_url=settings.vercel_api_url,
    )
    try:
        yield client
    finally:
        await client.close()


def get_publish_manager(
    db: AsyncSession = Depends(get_async_session),
    client: VercelClient | None = Depends(get_vercel_client),
    settings: Settings = Depends(get_settings),
) -> PublishManager:
    return PublishManager(
        db,
        client,
        PublishSettings(
            publish_domain=settings.publish_domain,
            project_prefix=settings.hosting_project_prefix,
            poll_interval=settings.deploy_poll_interval_seconds,
            poll_timeout=settings.deploy_poll_timeout_seconds,
        ),
    )


def get_preview_manager(
    db: AsyncSession = Depends(get_async_session),
    client: VercelClient | None = Depends(get_vercel_client),
    settings: Settings = Depends(get_settings),
) -> PreviewManager:
    return PreviewManager(
        db,
        client,
        PreviewSettings(
            publish_domain=settings.publish_domain,
            project_prefix=settings.hosting_project_prefix,
            poll_interval=settings.deploy_poll_interval_seconds,
            poll_timeout=settings.deploy_poll_timeout_seconds,
            app_url=settings.app_url,
            status_api_origin=settings.status_api_origin,
        ),
    )
