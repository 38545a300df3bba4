"""Service test fixtures: the FastAPI app over in-memory storage and a mocked Vercel API."""

import json

import fakeredis
import httpx
import pytest
import respx

from builder.config import Settings, get_settings
from builder.database import get_async_session, get_session_maker
from builder.dependencies import get_code_model, get_redis, get_verifier, get_vercel_client
from builder.generation.store import BuildStore
from builder.main import app
from shared.clients import VercelClient
from shared.models import Framework, Styling

from tests.fixtures.fakes import FakeCodeModel, FakeVerifier, framed

VERCEL_API = "https://api.vercel.com"

GENERATED_FILES = [
    ("package.json", '{"name": "demo", "scripts": {"build": "next build"}}'),
    (
        "app/layout.tsx",
        "export default function RootLayout({ children }) {\n"
        "  return <html><body>{children}</body></html>;\n}",
    ),
    ("app/page.tsx", "export default function Page() { return <h1>Demo</h1>; }"),
]


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def code_model():
    text = framed(GENERATED_FILES)
    return FakeCodeModel([text[i : i + 40] for i in range(0, len(text), 40)])


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def settings():
    return Settings(deploy_poll_interval_seconds=0.01, deploy_poll_timeout_seconds=2)


@pytest.fixture
def vercel_enabled():
    """Set to False in a test module to run without the platform token."""
    return True


@pytest.fixture
async def client(session_maker, redis_client, code_model, verifier, settings, vercel_enabled):
    async def override_session():
        async with session_maker() as session:
            yield session

    async def override_vercel_client():
        if not vercel_enabled:
            yield None
            return
        client = VercelClient("test-token", base_url=VERCEL_API)
        try:
            yield client
        finally:
            await client.close()

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_code_model] = lambda: code_model
    app.dependency_overrides[get_verifier] = lambda: verifier
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_vercel_client] = override_vercel_client

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def vercel_api():
    """Mocked Vercel API accepting uploads and serving READY deployments.

    Preview hosts answer HEAD with 200 unless a test overrides the route.
    """
    with respx.mock(assert_all_called=False) as api:
        api.post(f"{VERCEL_API}/v2/files", name="upload").mock(
            return_value=httpx.Response(200, json={})
        )
        api.post(f"{VERCEL_API}/v13/deployments", name="deploy").mock(
            side_effect=_deployment_created
        )
        api.get(url__regex=rf"{VERCEL_API}/v13/deployments/[^/]+$", name="status").mock(
            return_value=httpx.Response(200, json={"readyState": "READY"})
        )
        api.post(url__regex=rf"{VERCEL_API}/v10/projects/[^/]+/domains$", name="add_domain").mock(
            return_value=httpx.Response(200, json={})
        )
        api.delete(
            url__regex=rf"{VERCEL_API}/v9/projects/[^/]+/domains/.+", name="remove_domain"
        ).mock(return_value=httpx.Response(200, json={}))
        api.head(url__regex=r"https://pv-[0-9a-f]+\.calypso\.build.*", name="preview_head").mock(
            return_value=httpx.Response(200)
        )
        yield api


def _deployment_created(request: httpx.Request) -> httpx.Response:
    name = json.loads(request.content)["name"]
    return httpx.Response(
        200,
        json={
            "id": f"dpl_{name}",
            "projectId": f"prj_{name}",
            "url": f"{name}-abc123.vercel.app",
            "readyState": "QUEUED",
        },
    )


@pytest.fixture
def store(session_maker):
    return BuildStore(session_maker)


@pytest.fixture
def make_project(client):
    async def _make(name: str = "Demo Site", description: str | None = "A demo") -> str:
        resp = await client.post("/api/projects/", json={"name": name, "description": description})
        assert resp.status_code == 201
        return resp.json()["id"]

    return _make


@pytest.fixture
def make_build(store):
    """Seed a complete build directly, bypassing generation."""

    async def _make(
        project_id: str,
        files: list[dict[str, str]] | None = None,
        framework: Framework = Framework.NEXTJS,
    ) -> str:
        config = await store.upsert_config(project_id, framework, Styling.TAILWIND, True)
        build = await store.create_build(project_id, config.id)
        await store.mark_complete(
            build.id, files or [{"path": p, "content": c} for p, c in GENERATED_FILES]
        )
        return build.id

    return _make
