"""Tests for BuildPipeline with scripted model and verifier."""

import time

import pytest

from builder.generation.pipeline import NO_FILES_ERROR, NO_FILES_MESSAGE, BuildPipeline
from builder.generation.store import BuildStore
from shared.contracts.events import Done, Error, FileComplete, FileStart, VerifyFailed
from shared.models import BuildOutput, Framework, Project, Styling

from tests.fixtures.fakes import (
    FakeClock,
    FakeCodeModel,
    FakeVerifier,
    failed,
    framed,
    passed,
)

GENERATED = framed(
    [
        ("package.json", '{"name": "demo"}'),
        ("app/page.tsx", "export default function Page() { return null }"),
    ]
)


def deltas(text: str, size: int = 7) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


class FakeUsage:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.projects: list[str] = []

    async def increment(self, project_id: str) -> int:
        if self.error:
            raise self.error
        self.projects.append(project_id)
        return len(self.projects)


@pytest.fixture
async def store(session_maker):
    async with session_maker() as session:
        session.add(Project(id="proj-1", name="Demo"))
        await session.commit()
    return BuildStore(session_maker)


@pytest.fixture
async def build_id(store):
    config = await store.upsert_config("proj-1", Framework.NEXTJS, Styling.TAILWIND, True)
    build = await store.create_build("proj-1", config.id)
    return build.id


async def reload(session_maker, build_id: str) -> BuildOutput:
    async with session_maker() as session:
        return await session.get(BuildOutput, build_id)


async def run(pipeline: BuildPipeline, build_id: str, framework=Framework.NEXTJS) -> list:
    return [e async for e in pipeline.run(build_id, "proj-1", framework, "system prompt")]


@pytest.mark.asyncio
async def test_successful_build(store, build_id, session_maker):
    model = FakeCodeModel(deltas(GENERATED))
    verifier = FakeVerifier(passed())
    usage = FakeUsage()
    pipeline = BuildPipeline(store, model, verifier, usage=usage, clock=FakeClock())

    events = await run(pipeline, build_id)

    assert [e.path for e in events if isinstance(e, FileStart)] == ["package.json", "app/page.tsx"]
    done = events[-1]
    assert isinstance(done, Done)
    assert done.build_id == build_id
    assert done.file_count == 2
    assert done.verification == "passed"
    assert done.to_sse().startswith('data: {"type":"done","buildId":')

    row = await reload(session_maker, build_id)
    assert row.status == "complete"
    assert row.verification == "passed"
    assert [f["path"] for f in row.files] == ["package.json", "app/page.tsx"]
    assert usage.projects == ["proj-1"]
    assert model.stream_closed


@pytest.mark.asyncio
async def test_repaired_files_are_saved(store, build_id, session_maker):
    model = FakeCodeModel(
        deltas(GENERATED),
        fixes=[framed([("app/page.tsx", "export default function Page() { return 1 }")])],
    )
    verifier = FakeVerifier(failed(), passed())
    pipeline = BuildPipeline(store, model, verifier, clock=FakeClock())

    events = await run(pipeline, build_id)

    assert any(isinstance(e, VerifyFailed) for e in events)
    done = events[-1]
    assert done.verification == "passed"
    assert done.files[1]["content"] == "export default function Page() { return 1 }"

    row = await reload(session_maker, build_id)
    assert row.files == done.files
    assert row.verification == "passed"


@pytest.mark.asyncio
async def test_static_project_skips_verification(store, build_id, session_maker):
    model = FakeCodeModel([framed([("index.html", "<h1>Hi</h1>")])])
    verifier = FakeVerifier(passed())
    pipeline = BuildPipeline(store, model, verifier, clock=FakeClock())

    events = await run(pipeline, build_id, Framework.HTML)

    assert verifier.calls == []
    assert events[-1].verification == "skipped"
    row = await reload(session_maker, build_id)
    assert row.status == "complete"
    assert row.verification == "skipped"


@pytest.mark.asyncio
async def test_zero_files_fails_build(store, build_id, session_maker):
    model = FakeCodeModel(["Sorry, I can't produce that project."])
    usage = FakeUsage()
    pipeline = BuildPipeline(store, model, FakeVerifier(), usage=usage, clock=FakeClock())

    events = await run(pipeline, build_id)

    assert events == [Error(message=NO_FILES_MESSAGE)]
    row = await reload(session_maker, build_id)
    assert row.status == "failed"
    assert row.error == NO_FILES_ERROR
    assert usage.projects == []


@pytest.mark.asyncio
async def test_deadline_during_generation_keeps_completed_files(store, build_id, session_maker):
    clock = FakeClock()
    first = framed([("package.json", "{}")])
    rest = deltas(framed([("app/page.tsx", "x" * 100)]), size=10)

    seen = []

    def on_delta(delta):
        seen.append(delta)
        # Header and some content of the second file have streamed
        if len(seen) == 5:
            clock.advance(280)

    model = FakeCodeModel([first, *rest], on_delta=on_delta)
    verifier = FakeVerifier(passed())
    pipeline = BuildPipeline(store, model, verifier, clock=clock)

    events = await run(pipeline, build_id)

    assert model.stream_closed
    assert verifier.calls == []
    done = events[-1]
    assert isinstance(done, Done)
    assert done.verification == "skipped"
    # The open file is flushed as truncated content
    assert [f["path"] for f in done.files] == ["package.json", "app/page.tsx"]
    row = await reload(session_maker, build_id)
    assert row.status == "complete"
    assert row.files == done.files


@pytest.mark.asyncio
async def test_stream_error_before_save_fails_build(store, build_id, session_maker):
    model = FakeCodeModel(["===FILE: a.ts===\npartial"], stream_error=RuntimeError("overloaded"))
    pipeline = BuildPipeline(store, model, FakeVerifier(), clock=FakeClock())

    events = await run(pipeline, build_id)

    assert events[-1] == Error(message="Build failed: overloaded")
    row = await reload(session_maker, build_id)
    assert row.status == "failed"
    assert row.error == "overloaded"


@pytest.mark.asyncio
async def test_error_after_save_still_returns_done(session_maker, store, build_id):
    class FlakyStore(BuildStore):
        async def record_verification(self, *args, **kwargs):
            raise RuntimeError("connection reset")

    model = FakeCodeModel(deltas(GENERATED))
    pipeline = BuildPipeline(FlakyStore(session_maker), model, FakeVerifier(passed()), clock=FakeClock())

    events = await run(pipeline, build_id)

    done = events[-1]
    assert isinstance(done, Done)
    assert done.build_id == build_id
    assert done.file_count == 2
    row = await reload(session_maker, build_id)
    assert row.status == "complete"


@pytest.mark.asyncio
async def test_already_finalized_build_gets_full_file_set(store, build_id, session_maker):
    await store.mark_complete(build_id, [{"path": "package.json", "content": "{}"}])
    pipeline = BuildPipeline(store, FakeCodeModel([GENERATED]), FakeVerifier(passed()), clock=FakeClock())

    events = await run(pipeline, build_id)

    assert isinstance(events[-1], Done)
    row = await reload(session_maker, build_id)
    assert row.status == "complete"
    assert len(row.files) == 2


@pytest.mark.asyncio
async def test_usage_failure_does_not_fail_build(store, build_id):
    pipeline = BuildPipeline(
        store,
        FakeCodeModel([GENERATED]),
        FakeVerifier(passed()),
        usage=FakeUsage(RuntimeError("redis down")),
        clock=FakeClock(),
    )

    events = await run(pipeline, build_id)

    assert events[-1].verification == "passed"


@pytest.mark.asyncio
async def test_file_complete_events_match_saved_files(store, build_id, session_maker):
    pipeline = BuildPipeline(store, FakeCodeModel(list(GENERATED)), FakeVerifier(), clock=FakeClock())

    events = await run(pipeline, build_id)

    completed = [
        {"path": e.path, "content": e.content} for e in events if isinstance(e, FileComplete)
    ]
    row = await reload(session_maker, build_id)
    assert completed == row.files


@pytest.mark.asyncio
async def test_stalled_stream_is_aborted_at_deadline(store, build_id, session_maker):
    model = FakeCodeModel([framed([("package.json", "{}")])], stall=30)
    verifier = FakeVerifier(passed())
    pipeline = BuildPipeline(store, model, verifier, budget=1.0, margin=0.5)

    started = time.monotonic()
    events = await run(pipeline, build_id)
    elapsed = time.monotonic() - started

    assert elapsed < 1.0
    assert model.stream_closed
    assert verifier.calls == []
    done = events[-1]
    assert isinstance(done, Done)
    assert done.verification == "skipped"
    assert done.files == [{"path": "package.json", "content": "{}"}]
    row = await reload(session_maker, build_id)
    assert row.status == "complete"
