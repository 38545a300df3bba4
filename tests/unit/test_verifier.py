"""Tests for BuildVerifier running real subprocesses in a temp sandbox."""

import sys

import pytest

from builder.generation.verifier import BuildVerifier, VerifyOutcome

OK = [sys.executable, "-c", "pass"]


def script(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def make_verifier(tmp_path, install=OK, build=OK, **kwargs) -> BuildVerifier:
    return BuildVerifier(
        install_command=install,
        build_command=build,
        workdir_root=str(tmp_path),
        **kwargs,
    )


FILES = [
    {"path": "package.json", "content": "{}"},
    {"path": "src/index.js", "content": "console.log('hi')"},
]


@pytest.mark.asyncio
async def test_success_when_both_steps_pass(tmp_path):
    build = script(
        "import os, sys; sys.exit(0 if os.path.exists('src/index.js') else 1)"
    )
    result = await make_verifier(tmp_path, build=build).verify(FILES)

    assert result.ok
    assert result.outcome is VerifyOutcome.SUCCESS
    assert result.diagnostics == ""


@pytest.mark.asyncio
async def test_code_failure_carries_output(tmp_path):
    build = script("import sys; sys.stderr.write('Type error: x is not assignable'); sys.exit(1)")
    result = await make_verifier(tmp_path, build=build).verify(FILES)

    assert result.outcome is VerifyOutcome.CODE_FAILURE
    assert "Type error: x is not assignable" in result.diagnostics


@pytest.mark.asyncio
async def test_install_failure_stops_before_build(tmp_path):
    install = script("import sys; print('resolve failed'); sys.exit(1)")
    build = script("open('built.txt', 'w').write('x')")
    result = await make_verifier(tmp_path, install=install, build=build).verify(FILES)

    assert result.outcome is VerifyOutcome.CODE_FAILURE
    assert "resolve failed" in result.diagnostics


@pytest.mark.asyncio
async def test_diagnostics_are_truncated(tmp_path):
    build = script("import sys; sys.stderr.write('e' * 10000); sys.exit(2)")
    result = await make_verifier(tmp_path, build=build, max_diagnostics=100).verify(FILES)

    assert result.outcome is VerifyOutcome.CODE_FAILURE
    assert len(result.diagnostics) == 100


@pytest.mark.asyncio
async def test_timeout_is_a_code_failure(tmp_path):
    build = script("import time; time.sleep(30)")
    result = await make_verifier(tmp_path, build=build, build_timeout=0.5).verify(FILES)

    assert result.outcome is VerifyOutcome.CODE_FAILURE
    assert "timed out after 0.5s" in result.diagnostics


@pytest.mark.asyncio
async def test_missing_tool_is_infra_failure(tmp_path):
    result = await make_verifier(tmp_path, install=["no-such-tool-for-verifier-tests"]).verify(
        FILES
    )
    assert result.outcome is VerifyOutcome.INFRA_FAILURE


@pytest.mark.asyncio
async def test_exit_127_is_infra_failure(tmp_path):
    result = await make_verifier(tmp_path, build=script("import sys; sys.exit(127)")).verify(FILES)
    assert result.outcome is VerifyOutcome.INFRA_FAILURE


@pytest.mark.asyncio
async def test_infra_marker_in_output_is_infra_failure(tmp_path):
    build = script("import sys; sys.stderr.write('npm ERR! code ENOSPC'); sys.exit(1)")
    result = await make_verifier(tmp_path, build=build).verify(FILES)
    assert result.outcome is VerifyOutcome.INFRA_FAILURE


@pytest.mark.asyncio
async def test_workdir_removed_on_every_path(tmp_path):
    await make_verifier(tmp_path).verify(FILES)
    await make_verifier(tmp_path, build=script("import sys; sys.exit(1)")).verify(FILES)
    await make_verifier(tmp_path, install=["no-such-tool-for-verifier-tests"]).verify(FILES)

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_paths_outside_sandbox_are_skipped(tmp_path):
    root = tmp_path / "sandbox"
    root.mkdir()
    files = [*FILES, {"path": "../escaped.txt", "content": "nope"}]
    verifier = BuildVerifier(install_command=OK, build_command=OK, workdir_root=str(root))

    result = await verifier.verify(files)

    assert result.ok
    assert not (tmp_path / "escaped.txt").exists()
    assert list(root.iterdir()) == []
