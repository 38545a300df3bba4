"""Sandbox build verification.

Each call materializes the file set into a fresh temporary directory, runs the
install and build commands under their own timeouts, and removes the directory
again on every exit path.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import errno
from enum import Enum
import os
from pathlib import Path
import shutil
import signal
import tempfile

from shared.logging_config import get_logger

logger = get_logger(__name__)

# Output fragments meaning the sandbox itself is unusable
INFRA_MARKERS = ("ENOENT", "command not found", "ENOSPC", "ENOMEM")
INFRA_ERRNOS = {errno.ENOENT, errno.ENOSPC, errno.ENOMEM, errno.EACCES}
COMMAND_NOT_FOUND_EXIT = 127


class VerifyOutcome(str, Enum):
    SUCCESS = "success"
    CODE_FAILURE = "code_failure"
    INFRA_FAILURE = "infra_failure"


@dataclass
class VerificationResult:
    outcome: VerifyOutcome
    diagnostics: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is VerifyOutcome.SUCCESS


class BuildVerifier:
    """Installs dependencies and builds a file set in a disposable directory."""

    def __init__(
        self,
        install_command: Sequence[str],
        build_command: Sequence[str],
        install_timeout: float = 120.0,
        build_timeout: float = 120.0,
        max_diagnostics: int = 4000,
        workdir_root: str | None = None,
    ):
        self.steps = (
            ("install", list(install_command), install_timeout),
            ("build", list(build_command), build_timeout),
        )
        self.max_diagnostics = max_diagnostics
        self.workdir_root = workdir_root

    async def verify(self, files: list[dict[str, str]]) -> VerificationResult:
        try:
            workdir = tempfile.mkdtemp(prefix="site-build-", dir=self.workdir_root)
        except OSError as e:
            logger.warning("sandbox_unavailable", error=str(e))
            return VerificationResult(VerifyOutcome.INFRA_FAILURE, str(e))

        try:
            try:
                written = self._materialize(Path(workdir), files)
            except OSError as e:
                if e.errno in INFRA_ERRNOS:
                    logger.warning("sandbox_write_failed", error=str(e))
                    return VerificationResult(VerifyOutcome.INFRA_FAILURE, str(e))
                raise
            logger.info("sandbox_prepared", workdir=workdir, files=written)

            for step, command, timeout in self.steps:
                result = await self._run(step, command, workdir, timeout)
                if result is not None:
                    return result
            return VerificationResult(VerifyOutcome.SUCCESS)
        finally:
            await self._cleanup(workdir)

    @staticmethod
    def _materialize(root: Path, files: list[dict[str, str]]) -> int:
        resolved_root = root.resolve()
        written = 0
        for item in files:
            target = (resolved_root / item["path"]).resolve()
            if not target.is_relative_to(resolved_root) or target == resolved_root:
                logger.warning("sandbox_path_rejected", path=item["path"])
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(item["content"], encoding="utf-8")
            written += 1
        return written

    async def _run(
        self, step: str, command: list[str], workdir: str, timeout: float
    ) -> VerificationResult | None:
        """Run one step; None means it succeeded."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=workdir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            if isinstance(e, FileNotFoundError) or e.errno in INFRA_ERRNOS:
                logger.warning("verify_tool_unavailable", step=step, error=str(e))
                return VerificationResult(VerifyOutcome.INFRA_FAILURE, str(e))
            raise

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.warning("verify_step_timeout", step=step, timeout=timeout)
            return VerificationResult(
                VerifyOutcome.CODE_FAILURE, f"`{' '.join(command)}` timed out after {timeout:g}s"
            )
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        if proc.returncode == 0:
            logger.info("verify_step_passed", step=step)
            return None

        output = "\n".join(
            text
            for text in (
                stderr.decode("utf-8", errors="replace"),
                stdout.decode("utf-8", errors="replace"),
            )
            if text
        )
        if proc.returncode == COMMAND_NOT_FOUND_EXIT or any(m in output for m in INFRA_MARKERS):
            logger.warning("verify_infra_failure", step=step, returncode=proc.returncode)
            return VerificationResult(VerifyOutcome.INFRA_FAILURE, output[: self.max_diagnostics])

        logger.info("verify_step_failed", step=step, returncode=proc.returncode)
        return VerificationResult(VerifyOutcome.CODE_FAILURE, output[: self.max_diagnostics])

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        await proc.wait()

    @staticmethod
    async def _cleanup(workdir: str) -> None:
        try:
            await asyncio.to_thread(shutil.rmtree, workdir)
        except OSError as e:
            logger.warning("sandbox_cleanup_failed", workdir=workdir, error=str(e))
