"""Bounded verify -> fix loop."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass

from shared.contracts.events import BuildEvent, FileComplete, Fixing, Verify, VerifyFailed
from shared.logging_config import get_logger
from shared.models import VerificationState

from builder.llm import CodeModel

from .deadline import DeadlineGuard
from .extractor import frame_files, merge_files, parse_files
from .verifier import BuildVerifier, VerifyOutcome

logger = get_logger(__name__)

MAX_FIX_ITERATIONS = 3

FIX_SYSTEM_PROMPT = (
    "You are an expert developer. You will be given a project that failed to build "
    "along with the build error output. Fix ONLY the files that have errors. Output "
    "each fixed file using this exact format:\n\n"
    "===FILE: path/to/file===\nfixed content\n===END FILE===\n\n"
    "Do NOT output files that don't need changes. "
    "Do NOT add explanations outside of file markers."
)

UNRESOLVED_MESSAGE = "Could not fully resolve build errors. Files may need manual fixes."


def build_fix_prompt(diagnostics: str, files: list[dict[str, str]]) -> str:
    return (
        f"BUILD ERRORS:\n\n{diagnostics}\n\n"
        f"PROJECT FILES:\n\n{frame_files(files)}\n\n"
        "Fix the build errors. Output ONLY the changed files."
    )


@dataclass
class RepairResult:
    files: list[dict[str, str]]
    verification: VerificationState
    rounds: int = 0
    fix_calls: int = 0
    changed: bool = False


class RepairLoop:
    """Runs up to `max_iterations` verification rounds over a file set.

    A fix call is only issued after a code failure with rounds left, so at
    most `max_iterations - 1` fix calls happen. `run` yields progress events;
    the outcome is available on `result` once iteration finishes.
    """

    def __init__(
        self,
        verifier: BuildVerifier,
        model: CodeModel,
        deadline: DeadlineGuard,
        max_iterations: int = MAX_FIX_ITERATIONS,
        event_diagnostics_chars: int = 1500,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.verifier = verifier
        self.model = model
        self.deadline = deadline
        self.max_iterations = max_iterations
        self.event_diagnostics_chars = event_diagnostics_chars
        self.result: RepairResult | None = None

    async def run(self, files: list[dict[str, str]]) -> AsyncIterator[BuildEvent]:
        current = [dict(f) for f in files]
        verification = VerificationState.UNRESOLVED
        rounds = 0
        fix_calls = 0

        for iteration in range(1, self.max_iterations + 1):
            if not self.deadline.should_continue():
                logger.warning("repair_deadline_reached", rounds=rounds)
                if rounds == 0:
                    verification = VerificationState.SKIPPED
                break

            rounds = iteration
            try:
                yield Verify(
                    message="Installing dependencies..." if iteration == 1 else "Re-checking build...",
                    iteration=iteration,
                )
                yield Verify(message="Running build...", iteration=iteration)

                result = await self.verifier.verify(current)

                if result.outcome is VerifyOutcome.SUCCESS:
                    yield Verify(message="Build passed!", iteration=iteration)
                    verification = VerificationState.PASSED
                    break

                if result.outcome is VerifyOutcome.INFRA_FAILURE:
                    logger.warning(
                        "verification_unavailable",
                        iteration=iteration,
                        diagnostics=result.diagnostics[:500],
                    )
                    verification = VerificationState.SKIPPED
                    break

                yield VerifyFailed(
                    errors=result.diagnostics[: self.event_diagnostics_chars],
                    iteration=iteration,
                    max_iterations=self.max_iterations,
                )

                if iteration == self.max_iterations or not self.deadline.should_continue():
                    break

                yield Fixing(iteration=iteration)
                fix_calls += 1
                try:
                    response = await asyncio.wait_for(
                        self.model.complete(
                            FIX_SYSTEM_PROMPT, build_fix_prompt(result.diagnostics, current)
                        ),
                        timeout=self.deadline.remaining(),
                    )
                except TimeoutError:
                    logger.warning("repair_fix_deadline_reached", iteration=iteration)
                    break
                fixes = parse_files(response)
                if not fixes:
                    logger.info("repair_no_fixes", iteration=iteration)
                    break

                current = merge_files(current, fixes)
                logger.info(
                    "repair_fixes_applied",
                    iteration=iteration,
                    paths=[f["path"] for f in fixes],
                )
                for fixed in fixes:
                    yield FileComplete(path=fixed["path"], content=fixed["content"])
            except Exception as e:
                logger.error(
                    "repair_round_failed",
                    iteration=iteration,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                break

        if verification is VerificationState.UNRESOLVED:
            yield Verify(message=UNRESOLVED_MESSAGE)

        logger.info(
            "repair_finished",
            verification=verification.value,
            rounds=rounds,
            fix_calls=fix_calls,
        )
        self.result = RepairResult(
            files=current,
            verification=verification,
            rounds=rounds,
            fix_calls=fix_calls,
            changed=current != files,
        )
