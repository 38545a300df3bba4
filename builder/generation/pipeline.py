"""Request-scoped build orchestration.

generation stream -> extracted files -> saved as complete -> verify/repair
-> final files saved -> done

The build row is saved as complete before verification starts, so a request
killed during verification still leaves a downloadable, publishable build.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
import time

from shared.contracts.events import BuildEvent, Done, Error, FileComplete
from shared.logging_config import bind_build_context, get_logger
from shared.models import Framework, VerificationState

from builder.llm import CodeModel

from .deadline import DeadlineGuard
from .extractor import StreamingFileExtractor
from .prompts import GENERATION_USER_PROMPT
from .repair import MAX_FIX_ITERATIONS, RepairLoop
from .store import BuildStore, FileCheckpointer
from .usage import UsageMeter
from .verifier import BuildVerifier

logger = get_logger(__name__)

NO_FILES_ERROR = "No files parsed from AI response"
NO_FILES_MESSAGE = "Failed to generate project files. Please try again."


class BuildPipeline:
    def __init__(
        self,
        store: BuildStore,
        model: CodeModel,
        verifier: BuildVerifier,
        usage: UsageMeter | None = None,
        budget: float = 300.0,
        margin: float = 30.0,
        max_fix_iterations: int = MAX_FIX_ITERATIONS,
        event_diagnostics_chars: int = 1500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.model = model
        self.verifier = verifier
        self.usage = usage
        self.budget = budget
        self.margin = margin
        self.max_fix_iterations = max_fix_iterations
        self.event_diagnostics_chars = event_diagnostics_chars
        self.clock = clock

    async def run(
        self,
        build_id: str,
        project_id: str,
        framework: Framework,
        system_prompt: str,
    ) -> AsyncIterator[BuildEvent]:
        deadline = DeadlineGuard(self.budget, self.margin, clock=self.clock)
        extractor = StreamingFileExtractor()
        checkpointer = FileCheckpointer(self.store, build_id)
        saved_files: list[dict[str, str]] = []
        saved_as_complete = False

        bind_build_context(build_id, project_id)
        logger.info("build_started", build_id=build_id, project_id=project_id)
        try:
            hit_deadline = False
            stream = self.model.stream(system_prompt, GENERATION_USER_PROMPT)
            try:
                while True:
                    remaining = deadline.remaining()
                    try:
                        if remaining <= 0:
                            raise TimeoutError
                        # A stalled stream must not outlive the budget
                        delta = await asyncio.wait_for(anext(stream), timeout=remaining)
                    except StopAsyncIteration:
                        break
                    except TimeoutError:
                        hit_deadline = True
                        logger.warning(
                            "generation_deadline_reached",
                            build_id=build_id,
                            files=len(extractor.files),
                        )
                        break
                    for event in extractor.feed(delta):
                        if isinstance(event, FileComplete):
                            checkpointer.submit(extractor.files)
                        yield event
            finally:
                await stream.aclose()

            for event in extractor.finish():
                yield event

            files = extractor.files
            await checkpointer.drain()

            if not files:
                await self.store.mark_failed(build_id, NO_FILES_ERROR)
                logger.warning("build_no_files", build_id=build_id)
                yield Error(message=NO_FILES_MESSAGE)
                return

            skip_verification = (
                framework is Framework.HTML or hit_deadline or not deadline.should_continue()
            )
            verification = VerificationState.SKIPPED if skip_verification else None
            if not await self.store.mark_complete(build_id, files, verification):
                # Finalized elsewhere (download recovery); keep the full file set
                await self.store.save_files(build_id, files)
            saved_as_complete = True
            saved_files = files
            logger.info(
                "build_saved",
                build_id=build_id,
                files=len(files),
                skip_verification=skip_verification,
            )

            final_files = files
            if skip_verification:
                final_verification = VerificationState.SKIPPED
            else:
                repair = RepairLoop(
                    self.verifier,
                    self.model,
                    deadline,
                    max_iterations=self.max_fix_iterations,
                    event_diagnostics_chars=self.event_diagnostics_chars,
                )
                async for event in repair.run(files):
                    yield event
                result = repair.result
                final_files = result.files
                final_verification = result.verification
                await self.store.record_verification(
                    build_id, result.verification, result.files if result.changed else None
                )
                saved_files = final_files

            await self._record_usage(project_id)

            logger.info(
                "build_finished",
                build_id=build_id,
                files=len(final_files),
                verification=final_verification.value,
            )
            yield Done(
                build_id=build_id,
                files=final_files,
                file_count=len(final_files),
                verification=final_verification.value,
            )
        except Exception as e:
            logger.error(
                "build_pipeline_failed",
                build_id=build_id,
                error=str(e),
                error_type=type(e).__name__,
                saved_as_complete=saved_as_complete,
                exc_info=True,
            )
            if saved_as_complete:
                # The saved build stays usable; hand its id back to the client
                yield Done(build_id=build_id, files=saved_files, file_count=len(saved_files))
                return
            try:
                await self.store.mark_failed(build_id, str(e))
            except Exception as db_error:
                logger.error("build_mark_failed_error", build_id=build_id, error=str(db_error))
            yield Error(message=f"Build failed: {e}")

    async def _record_usage(self, project_id: str) -> None:
        if self.usage is None:
            return
        try:
            await self.usage.increment(project_id)
        except Exception as e:
            logger.warning("usage_increment_failed", project_id=project_id, error=str(e))
