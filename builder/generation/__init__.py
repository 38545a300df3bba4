"""Code generation, verification and repair."""

from .deadline import DeadlineGuard
from .extractor import StreamingFileExtractor, merge_files, parse_files
from .lease import BuildLease
from .pipeline import BuildPipeline
from .repair import MAX_FIX_ITERATIONS, RepairLoop, RepairResult
from .store import BuildStore, FileCheckpointer
from .usage import UsageMeter
from .verifier import BuildVerifier, VerificationResult, VerifyOutcome

__all__ = [
    "MAX_FIX_ITERATIONS",
    "BuildLease",
    "BuildPipeline",
    "BuildStore",
    "BuildVerifier",
    "DeadlineGuard",
    "FileCheckpointer",
    "RepairLoop",
    "RepairResult",
    "StreamingFileExtractor",
    "UsageMeter",
    "VerificationResult",
    "VerifyOutcome",
    "merge_files",
    "parse_files",
]
