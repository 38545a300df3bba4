"""Incremental reconstruction of files from a framed model output stream.

The model emits files framed as::

    ===FILE: src/app/page.tsx===
    ...content...
    ===END FILE===

`StreamingFileExtractor.feed` accepts arbitrary text deltas and returns the
progress events they unlock. Text that could still turn out to be part of a
marker is withheld until the next delta, so splitting a stream at any point
produces the same files.
"""

from enum import Enum
import re

from shared.contracts.events import BuildEvent, FileChunk, FileComplete, FileStart
from shared.logging_config import get_logger

logger = get_logger(__name__)

FILE_START_RE = re.compile(r"===FILE:\s*(.+?)===\n")
FILE_START_PREFIX = "===FILE"
FILE_END = "===END FILE==="

# Complete blocks only; used for one-shot responses
FILE_BLOCK_RE = re.compile(r"===FILE:\s*(.+?)===\n([\s\S]*?)===END FILE===")


class _State(Enum):
    SCANNING = "scanning"
    IN_FILE = "in_file"


class StreamingFileExtractor:
    """State machine turning text deltas into file events."""

    def __init__(self) -> None:
        self._state = _State.SCANNING
        self._buffer = ""
        self._path: str | None = None
        self._emitted: list[str] = []
        self._skip_current = False
        self._order: list[str] = []
        self._files: dict[str, str] = {}

    @property
    def files(self) -> list[dict[str, str]]:
        """Completed files in file-start order."""
        return [
            {"path": path, "content": self._files[path]}
            for path in self._order
            if path in self._files
        ]

    @property
    def in_file(self) -> bool:
        return self._state is _State.IN_FILE

    def feed(self, delta: str) -> list[BuildEvent]:
        self._buffer += delta
        events: list[BuildEvent] = []
        while True:
            if self._state is _State.SCANNING:
                if not self._scan_for_start(events):
                    break
            elif not self._scan_for_end(events):
                break
        return events

    def finish(self) -> list[BuildEvent]:
        """Flush a file left open by a truncated or aborted stream."""
        events: list[BuildEvent] = []
        if self._state is _State.IN_FILE:
            content = ("".join(self._emitted) + self._buffer).rstrip()
            if content and not self._skip_current:
                logger.warning("truncated_file_flushed", path=self._path, size=len(content))
                events.append(self._complete(content))
        self._state = _State.SCANNING
        self._buffer = ""
        self._path = None
        self._emitted = []
        return events

    def _scan_for_start(self, events: list[BuildEvent]) -> bool:
        match = FILE_START_RE.search(self._buffer)
        if match is None:
            # Keep everything from the earliest possible marker start
            idx = self._buffer.find(FILE_START_PREFIX)
            if idx == -1:
                self._buffer = self._buffer[-(len(FILE_START_PREFIX) - 1) :]
            else:
                self._buffer = self._buffer[idx:]
            return False

        path = match.group(1).strip()
        self._buffer = self._buffer[match.end() :]
        self._state = _State.IN_FILE
        self._path = path
        self._emitted = []
        # A repeated path keeps its first occurrence
        self._skip_current = not path or path in self._order
        if self._skip_current:
            logger.warning("file_block_ignored", path=path)
        else:
            self._order.append(path)
            events.append(FileStart(path=path))
        return True

    def _scan_for_end(self, events: list[BuildEvent]) -> bool:
        end = self._buffer.find(FILE_END)
        if end != -1:
            content = ("".join(self._emitted) + self._buffer[:end]).rstrip()
            if not self._skip_current:
                events.append(self._complete(content))
            self._buffer = self._buffer[end + len(FILE_END) :]
            self._state = _State.SCANNING
            self._path = None
            self._emitted = []
            return True

        safe_end = len(self._buffer) - len(FILE_END)
        if safe_end > 0:
            chunk = self._buffer[:safe_end]
            self._buffer = self._buffer[safe_end:]
            self._emitted.append(chunk)
            if not self._skip_current:
                events.append(FileChunk(path=self._path, text=chunk))
        return False

    def _complete(self, content: str) -> FileComplete:
        self._files[self._path] = content
        return FileComplete(path=self._path, content=content)


def parse_files(text: str) -> list[dict[str, str]]:
    """Parse complete, non-empty file blocks from a whole response."""
    files: dict[str, str] = {}
    for match in FILE_BLOCK_RE.finditer(text):
        path = match.group(1).strip()
        content = match.group(2).rstrip()
        if path and content and path not in files:
            files[path] = content
    return [{"path": path, "content": content} for path, content in files.items()]


def merge_files(
    current: list[dict[str, str]], changes: list[dict[str, str]]
) -> list[dict[str, str]]:
    """Replace files by path, appending new paths at the end."""
    merged = [dict(f) for f in current]
    index = {f["path"]: i for i, f in enumerate(merged)}
    for change in changes:
        if change["path"] in index:
            merged[index[change["path"]]] = dict(change)
        else:
            index[change["path"]] = len(merged)
            merged.append(dict(change))
    return merged


def frame_files(files: list[dict[str, str]]) -> str:
    """Render files in the framing format the model is asked to produce."""
    return "\n\n".join(f"===FILE: {f['path']}===\n{f['content']}\n{FILE_END}" for f in files)
