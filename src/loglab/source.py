"""
Text sources — a growing sequence of lines.

TailSource follows a file: optional snapshot of what is already there,
then one read per modification event from a byte cursor. The cursor only
ever sits on a line boundary, so a half-written trailing line waits for
the event that completes it and no line is read twice.

StreamSource reads an unbounded line stream (stdin by default), one line
at a time; the next line is read only when the consumer asks for it.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, TextIO, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from loglab.errors import SourceError

logger = logging.getLogger(__name__)


def _strip_eol(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


class TailSource:
    def __init__(self, path: Union[str, Path], from_start: bool = False, observer_factory: Callable[[], Any] = Observer):
        self.path = Path(path)
        self.from_start = from_start
        self.cursor = 0
        self._observer_factory = observer_factory

    def open(self) -> list[str]:
        """Position the cursor and return the snapshot lines to emit (empty unless from_start)."""
        self.cursor = 0
        lines = self.read_new()
        if not self.from_start:
            return []
        return lines

    def read_new(self) -> list[str]:
        """Read every complete line appended since the cursor and advance past them."""
        try:
            with open(self.path, "rb") as f:
                f.seek(self.cursor)
                data = f.read()
        except OSError as e:
            raise SourceError(f"Failed to read {self.path}: {e}", details={"path": str(self.path)})
        end = data.rfind(b"\n")
        if end < 0:
            return []
        complete = data[:end + 1]
        self.cursor += len(complete)
        return [_strip_eol(raw) for raw in complete[:-1].split(b"\n")]

    async def lines(self) -> AsyncIterator[str]:
        for line in self.open():
            yield line

        loop = asyncio.get_running_loop()
        changed = asyncio.Event()
        observer = self._observer_factory()
        observer.schedule(
            _ModifiedHandler(self.path, lambda: loop.call_soon_threadsafe(changed.set)),
            str(self.path.resolve().parent),
            recursive=False,
        )
        observer.start()
        logger.info(f"Watching {self.path} from offset {self.cursor}")
        try:
            # catch anything appended between the snapshot and the watch going live
            for line in self.read_new():
                yield line
            while True:
                await changed.wait()
                changed.clear()
                for line in self.read_new():
                    yield line
        finally:
            observer.stop()
            observer.join()


class _ModifiedHandler(FileSystemEventHandler):
    def __init__(self, path: Path, notify: Callable[[], None]):
        self.path = path.resolve()
        self.notify = notify

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and Path(str(event.src_path)).resolve() == self.path:
            self.notify()


class StreamSource:
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdin

    async def lines(self) -> AsyncIterator[str]:
        while True:
            try:
                line = await asyncio.to_thread(self.stream.readline)
            except (OSError, ValueError) as e:
                raise SourceError(f"Failed to read line from input: {e}")
            if not line:
                return
            yield line.rstrip("\r\n")


TextSource = Union[TailSource, StreamSource]


def open_source(path: Optional[Union[str, Path]] = None, from_start: bool = False) -> TextSource:
    """Pick the source variant: a watched file when a path is given, stdin otherwise."""
    if path is None:
        return StreamSource()
    source = TailSource(path, from_start=from_start)
    if not source.path.is_file():
        raise SourceError(f"Failed to open file: {source.path}", details={"path": str(source.path)})
    return source
