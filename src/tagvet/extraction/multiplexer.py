"""Fan-in: merge tag streams produced concurrently into one iterator."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Generator, Iterable, Sequence
    from concurrent.futures import Future

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Per-stream share of the shared buffer.
BUFFER_PER_STREAM = 50


class _Done:
    """Sentinel enqueued once every producer has finished."""


_DONE = _Done()


class _Producer(Generic[T]):
    """Forward one stream into the shared queue until exhausted or stopped."""

    def __init__(self, out: queue.Queue[object], stop: threading.Event) -> None:
        self._out = out
        self._stop = stop

    def __call__(self, stream: Iterable[T]) -> None:
        for item in stream:
            if not self._put(item):
                return

    def _put(self, item: T) -> bool:
        while not self._stop.is_set():
            try:
                self._out.put(item, timeout=0.1)
            except queue.Full:
                continue
            return True
        return False


def multiplex(
    streams: Sequence[Iterable[T]],
    *,
    buffer_size: int | None = None,
    max_workers: int | None = None,
) -> Generator[T, None, None]:
    """Yield every item of every stream, each stream drained on its own worker.

    Items keep their order within a stream; the interleaving across streams
    is unspecified.  The shared queue is bounded (*buffer_size*, default
    ``50 * len(streams)``) so fast producers block until the consumer catches
    up; a *buffer_size* below 1 is a ``ValueError``.  The iterator ends only after all producers are done.  A producer
    that never finishes stalls the merge; there is no timeout.

    An exception raised by a producer is re-raised here after the other
    producers have drained.  Closing the iterator early stops the producers.
    """
    if buffer_size is not None and buffer_size < 1:
        msg = f"buffer_size must be at least 1, got {buffer_size}"
        raise ValueError(msg)
    if not streams:
        return

    size = buffer_size if buffer_size is not None else BUFFER_PER_STREAM * len(streams)
    workers = len(streams) if max_workers is None else max(1, min(max_workers, len(streams)))

    out: queue.Queue[object] = queue.Queue(maxsize=size)
    stop = threading.Event()
    produce: _Producer[T] = _Producer(out, stop)

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tagvet-extract")
    futures: list[Future[None]] = [executor.submit(produce, stream) for stream in streams]

    def _track_completion() -> None:
        wait(futures)
        out.put(_DONE)

    tracker = threading.Thread(target=_track_completion, name="tagvet-fanin", daemon=True)
    tracker.start()
    logger.debug("Merging %d stream(s) on %d worker(s), buffer %d", len(streams), workers, size)

    finished = False
    try:
        while True:
            item = out.get()
            if item is _DONE:
                finished = True
                break
            yield item  # type: ignore[misc]
    finally:
        if not finished:
            stop.set()
            # Unblock the tracker if the buffer is full.
            while tracker.is_alive():
                try:
                    out.get(timeout=0.1)
                except queue.Empty:
                    continue
        tracker.join()
        executor.shutdown(wait=True)

    for future in futures:
        future.result()
