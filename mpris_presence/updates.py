# mpris_presence/updates.py
"""
Track updates and the queue that carries them to the presence controller.

There is one consumer. Producers are the metadata reader thread and the
cover upload workers, so the channel is a thread-safe FIFO.
"""
import queue
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from .models import TrackRecord


@dataclass(frozen=True)
class NewTrack:
    track: TrackRecord


@dataclass(frozen=True)
class ArtResolved:
    url: str
    source: str  # local path that was uploaded


@dataclass(frozen=True)
class Stopped:
    pass


TrackUpdate = Union[NewTrack, ArtResolved, Stopped]

_CLOSED = object()


class UpdateChannel:
    def __init__(self):
        self._queue: "queue.Queue" = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, update: TrackUpdate) -> None:
        self._queue.put(update)

    def close(self) -> None:
        """Wake the consumer; anything already queued is still delivered."""
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSED)

    def recv(self, timeout: Optional[float] = None) -> Optional[TrackUpdate]:
        """
        Next update in arrival order, or None once the channel is closed
        and drained (or the timeout expires).
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # keep the marker so later calls see it too
            self._queue.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> Iterator[TrackUpdate]:
        while True:
            update = self.recv()
            if update is None:
                return
            yield update
