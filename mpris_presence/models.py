# mpris_presence/models.py
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

LOCAL_FILE_SCHEME = "file://"


def now_ms() -> int:
    return int(time.time() * 1000)


def _text(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def _length(raw: Mapping[str, Any]) -> int:
    try:
        return int(_text(raw, "length"))
    except ValueError:
        return 0


@dataclass(eq=False)
class TrackRecord:
    """
    Snapshot of what the player reports as playing.

    Two records are equal when they describe the same track: the art
    reference, pause state, player and start time are not compared, so an
    uploaded cover URL or a pause toggle never looks like a track change.
    """

    title: str = ""
    artist: str = ""
    album: str = ""
    art_reference: str = ""
    art_is_local: bool = False
    start: int = field(default_factory=now_ms)  # ms since epoch
    length_ms: int = 0  # raw mpris:length, divided by 1000 for display
    paused: bool = True
    player: str = ""

    @classmethod
    def from_playerctl(cls, raw: Mapping[str, Any], now: Optional[int] = None) -> "TrackRecord":
        art = _text(raw, "art_url")
        art_is_local = art.startswith(LOCAL_FILE_SCHEME)
        if art_is_local:
            art = art[len(LOCAL_FILE_SCHEME):]

        return cls(
            title=_text(raw, "title"),
            artist=_text(raw, "artist"),
            album=_text(raw, "album"),
            art_reference=art,
            art_is_local=art_is_local,
            start=now_ms() if now is None else now,
            length_ms=_length(raw),
            # anything but an explicit "Playing" counts as paused
            paused=raw.get("status") != "Playing",
            player=_text(raw, "player"),
        )

    @property
    def key(self) -> Tuple[str, str, str, bool, int]:
        return (self.title, self.artist, self.album, self.art_is_local, self.length_ms)

    def __eq__(self, other):
        if not isinstance(other, TrackRecord):
            return NotImplemented
        return self.key == other.key

    @property
    def end(self) -> int:
        return self.start + self.length_ms // 1000

    def describe(self) -> str:
        return f"{self.title} by {self.artist}" if self.artist else self.title
