# mpris_presence/metadata_stream.py
import json
import logging
import subprocess
import threading
from typing import Callable, List, Optional, Sequence

from .config import Config
from .errors import MetadataSourceError, MetadataStreamClosed
from .models import TrackRecord
from .updates import Stopped, UpdateChannel

logger = logging.getLogger(__name__)

# playerctl prints this once per metadata change, and an empty line when
# nothing is playing.
PLAYERCTL_FORMAT = (
    '{"title": "{{title}}", '
    '"artist": "{{artist}}", '
    '"album": "{{album}}", '
    '"art_url": "{{mpris:artUrl}}", '
    '"length": "{{mpris:length}}", '
    '"status": "{{status}}", '
    '"player": "{{playerName}}"}'
)


def playerctl_command(config: Config) -> List[str]:
    cmd = [config.playerctl, "--follow", "metadata"]
    if config.player:
        cmd += ["-p", config.player]
    return cmd + ["--format", PLAYERCTL_FORMAT]


def decode_line(line: str) -> Optional[TrackRecord]:
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict):
        return None
    return TrackRecord.from_playerctl(raw)


class MetadataReader(threading.Thread):
    """
    Runs the metadata process and turns its output into updates.

    Decoded tracks go to ``on_track`` (the cover art resolver, which forwards
    them to the channel); blank lines become ``Stopped``. If the process
    can't be started or its output ends while we are not stopping, the error
    is kept in ``self.error`` and the channel is closed so the consumer
    notices.
    """

    def __init__(
        self,
        command: Sequence[str],
        channel: UpdateChannel,
        on_track: Callable[[TrackRecord], None],
    ):
        super().__init__(name="metadata-reader", daemon=True)
        self.command = list(command)
        self.channel = channel
        self.on_track = on_track
        self.error: Optional[MetadataSourceError] = None
        self._process: Optional[subprocess.Popen] = None
        self._stopping = threading.Event()

    def stop(self):
        self._stopping.set()
        process = self._process
        if process is not None and process.poll() is None:
            process.terminate()

    def run(self):
        try:
            self.follow()
        except MetadataSourceError as e:
            self.error = e
        finally:
            self.channel.close()

    def follow(self) -> None:
        try:
            self._process = subprocess.Popen(
                self.command,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise MetadataSourceError(f"could not start {self.command[0]}: {e}") from e

        logger.info("Following metadata from %s (pid %s)", self.command[0], self._process.pid)

        with self._process as process:
            for line in process.stdout:
                self.handle_line(line)
                if self._stopping.is_set():
                    return

            if self._stopping.is_set():
                return
            raise MetadataStreamClosed(process.wait())

    def handle_line(self, line: str) -> None:
        if not line.strip():
            logger.info("Nothing is playing")
            self.channel.send(Stopped())
            return

        track = decode_line(line)
        if track is None:
            # players sometimes race their metadata fields
            logger.debug("Ignoring malformed metadata line: %r", line)
            return
        self.on_track(track)
