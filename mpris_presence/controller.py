# mpris_presence/controller.py
import dataclasses
import enum
import logging
import time
from typing import Callable, Optional, Tuple

from .config import Config
from .discord_rpc import DiscordSession, build_activity, connect_to_discord
from .errors import PresenceError
from .models import TrackRecord
from .updates import ArtResolved, NewTrack, Stopped, TrackUpdate, UpdateChannel

logger = logging.getLogger(__name__)


class Transition(enum.Enum):
    NEW_TRACK = "new track"
    REFRESHED = "refreshed"
    ART_UPDATED = "art updated"
    PAUSED = "paused"
    STOPPED = "stopped"
    IGNORED = "ignored"


class PresenceController:
    """
    Applies track updates to a single presence session.

    Only this object touches the session, and updates are handled one at a
    time. A session exists only while something is displayed: it is opened
    on the first activity and closed whenever the activity is cleared.

    Each update is attempted up to ``config.retries`` times. A failed
    attempt throws the session away so the next one reconnects; state is
    only committed once an attempt succeeds.
    """

    def __init__(
        self,
        config: Config,
        connect: Callable[[str], DiscordSession] = connect_to_discord,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._connect = connect
        self._sleep = sleep
        self.session: Optional[DiscordSession] = None
        self.current: Optional[TrackRecord] = None
        self._resolved_art: Optional[Tuple[str, str]] = None  # (local path, url)

    @property
    def connected(self) -> bool:
        return self.session is not None

    def run(self, channel: UpdateChannel) -> None:
        for update in channel:
            self.dispatch(update)
        logger.warning("Update channel closed")

    def dispatch(self, update: TrackUpdate) -> Optional[Transition]:
        attempts = self.config.retries
        for attempt in range(1, attempts + 1):
            try:
                return self.handle(update)
            except PresenceError as e:
                logger.error("Presence update failed (attempt %d/%d): %s", attempt, attempts, e)
                self._drop_session()
                if attempt < attempts:
                    self._sleep(self.config.retry_delay)

        logger.warning("Dropping %s after %d failed attempts", type(update).__name__, attempts)
        return None

    def handle(self, update: TrackUpdate) -> Transition:
        if isinstance(update, NewTrack):
            return self._on_track(update.track)
        if isinstance(update, ArtResolved):
            return self._on_art(update)
        if isinstance(update, Stopped):
            logger.info("No more tracks are playing")
            self._disconnect()
            self.current = None
            return Transition.STOPPED
        raise TypeError(f"unknown track update: {update!r}")

    def shutdown(self) -> None:
        try:
            self._disconnect()
        except PresenceError as e:
            logger.warning("Could not clear presence on exit: %s", e)
            self.session = None

    def _on_track(self, track: TrackRecord) -> Transition:
        track = self._with_resolved_art(track)

        if track.paused:
            if self.connected:
                logger.info("Paused %s", track.describe())
            self._disconnect()
            self.current = track
            return Transition.PAUSED

        if self.current is not None and track == self.current:
            # same track again (resumed, or re-emitted): restart the clock
            self._set_activity(track)
            self.current = track
            return Transition.REFRESHED

        logger.info("Playing %s", track.describe())
        self._set_activity(track)
        self.current = track
        return Transition.NEW_TRACK

    def _on_art(self, update: ArtResolved) -> Transition:
        track = self.current
        if track is None:
            logger.debug("Cover %s resolved with no current track", update.source)
            self._resolved_art = (update.source, update.url)
            return Transition.IGNORED
        if not (track.art_is_local and track.art_reference == update.source):
            logger.debug("Cover %s resolved for a track that is no longer current", update.source)
            # keep the pair the current track is showing, re-emitted records still need it
            if self._resolved_art is None or self._resolved_art[1] != track.art_reference:
                self._resolved_art = (update.source, update.url)
            return Transition.IGNORED

        logger.info("Done uploading the cover image")
        self._resolved_art = (update.source, update.url)
        if not track.paused:
            self._set_activity(dataclasses.replace(track, art_reference=update.url))
        track.art_reference = update.url
        return Transition.ART_UPDATED

    def _with_resolved_art(self, track: TrackRecord) -> TrackRecord:
        if self._resolved_art is None or not track.art_is_local:
            return track
        source, url = self._resolved_art
        if track.art_reference != source:
            return track
        return dataclasses.replace(track, art_reference=url)

    def _set_activity(self, track: TrackRecord) -> None:
        activity = build_activity(track, self.config)
        if self.session is None:
            self.session = self._connect(self.config.app_id)
        self.session.set_activity(activity)

    def _disconnect(self) -> None:
        if self.session is None:
            return
        self.session.clear_activity()
        self.session.close()
        self.session = None

    def _drop_session(self) -> None:
        session, self.session = self.session, None
        if session is None:
            return
        try:
            session.close()
        except PresenceError as e:
            logger.debug("Ignoring close failure on a broken session: %s", e)
