# mpris_presence/discord_rpc.py
import asyncio
import logging
import time
import urllib.parse
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pypresence import Presence
from pypresence.exceptions import PyPresenceException
from pypresence.types import ActivityType

from .config import Config
from .errors import PresenceError
from .models import TrackRecord

logger = logging.getLogger(__name__)

# Discord rejects longer details/state strings
MAX_TEXT = 128

_TRANSPORT_ERRORS = (PyPresenceException, OSError, asyncio.TimeoutError)


@dataclass(frozen=True)
class Activity:
    title: str
    state: str
    image: str
    start: int  # ms since epoch
    end: int
    buttons: List[Tuple[str, str]] = field(default_factory=list)  # (label, url)


def search_url(template: str, title: str, artist: str) -> str:
    q = urllib.parse.quote(f"{title} {artist}", safe="")
    # plain substitution, other braces in the template are left alone
    return template.replace("{query}", q)


def state_text(track: TrackRecord) -> str:
    state = f"by: {track.artist}"
    if track.album:
        state += f", in: {track.album}"
    return state


def is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


def build_activity(track: TrackRecord, config: Config) -> Activity:
    buttons = [("Listen along", search_url(config.search_url, track.title, track.artist))]
    if config.show_secondary_button:
        buttons.append((config.secondary_label, search_url(config.secondary_url, track.title, track.artist)))

    # never hand a local path to Discord, it can only show URLs or app assets
    image = track.art_reference if is_remote(track.art_reference) else config.fallback_image

    return Activity(
        title=track.title[:MAX_TEXT],
        state=state_text(track)[:MAX_TEXT],
        image=image,
        start=track.start,
        end=track.end,
        buttons=buttons,
    )


class DiscordSession:
    """pypresence connection with transport failures raised as PresenceError."""

    def __init__(self, rpc: Presence):
        self.rpc = rpc

    def set_activity(self, activity: Activity) -> None:
        payload = {
            "details": activity.title,
            "state": activity.state,
            "start": activity.start,
            "end": activity.end,
            "activity_type": ActivityType.LISTENING,
        }
        if activity.image:
            payload["large_image"] = activity.image
        if activity.buttons:
            payload["buttons"] = [{"label": label, "url": url} for label, url in activity.buttons[:2]]

        try:
            self.rpc.update(**payload)
        except _TRANSPORT_ERRORS as e:
            raise PresenceError(f"set activity failed: {e}") from e

    def clear_activity(self) -> None:
        try:
            self.rpc.clear()
        except _TRANSPORT_ERRORS as e:
            raise PresenceError(f"clear activity failed: {e}") from e

    def close(self) -> None:
        try:
            self.rpc.close()
        except _TRANSPORT_ERRORS as e:
            raise PresenceError(f"close failed: {e}") from e


def connect_to_discord(app_id: str) -> DiscordSession:
    try:
        rpc = Presence(app_id)
        rpc.connect()
    except _TRANSPORT_ERRORS as e:
        raise PresenceError(f"could not connect to Discord: {e}") from e

    # Give Discord time to send READY payload
    time.sleep(0.3)

    user = getattr(rpc, "user", None) or {}
    name = user.get("username")
    if name:
        disc = user.get("discriminator", "")
        display = f"{name}#{disc}" if disc and disc != "0" else name
        logger.info("Connected to Discord as %s", display)
    else:
        logger.info("Connected to Discord")

    return DiscordSession(rpc)
