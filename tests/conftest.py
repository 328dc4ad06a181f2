import pytest

from mpris_presence.config import Config
from mpris_presence.errors import PresenceError
from mpris_presence.models import TrackRecord


def make_track(**kwargs) -> TrackRecord:
    values = dict(
        title="Song",
        artist="Artist",
        album="Album",
        art_reference="https://example.com/cover.jpg",
        art_is_local=False,
        start=1_000_000,
        length_ms=180_000_000,
        paused=False,
        player="kew",
    )
    values.update(kwargs)
    return TrackRecord(**values)


class FakeSession:
    def __init__(self, discord, app_id):
        self.discord = discord
        self.app_id = app_id

    def set_activity(self, activity):
        self.discord.calls.append(("set_activity", activity))
        if self.discord.fail_set_activity:
            self.discord.fail_set_activity -= 1
            raise PresenceError("pipe closed")

    def clear_activity(self):
        self.discord.calls.append(("clear_activity", None))

    def close(self):
        self.discord.calls.append(("close", None))


class FakeDiscord:
    """Stands in for connect_to_discord; fail counters count down per call."""

    def __init__(self, fail_set_activity=0, fail_connect=0):
        self.fail_set_activity = fail_set_activity
        self.fail_connect = fail_connect
        self.calls = []
        self.connects = 0

    def connect(self, app_id):
        self.connects += 1
        self.calls.append(("connect", app_id))
        if self.fail_connect:
            self.fail_connect -= 1
            raise PresenceError("Discord not running")
        return FakeSession(self, app_id)

    def names(self):
        return [name for name, _ in self.calls]

    def activities(self):
        return [arg for name, arg in self.calls if name == "set_activity"]


@pytest.fixture
def config():
    return Config(retries=3, retry_delay=0.5)


@pytest.fixture
def discord():
    return FakeDiscord()
