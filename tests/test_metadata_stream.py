import json

import pytest

from mpris_presence.config import Config
from mpris_presence.errors import MetadataSourceError, MetadataStreamClosed
from mpris_presence.metadata_stream import (
    PLAYERCTL_FORMAT,
    MetadataReader,
    decode_line,
    playerctl_command,
)
from mpris_presence.updates import Stopped, UpdateChannel

LINE = json.dumps({
    "title": "A",
    "artist": "B",
    "album": "",
    "art_url": "file:///tmp/x.jpg",
    "length": "180000000",
    "status": "Playing",
    "player": "kew",
})


def make_reader(command=("true",)):
    channel = UpdateChannel()
    tracks = []
    return MetadataReader(command, channel, tracks.append), channel, tracks


class TestPlayerctlCommand:
    def test_follows_configured_player(self):
        cmd = playerctl_command(Config(player="kew"))
        assert cmd == ["playerctl", "--follow", "metadata", "-p", "kew", "--format", PLAYERCTL_FORMAT]

    def test_any_player(self):
        assert "-p" not in playerctl_command(Config(player=""))

    def test_format_renders_to_json(self):
        rendered = PLAYERCTL_FORMAT
        for placeholder in ("title", "artist", "album", "mpris:artUrl", "mpris:length", "status", "playerName"):
            rendered = rendered.replace("{{%s}}" % placeholder, "x")
        assert set(json.loads(rendered)) == {"title", "artist", "album", "art_url", "length", "status", "player"}


class TestDecodeLine:
    def test_valid(self):
        track = decode_line(LINE)
        assert track.title == "A"
        assert track.art_reference == "/tmp/x.jpg"

    def test_truncated_json(self):
        assert decode_line('{"title": "A", "artist": "B') is None

    def test_not_an_object(self):
        assert decode_line('["A", "B"]') is None


class TestHandleLine:
    def test_track_goes_to_resolver(self):
        reader, channel, tracks = make_reader()
        reader.handle_line(LINE + "\n")
        assert [t.title for t in tracks] == ["A"]
        assert channel.recv(timeout=0) is None

    def test_blank_line_is_stopped(self):
        reader, channel, tracks = make_reader()
        reader.handle_line("\n")
        reader.handle_line("   \n")
        assert channel.recv(timeout=0) == Stopped()
        assert channel.recv(timeout=0) == Stopped()
        assert tracks == []

    def test_malformed_line_ignored(self):
        reader, channel, tracks = make_reader()
        reader.handle_line('{"title": "oops"\n')
        assert tracks == []
        assert channel.recv(timeout=0) is None


class TestFollow:
    def test_missing_executable_is_fatal(self):
        reader, _, _ = make_reader(["/nonexistent/playerctl-missing"])
        with pytest.raises(MetadataSourceError):
            reader.follow()

    def test_eof_is_fatal(self, tmp_path):
        source = tmp_path / "stream.txt"
        source.write_text(LINE + "\n\n", encoding="utf-8")
        reader, channel, tracks = make_reader(["cat", str(source)])

        with pytest.raises(MetadataStreamClosed) as exc:
            reader.follow()

        assert exc.value.returncode == 0
        assert [t.title for t in tracks] == ["A"]
        assert channel.recv(timeout=0) == Stopped()

    def test_thread_reports_error_and_closes_channel(self, tmp_path):
        source = tmp_path / "stream.txt"
        source.write_text("\n", encoding="utf-8")
        reader, channel, _ = make_reader(["cat", str(source)])

        reader.start()
        reader.join(timeout=5)

        assert isinstance(reader.error, MetadataStreamClosed)
        assert list(channel) == [Stopped()]

    def test_stop_is_not_an_error(self):
        reader, channel, _ = make_reader(["sh", "-c", "echo; exec sleep 30"])

        reader.start()
        assert channel.recv(timeout=5) == Stopped()
        reader.stop()
        reader.join(timeout=5)

        assert not reader.is_alive()
        assert reader.error is None
        assert channel.closed
