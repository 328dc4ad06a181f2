import threading

from mpris_presence.updates import ArtResolved, NewTrack, Stopped, UpdateChannel

from conftest import make_track


class TestUpdateChannel:
    def test_delivers_in_order_until_closed(self):
        channel = UpdateChannel()
        track = make_track()
        updates = [NewTrack(track), ArtResolved(url="u", source="/p"), Stopped()]
        for update in updates:
            channel.send(update)
        channel.close()

        assert list(channel) == updates

    def test_recv_after_close_keeps_returning_none(self):
        channel = UpdateChannel()
        channel.close()
        assert channel.recv() is None
        assert channel.recv() is None
        assert channel.closed

    def test_recv_timeout(self):
        assert UpdateChannel().recv(timeout=0.01) is None

    def test_multiple_producers(self):
        channel = UpdateChannel()

        def produce():
            for _ in range(100):
                channel.send(Stopped())

        threads = [threading.Thread(target=produce) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        channel.close()

        assert len(list(channel)) == 400
